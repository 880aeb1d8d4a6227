from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from visa_checkout.config import settings
from visa_checkout.database import get_session
from visa_checkout.services.email_service import smtp_configured

router = APIRouter()


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError:
        db_status = "failed"

    return {
        "status": "ok",
        "database": db_status,
        "stripe_env": "production" if settings.is_stripe_production else "test",
        "stripe_configured": bool(settings.stripe_secret_key),
        "wise_webhook_configured": bool(settings.WISE_WEBHOOK_SECRET),
        "wise_checkout_configured": bool(settings.WISE_PERSONAL_TOKEN),
        "smtp_configured": smtp_configured(),
        "timestamp": datetime.utcnow().isoformat(),
    }
