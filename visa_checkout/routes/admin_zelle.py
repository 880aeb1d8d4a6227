from fastapi import APIRouter, Depends
from sqlmodel import Session

from visa_checkout.database import get_session
from visa_checkout.schemas.contract_schemas import ZelleReviewRequest
from visa_checkout.services.zelle_service import approve_zelle_payment, process_zelle_rejection

router = APIRouter()


@router.post("/approve")
def approve_zelle(data: ZelleReviewRequest, session: Session = Depends(get_session)):
    order = approve_zelle_payment(session, data.order_id, data.processed_by)
    return {
        "success": True,
        "message": "Zelle payment approved",
        "order_number": order.order_number,
        "payment_status": order.payment_status,
    }


@router.post("/reject")
def reject_zelle(data: ZelleReviewRequest, session: Session = Depends(get_session)):
    process_zelle_rejection(
        session,
        data.order_id,
        data.rejection_reason,
        data.processed_by,
        app_url=data.app_url,
    )
    return {"success": True, "message": "Zelle payment rejected"}
