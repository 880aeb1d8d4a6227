import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlmodel import Session

from visa_checkout.database import get_session
from visa_checkout.errors import SignatureError
from visa_checkout.services.stripe_webhook import handle_stripe_webhook
from visa_checkout.services.wise_webhook import handle_wise_webhook

logger = logging.getLogger(__name__)

router = APIRouter()


# handlers are sync (DB, PDF, SMTP retry sleeps) and run in the threadpool


@router.post("/wise")
async def wise_webhook(request: Request, session: Session = Depends(get_session)):
    # raw bytes: the signature covers the exact body Wise sent
    body = await request.body()
    return await run_in_threadpool(
        handle_wise_webhook, session, body, request.headers.get("X-Signature-SHA256")
    )


@router.post("/stripe")
async def stripe_webhook(request: Request, session: Session = Depends(get_session)):
    body = await request.body()
    try:
        return await run_in_threadpool(
            handle_stripe_webhook, session, body, request.headers.get("Stripe-Signature")
        )
    except SignatureError as e:
        logger.error(f"[Stripe Webhook] {e.message}")
        return JSONResponse(status_code=400, content={"error": e.message})
