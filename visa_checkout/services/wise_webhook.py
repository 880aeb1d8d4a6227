import hashlib
import hmac
import json
import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from visa_checkout.config import settings
from visa_checkout.constants.order_status import (
    WISE_STATE_CHANGE_EVENT,
    WISE_STATE_TRANSITIONS,
)
from visa_checkout.errors import SignatureError
from visa_checkout.models.order import VisaOrder
from visa_checkout.models.wise_transfer import WiseTransfer
from visa_checkout.schemas.webhook_schemas import WiseWebhookEvent
from visa_checkout.services.order_service import find_order_by
from visa_checkout.services.reconciliation import (
    apply_payment_status,
    event_idempotency_key,
    run_completion_side_effects,
)

logger = logging.getLogger(__name__)


def compute_wise_signature(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_wise_signature(body: bytes, signature: Optional[str], secret: Optional[str]):
    """Raises SignatureError unless signature is the hex HMAC-SHA256 of body."""
    if not signature:
        raise SignatureError("Missing X-Signature-SHA256 header")
    if not secret:
        raise SignatureError("WISE_WEBHOOK_SECRET not configured")

    expected = compute_wise_signature(body, secret)
    if not hmac.compare_digest(expected, signature.strip().lower()):
        raise SignatureError("Invalid webhook signature")


def _sync_transfer_record(session: Session, order: VisaOrder, transfer_id: str, state: str, details: dict):
    """Mirror the provider state on wise_transfers. Failure here is logged only."""
    try:
        transfer = session.exec(
            select(WiseTransfer).where(WiseTransfer.wise_transfer_id == transfer_id)
        ).first()
        if not transfer:
            transfer = WiseTransfer(wise_transfer_id=transfer_id, order_id=order.id)

        transfer.status = state
        transfer.status_details = details
        transfer.updated_at = datetime.utcnow()
        session.add(transfer)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"[Wise Webhook] Error updating wise_transfers for {transfer_id}")


def process_wise_event(session: Session, event: WiseWebhookEvent) -> bool:
    """
    Apply one verified Wise event. Returns False when the event is ignored
    (other event type, no transfer id, or no matching order).
    """
    data = event.data
    transfer_id = data.transfer_id
    current_state = data.current_state

    logger.info(
        f"[Wise Webhook] Processing event: {event.event_type} "
        f"transfer={transfer_id} state={current_state}"
    )

    if event.event_type != WISE_STATE_CHANGE_EVENT or not transfer_id:
        logger.info(f"[Wise Webhook] Ignoring event type: {event.event_type}")
        return False

    order = find_order_by(session, VisaOrder.wise_transfer_id, transfer_id)
    if not order:
        logger.warning(f"[Wise Webhook] Order not found for transfer {transfer_id}")
        return False

    _sync_transfer_record(session, order, transfer_id, current_state, data.model_dump())

    completed = apply_payment_status(
        session,
        order,
        WISE_STATE_TRANSITIONS.get(current_state),
        source="wise",
        provider_fields={"wise_payment_status": current_state},
        meta={
            "transfer_id": transfer_id,
            "current_state": current_state,
            "previous_state": data.previous_state,
        },
    )

    if completed:
        run_completion_side_effects(
            session,
            order,
            idempotency_key=event_idempotency_key("wise", transfer_id, current_state),
        )

    return True


def handle_wise_webhook(session: Session, body: bytes, signature: Optional[str]) -> dict:
    """
    Entry point for POST /webhooks/wise. Always answers with an ack so Wise
    does not retry; unauthenticated requests are acknowledged and dropped.
    """
    if not signature:
        logger.info("[Wise Webhook] Request without signature - likely a test from Wise UI")
        return {"received": True, "message": "Webhook endpoint is ready"}

    if not settings.WISE_WEBHOOK_SECRET:
        logger.info("[Wise Webhook] Signature present but WISE_WEBHOOK_SECRET not configured")
        return {"received": True, "message": "Webhook endpoint is ready (secret not configured yet)"}

    try:
        verify_wise_signature(body, signature, settings.WISE_WEBHOOK_SECRET)
    except SignatureError as e:
        logger.error(f"[Wise Webhook] {e.message}")
        return {"received": True, "processed": False}

    try:
        event = WiseWebhookEvent.model_validate(json.loads(body))
    except (ValueError, PydanticValidationError):
        logger.exception("[Wise Webhook] Malformed event body")
        return {"received": True, "processed": False}

    processed = process_wise_event(session, event)
    return {"received": True, "processed": processed}
