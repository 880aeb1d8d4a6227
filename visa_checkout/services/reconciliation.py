"""
Shared reconciliation steps for every payment provider.

Each provider handler maps its own event to a PaymentStatus and calls
apply_payment_status(). Status writes always *set* the value, so a provider
re-delivering the same event lands on the same final state.

The status commit and the notifications are separate steps: once the order
row is committed, contract PDF generation and emails run one by one and a
failure in any of them is only logged.
"""
import hashlib
import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from visa_checkout.constants.order_status import PaymentStatus
from visa_checkout.models.order import VisaOrder
from visa_checkout.services.contract_pdf_service import generate_contract_pdf
from visa_checkout.services.order_email_service import send_payment_confirmation_email
from visa_checkout.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)


def event_idempotency_key(*parts) -> str:
    raw = ":".join(str(p) for p in parts if p is not None)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def apply_payment_status(
    session: Session,
    order: VisaOrder,
    new_status: Optional[PaymentStatus],
    *,
    source: str,
    provider_fields: Optional[dict] = None,
    meta: Optional[dict] = None,
) -> bool:
    """
    Set provider fields and, when new_status is given, payment_status.

    Returns True when the order ends up completed by this event.
    """
    previous = order.payment_status

    for field, value in (provider_fields or {}).items():
        setattr(order, field, value)

    if new_status is not None:
        order.payment_status = new_status.value

    order.updated_at = datetime.utcnow()
    session.add(order)

    label = (
        f"Payment {previous} -> {order.payment_status} via {source}"
        if order.payment_status != previous
        else f"Payment status unchanged ({previous}) via {source}"
    )
    log_order_event(
        session,
        order.id,
        event_type="payment_status",
        label=label,
        created_by=source,
        meta=meta,
    )
    session.commit()
    session.refresh(order)

    logger.info(f"[{source}] Order {order.order_number}: {label}")
    return new_status == PaymentStatus.completed


def run_completion_side_effects(
    session: Session,
    order: VisaOrder,
    idempotency_key: Optional[str] = None,
):
    """Contract PDF then one client confirmation email. Each step is independent."""
    try:
        generate_contract_pdf(session, order)
    except Exception:
        session.rollback()
        logger.exception(f"Error generating contract PDF for order {order.order_number}")

    if not send_payment_confirmation_email(session, order, idempotency_key=idempotency_key):
        logger.warning(f"Confirmation email not sent for order {order.order_number}")
