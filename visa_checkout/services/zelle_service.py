import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from visa_checkout.config import settings
from visa_checkout.constants.order_status import PaymentMethod, PaymentStatus, ZelleStatus
from visa_checkout.errors import NotFoundError, ValidationError
from visa_checkout.models.order import VisaOrder
from visa_checkout.models.zelle_payment import ZellePayment
from visa_checkout.services.order_email_service import send_zelle_rejection_email
from visa_checkout.services.order_service import get_order
from visa_checkout.services.reconciliation import (
    apply_payment_status,
    event_idempotency_key,
    run_completion_side_effects,
)
from visa_checkout.services.token_service import issue_prefill_token

logger = logging.getLogger(__name__)


def _get_zelle_payment(session: Session, order: VisaOrder) -> ZellePayment:
    if order.payment_method != PaymentMethod.zelle.value:
        raise ValidationError("Order was not paid with Zelle")

    payment = session.exec(
        select(ZellePayment)
        .where(ZellePayment.order_id == order.id)
        .order_by(ZellePayment.created_at.desc())
    ).first()
    if not payment:
        raise NotFoundError("Zelle payment not found")
    return payment


def _client_prefill(order: VisaOrder) -> dict:
    return {
        "client_name": order.client_name,
        "client_email": order.client_email,
        "client_whatsapp": order.client_whatsapp,
        "client_country": order.client_country,
        "client_nationality": order.client_nationality,
        "client_observations": order.client_observations,
        "extra_units": order.extra_units,
    }


def checkout_retry_link(product_slug: str, token: str, app_url: Optional[str] = None) -> str:
    return f"{(app_url or settings.APP_URL).rstrip('/')}/checkout/visa/{product_slug}?prefill={token}"


def process_zelle_rejection(
    session: Session,
    order_id: Optional[str],
    rejection_reason: Optional[str],
    processed_by: Optional[str],
    app_url: Optional[str] = None,
) -> str:
    """
    Fail the order, mark the Zelle proof rejected and email the client a
    pre-filled checkout link. Returns the prefill token.
    """
    if not processed_by:
        raise ValidationError("processed_by is required")

    order = get_order(session, order_id)
    zelle_payment = _get_zelle_payment(session, order)

    zelle_payment.status = ZelleStatus.rejected.value
    zelle_payment.admin_notes = rejection_reason
    zelle_payment.processed_by_user_id = processed_by
    zelle_payment.updated_at = datetime.utcnow()
    session.add(zelle_payment)

    prefill = issue_prefill_token(session, order.product_slug, order.seller_id, _client_prefill(order))

    # commits the zelle row and the prefill token together with the order
    apply_payment_status(
        session,
        order,
        PaymentStatus.failed,
        source="zelle",
        meta={"processed_by": processed_by, "reason": rejection_reason},
    )
    session.refresh(prefill)

    send_zelle_rejection_email(
        session,
        order,
        checkout_url=checkout_retry_link(order.product_slug, prefill.token, app_url),
        rejection_reason=rejection_reason,
    )

    logger.info(f"[Zelle] Payment rejected for order {order.order_number} by {processed_by}")
    return prefill.token


def approve_zelle_payment(
    session: Session,
    order_id: Optional[str],
    processed_by: Optional[str],
) -> VisaOrder:
    if not processed_by:
        raise ValidationError("processed_by is required")

    order = get_order(session, order_id)
    zelle_payment = _get_zelle_payment(session, order)

    now = datetime.utcnow()
    zelle_payment.status = ZelleStatus.approved.value
    zelle_payment.processed_by_user_id = processed_by
    zelle_payment.admin_approved_at = now
    zelle_payment.updated_at = now
    session.add(zelle_payment)

    completed = apply_payment_status(
        session,
        order,
        PaymentStatus.completed,
        source="zelle",
        meta={"processed_by": processed_by, "zelle_payment_id": zelle_payment.id},
    )

    if completed:
        run_completion_side_effects(
            session,
            order,
            idempotency_key=event_idempotency_key("zelle", zelle_payment.id, "approved"),
        )

    logger.info(f"[Zelle] Payment approved for order {order.order_number} by {processed_by}")
    return order
