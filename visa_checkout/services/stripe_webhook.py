import json
import logging
from datetime import datetime
from typing import Optional

import stripe
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from visa_checkout.config import settings
from visa_checkout.constants.order_status import (
    PaymentMethod,
    PaymentStatus,
    STRIPE_EVENT_TRANSITIONS,
)
from visa_checkout.errors import SignatureError
from visa_checkout.models.order import VisaOrder
from visa_checkout.models.payment import Payment
from visa_checkout.schemas.payment_metadata import PaymentMetadata
from visa_checkout.services.order_service import find_order_by
from visa_checkout.services.reconciliation import (
    apply_payment_status,
    event_idempotency_key,
    run_completion_side_effects,
)

logger = logging.getLogger(__name__)


def construct_stripe_event(body: bytes, signature: Optional[str]) -> dict:
    """Verify the Stripe-Signature header and return the event as plain dicts."""
    if not signature:
        raise SignatureError("No signature")

    secret = settings.stripe_webhook_secret
    if not secret:
        raise SignatureError("Stripe webhook secret not configured")

    payload = body.decode("utf-8")
    try:
        stripe.WebhookSignature.verify_header(
            payload, signature, secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
        )
        return json.loads(payload)
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise SignatureError(f"Invalid signature: {e}")


def _payment_method_for(event_type: str, checkout_session) -> PaymentMethod:
    if event_type == "checkout.session.async_payment_succeeded":
        return PaymentMethod.stripe_pix

    types = checkout_session.get("payment_method_types") or []
    return PaymentMethod.stripe_pix if "pix" in types else PaymentMethod.stripe_card


def _update_payment_record(
    session: Session,
    order: VisaOrder,
    status: str,
    event,
    checkout_session,
):
    try:
        payment = session.exec(
            select(Payment).where(
                (Payment.order_id == order.id)
                | (Payment.external_payment_id == checkout_session["id"])
            )
        ).first()
        if not payment:
            return

        payment.status = status
        payment.external_payment_id = checkout_session.get("payment_intent") or checkout_session["id"]
        payment.raw_webhook_log = {
            "event_type": event["type"],
            "event_id": event["id"],
            "session_id": checkout_session["id"],
            "payment_intent": checkout_session.get("payment_intent"),
            "updated_at": datetime.utcnow().isoformat(),
        }
        payment.updated_at = datetime.utcnow()
        session.add(payment)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"[Stripe Webhook] Error updating payment record for {order.order_number}")


def process_stripe_event(session: Session, event) -> bool:
    event_type = event["type"]
    transition = STRIPE_EVENT_TRANSITIONS.get(event_type)
    if not transition:
        logger.info(f"[Stripe Webhook] Unhandled event type: {event_type}")
        return False

    checkout_session = event["data"]["object"]
    order = find_order_by(session, VisaOrder.stripe_session_id, checkout_session["id"])
    if not order:
        logger.warning(f"[Stripe Webhook] Order not found: {checkout_session['id']}")
        return False

    new_status, payment_row_status = transition
    provider_fields = {}

    if new_status == PaymentStatus.completed:
        method = _payment_method_for(event_type, checkout_session)
        metadata = PaymentMetadata.from_order(order.payment_metadata)
        if metadata:
            metadata.payment_method = "pix" if method == PaymentMethod.stripe_pix else "card"
            metadata.session_id = checkout_session["id"]
            metadata.completed_at = datetime.utcnow().isoformat()
            provider_fields["payment_metadata"] = metadata.to_json()

        provider_fields["payment_method"] = method.value
        provider_fields["stripe_payment_intent_id"] = checkout_session.get("payment_intent")

    completed = apply_payment_status(
        session,
        order,
        new_status,
        source="stripe",
        provider_fields=provider_fields,
        meta={"event_id": event["id"], "event_type": event_type},
    )

    _update_payment_record(session, order, payment_row_status, event, checkout_session)

    if completed:
        run_completion_side_effects(
            session,
            order,
            idempotency_key=event_idempotency_key("stripe", checkout_session["id"], "completed"),
        )

    return True


def handle_stripe_webhook(session: Session, body: bytes, signature: Optional[str]) -> dict:
    """Raises SignatureError on bad signatures; the route answers 400 as Stripe expects."""
    event = construct_stripe_event(body, signature)
    logger.info(f"[Stripe Webhook] Event received: {event['type']} ({event['id']})")

    processed = process_stripe_event(session, event)
    return {"received": True, "processed": processed}
