import logging
from datetime import datetime
from typing import Optional

import stripe
from sqlmodel import Session

from visa_checkout.config import settings
from visa_checkout.constants.order_status import PaymentMethod
from visa_checkout.errors import ProviderError
from visa_checkout.models.order import VisaOrder
from visa_checkout.models.payment import Payment
from visa_checkout.models.product import VisaProduct
from visa_checkout.services.fee_calculator import FeeBreakdown

logger = logging.getLogger(__name__)

stripe.set_app_info("MIGMA Visa Services", version="1.0.0")


def _stripe_options() -> dict:
    if not settings.stripe_secret_key:
        suffix = "PROD" if settings.is_stripe_production else "TEST"
        raise ProviderError(f"Missing STRIPE_SECRET_KEY_{suffix}")
    return {
        "api_key": settings.stripe_secret_key,
        "stripe_version": settings.STRIPE_API_VERSION,
    }


def build_anti_chargeback_metadata(order: VisaOrder) -> dict:
    """Stored on the Stripe session so a dispute response can cite it."""
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "product_slug": order.product_slug,
        "seller_id": order.seller_id or "",
        "extra_units": str(order.extra_units),
        "calculation_type": order.calculation_type,
        "terms_accepted": "true",
        "terms_version": settings.TERMS_VERSION,
        "data_authorization": "true",
        "ip_address": order.ip_address or "",
        "service_request_id": order.service_request_id or "",
        "anti_chargeback": "enabled",
    }


def _line_item_description(order: VisaOrder, product: VisaProduct) -> str:
    description = product.description or product.name
    if order.extra_units > 0 and product.allow_extra_units:
        label = (product.extra_unit_label or "units").lower()
        description = f"{description} ({order.extra_units} {label})"
    return description


def create_checkout_session(
    order: VisaOrder,
    product: VisaProduct,
    fees: FeeBreakdown,
    payment_method: PaymentMethod,
    site_url: Optional[str] = None,
):
    site_url = (site_url or settings.SITE_URL).rstrip("/")
    is_pix = payment_method == PaymentMethod.stripe_pix

    try:
        checkout_session = stripe.checkout.Session.create(
            payment_method_types=["pix"] if is_pix else ["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": fees.currency.lower(),
                        "product_data": {
                            "name": product.name,
                            "description": _line_item_description(order, product),
                        },
                        "unit_amount": fees.gross_cents,
                    },
                    "quantity": 1,
                }
            ],
            mode="payment",
            success_url=f"{site_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{site_url}/checkout/cancel?order_id={order.id}",
            customer_email=order.client_email,
            metadata=build_anti_chargeback_metadata(order),
            billing_address_collection="required",
            phone_number_collection={"enabled": True},
            **_stripe_options(),
        )
    except stripe.StripeError as e:
        logger.error(f"[Checkout] Stripe error for order {order.order_number}: {e}")
        raise ProviderError(getattr(e, "user_message", None) or str(e))

    return checkout_session


def attach_session(
    session: Session,
    order: VisaOrder,
    payment: Optional[Payment],
    checkout_session_id: str,
):
    """Persist the provider session id on the order and its ledger row."""
    order.stripe_session_id = checkout_session_id
    order.updated_at = datetime.utcnow()
    session.add(order)

    if payment:
        payment.external_payment_id = checkout_session_id
        payment.raw_webhook_log = {
            "session_id": checkout_session_id,
            "created_at": datetime.utcnow().isoformat(),
        }
        payment.updated_at = datetime.utcnow()
        session.add(payment)

    session.commit()
