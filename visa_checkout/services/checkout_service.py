import logging
from typing import Optional

from sqlmodel import Session

from visa_checkout.constants.order_status import PaymentMethod, ZelleStatus
from visa_checkout.models.zelle_payment import ZellePayment
from visa_checkout.schemas.checkout_schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    WiseCheckoutRequest,
    WiseCheckoutResponse,
    ZelleCheckoutRequest,
    ZelleCheckoutResponse,
)
from visa_checkout.services.fee_calculator import calculate_fees
from visa_checkout.services.order_service import create_visa_order
from visa_checkout.services.product_service import calculate_total, get_active_product
from visa_checkout.services.stripe_checkout import attach_session, create_checkout_session
from visa_checkout.services.wise_checkout import (
    attach_transfer,
    check_wise_config,
    create_wise_transfer,
    payment_url_for,
)

logger = logging.getLogger(__name__)


def start_stripe_checkout(
    session: Session,
    payload: CheckoutSessionRequest,
    site_url: Optional[str] = None,
) -> CheckoutSessionResponse:
    """
    Card / PIX checkout: price the product, write the pending order and open
    a hosted Stripe session for it.
    """
    product = get_active_product(session, payload.product_slug)
    total = calculate_total(product, payload.extra_units)

    payment_method = (
        PaymentMethod.stripe_pix if payload.payment_method == "pix" else PaymentMethod.stripe_card
    )
    fees = calculate_fees(
        total,
        payment_method,
        exchange_rate=payload.exchange_rate if payment_method == PaymentMethod.stripe_pix else None,
    )

    order, payment = create_visa_order(
        session,
        payload=payload,
        product=product,
        total=total,
        payment_method=payment_method,
        fees=fees,
    )

    checkout_session = create_checkout_session(order, product, fees, payment_method, site_url)
    attach_session(session, order, payment, checkout_session.id)

    logger.info(
        f"[Checkout] Session created: session_id={checkout_session.id} "
        f"order={order.order_number} amount={fees.gross_amount} {fees.currency}"
    )

    return CheckoutSessionResponse(
        checkout_url=checkout_session.url,
        session_id=checkout_session.id,
        order_id=order.id,
        order_number=order.order_number,
    )


def start_zelle_checkout(
    session: Session,
    payload: ZelleCheckoutRequest,
) -> ZelleCheckoutResponse:
    """
    Zelle orders stay pending until an admin checks the uploaded proof.
    """
    product = get_active_product(session, payload.product_slug)
    total = calculate_total(product, payload.extra_units)
    fees = calculate_fees(total, PaymentMethod.zelle)

    order, _ = create_visa_order(
        session,
        payload=payload,
        product=product,
        total=total,
        payment_method=PaymentMethod.zelle,
        fees=fees,
    )

    zelle_payment = ZellePayment(
        order_id=order.id,
        amount=float(total),
        currency="USD",
        screenshot_url=payload.zelle_proof_url,
        status=ZelleStatus.pending_verification.value,
    )
    session.add(zelle_payment)
    session.commit()

    logger.info(f"[Zelle] Order {order.order_number} awaiting proof verification")

    return ZelleCheckoutResponse(
        order_id=order.id,
        order_number=order.order_number,
        payment_status=order.payment_status,
    )


def start_wise_checkout(
    session: Session,
    payload: WiseCheckoutRequest,
) -> WiseCheckoutResponse:
    """
    Wise checkout: write the pending order at the net price, then create the
    Wise transfer the client pays into. The webhook completes the order.
    """
    check_wise_config()

    product = get_active_product(session, payload.product_slug)
    total = calculate_total(product, payload.extra_units)
    fees = calculate_fees(total, PaymentMethod.wise)

    order, _ = create_visa_order(
        session,
        payload=payload,
        product=product,
        total=total,
        payment_method=PaymentMethod.wise,
        fees=fees,
    )

    result = create_wise_transfer(order, source_currency=payload.client_currency.upper())
    attach_transfer(session, order, result)
    payment_url = payment_url_for(result["transfer"])

    logger.info(
        f"[Wise Checkout] Order {order.order_number} waiting for transfer "
        f"{order.wise_transfer_id}: {payment_url}"
    )

    return WiseCheckoutResponse(
        order_id=order.id,
        order_number=order.order_number,
        transfer_id=order.wise_transfer_id,
        quote_id=str(result["quote"]["id"]),
        recipient_id=order.wise_recipient_id,
        payment_url=payment_url,
        status=order.wise_payment_status,
    )
