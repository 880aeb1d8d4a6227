import logging
import secrets
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from visa_checkout.constants.order_status import PaymentMethod, PaymentStatus
from visa_checkout.errors import NotFoundError, ProviderError
from visa_checkout.models.order import VisaOrder
from visa_checkout.models.payment import Payment
from visa_checkout.models.product import VisaProduct
from visa_checkout.schemas.checkout_schemas import CheckoutSessionRequest, ZelleCheckoutRequest
from visa_checkout.schemas.payment_metadata import PaymentMetadata
from visa_checkout.services.fee_calculator import FeeBreakdown
from visa_checkout.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 5

CheckoutPayload = Union[CheckoutSessionRequest, ZelleCheckoutRequest]


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ORD-YYYYMMDD-NNNN. Uniqueness is enforced by the table, not here."""
    now = now or datetime.utcnow()
    return f"ORD-{now.strftime('%Y%m%d')}-{secrets.randbelow(10000):04d}"


def get_order(session: Session, order_id: Optional[str]) -> VisaOrder:
    order = session.get(VisaOrder, order_id) if order_id else None
    if not order:
        raise NotFoundError("Order not found")
    return order


def find_order_by(session: Session, column, value) -> Optional[VisaOrder]:
    if not value:
        return None
    return session.exec(select(VisaOrder).where(column == value)).first()


def _build_metadata(
    *,
    total: Decimal,
    fees: FeeBreakdown,
    extra_units: int,
    calculation_type: str,
    ip_address: Optional[str],
    payment_id: Optional[str],
) -> dict:
    return PaymentMetadata(
        base_amount=f"{total:.2f}",
        final_amount=f"{fees.gross_amount:.2f}",
        fee_amount=f"{fees.fee_amount:.2f}",
        fee_percentage=str(fees.fee_percentage),
        currency=fees.currency,
        exchange_rate=f"{fees.exchange_rate:.4f}" if fees.exchange_rate else None,
        extra_units=extra_units,
        calculation_type=calculation_type,
        ip_address=ip_address,
        payment_id=payment_id,
    ).to_json()


def _create_payment_record(
    session: Session,
    *,
    amount: Decimal,
    currency: str,
    service_request_id: Optional[str],
) -> Optional[Payment]:
    """Best effort: a failed ledger insert never blocks the order."""
    payment = Payment(
        service_request_id=service_request_id,
        amount=float(amount),
        currency=currency.upper(),
        status="pending",
    )
    try:
        session.add(payment)
        session.commit()
        session.refresh(payment)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("[Checkout] Error creating payment record")
        return None

    return payment


def create_visa_order(
    session: Session,
    *,
    payload: CheckoutPayload,
    product: VisaProduct,
    total: Decimal,
    payment_method: PaymentMethod,
    fees: FeeBreakdown,
) -> Tuple[VisaOrder, Optional[Payment]]:
    """
    Insert the payments ledger row, then the pending order.

    If the order insert fails nothing is returned and the payment row (if any)
    stays behind without an order.
    """
    payment = _create_payment_record(
        session,
        amount=total,
        currency=fees.currency,
        service_request_id=payload.service_request_id,
    )

    has_documents = bool(payload.contract_document_url and payload.contract_selfie_url)
    metadata = _build_metadata(
        total=total,
        fees=fees,
        extra_units=payload.extra_units,
        calculation_type=product.calculation_type,
        ip_address=payload.ip_address,
        payment_id=payment.id if payment else None,
    )

    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        order = VisaOrder(
            order_number=generate_order_number(),
            product_slug=product.slug,
            seller_id=payload.seller_id or None,
            service_request_id=payload.service_request_id or None,
            base_price_usd=product.base_price_usd,
            extra_units=payload.extra_units,
            extra_unit_label=product.extra_unit_label,
            extra_unit_price_usd=product.extra_unit_price,
            calculation_type=product.calculation_type,
            total_price_usd=float(total),
            client_name=payload.client_name,
            client_email=payload.client_email,
            client_whatsapp=payload.client_whatsapp or None,
            client_country=payload.client_country or None,
            client_nationality=payload.client_nationality or None,
            client_observations=payload.client_observations or None,
            payment_method=payment_method.value,
            payment_status=PaymentStatus.pending.value,
            zelle_proof_url=getattr(payload, "zelle_proof_url", None),
            contract_document_url=payload.contract_document_url or None,
            contract_selfie_url=payload.contract_selfie_url or None,
            contract_accepted=has_documents,
            contract_signed_at=datetime.utcnow() if has_documents else None,
            ip_address=payload.ip_address or None,
            payment_metadata=metadata,
        )

        try:
            session.add(order)
            session.flush()
            log_order_event(
                session,
                order.id,
                event_type="order_created",
                label=f"Order {order.order_number} created ({payment_method.value})",
                meta={"total_price_usd": float(total), "seller_id": order.seller_id},
            )
            session.commit()
        except IntegrityError:
            session.rollback()
            logger.warning(
                f"[Checkout] Order number collision, retrying (attempt {attempt})"
            )
            continue
        except SQLAlchemyError:
            session.rollback()
            logger.exception("[Checkout] Error creating order")
            raise ProviderError("Failed to create order")

        session.refresh(order)
        if payment:
            payment.order_id = order.id
            session.add(payment)
            session.commit()
        return order, payment

    logger.error("[Checkout] Could not allocate a unique order number")
    raise ProviderError("Failed to create order")
