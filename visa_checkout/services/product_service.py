from decimal import Decimal

from sqlmodel import Session, select

from visa_checkout.constants.order_status import CalculationType
from visa_checkout.errors import NotFoundError
from visa_checkout.models.product import VisaProduct


def get_active_product(session: Session, slug: str) -> VisaProduct:
    product = session.exec(
        select(VisaProduct).where(
            VisaProduct.slug == slug,
            VisaProduct.is_active == True,  # noqa: E712
        )
    ).first()

    if not product:
        raise NotFoundError("Product not found or inactive")

    return product


def calculate_total(product: VisaProduct, extra_units: int) -> Decimal:
    """Net price before provider fees."""
    unit_price = Decimal(str(product.extra_unit_price or 0))
    units_total = unit_price * extra_units

    if product.calculation_type == CalculationType.units_only.value:
        # zero units means zero, never the base price
        return units_total

    return Decimal(str(product.base_price_usd or 0)) + units_total
