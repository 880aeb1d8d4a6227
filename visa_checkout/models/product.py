from datetime import datetime
from uuid import uuid4

from sqlmodel import SQLModel, Field

from visa_checkout.constants.order_status import CalculationType


class VisaProduct(SQLModel, table=True):
    __tablename__ = "visa_products"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    slug: str = Field(index=True, unique=True)
    name: str
    description: str = ""

    base_price_usd: float = 0
    extra_unit_price: float = 0
    extra_unit_label: str = "Dependents"
    calculation_type: str = Field(default=CalculationType.base_plus_units.value)
    allow_extra_units: bool = True

    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
