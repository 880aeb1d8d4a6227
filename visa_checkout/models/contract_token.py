from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

from visa_checkout.constants.order_status import ContractType


class ContractViewToken(SQLModel, table=True):
    __tablename__ = "visa_contract_view_tokens"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_id: str = Field(foreign_key="visa_orders.id", index=True)
    token: str = Field(index=True, unique=True)

    # None = never expires
    expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ResubmissionToken(SQLModel, table=True):
    __tablename__ = "visa_contract_resubmission_tokens"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_id: str = Field(foreign_key="visa_orders.id", index=True)
    token: str = Field(index=True, unique=True)
    contract_type: str = Field(default=ContractType.contract.value)

    expires_at: datetime
    used_at: Optional[datetime] = None

    created_by: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CheckoutPrefillToken(SQLModel, table=True):
    __tablename__ = "checkout_prefill_tokens"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    token: str = Field(index=True, unique=True)
    product_slug: str
    seller_id: Optional[str] = None
    client_data: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    expires_at: datetime
    created_at: datetime = Field(default_factory=datetime.utcnow)
