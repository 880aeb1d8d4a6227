from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Payment(SQLModel, table=True):
    __tablename__ = "payments"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)

    order_id: Optional[str] = Field(default=None, index=True)
    service_request_id: Optional[str] = Field(default=None, index=True)

    amount: float
    currency: str = "USD"
    status: str = "pending"  # pending | paid | failed

    external_payment_id: Optional[str] = Field(default=None, index=True)
    raw_webhook_log: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
