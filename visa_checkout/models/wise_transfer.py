from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class WiseTransfer(SQLModel, table=True):
    __tablename__ = "wise_transfers"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    wise_transfer_id: str = Field(index=True, unique=True)
    order_id: Optional[str] = Field(default=None, foreign_key="visa_orders.id", index=True)
    wise_quote_uuid: Optional[str] = None
    wise_recipient_id: Optional[str] = None

    source_currency: Optional[str] = None
    target_currency: Optional[str] = None
    source_amount: Optional[float] = None
    target_amount: Optional[float] = None
    exchange_rate: Optional[float] = None
    fee_amount: Optional[float] = None

    status: str = "incoming_payment_waiting"
    status_details: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
