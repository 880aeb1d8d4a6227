from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field

from visa_checkout.constants.order_status import ZelleStatus


class ZellePayment(SQLModel, table=True):
    __tablename__ = "zelle_payments"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_id: str = Field(foreign_key="visa_orders.id", index=True)

    amount: float
    currency: str = "USD"
    screenshot_url: Optional[str] = None

    status: str = Field(default=ZelleStatus.pending_verification.value)
    admin_notes: Optional[str] = None
    processed_by_user_id: Optional[str] = None
    admin_approved_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
