from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

from visa_checkout.constants.order_status import ApprovalStatus, PaymentStatus


class VisaOrder(SQLModel, table=True):
    __tablename__ = "visa_orders"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_number: str = Field(index=True, unique=True)

    product_slug: str = Field(index=True)
    seller_id: Optional[str] = Field(default=None, index=True)
    service_request_id: Optional[str] = Field(default=None, index=True)

    # pricing snapshot (net, before provider fees)
    base_price_usd: float = 0
    extra_units: int = 0
    extra_unit_label: Optional[str] = None
    extra_unit_price_usd: float = 0
    calculation_type: str
    total_price_usd: float

    # client
    client_name: str
    client_email: str
    client_whatsapp: Optional[str] = None
    client_country: Optional[str] = None
    client_nationality: Optional[str] = None
    client_observations: Optional[str] = None

    # payment
    payment_method: str
    payment_status: str = Field(default=PaymentStatus.pending.value, index=True)
    stripe_session_id: Optional[str] = Field(default=None, index=True)
    stripe_payment_intent_id: Optional[str] = None
    wise_transfer_id: Optional[str] = Field(default=None, index=True)
    wise_payment_status: Optional[str] = None
    wise_quote_uuid: Optional[str] = None
    wise_recipient_id: Optional[str] = None
    zelle_proof_url: Optional[str] = None
    payment_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # contract documents
    contract_document_url: Optional[str] = None
    contract_selfie_url: Optional[str] = None
    contract_accepted: bool = False
    contract_signed_at: Optional[datetime] = None
    contract_pdf_url: Optional[str] = None
    ip_address: Optional[str] = None

    # main contract review
    contract_approval_status: str = Field(default=ApprovalStatus.pending.value)
    contract_approval_reviewed_by: Optional[str] = None
    contract_approval_reviewed_at: Optional[datetime] = None
    contract_rejection_reason: Optional[str] = None

    # annex I review
    annex_approval_status: str = Field(default=ApprovalStatus.pending.value)
    annex_approval_reviewed_by: Optional[str] = None
    annex_approval_reviewed_at: Optional[datetime] = None
    annex_rejection_reason: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
