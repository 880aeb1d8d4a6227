# visa_checkout/schemas/checkout_schemas.py
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field


class CheckoutClient(BaseModel):
    client_name: str = Field(min_length=1)
    client_email: EmailStr
    client_whatsapp: Optional[str] = None
    client_country: Optional[str] = None
    client_nationality: Optional[str] = None
    client_observations: Optional[str] = None


class CheckoutSessionRequest(CheckoutClient):
    product_slug: str = Field(min_length=1)
    seller_id: Optional[str] = None
    extra_units: int = Field(default=0, ge=0)
    payment_method: Literal["card", "pix"] = "card"
    exchange_rate: Optional[float] = Field(default=None, gt=0)   # BRL per USD, supplied by the frontend
    contract_document_url: Optional[str] = None
    contract_selfie_url: Optional[str] = None
    ip_address: Optional[str] = None
    service_request_id: Optional[str] = None


class ZelleCheckoutRequest(CheckoutClient):
    product_slug: str = Field(min_length=1)
    seller_id: Optional[str] = None
    extra_units: int = Field(default=0, ge=0)
    zelle_proof_url: str = Field(min_length=1)
    contract_document_url: Optional[str] = None
    contract_selfie_url: Optional[str] = None
    ip_address: Optional[str] = None
    service_request_id: Optional[str] = None


class WiseCheckoutRequest(CheckoutClient):
    product_slug: str = Field(min_length=1)
    seller_id: Optional[str] = None
    extra_units: int = Field(default=0, ge=0)
    client_currency: str = Field(default="USD", min_length=3, max_length=3)   # currency the client pays in
    contract_document_url: Optional[str] = None
    contract_selfie_url: Optional[str] = None
    ip_address: Optional[str] = None
    service_request_id: Optional[str] = None


class CheckoutSessionResponse(BaseModel):
    success: bool = True
    checkout_url: str
    session_id: str
    order_id: str
    order_number: str


class ZelleCheckoutResponse(BaseModel):
    success: bool = True
    order_id: str
    order_number: str
    payment_status: str


class WiseCheckoutResponse(BaseModel):
    success: bool = True
    order_id: str
    order_number: str
    transfer_id: str
    quote_id: str
    recipient_id: str
    payment_url: str
    status: str
