from typing import Optional

from pydantic import BaseModel


class ContractReviewRequest(BaseModel):
    order_id: Optional[str] = None
    reviewed_by: Optional[str] = None
    contract_type: Optional[str] = "contract"   # "contract" | "annex"
    rejection_reason: Optional[str] = None
    app_url: Optional[str] = None


class ContractReviewResponse(BaseModel):
    success: bool
    message: str
    token: Optional[str] = None


class ResubmissionRequest(BaseModel):
    token: str
    contract_document_url: str
    contract_selfie_url: str


class ZelleReviewRequest(BaseModel):
    order_id: Optional[str] = None
    processed_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    app_url: Optional[str] = None
