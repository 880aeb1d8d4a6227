from typing import Optional

from pydantic import BaseModel


class PaymentMetadata(BaseModel):
    """
    Typed shape of VisaOrder.payment_metadata.

    Stored as JSON, but every writer goes through this model so the
    reconcilers and the checkout writer agree on field names.
    """

    base_amount: str
    final_amount: str
    fee_amount: str
    fee_percentage: str
    currency: str
    exchange_rate: Optional[str] = None
    extra_units: int = 0
    calculation_type: Optional[str] = None
    ip_address: Optional[str] = None
    payment_id: Optional[str] = None

    # filled in by reconciliation
    payment_method: Optional[str] = None
    session_id: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def from_order(cls, raw: Optional[dict]) -> Optional["PaymentMetadata"]:
        if not raw:
            return None
        return cls.model_validate(raw)

    def to_json(self) -> dict:
        return self.model_dump(exclude_none=True)
