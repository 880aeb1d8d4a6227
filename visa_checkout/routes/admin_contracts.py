from fastapi import APIRouter, Depends
from sqlmodel import Session

from visa_checkout.database import get_session
from visa_checkout.schemas.contract_schemas import ContractReviewRequest, ContractReviewResponse
from visa_checkout.services.contract_review import approve_contract, reject_contract

router = APIRouter()


@router.post("/approve", response_model=ContractReviewResponse, response_model_exclude_none=True)
def approve_visa_contract(
    data: ContractReviewRequest,
    session: Session = Depends(get_session),
):
    return approve_contract(
        session,
        order_id=data.order_id,
        reviewed_by=data.reviewed_by,
        contract_type=data.contract_type,
        app_url=data.app_url,
    )


@router.post("/reject", response_model=ContractReviewResponse, response_model_exclude_none=True)
def reject_visa_contract(
    data: ContractReviewRequest,
    session: Session = Depends(get_session),
):
    return reject_contract(
        session,
        order_id=data.order_id,
        reviewed_by=data.reviewed_by,
        rejection_reason=data.rejection_reason,
        contract_type=data.contract_type,
        app_url=data.app_url,
    )
