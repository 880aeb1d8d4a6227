from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from visa_checkout.database import get_session
from visa_checkout.models.order import VisaOrder
from visa_checkout.schemas.contract_schemas import ResubmissionRequest
from visa_checkout.services.contract_review import consume_resubmission_token
from visa_checkout.services.order_service import get_order
from visa_checkout.services.token_service import validate_resubmission_token, validate_view_token

router = APIRouter()


def _order_summary(order: VisaOrder) -> dict:
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "product_slug": order.product_slug,
        "client_name": order.client_name,
        "client_email": order.client_email,
        "total_price_usd": order.total_price_usd,
        "payment_status": order.payment_status,
        "contract_approval_status": order.contract_approval_status,
        "annex_approval_status": order.annex_approval_status,
        "contract_pdf_url": order.contract_pdf_url,
        "contract_signed_at": order.contract_signed_at,
    }


@router.get("/view")
def view_contract(token: str = Query(...), session: Session = Depends(get_session)):
    view_token = validate_view_token(session, token)
    return _order_summary(get_order(session, view_token.order_id))


@router.get("/resubmit")
def check_resubmission_link(token: str = Query(...), session: Session = Depends(get_session)):
    resubmission = validate_resubmission_token(session, token)
    order = get_order(session, resubmission.order_id)
    return {
        "valid": True,
        "contract_type": resubmission.contract_type,
        "expires_at": resubmission.expires_at,
        "order": _order_summary(order),
    }


@router.post("/resubmit")
def resubmit_contract_documents(data: ResubmissionRequest, session: Session = Depends(get_session)):
    order = consume_resubmission_token(
        session,
        data.token,
        data.contract_document_url,
        data.contract_selfie_url,
    )
    return {
        "success": True,
        "message": "Documents resubmitted successfully",
        "order_number": order.order_number,
    }
