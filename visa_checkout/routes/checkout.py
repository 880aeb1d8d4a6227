from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from visa_checkout.database import get_session
from visa_checkout.schemas.checkout_schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    WiseCheckoutRequest,
    WiseCheckoutResponse,
    ZelleCheckoutRequest,
    ZelleCheckoutResponse,
)
from visa_checkout.services.checkout_service import (
    start_stripe_checkout,
    start_wise_checkout,
    start_zelle_checkout,
)

router = APIRouter()


def _client_ip(request: Request):
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post("/visa/session", response_model=CheckoutSessionResponse)
def create_visa_checkout_session(
    data: CheckoutSessionRequest,
    request: Request,
    session: Session = Depends(get_session),
):
    data.ip_address = data.ip_address or _client_ip(request)
    return start_stripe_checkout(session, data, site_url=request.headers.get("origin"))


@router.post("/visa/zelle", response_model=ZelleCheckoutResponse)
def create_visa_zelle_order(
    data: ZelleCheckoutRequest,
    request: Request,
    session: Session = Depends(get_session),
):
    data.ip_address = data.ip_address or _client_ip(request)
    return start_zelle_checkout(session, data)


@router.post("/visa/wise", response_model=WiseCheckoutResponse)
def create_visa_wise_checkout(
    data: WiseCheckoutRequest,
    request: Request,
    session: Session = Depends(get_session),
):
    data.ip_address = data.ip_address or _client_ip(request)
    return start_wise_checkout(session, data)
