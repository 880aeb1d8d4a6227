"""
Wise bank-transfer checkout.

A Wise checkout is three API calls made with the personal token: a quote for
the amount MIGMA must receive, a recipient for MIGMA's own account and a
transfer tying the two together. The transfer id is what the Wise webhook
later matches the order by.
"""
import logging
from datetime import datetime
from typing import Optional

import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from visa_checkout.config import settings
from visa_checkout.errors import ProviderError
from visa_checkout.models.order import VisaOrder
from visa_checkout.models.wise_transfer import WiseTransfer
from visa_checkout.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)

# account type -> settings that must be present
REQUIRED_BANK_DETAILS = {
    "aba": ("WISE_MIGMA_ABA", "WISE_MIGMA_ACCOUNT_NUMBER"),
    "swift": ("WISE_MIGMA_SWIFT", "WISE_MIGMA_ACCOUNT_NUMBER"),
    "iban": ("WISE_MIGMA_IBAN",),
    "sort_code": ("WISE_MIGMA_SORT_CODE", "WISE_MIGMA_ACCOUNT_NUMBER"),
}

PAYMENT_LINK_FIELDS = ("paymentLink", "payment_url", "payinUrl", "payin_url", "paymentUrl")


def check_wise_config():
    """Raise before any order is written when Wise cannot be used."""
    if not settings.WISE_PERSONAL_TOKEN:
        raise ProviderError("WISE_PERSONAL_TOKEN not configured")

    account_type = settings.WISE_MIGMA_ACCOUNT_TYPE
    required = REQUIRED_BANK_DETAILS.get(account_type)
    if required is None:
        raise ProviderError(f"Unsupported WISE_MIGMA_ACCOUNT_TYPE: {account_type}")

    missing = [name for name in required if not getattr(settings, name)]
    if missing:
        raise ProviderError(
            f"{' and '.join(missing)} must be configured for {account_type} account type"
        )


def _error_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Wise API error: {response.status_code}"
    if isinstance(body, dict):
        nested = body.get("error")
        return (
            body.get("message")
            or (nested.get("message") if isinstance(nested, dict) else None)
            or f"Wise API error: {response.status_code}"
        )
    return f"Wise API error: {response.status_code}"


def wise_request(method: str, endpoint: str, payload: Optional[dict] = None):
    url = f"{settings.wise_api_url}{endpoint}"
    headers = {
        "Authorization": f"Bearer {settings.WISE_PERSONAL_TOKEN}",
        "Content-Type": "application/json",
    }

    logger.info(f"[Wise API] {method} {url}")
    try:
        response = requests.request(
            method,
            url,
            json=payload,
            headers=headers,
            timeout=settings.WISE_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise ProviderError(f"Wise API unreachable: {e}")

    if response.status_code >= 400:
        message = _error_message(response)
        logger.error(f"[Wise API] {method} {endpoint} failed ({response.status_code}): {message}")
        raise ProviderError(message)

    if response.status_code == 204 or not response.content:
        return {}
    return response.json()


def get_profile_id() -> str:
    if settings.WISE_PROFILE_ID:
        return settings.WISE_PROFILE_ID

    profiles = wise_request("GET", "/v1/profiles")
    if not profiles:
        raise ProviderError("No profile found in Wise account")
    return str(profiles[0]["id"])


def build_recipient_params(profile_id: str) -> dict:
    """MIGMA's receiving account in the shape /v1/accounts expects."""
    account_type = settings.WISE_MIGMA_ACCOUNT_TYPE
    first_line = settings.WISE_MIGMA_BANK_ADDRESS or settings.WISE_MIGMA_BANK_NAME
    details = {"legalType": settings.WISE_MIGMA_LEGAL_TYPE}

    if account_type == "aba":
        details.update(
            abartn=settings.WISE_MIGMA_ABA,
            accountNumber=settings.WISE_MIGMA_ACCOUNT_NUMBER,
            accountType="CHECKING",
            address={
                "country": settings.WISE_MIGMA_COUNTRY,
                "state": settings.WISE_MIGMA_STATE,
                "city": settings.WISE_MIGMA_CITY or "San Francisco",
                "postCode": settings.WISE_MIGMA_POST_CODE,
                "firstLine": first_line or "A4-700 1 Letterman Drive",
            },
        )
    elif account_type == "swift":
        details.update(
            swift=settings.WISE_MIGMA_SWIFT,
            accountNumber=settings.WISE_MIGMA_ACCOUNT_NUMBER,
        )
    elif account_type == "iban":
        details["iban"] = settings.WISE_MIGMA_IBAN
    elif account_type == "sort_code":
        details.update(
            sortCode=settings.WISE_MIGMA_SORT_CODE,
            accountNumber=settings.WISE_MIGMA_ACCOUNT_NUMBER,
        )

    if account_type != "aba":
        details["address"] = {
            "country": settings.WISE_MIGMA_COUNTRY,
            "city": settings.WISE_MIGMA_CITY,
            "firstLine": first_line,
        }

    return {
        "profile": profile_id,
        "currency": settings.WISE_MIGMA_CURRENCY,
        "type": account_type,
        "accountHolderName": settings.WISE_MIGMA_ACCOUNT_HOLDER_NAME,
        "details": details,
    }


def payment_url_for(transfer: dict) -> str:
    for field in PAYMENT_LINK_FIELDS:
        if transfer.get(field):
            return transfer[field]

    if transfer.get("payinSessionId"):
        return f"{settings.wise_pay_url}/pay/r/{transfer['payinSessionId']}"
    return f"{settings.wise_pay_url}/payments/{transfer['id']}"


def create_wise_transfer(order: VisaOrder, source_currency: str = "USD") -> dict:
    """Quote, recipient and transfer for one order. Raises ProviderError."""
    profile_id = get_profile_id()

    quote_params = {
        "sourceCurrency": source_currency,
        "targetCurrency": settings.WISE_MIGMA_CURRENCY,
        "targetAmount": float(order.total_price_usd),
    }
    quote = wise_request("POST", f"/v3/profiles/{profile_id}/quotes", quote_params)
    logger.info(f"[Wise Checkout] Quote {quote.get('id')} for order {order.order_number}")

    recipient = wise_request("POST", "/v1/accounts", build_recipient_params(profile_id))

    transfer = wise_request("POST", "/v1/transfers", {
        "targetAccount": recipient["id"],
        "quoteUuid": quote["id"],
        # order ids are uuid4, which Wise accepts as an idempotency key
        "customerTransactionId": order.id,
        "reference": f"Order {order.order_number} - {order.client_name}",
    })
    logger.info(
        f"[Wise Checkout] Transfer {transfer.get('id')} created for order "
        f"{order.order_number} (status={transfer.get('status')})"
    )

    return {
        "quote": quote,
        "recipient": recipient,
        "transfer": transfer,
        "source_currency": source_currency,
        "target_currency": quote_params["targetCurrency"],
    }


def attach_transfer(session: Session, order: VisaOrder, result: dict) -> WiseTransfer:
    quote, recipient, transfer = result["quote"], result["recipient"], result["transfer"]
    transfer_id = str(transfer["id"])
    status = transfer.get("status") or "incoming_payment_waiting"

    order.wise_transfer_id = transfer_id
    order.wise_quote_uuid = quote["id"]
    order.wise_recipient_id = str(recipient["id"])
    order.wise_payment_status = status
    order.updated_at = datetime.utcnow()
    session.add(order)

    wise_transfer = WiseTransfer(
        wise_transfer_id=transfer_id,
        order_id=order.id,
        wise_quote_uuid=quote["id"],
        wise_recipient_id=str(recipient["id"]),
        source_currency=result["source_currency"],
        target_currency=result["target_currency"],
        source_amount=transfer.get("sourceValue") or quote.get("sourceAmount") or order.total_price_usd,
        target_amount=transfer.get("targetValue") or quote.get("targetAmount") or order.total_price_usd,
        exchange_rate=transfer.get("rate") or quote.get("rate") or 1,
        fee_amount=(quote.get("fee") or {}).get("total"),
        status=status,
        status_details=transfer,
    )
    session.add(wise_transfer)

    log_order_event(
        session,
        order.id,
        event_type="wise_transfer_created",
        label=f"Wise transfer {transfer_id} created ({status})",
        created_by="wise",
        meta={"quote_id": quote["id"], "recipient_id": str(recipient["id"])},
    )

    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"[Wise Checkout] Could not save transfer {transfer_id} for {order.order_number}")
        raise ProviderError("Failed to update order")

    session.refresh(order)
    return wise_transfer
