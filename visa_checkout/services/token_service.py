import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session, select

from visa_checkout.constants.order_status import ContractType
from visa_checkout.errors import NotFoundError, ValidationError
from visa_checkout.models.contract_token import (
    CheckoutPrefillToken,
    ContractViewToken,
    ResubmissionToken,
)

logger = logging.getLogger(__name__)

RESUBMISSION_TOKEN_DAYS = 30
PREFILL_TOKEN_DAYS = 7


def new_token(prefix: str) -> str:
    return f"{prefix}_{secrets.token_urlsafe(32)}"


def _is_unexpired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    return expires_at is None or expires_at > (now or datetime.utcnow())


# -------------------------
# View tokens (permanent)
# -------------------------

def find_valid_view_token(session: Session, order_id: str) -> Optional[ContractViewToken]:
    tokens = session.exec(
        select(ContractViewToken)
        .where(ContractViewToken.order_id == order_id)
        .order_by(ContractViewToken.created_at.desc())
    ).all()
    now = datetime.utcnow()
    for token in tokens:
        if _is_unexpired(token.expires_at, now):
            return token
    return None


def ensure_view_token(session: Session, order_id: str) -> ContractViewToken:
    """
    Reuse the order's unexpired view token or add a new permanent one.
    Added to the session only; the caller commits with the order update.
    """
    existing = find_valid_view_token(session, order_id)
    if existing:
        logger.info(f"Reusing view token for order {order_id}")
        return existing

    token = ContractViewToken(
        order_id=order_id,
        token=new_token("visa_view"),
        expires_at=None,
    )
    session.add(token)
    return token


def validate_view_token(session: Session, token: str) -> ContractViewToken:
    row = session.exec(
        select(ContractViewToken).where(ContractViewToken.token == token)
    ).first()
    if not row or not _is_unexpired(row.expires_at):
        raise NotFoundError("Invalid or expired contract link")
    return row


# -------------------------
# Resubmission tokens (30 days, one use)
# -------------------------

def issue_resubmission_token(
    session: Session,
    order_id: str,
    created_by: str,
    contract_type: ContractType = ContractType.contract,
    now: Optional[datetime] = None,
) -> ResubmissionToken:
    """Always a fresh token. Added to the session only."""
    now = now or datetime.utcnow()
    token = ResubmissionToken(
        order_id=order_id,
        token=new_token("visa_reject"),
        contract_type=contract_type.value,
        expires_at=now + timedelta(days=RESUBMISSION_TOKEN_DAYS),
        created_by=created_by,
        created_at=now,
    )
    session.add(token)
    return token


def validate_resubmission_token(session: Session, token: str) -> ResubmissionToken:
    row = session.exec(
        select(ResubmissionToken).where(ResubmissionToken.token == token)
    ).first()

    if not row:
        raise NotFoundError("Invalid token. Please check the link and try again.")
    if row.used_at:
        raise ValidationError(
            "You have already resubmitted your documents using this link. "
            "If you need to resubmit again, please contact support for a new link."
        )
    if not _is_unexpired(row.expires_at):
        raise ValidationError("This resubmission link has expired. Please contact support.")

    return row


# -------------------------
# Checkout prefill tokens (Zelle rejection)
# -------------------------

def issue_prefill_token(
    session: Session,
    product_slug: str,
    seller_id: Optional[str],
    client_data: dict,
) -> CheckoutPrefillToken:
    token = CheckoutPrefillToken(
        token=new_token("prefill"),
        product_slug=product_slug,
        seller_id=seller_id,
        client_data=client_data,
        expires_at=datetime.utcnow() + timedelta(days=PREFILL_TOKEN_DAYS),
    )
    session.add(token)
    return token
