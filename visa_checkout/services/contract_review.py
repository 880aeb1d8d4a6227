import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from visa_checkout.config import settings
from visa_checkout.constants.order_status import ApprovalStatus, ContractType
from visa_checkout.errors import ProviderError, ValidationError
from visa_checkout.models.order import VisaOrder
from visa_checkout.schemas.contract_schemas import ContractReviewResponse
from visa_checkout.services.contract_pdf_service import generate_contract_pdf
from visa_checkout.services.order_email_service import (
    send_contract_approved_email,
    send_contract_rejected_email,
)
from visa_checkout.services.order_event_service import log_order_event
from visa_checkout.services.order_service import get_order
from visa_checkout.services.token_service import (
    ensure_view_token,
    issue_resubmission_token,
    validate_resubmission_token,
)

logger = logging.getLogger(__name__)


def parse_contract_type(value: Optional[str]) -> ContractType:
    # anything but "annex" means the main contract
    return ContractType.annex if value == ContractType.annex.value else ContractType.contract


def document_label(contract_type: ContractType) -> str:
    return "ANNEX I" if contract_type == ContractType.annex else "Visa Service Contract"


def resubmit_link(token: str, app_url: Optional[str] = None) -> str:
    return f"{(app_url or settings.APP_URL).rstrip('/')}/checkout/visa/resubmit?token={token}"


def view_link(token: str, app_url: Optional[str] = None) -> str:
    return f"{(app_url or settings.APP_URL).rstrip('/')}/view-visa-contract?token={token}"


def _require(order_id: Optional[str], reviewed_by: Optional[str]):
    if not order_id:
        raise ValidationError("order_id is required")
    if not reviewed_by:
        raise ValidationError("reviewed_by is required")


def _set_review(
    order: VisaOrder,
    contract_type: ContractType,
    status: ApprovalStatus,
    reviewed_by: str,
    rejection_reason: Optional[str] = None,
):
    prefix = contract_type.value  # "contract" | "annex"
    now = datetime.utcnow()

    setattr(order, f"{prefix}_approval_status", status.value)
    setattr(order, f"{prefix}_approval_reviewed_by", reviewed_by)
    setattr(order, f"{prefix}_approval_reviewed_at", now)
    # only the latest rejection keeps a reason
    setattr(order, f"{prefix}_rejection_reason", rejection_reason if status == ApprovalStatus.rejected else None)

    order.updated_at = now


def approve_contract(
    session: Session,
    order_id: Optional[str],
    reviewed_by: Optional[str],
    contract_type: Optional[str] = None,
    app_url: Optional[str] = None,
) -> ContractReviewResponse:
    """
    Mark the contract (or Annex I) approved and send the client a permanent
    view link. Approving again reuses the existing token.
    """
    _require(order_id, reviewed_by)
    approval_type = parse_contract_type(contract_type)
    order = get_order(session, order_id)

    logger.info(f"Approving {approval_type.value} for order {order.order_number}")

    _set_review(order, approval_type, ApprovalStatus.approved, reviewed_by)
    view_token = ensure_view_token(session, order.id)
    log_order_event(
        session,
        order.id,
        event_type=f"{approval_type.value}_approved",
        label=f"{document_label(approval_type)} approved",
        created_by=reviewed_by,
    )

    try:
        session.add(order)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Error approving {approval_type.value} for order {order_id}")
        raise ProviderError("Failed to approve contract")

    session.refresh(view_token)
    send_contract_approved_email(
        session,
        order,
        view_url=view_link(view_token.token, app_url),
        document_label=document_label(approval_type),
    )

    return ContractReviewResponse(
        success=True,
        message="Contract approved successfully",
        token=view_token.token,
    )


def reject_contract(
    session: Session,
    order_id: Optional[str],
    reviewed_by: Optional[str],
    rejection_reason: Optional[str] = None,
    contract_type: Optional[str] = None,
    app_url: Optional[str] = None,
) -> ContractReviewResponse:
    """
    Mark the contract (or Annex I) rejected, issue a new 30-day resubmission
    token and email the client the link with the reason.
    """
    _require(order_id, reviewed_by)
    approval_type = parse_contract_type(contract_type)
    order = get_order(session, order_id)

    logger.info(f"Rejecting {approval_type.value} for order {order.order_number}")

    _set_review(order, approval_type, ApprovalStatus.rejected, reviewed_by, rejection_reason)
    resubmission = issue_resubmission_token(session, order.id, reviewed_by, approval_type)
    log_order_event(
        session,
        order.id,
        event_type=f"{approval_type.value}_rejected",
        label=f"{document_label(approval_type)} rejected",
        created_by=reviewed_by,
        meta={"reason": rejection_reason},
    )

    try:
        session.add(order)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Error rejecting {approval_type.value} for order {order_id}")
        raise ProviderError("Failed to update order status")

    session.refresh(resubmission)
    send_contract_rejected_email(
        session,
        order,
        resubmit_url=resubmit_link(resubmission.token, app_url),
        rejection_reason=rejection_reason,
        document_label=document_label(approval_type),
    )

    return ContractReviewResponse(
        success=True,
        message="Contract rejected successfully",
        token=resubmission.token,
    )


def consume_resubmission_token(
    session: Session,
    token: str,
    contract_document_url: str,
    contract_selfie_url: str,
) -> VisaOrder:
    """
    Client-side resubmission: burn the token, store the new documents and
    send the contract back to review.
    """
    resubmission = validate_resubmission_token(session, token)
    order = get_order(session, resubmission.order_id)
    approval_type = parse_contract_type(resubmission.contract_type)
    now = datetime.utcnow()

    resubmission.used_at = now
    setattr(order, f"{approval_type.value}_approval_status", ApprovalStatus.pending.value)
    order.contract_document_url = contract_document_url
    order.contract_selfie_url = contract_selfie_url
    order.contract_accepted = True
    order.contract_signed_at = now
    order.updated_at = now

    session.add(resubmission)
    session.add(order)
    log_order_event(
        session,
        order.id,
        event_type="documents_resubmitted",
        label=f"Documents resubmitted for {document_label(approval_type)}",
        created_by="client",
    )
    session.commit()
    session.refresh(order)

    try:
        generate_contract_pdf(session, order)
    except Exception:
        session.rollback()
        logger.exception(f"Error regenerating contract PDF for order {order.order_number}")

    return order
