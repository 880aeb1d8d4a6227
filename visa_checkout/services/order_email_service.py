import logging
from typing import List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from visa_checkout.models.email import EmailLog
from visa_checkout.models.order import VisaOrder
from visa_checkout.services.email_retry import send_email_with_retry
from visa_checkout.utils.template import render_email

logger = logging.getLogger(__name__)


def _already_sent(session: Session, idempotency_key: Optional[str]) -> bool:
    if not idempotency_key:
        return False
    return session.exec(
        select(EmailLog).where(EmailLog.idempotency_key == idempotency_key)
    ).first() is not None


def _record(
    session: Session,
    to: Union[str, List[str]],
    subject: str,
    status: str,
    idempotency_key: Optional[str] = None,
    error: Optional[str] = None,
):
    try:
        session.add(EmailLog(
            to_email=to if isinstance(to, str) else ",".join(to),
            subject=subject,
            status=status,
            error=error,
            # only successful sends claim the key
            idempotency_key=idempotency_key if status == "sent" else None,
        ))
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Could not write email log for {to}")


def dispatch_email(
    session: Session,
    *,
    to: Union[str, List[str]],
    subject: str,
    template: str,
    idempotency_key: Optional[str] = None,
    **context,
) -> bool:
    """
    Render and send one email. Never raises: the caller's state change has
    already been committed and must not be undone by a notification failure.
    """
    if _already_sent(session, idempotency_key):
        logger.info(f"Email '{subject}' already sent (key={idempotency_key}), skipping")
        return False

    try:
        html = render_email(template, **context)
        sent = send_email_with_retry(to_email=to, subject=subject, html=html)
    except Exception as e:
        # never let email errors crash the workflow
        logger.exception(f"Email '{subject}' to {to} failed")
        _record(session, to, subject, "failed", error=str(e))
        return False

    _record(
        session,
        to,
        subject,
        "sent" if sent else "failed",
        idempotency_key=idempotency_key,
        error=None if sent else "delivery failed",
    )
    return sent


def send_payment_confirmation_email(
    session: Session,
    order: VisaOrder,
    idempotency_key: Optional[str] = None,
) -> bool:
    return dispatch_email(
        session,
        to=order.client_email,
        subject=f"Visa Application Payment Confirmed - Order {order.order_number}",
        template="payment_confirmed.html",
        idempotency_key=idempotency_key,
        order=order,
    )


def send_contract_approved_email(
    session: Session,
    order: VisaOrder,
    view_url: str,
    document_label: str,
) -> bool:
    return dispatch_email(
        session,
        to=order.client_email,
        subject=f"Your {document_label} Has Been Approved - Order {order.order_number}",
        template="contract_approved.html",
        order=order,
        view_url=view_url,
        document_label=document_label,
    )


def send_contract_rejected_email(
    session: Session,
    order: VisaOrder,
    resubmit_url: str,
    rejection_reason: Optional[str],
    document_label: str,
) -> bool:
    return dispatch_email(
        session,
        to=order.client_email,
        subject="Action Required: Resubmit Your Visa Service Documents",
        template="contract_rejected.html",
        order=order,
        resubmit_url=resubmit_url,
        rejection_reason=rejection_reason,
        document_label=document_label,
    )


def send_zelle_rejection_email(
    session: Session,
    order: VisaOrder,
    checkout_url: str,
    rejection_reason: Optional[str],
) -> bool:
    return dispatch_email(
        session,
        to=order.client_email,
        subject=f"Payment Issue: Order #{order.order_number}",
        template="zelle_rejected.html",
        order=order,
        checkout_url=checkout_url,
        rejection_reason=rejection_reason,
    )
