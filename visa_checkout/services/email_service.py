import logging
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import List, Optional, Union

from visa_checkout.config import settings

logger = logging.getLogger(__name__)


def is_valid_email(email):
    if isinstance(email, list):
        return all(is_valid_email(e) for e in email)

    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


def smtp_configured() -> bool:
    return bool(settings.SMTP_USER and settings.SMTP_PASS)


def _open_smtp():
    if settings.SMTP_PORT == 465:
        return smtplib.SMTP_SSL(
            settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS
        )

    server = smtplib.SMTP(
        settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS
    )
    server.starttls()
    return server


def send_email(
    to: Union[str, List[str]],
    subject: str,
    html: str,
    from_email: Optional[str] = None,
) -> bool:
    """
    Send an HTML email over SMTP.

    Best effort: returns False on any failure and never raises.
    """

    if isinstance(to, list):
        valid_emails = [e for e in to if is_valid_email(e)]
    else:
        valid_emails = [to] if is_valid_email(to) else []

    if not valid_emails:
        logger.warning(f"No valid emails found: {to}")
        return False

    if not smtp_configured():
        logger.error("SMTP credentials not configured (SMTP_USER / SMTP_PASS)")
        return False

    sender = from_email or settings.SMTP_FROM_EMAIL or settings.SMTP_USER

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = formataddr((settings.SMTP_FROM_NAME, sender))
    msg["To"] = ", ".join(valid_emails)
    msg.attach(MIMEText(html, "html", "utf-8"))

    try:
        with _open_smtp() as server:
            server.login(settings.SMTP_USER, settings.SMTP_PASS)
            server.sendmail(sender, valid_emails, msg.as_string())
    except (smtplib.SMTPException, OSError):
        logger.exception(f"SMTP send failed to {valid_emails}")
        return False

    logger.info(f"Email sent to {valid_emails}")
    return True
