import time
import random
import logging

from visa_checkout.config import settings
from visa_checkout.services.email_service import send_email, smtp_configured

logger = logging.getLogger(__name__)

def send_email_with_retry(
    to_email,
    subject: str,
    html: str,
    from_email=None,
    max_retries: int = None,
) -> bool:
    max_retries = max_retries or settings.EMAIL_MAX_RETRIES

    for attempt in range(1, max_retries + 1):
        if send_email(to=to_email, subject=subject, html=html, from_email=from_email):
            logger.info(f"Email sent to {to_email} (attempt {attempt})")
            return True

        logger.warning(f"Email attempt {attempt} failed for {to_email}")

        if not smtp_configured():
            break  # config error, no retry

        if attempt < max_retries:
            time.sleep((2 ** attempt) + random.random())

    logger.error(f"Email permanently failed: {to_email} / {subject}")
    return False
