import logging
import re
from typing import List, Union

import requests

from app.config import settings

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


def is_valid_email(email):
    if isinstance(email, list):
        return all(is_valid_email(e) for e in email)

    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


def send_email(to: Union[str, List[str]], subject: str, html: str) -> bool:
    """
    Send email via Brevo. Returns False instead of raising so callers in
    the order/payment flow are never interrupted by mail problems.
    """
    recipients = to if isinstance(to, list) else [to]
    valid_emails = [e for e in recipients if is_valid_email(e)]

    if not valid_emails:
        logger.warning(f"No valid emails found: {to}")
        return False

    if not settings.BREVO_API_KEY:
        logger.info(f"BREVO_API_KEY not set, skipping email '{subject}' to {valid_emails}")
        return False

    payload = {
        "sender": {
            "email": settings.MAIL_FROM,
            "name": settings.STORE_NAME,
        },
        "to": [{"email": e} for e in valid_emails],
        "subject": subject,
        "htmlContent": html,
    }

    headers = {
        "api-key": settings.BREVO_API_KEY,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            BREVO_API_URL,
            json=payload,
            headers=headers,
            timeout=10,
        )
    except requests.RequestException:
        logger.exception("Brevo email exception")
        return False

    if response.status_code >= 400:
        logger.error(
            f"Brevo email failed ({response.status_code}): {response.text}"
        )
        return False

    logger.info(f"Brevo email sent to {valid_emails}")
    return True
