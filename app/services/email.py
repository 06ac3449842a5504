"""
Async email sender using aiosmtplib with STARTTLS.

Reads EMAIL_HOST, EMAIL_PORT, EMAIL_USERNAME, EMAIL_PASSWORD and EMAIL_FROM
via Settings. If EMAIL_HOST is not configured, send_email() logs a warning
and returns False without raising. Transport errors propagate to the caller,
which records them.
"""
import logging
from email.mime.text import MIMEText

import aiosmtplib

from app.core.config import settings

logger = logging.getLogger(__name__)


async def send_email(to: str, subject: str, body: str) -> bool:
    if not settings.EMAIL_HOST:
        logger.warning("email: EMAIL_HOST not configured, skipping send")
        return False

    msg = MIMEText(body, "plain", "utf-8")
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to

    await aiosmtplib.send(
        msg,
        hostname=settings.EMAIL_HOST,
        port=settings.EMAIL_PORT,
        username=settings.EMAIL_USERNAME or None,
        password=settings.EMAIL_PASSWORD or None,
        start_tls=True,
    )
    logger.info("email: sent '%s' to %s", subject, to)
    return True
