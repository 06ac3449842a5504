"""
Notification dispatch service.

Sends an email and writes an EmailLog record. Never raises on send failure:
logs the error and records "failed" status instead.
"""
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.logs import EmailLog
from app.services.email import send_email

logger = logging.getLogger(__name__)


async def dispatch_email(
    db: AsyncSession,
    user_id: uuid.UUID,
    recipient: str,
    email_type: str,
    subject: str,
    body: str,
    tasks_count: int = 0,
    overdue_count: int = 0,
) -> bool:
    """Send an email and log the result to EmailLog. Returns True when sent."""
    status = "sent"
    error_message = None
    try:
        if not await send_email(recipient, subject, body):
            status = "failed"
            error_message = "email transport not configured"
    except Exception as exc:
        logger.error("dispatch_email: %s failed for user %s: %s", email_type, user_id, exc)
        status = "failed"
        error_message = str(exc) or exc.__class__.__name__

    db.add(EmailLog(
        user_id=user_id,
        email_type=email_type,
        recipient_email=recipient,
        subject=subject,
        status=status,
        error_message=error_message,
        tasks_count=tasks_count,
        overdue_count=overdue_count,
    ))
    await db.commit()
    return status == "sent"
