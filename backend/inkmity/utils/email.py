import asyncio
import logging
from email.message import EmailMessage

import aiosmtplib

from ..core.config import settings

logger = logging.getLogger(__name__)


def build_message(recipient: str, subject: str, body: str, html: str | None = None) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")
    return msg


async def send_email_async(recipient: str, subject: str, body: str, html: str | None = None) -> bool:
    """Send an email via SMTP. Failures are logged and reported as ``False``."""
    msg = build_message(recipient, subject, body, html)
    try:
        await aiosmtplib.send(
            msg,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=settings.SMTP_PASSWORD or None,
            start_tls=bool(settings.SMTP_USERNAME),
        )
    except (aiosmtplib.SMTPException, OSError) as exc:
        logger.error("Failed to send email to %s: %s", recipient, exc)
        return False
    logger.info("Sent email to %s", recipient)
    return True


def send_email(recipient: str, subject: str, body: str, html: str | None = None) -> bool:
    """Blocking wrapper for sync code paths and background tasks."""
    return asyncio.run(send_email_async(recipient, subject, body, html))
