from __future__ import annotations

from email.message import EmailMessage

import aiosmtplib

from framework.config import settings
from framework.exceptions.errors import DeliveryError
from framework.logging.logger import get_logger

logger = get_logger("notifier")


def _build_verification_message(email_to: str, code: str) -> EmailMessage:
    minutes = max(settings.VERIFICATION_CODE_TTL_SECONDS // 60, 1)
    msg = EmailMessage()
    msg["From"] = settings.SMTP_USER
    msg["To"] = email_to
    msg["Subject"] = f"[{settings.APP_NAME}] Verification code"
    msg.set_content(
        "\n".join([
            f"Your verification code is: {code}",
            "",
            f"The code expires in {minutes} minute(s).",
        ]) + "\n"
    )
    return msg


async def send_verification_code(email_to: str, code: str) -> None:
    """
    Deliver an email verification code.
    - NOTIFICATION_DRIVER=mock: log only
    - NOTIFICATION_DRIVER=email: send via SMTP
    Raises DeliveryError when the message cannot be delivered.
    """
    driver = (settings.NOTIFICATION_DRIVER or "mock").lower()

    if driver == "mock":
        logger.info(f"[MOCK] send verification code to={email_to} code={code}")
        return

    if driver != "email":
        raise DeliveryError(f"Unsupported NOTIFICATION_DRIVER={settings.NOTIFICATION_DRIVER!r}")

    if not settings.SMTP_HOST or not settings.SMTP_USER or not settings.SMTP_PASSWORD:
        raise DeliveryError("SMTP not configured (SMTP_HOST/SMTP_USER/SMTP_PASSWORD missing)")

    try:
        await aiosmtplib.send(
            _build_verification_message(email_to, code),
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT or 587,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            start_tls=True,
        )
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.warning(f"Failed to send verification code to={email_to}: {str(e)}")
        raise DeliveryError(f"Failed to send verification code to {email_to}", cause=e) from e

    logger.info(f"Verification code sent to={email_to}")
