import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import partial
from typing import Callable, Optional

import requests

from app.platform.config import Settings, settings as default_settings
from app.platform.exceptions import DispatchError
from app.platform.logger import get_logger

# Initialize Logger
logger = get_logger("email_service")

MailTransport = Callable[[str, str, str], None]


def get_mail_transport(settings: Optional[Settings] = None) -> MailTransport:
    """
    Pick the transport for MAIL_MAILER ("log", "relay" or "smtp").

    The returned callable carries `settings`, so relay and SMTP use the
    configuration the application was built with.
    """
    settings = settings or default_settings
    mailer = settings.MAIL_MAILER.lower()
    if mailer == "relay":
        return partial(send_email, settings=settings)
    if mailer == "smtp":
        return partial(send_email_direct_smtp, settings=settings)
    return send_email_to_log


def send_email(to_email: str, subject: str, body: str, settings: Optional[Settings] = None):
    """
    Send email via HTTP relay service
    Falls back to direct SMTP if relay is not configured.
    """
    settings = settings or default_settings
    if settings.EMAIL_RELAY_URL and settings.EMAIL_RELAY_API_KEY:
        try:
            send_email_via_relay(to_email, subject, body, settings=settings)
            return
        except DispatchError as e:
            logger.error(f"Email relay failed: {str(e)}")
            logger.info("Attempting direct SMTP as fallback...")
            send_email_direct_smtp(to_email, subject, body, settings=settings)
    else:
        logger.warning("Email relay not configured, attempting direct SMTP")
        send_email_direct_smtp(to_email, subject, body, settings=settings)


def send_email_via_relay(to_email: str, subject: str, body: str, settings: Optional[Settings] = None):
    """Send email via HTTP relay service"""
    settings = settings or default_settings
    payload = {
        "to_email": to_email,
        "subject": subject,
        "body": body,
        "from_address": settings.MAIL_FROM_ADDRESS,
    }

    headers = {
        "X-API-Key": settings.EMAIL_RELAY_API_KEY,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            settings.EMAIL_RELAY_URL,
            json=payload,
            headers=headers,
            timeout=settings.EMAIL_RELAY_TIMEOUT,
        )
        response.raise_for_status()

        result = response.json()
        logger.info(f"Email sent via relay to {to_email}: {result.get('message')}")

    except requests.exceptions.Timeout:
        logger.error(f"Email relay timeout for {to_email}")
        raise DispatchError("Email relay service timeout")

    except requests.exceptions.RequestException as e:
        logger.error(f"Email relay request failed: {str(e)}")
        if getattr(e, "response", None) is not None:
            logger.error(f"Response status: {e.response.status_code}")
            logger.error(f"Response body: {e.response.text}")
        raise DispatchError(f"Email relay service error: {str(e)}")

    except ValueError as e:
        # relay answered with a body that is not JSON
        logger.warning(f"Email relay returned an unreadable body for {to_email}: {e}")


def send_email_direct_smtp(to_email: str, subject: str, body: str, settings: Optional[Settings] = None):
    """Base function to send email via SMTP"""
    settings = settings or default_settings
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.MAIL_FROM_NAME} <{settings.MAIL_FROM_ADDRESS}>"
    msg["To"] = to_email

    msg.attach(MIMEText(body, "html"))

    try:
        port = settings.MAIL_PORT

        if port == 465:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.MAIL_HOST, port, context=context) as server:
                server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                server.sendmail(settings.MAIL_FROM_ADDRESS, to_email, msg.as_string())
        else:
            with smtplib.SMTP(settings.MAIL_HOST, port) as server:
                server.ehlo()

                if str(settings.MAIL_ENCRYPTION).upper() in ["TLS", "TRUE"]:
                    server.starttls()
                    server.ehlo()

                server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                server.sendmail(settings.MAIL_FROM_ADDRESS, to_email, msg.as_string())

        logger.info(f"Email sent via SMTP to {to_email}")

    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"CRITICAL EMAIL ERROR: {str(e)}")
        raise DispatchError(f"SMTP delivery failed: {str(e)}")


def send_email_to_log(to_email: str, subject: str, body: str):
    """Local transport: nothing leaves the process."""
    logger.info(f"[log mailer] To: {to_email} | Subject: {subject} | {len(body)} bytes")
