"""Outgoing email through the clinician's own SMTP account."""

from __future__ import annotations

import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_SMTP_HOST = "smtp.gmail.com"
DEFAULT_SMTP_PORT = 587
SSL_PORT = 465
# Long header lines trip some SMTP servers
MAX_SUBJECT_LENGTH = 200
MAX_FROM_NAME_LENGTH = 78
SMTP_TIMEOUT_SECONDS = 30


class EmailError(Exception):
    """Sending an email failed."""

    pass


@dataclass
class OutgoingEmail:
    """A plain-text email and the SMTP account to send it through."""

    to: str
    subject: str
    body: str
    from_email: str
    smtp_user: str
    smtp_password: str
    from_name: str | None = None
    smtp_host: str = DEFAULT_SMTP_HOST
    smtp_port: int = DEFAULT_SMTP_PORT
    cc: str | None = None
    bcc: str | None = None


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, ending with ``...`` when cut."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def build_message(email: OutgoingEmail) -> EmailMessage:
    """Assemble the MIME message (bcc is not written as a header)."""
    message = EmailMessage()
    from_name = truncate(email.from_name, MAX_FROM_NAME_LENGTH) if email.from_name else None
    message["From"] = formataddr((from_name, email.from_email)) if from_name else email.from_email
    message["To"] = email.to
    if email.cc:
        message["Cc"] = email.cc
    message["Subject"] = truncate(email.subject, MAX_SUBJECT_LENGTH)
    message["Message-ID"] = make_msgid(domain=email.from_email.rpartition("@")[2] or None)
    message.set_content(email.body)
    return message


def _recipients(email: OutgoingEmail) -> list[str]:
    addresses: list[str] = []
    for field_value in (email.to, email.cc, email.bcc):
        if field_value:
            addresses.extend(a.strip() for a in field_value.split(",") if a.strip())
    return addresses


def send_email(email: OutgoingEmail) -> str:
    """Send an email, using SSL on port 465 and STARTTLS otherwise.

    Returns:
        The Message-ID of the sent email

    Raises:
        EmailError: If connecting, authenticating or sending fails
    """
    message = build_message(email)
    context = ssl.create_default_context()
    try:
        if email.smtp_port == SSL_PORT:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(
                email.smtp_host, email.smtp_port, timeout=SMTP_TIMEOUT_SECONDS, context=context
            )
        else:
            smtp = smtplib.SMTP(email.smtp_host, email.smtp_port, timeout=SMTP_TIMEOUT_SECONDS)
        with smtp:
            if email.smtp_port != SSL_PORT:
                smtp.starttls(context=context)
            smtp.login(email.smtp_user, email.smtp_password)
            smtp.send_message(message, from_addr=email.from_email, to_addrs=_recipients(email))
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("email.send_failed", host=email.smtp_host, error=str(e))
        raise EmailError(f"Failed to send email: {e}") from e

    logger.info("email.sent", host=email.smtp_host, recipients=len(_recipients(email)))
    return message["Message-ID"]
