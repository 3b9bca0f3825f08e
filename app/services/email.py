"""Delivery of verification codes over SMTP. Falls back to a log line when SMTP is unset in dev."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send(self, to_address: str, otp_code: str) -> bool: ...


def redact_email(email: str) -> str:
    """Redact an email address for logging to avoid PII leakage."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def _otp_bodies(otp_code: str, ttl_minutes: int) -> tuple[str, str]:
    text = (
        f"Your verification code is {otp_code}.\n"
        f"It expires in {ttl_minutes} minutes. If you did not request it, ignore this email."
    )
    html = (
        "<p>Your verification code is</p>"
        f"<p style=\"font-size:24px;letter-spacing:4px\"><strong>{otp_code}</strong></p>"
        f"<p>It expires in {ttl_minutes} minutes. If you did not request it, ignore this email.</p>"
    )
    return text, html


class SmtpEmailSender:
    """
    Sends one verification email per call. No retries; the caller decides what a
    failure means. Returns True on success, False on any SMTP or network error
    and, outside dev, when SMTP is not configured.
    """

    subject = "Verify your email"

    def __init__(self, settings: Settings) -> None:
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
        self.use_tls = settings.SMTP_USE_TLS
        self.from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USER
        self.from_name = settings.SMTP_FROM_NAME
        self.timeout = settings.SMTP_TIMEOUT_SEC
        self.ttl_minutes = settings.OTP_TTL_MINUTES
        self.log_only_when_unconfigured = settings.APP_ENV == "dev"

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.from_email)

    @property
    def delivery_mode(self) -> str:
        if self.is_configured:
            return "smtp"
        return "log" if self.log_only_when_unconfigured else "unavailable"

    def send(self, to_address: str, otp_code: str) -> bool:
        text_body, html_body = _otp_bodies(otp_code, self.ttl_minutes)
        if not self.is_configured:
            if not self.log_only_when_unconfigured:
                logger.error(
                    "SMTP not configured; verification email cannot be delivered",
                    extra={"to": redact_email(to_address)},
                )
                return False
            # Dev: the code is exposed via the API response instead.
            logger.info(
                "SMTP not configured; verification email not sent",
                extra={"to": redact_email(to_address)},
            )
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = self.subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_address
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        context = ssl.create_default_context()
        try:
            if self.use_tls:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                    server.starttls(context=context)
                    if self.user and self.password:
                        server.login(self.user, self.password)
                    server.sendmail(self.from_email, to_address, msg.as_string())
            else:
                with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as server:
                    if self.user and self.password:
                        server.login(self.user, self.password)
                    server.sendmail(self.from_email, to_address, msg.as_string())
        except smtplib.SMTPAuthenticationError as e:
            logger.error(
                "SMTP authentication failed",
                extra={"to": redact_email(to_address), "reason": str(e)[:200]},
            )
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "Verification email failed",
                extra={"to": redact_email(to_address), "reason": str(e)[:200]},
            )
            return False

        logger.info("Verification email sent", extra={"to": redact_email(to_address)})
        return True
