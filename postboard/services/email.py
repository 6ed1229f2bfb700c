from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from postboard.core.config import Settings
from postboard.core.errors import InternalError
from postboard.core.logging_config import redact_email

log = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"

VERIFICATION_TEXT = (
    "Welcome!\n\n"
    "Confirm your email address by opening the link below:\n{link}\n\n"
    "The link expires in 24 hours. If you did not create an account, ignore this email.\n"
)
VERIFICATION_HTML = (
    "<p>Welcome!</p>"
    '<p>Confirm your email address: <a href="{link}">verify my email</a></p>'
    "<p>The link expires in 24 hours. If you did not create an account, ignore this email.</p>"
)
RESET_TEXT = (
    "We received a request to reset your password.\n\n"
    "Choose a new password here:\n{link}\n\n"
    "The link expires in 15 minutes. If you did not ask for this, ignore this email.\n"
)
RESET_HTML = (
    "<p>We received a request to reset your password.</p>"
    '<p><a href="{link}">Choose a new password</a></p>'
    "<p>The link expires in 15 minutes. If you did not ask for this, ignore this email.</p>"
)


class EmailSender(Protocol):
    def send_verification_email(self, recipient: str, token: str) -> None: ...

    def send_password_reset_email(self, recipient: str, token: str) -> None: ...


def verification_link(app_url: str, token: str) -> str:
    return f"{app_url.rstrip('/')}/auth/verify-email?{httpx.QueryParams({'token': token})}"


def reset_link(app_url: str, token: str) -> str:
    return f"{app_url.rstrip('/')}/auth/reset-password?{httpx.QueryParams({'token': token})}"


class ResendEmailService:
    """Transactional mail through the Resend HTTP API. Failures propagate; no retry."""

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None) -> None:
        self.api_key = settings.resend_api_key
        self.sender = settings.email_from
        self.app_url = settings.app_url
        self.client = client or httpx.Client(timeout=10.0)

    def _send(self, to: str, subject: str, html: str, text: str) -> None:
        body = {"from": self.sender, "to": to, "subject": subject, "html": html, "text": text}
        try:
            r = self.client.post(
                RESEND_URL,
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as exc:
            log.error("email transport failed for %s: %s", redact_email(to), exc)
            raise InternalError("email transport failed") from exc

        if r.status_code >= 300:
            log.error("Resend API error %s for %s: %s", r.status_code, redact_email(to), r.text[:200])
            raise InternalError(f"Resend API error {r.status_code}")
        log.info("email sent to %s (%s)", redact_email(to), subject)

    def send_verification_email(self, recipient: str, token: str) -> None:
        link = verification_link(self.app_url, token)
        self._send(
            recipient,
            "Verify your email",
            VERIFICATION_HTML.format(link=link),
            VERIFICATION_TEXT.format(link=link),
        )

    def send_password_reset_email(self, recipient: str, token: str) -> None:
        link = reset_link(self.app_url, token)
        self._send(
            recipient,
            "Reset your password",
            RESET_HTML.format(link=link),
            RESET_TEXT.format(link=link),
        )


class LoggingEmailService:
    """Dev fallback when RESEND_API_KEY is unset: log instead of sending."""

    def __init__(self, settings: Settings) -> None:
        self.app_url = settings.app_url

    def send_verification_email(self, recipient: str, token: str) -> None:
        log.info("[dev mail] verification for %s: %s", redact_email(recipient), verification_link(self.app_url, token))

    def send_password_reset_email(self, recipient: str, token: str) -> None:
        log.info("[dev mail] password reset for %s: %s", redact_email(recipient), reset_link(self.app_url, token))


def build_email_sender(settings: Settings) -> EmailSender:
    if settings.resend_api_key:
        return ResendEmailService(settings)
    # The log-only sender writes live token links; never in prod.
    if settings.env.strip().lower() == "prod":
        raise RuntimeError("RESEND_API_KEY is required when ENV=prod")
    log.warning("RESEND_API_KEY is unset; emails will be logged, not sent")
    return LoggingEmailService(settings)
