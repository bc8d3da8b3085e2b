# budget_api/services/email.py
"""
Transactional email (verification, password reset, welcome).

Provider choice follows the settings: Brevo if BREVO_API_KEY is set, else
Resend if RESEND_API_KEY is set, else "dev mode" where the link is only
logged. Delivery failures raise EmailDeliveryError; the auth flows catch it
so an email problem never fails the request that triggered it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from http.client import HTTPException
from typing import Optional
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from budget_api.config import Settings
from budget_api.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

BREVO_URL = "https://api.brevo.com/v3/smtp/email"
RESEND_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class SentEmail:
    provider: str  # "brevo" | "resend" | "dev"
    message_id: Optional[str]
    to: str
    subject: str
    link: Optional[str] = None


def _layout(title: str, color: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background-color: #f8f9fa; padding: 20px; border-radius: 10px;">
      <h1 style="color: {color}; margin-top: 0;">{title}</h1>
      {body}
    </div>
  </body>
</html>"""


def _button(url: str, label: str, color: str) -> str:
    return (
        f'<p style="text-align: center; margin: 30px 0;">'
        f'<a href="{url}" style="background-color: {color}; color: white; '
        f'padding: 12px 30px; text-decoration: none; border-radius: 5px;">{label}</a></p>'
        f'<p style="color: #666; font-size: 14px; word-break: break-all;">{url}</p>'
    )


class EmailSender:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def provider(self) -> str:
        if self.settings.brevo_api_key:
            return "brevo"
        if self.settings.resend_api_key:
            return "resend"
        return "dev"

    @property
    def enabled(self) -> bool:
        return self.provider != "dev"

    def _link(self, path: str, token: str) -> str:
        base = self.settings.app_url.rstrip("/")
        return f"{base}/{path}?{urlencode({'token': token})}"

    # ---------- public API ----------

    def send_verification_email(self, to: str, token: str) -> SentEmail:
        url = self._link("verify-email", token)
        html = _layout(
            "Welcome to Budget API!",
            "#2563eb",
            "<p>Thank you for signing up. Please verify your email address:</p>"
            + _button(url, "Verify Email Address", "#2563eb")
            + '<p style="color: #999; font-size: 12px;">This link will expire in 24 hours.</p>',
        )
        return self._send(to, "Verify your email address", html, link=url)

    def send_password_reset_email(self, to: str, token: str) -> SentEmail:
        url = self._link("reset-password", token)
        html = _layout(
            "Password Reset Request",
            "#dc2626",
            "<p>We received a request to reset your password.</p>"
            + _button(url, "Reset Password", "#dc2626")
            + '<p style="color: #999; font-size: 12px;">This link will expire in 1 hour. '
            "If you didn't request a password reset, please ignore this email.</p>",
        )
        return self._send(to, "Reset your password", html, link=url)

    def send_welcome_email(self, to: str) -> SentEmail:
        html = _layout(
            "Welcome to Budget API!",
            "#2563eb",
            "<p>Your account has been verified. You're all set to start managing your budget!</p>",
        )
        return self._send(to, "Welcome to Budget API!", html)

    # ---------- transport ----------

    def _send(
        self, to: str, subject: str, html: str, link: Optional[str] = None
    ) -> SentEmail:
        provider = self.provider
        if provider == "dev":
            logger.info("EMAIL NOT CONFIGURED - would send %r to %s link=%s", subject, to, link)
            return SentEmail("dev", None, to, subject, link)

        s = self.settings
        if provider == "brevo":
            payload = {
                "sender": {"name": s.email_from_name, "email": s.email_from},
                "to": [{"email": to}],
                "subject": subject,
                "htmlContent": html,
            }
            headers = {"api-key": s.brevo_api_key}
            data = self._post_json(BREVO_URL, payload, headers)
            message_id = data.get("messageId")
        else:
            payload = {
                "from": f"{s.email_from_name} <{s.email_from}>",
                "to": [to],
                "subject": subject,
                "html": html,
            }
            headers = {"Authorization": f"Bearer {s.resend_api_key}"}
            data = self._post_json(RESEND_URL, payload, headers)
            message_id = data.get("id")

        logger.info("email %r sent to %s via %s id=%s", subject, to, provider, message_id)
        return SentEmail(provider, message_id, to, subject, link)

    def _post_json(self, url: str, payload: dict, headers: dict) -> dict:
        req = Request(
            url,
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                **headers,
            },
            method="POST",
        )
        try:
            with urlopen(req, timeout=self.settings.email_timeout_secs) as resp:
                raw = resp.read()
        except HTTPError as exc:
            raise EmailDeliveryError(
                f"{self.provider} rejected the email: HTTP {exc.code}"
            ) from exc
        # URLError, socket timeouts and TLS failures are OSError subclasses;
        # a dropped connection before the status line is an HTTPException
        except (OSError, HTTPException) as exc:
            raise EmailDeliveryError(f"could not reach {self.provider}") from exc

        try:
            return json.loads(raw.decode("utf-8")) if raw else {}
        except ValueError as exc:
            raise EmailDeliveryError("Unexpected email provider response") from exc
