"""Transactional email delivery through the Brevo HTTP API."""

import logging
from html import escape
from urllib.parse import quote

import httpx

from sessionauth.services.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

_EMAIL_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; max-width: 480px; margin: 0 auto; padding: 32px;">
  <h2 style="color: #1a1a1a;">{heading}</h2>
  <p style="color: #4a4a4a; line-height: 1.6;">{body}</p>
  <a href="{url}"
     style="display: inline-block; padding: 12px 24px; background-color: #1a1a1a; color: #ffffff; text-decoration: none; border-radius: 4px; margin-top: 16px;">
    {button}
  </a>
  <p style="color: #999; font-size: 12px; margin-top: 24px;">{footer}</p>
</div>
"""


def _mask(value: str) -> str:
    """Mask an email address for logs, keeping the domain."""
    local, _, domain = value.partition("@")
    return f"{local[:2]}***@{domain}" if domain else "***"


class EmailSender:
    """Sends verification and password-reset emails.

    Configuration is passed in explicitly; nothing here reads global settings.
    """

    def __init__(
        self,
        api_key: str,
        sender_address: str,
        frontend_url: str,
        sender_name: str = "Session Auth",
        api_url: str = "https://api.brevo.com/v3/smtp/email",
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.sender_address = sender_address
        self.sender_name = sender_name
        self.frontend_url = frontend_url.rstrip("/")
        self.api_url = api_url
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.sender_address)

    async def send_email(self, to: str, subject: str, html: str) -> None:
        """Send one HTML email.

        Raises:
            EmailDeliveryError: not configured, transport failure or non-2xx reply
        """
        if not self.is_configured:
            logger.warning(f"Email delivery not configured; dropping '{subject}' to {_mask(to)}")
            raise EmailDeliveryError("Email delivery is not configured")

        payload = {
            "sender": {"name": self.sender_name, "email": self.sender_address},
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html,
        }
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "api-key": self.api_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Email API request failed for {_mask(to)}: {e}")
            raise EmailDeliveryError(f"Email API request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(
                f"Email API error for {_mask(to)}: "
                f"HTTP {response.status_code} {response.text[:200]}"
            )
            raise EmailDeliveryError(f"Email API error: HTTP {response.status_code}")

        logger.info(f"Email '{subject}' sent to {_mask(to)}")

    async def send_verification_email(self, to: str, token: str) -> None:
        url = f"{self.frontend_url}/verify-email?token={quote(token)}"
        html = _EMAIL_TEMPLATE.format(
            heading="Email Verification",
            body="Click the button below to verify your email address. "
            "This link will expire in 24 hours.",
            url=escape(url, quote=True),
            button="Verify Email",
            footer="If you did not create an account, please ignore this email.",
        )
        await self.send_email(to, "Verify Your Email", html)

    async def send_reset_email(self, to: str, token: str) -> None:
        url = f"{self.frontend_url}/reset-password?token={quote(token)}"
        html = _EMAIL_TEMPLATE.format(
            heading="Password Reset",
            body="Click the button below to reset your password. "
            "This link will expire in 15 minutes.",
            url=escape(url, quote=True),
            button="Reset Password",
            footer="If you did not request a password reset, please ignore this email.",
        )
        await self.send_email(to, "Reset Your Password", html)
