"""Tests for the Brevo email sender."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from sessionauth.services.email import EmailSender
from sessionauth.services.errors import EmailDeliveryError


def _sender(**overrides) -> EmailSender:
    values = {
        "api_key": "brevo-test-key",
        "sender_address": "noreply@example.com",
        "frontend_url": "https://app.example.com/",
    }
    values.update(overrides)
    return EmailSender(**values)


def _mock_client(response=None, error=None):
    """Patchable stand-in for httpx.AsyncClient used as an async context manager."""
    client = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    if error is not None:
        client.post = AsyncMock(side_effect=error)
    else:
        client.post = AsyncMock(return_value=response)
    return client


def _response(status_code: int, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


class TestSendEmail:
    @pytest.mark.asyncio
    async def test_logs_masked_recipient(self, caplog):
        client = _mock_client(_response(201))

        with caplog.at_level(logging.INFO, logger="sessionauth.services.email"):
            with patch("httpx.AsyncClient", return_value=client):
                await _sender().send_email("alice@example.com", "Hello", "<p>Hi</p>")

        messages = [r.getMessage() for r in caplog.records]
        assert "Email 'Hello' sent to al***@example.com" in messages
        assert all("alice@" not in m for m in messages)

    @pytest.mark.asyncio
    async def test_error_log_includes_status(self, caplog):
        client = _mock_client(_response(500, "upstream down"))

        with caplog.at_level(logging.ERROR, logger="sessionauth.services.email"):
            with patch("httpx.AsyncClient", return_value=client):
                with pytest.raises(EmailDeliveryError):
                    await _sender().send_email("alice@example.com", "Hello", "<p>Hi</p>")

        assert any(
            "HTTP 500 upstream down" in r.getMessage() and "al***@example.com" in r.getMessage()
            for r in caplog.records
        )

    @pytest.mark.asyncio
    async def test_posts_brevo_payload(self):
        client = _mock_client(_response(201))

        with patch("httpx.AsyncClient", return_value=client):
            await _sender().send_email("alice@example.com", "Hello", "<p>Hi</p>")

        args, kwargs = client.post.call_args
        assert args[0] == "https://api.brevo.com/v3/smtp/email"
        assert kwargs["headers"]["api-key"] == "brevo-test-key"
        assert kwargs["json"] == {
            "sender": {"name": "Session Auth", "email": "noreply@example.com"},
            "to": [{"email": "alice@example.com"}],
            "subject": "Hello",
            "htmlContent": "<p>Hi</p>",
        }

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client = _mock_client(_response(401, '{"message":"Key not found"}'))

        with patch("httpx.AsyncClient", return_value=client):
            with pytest.raises(EmailDeliveryError, match="401"):
                await _sender().send_email("alice@example.com", "Hello", "<p>Hi</p>")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        client = _mock_client(error=httpx.ConnectError("connection refused"))

        with patch("httpx.AsyncClient", return_value=client):
            with pytest.raises(EmailDeliveryError):
                await _sender().send_email("alice@example.com", "Hello", "<p>Hi</p>")

    @pytest.mark.asyncio
    async def test_unconfigured_sender_raises_without_request(self):
        with patch("httpx.AsyncClient") as client_cls:
            with pytest.raises(EmailDeliveryError):
                await _sender(api_key="").send_email("alice@example.com", "Hello", "<p>Hi</p>")

        client_cls.assert_not_called()


class TestTemplates:
    @pytest.mark.asyncio
    async def test_verification_link(self):
        sender = _sender()
        sender.send_email = AsyncMock()

        await sender.send_verification_email("alice@example.com", "tok_123")

        to, subject, html = sender.send_email.call_args.args
        assert to == "alice@example.com"
        assert subject == "Verify Your Email"
        assert "https://app.example.com/verify-email?token=tok_123" in html

    @pytest.mark.asyncio
    async def test_reset_link(self):
        sender = _sender()
        sender.send_email = AsyncMock()

        await sender.send_reset_email("alice@example.com", "tok_456")

        _, subject, html = sender.send_email.call_args.args
        assert subject == "Reset Your Password"
        assert "https://app.example.com/reset-password?token=tok_456" in html
        assert "15 minutes" in html
