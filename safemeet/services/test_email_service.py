"""
Tests for OTP email delivery (HTTP client and SMTP mocked)

Run with: pytest safemeet/services/test_email_service.py -v
"""

import pytest
import smtplib
from unittest.mock import AsyncMock, Mock, patch

import httpx

from .email_service import (
    SENDGRID_URL,
    EmailConfig,
    EmailDeliveryError,
    EmailService,
    render_otp_email,
)


def sendgrid_client(status_code: int = 202) -> AsyncMock:
    client = AsyncMock()
    client.post.return_value = Mock(status_code=status_code, text="")
    return client


@pytest.mark.asyncio
class TestEmailService:

    async def test_sendgrid_payload(self):
        service = EmailService(EmailConfig(sendgrid_api_key="SG.key", sender="otp@safemeet.app"))
        client = sendgrid_client()

        with patch("safemeet.services.email_service.get_http_client", AsyncMock(return_value=client)):
            await service.send_otp_email("alice@example.com", "482913", ttl_minutes=5)

        url = client.post.call_args.args[0]
        kwargs = client.post.call_args.kwargs
        assert url == SENDGRID_URL
        assert kwargs["headers"]["Authorization"] == "Bearer SG.key"
        assert kwargs["json"]["personalizations"][0]["to"][0]["email"] == "alice@example.com"
        assert "482913" in kwargs["json"]["content"][0]["value"]

    async def test_sendgrid_rejection(self):
        service = EmailService(EmailConfig(sendgrid_api_key="SG.key"))

        with patch("safemeet.services.email_service.get_http_client", AsyncMock(return_value=sendgrid_client(401))):
            with pytest.raises(EmailDeliveryError) as exc_info:
                await service.send_otp_email("alice@example.com", "482913")

        assert exc_info.value.details["status_code"] == 401

    async def test_sendgrid_network_error(self):
        service = EmailService(EmailConfig(sendgrid_api_key="SG.key"))
        client = AsyncMock()
        client.post.side_effect = httpx.ConnectTimeout("timed out")

        with patch("safemeet.services.email_service.get_http_client", AsyncMock(return_value=client)):
            with pytest.raises(EmailDeliveryError):
                await service.send_otp_email("alice@example.com", "482913")

    async def test_smtp_failure(self):
        service = EmailService(EmailConfig(smtp_host="smtp.example.com"))

        with patch.object(service, "_smtp_deliver", side_effect=smtplib.SMTPAuthenticationError(535, b"bad")):
            with pytest.raises(EmailDeliveryError):
                await service.send_otp_email("alice@example.com", "482913")

    async def test_unconfigured_transport(self):
        service = EmailService(EmailConfig())

        assert service.configured is False
        with pytest.raises(EmailDeliveryError):
            await service.send_otp_email("alice@example.com", "482913")


def test_otp_copy_quotes_expiry():
    text, html = render_otp_email("482913", 5)

    assert "482913" in text and "5 minutes" in text
    assert "<b>482913</b>" in html
