"""
Email service - OTP delivery.

SendGrid v3 API over httpx when SENDGRID_API_KEY is set, otherwise SMTP.
"""
import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

import httpx

from ..core.exceptions import ServiceError
from ..core.http_client import get_http_client
from ..core.logger import mask_identifier

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


class EmailDeliveryError(ServiceError):
    """Email could not be handed to the provider"""
    pass


@dataclass
class EmailConfig:
    """Email transport configuration"""
    sender: str = "no-reply@safemeet.app"
    otp_subject: str = "Your SafeMeet OTP Code"
    sendgrid_api_key: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    timeout: float = 10.0

    @property
    def transport(self) -> Optional[str]:
        if self.sendgrid_api_key:
            return "sendgrid"
        if self.smtp_host:
            return "smtp"
        return None


def render_otp_email(code: str, ttl_minutes: int) -> tuple[str, str]:
    """Return (plain text, html) bodies for an OTP email"""
    text = f"Your OTP is: {code}. This OTP will expire in {ttl_minutes} minutes."
    html = (
        f"<p>Your OTP is: <b>{code}</b></p>"
        f"<p>This OTP will expire in {ttl_minutes} minutes.</p>"
    )
    return text, html


class EmailService:
    def __init__(self, config: EmailConfig = None):
        self.config = config or EmailConfig()

    @property
    def configured(self) -> bool:
        return self.config.transport is not None

    async def send_otp_email(self, to_email: str, code: str, ttl_minutes: int = 5) -> None:
        """
        Send an OTP code to ``to_email``.

        Raises:
            EmailDeliveryError: no transport configured or the provider failed
        """
        text, html = render_otp_email(code, ttl_minutes)
        await self.send(to_email, self.config.otp_subject, text, html)
        logger.info(f"[EMAIL] OTP sent to {mask_identifier(to_email)} via {self.config.transport}")

    async def send(self, to_email: str, subject: str, text: str, html: Optional[str] = None) -> None:
        transport = self.config.transport
        if transport == "sendgrid":
            await self._send_sendgrid(to_email, subject, text, html)
        elif transport == "smtp":
            await self._send_smtp(to_email, subject, text, html)
        else:
            logger.error("[EMAIL] No email transport configured")
            raise EmailDeliveryError("Email delivery is not configured")

    async def _send_sendgrid(self, to_email: str, subject: str, text: str, html: Optional[str]) -> None:
        content = [{"type": "text/plain", "value": text}]
        if html:
            content.append({"type": "text/html", "value": html})
        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": self.config.sender},
            "subject": subject,
            "content": content,
        }

        client = await get_http_client()
        try:
            response = await client.post(
                SENDGRID_URL,
                headers={"Authorization": f"Bearer {self.config.sendgrid_api_key}"},
                json=payload,
                timeout=self.config.timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"[EMAIL] SendGrid HTTP error: {type(e).__name__}: {e}")
            raise EmailDeliveryError("SendGrid request failed", details={"error": str(e)}) from e

        if response.status_code not in (200, 202):
            logger.error(f"[EMAIL] SendGrid send failed status={response.status_code} body={response.text[:200]}")
            raise EmailDeliveryError(
                f"SendGrid returned {response.status_code}",
                details={"status_code": response.status_code},
            )

    async def _send_smtp(self, to_email: str, subject: str, text: str, html: Optional[str]) -> None:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.config.sender
        msg["To"] = to_email
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")

        try:
            await asyncio.to_thread(self._smtp_deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[EMAIL] SMTP send failed: {type(e).__name__}: {e}")
            raise EmailDeliveryError("SMTP delivery failed", details={"error": str(e)}) from e

    def _smtp_deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=self.config.timeout) as server:
            server.ehlo()
            if self.config.smtp_use_tls:
                server.starttls()
                server.ehlo()
            if self.config.smtp_user and self.config.smtp_password:
                server.login(self.config.smtp_user, self.config.smtp_password)
            server.send_message(msg)


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get singleton instance of EmailService"""
    global _email_service

    if _email_service is None:
        from ..config import settings

        _email_service = EmailService(EmailConfig(
            sender=settings.email_from,
            otp_subject=settings.otp_email_subject,
            sendgrid_api_key=settings.sendgrid_api_key,
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            smtp_use_tls=settings.smtp_use_tls,
            timeout=settings.email_timeout_seconds,
        ))

    return _email_service
