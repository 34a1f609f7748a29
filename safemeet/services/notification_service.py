"""Notification dispatcher - delivery tokens and push sends per identity."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.exceptions import RecipientNotFound
from ..core.logger import mask_identifier
from ..models.identity import Identity
from .identity_store import IdentityStore
from .push_service import PushService, PushTokenInvalidError

logger = logging.getLogger(__name__)


# Notification copy
class NotificationText:
    OTP_SENT_TITLE = "Verification Code Sent"
    OTP_SENT_BODY = "A verification code has been sent to your email."

    OTP_PUSH_TITLE = "Your verification code"

    SIGNUP_TITLE = "Signup Successful"
    LOGIN_TITLE = "Login Successful"
    LOGIN_BODY = "You have signed in to SafeMeet."

    @staticmethod
    def otp_push_body(code: str, ttl_minutes: int) -> str:
        return f"Your OTP is {code}. It expires in {ttl_minutes} minutes."

    @staticmethod
    def signup_body(full_name: Optional[str]) -> str:
        return f"Welcome to SafeMeet, {full_name}! 🎉" if full_name else "Welcome to SafeMeet! 🎉"


@dataclass
class DeliveryResult:
    message_id: str
    token: str
    identifier: Optional[str] = None


class NotificationDispatcher:
    def __init__(self, store: IdentityStore, push: PushService):
        self.store = store
        self.push = push

    async def register_token(self, identifier: str, token: str) -> Identity:
        """Store ``token`` for ``identifier``, replacing any previous one"""
        identity = await self.store.upsert(identifier, delivery_token=token)
        logger.info(f"Registered delivery token for {mask_identifier(identifier)}")
        return identity

    async def _resolve(self, identifier: Optional[str], token: Optional[str]) -> tuple[Optional[str], str]:
        if identifier:
            identity = await self.store.find_by_identifier(identifier)
            if identity is None or not identity.delivery_token:
                raise RecipientNotFound(
                    "Recipient not found or delivery token missing",
                    details={"identifier": mask_identifier(identifier)},
                )
            return identifier, identity.delivery_token

        if token:
            owner = await self.store.find_by_delivery_token(token)
            return (owner.identifier if owner else None), token

        raise ValueError("identifier or token is required")

    async def send(
        self,
        identifier: Optional[str] = None,
        token: Optional[str] = None,
        title: str = "",
        body: str = "",
        data: Optional[Dict[str, Any]] = None,
    ) -> DeliveryResult:
        """
        Deliver a push notification to an identity or a raw delivery token.

        Raises:
            RecipientNotFound: identity unknown or without a delivery token
            PushTokenInvalidError: provider rejected the token (stored token cleared first)
            PushProviderError / PushUnavailableError: surfaced as-is, no state change
        """
        owner, delivery_token = await self._resolve(identifier, token)

        try:
            message_id = await self.push.send(delivery_token, title, body, data)
        except PushTokenInvalidError:
            if owner:
                await self.store.clear_delivery_token(owner, delivery_token)
                logger.info(f"Removed invalid delivery token for {mask_identifier(owner)}")
            raise

        logger.info(f"Notification sent to {mask_identifier(owner) if owner else 'raw token'}: {message_id}")
        return DeliveryResult(message_id=message_id, token=delivery_token, identifier=owner)

    async def notify_best_effort(self, identifier: str, title: str, body: str) -> Optional[DeliveryResult]:
        """Send to ``identifier`` if it has a token; skip silently otherwise"""
        if not self.push.available:
            return None
        try:
            return await self.send(identifier=identifier, title=title, body=body)
        except RecipientNotFound:
            return None
