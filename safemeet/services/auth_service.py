"""
Authentication - OTP round-trip, signup and login.

Domain rejections (bad code, gate closed, bad credentials) come back as
``AuthOutcome`` values; only infrastructure failures raise.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.exceptions import RecipientNotFound, ServiceError
from ..core.logger import mask_identifier
from ..core.security import get_password_hash, verify_password
from ..utils.identifiers import is_email
from . import verification_gate as gate
from .email_service import EmailDeliveryError, EmailService
from .identity_store import IdentityStore
from .notification_service import NotificationDispatcher, NotificationText
from .otp_service import OtpService
from .push_service import PushError
from .side_effects import SideEffectQueue

logger = logging.getLogger(__name__)


class OtpDeliveryError(ServiceError):
    """The code was stored but could not be delivered out-of-band"""
    pass


class Rejection(str, Enum):
    OTP_INVALID = "otp_invalid"
    OTP_NOT_VERIFIED = "otp_not_verified"
    INVALID_CREDENTIALS = "invalid_credentials"


REJECTION_MESSAGES = {
    Rejection.OTP_INVALID: "Invalid or expired OTP",
    Rejection.OTP_NOT_VERIFIED: "OTP not verified",
    Rejection.INVALID_CREDENTIALS: "Invalid credentials",
}


@dataclass
class AuthOutcome:
    success: bool
    message: str
    reason: Optional[Rejection] = None

    @classmethod
    def ok(cls, message: str) -> "AuthOutcome":
        return cls(success=True, message=message)

    @classmethod
    def rejected(cls, reason: Rejection) -> "AuthOutcome":
        return cls(success=False, message=REJECTION_MESSAGES[reason], reason=reason)


class AuthService:
    def __init__(
        self,
        store: IdentityStore,
        otp: OtpService,
        email: EmailService,
        dispatcher: NotificationDispatcher,
        side_effects: SideEffectQueue,
        echo_otp: bool = False,
    ):
        self.store = store
        self.otp = otp
        self.email = email
        self.dispatcher = dispatcher
        self.side_effects = side_effects
        self.echo_otp = echo_otp

    @property
    def ttl_minutes(self) -> int:
        return max(1, int(self.otp.ttl.total_seconds() // 60))

    async def send_otp(self, identifier: str, delivery_token: Optional[str] = None) -> str:
        """
        Issue a code and deliver it: by email for email identifiers, by push
        to the stored delivery token for phone identifiers.

        The stored code is not rolled back when delivery fails.

        Raises:
            StoreUnavailableError: the code could not be stored
            OtpDeliveryError: stored, but not delivered
        """
        code = await self.otp.issue(identifier, delivery_token)

        try:
            if is_email(identifier):
                await self.email.send_otp_email(identifier, code, self.ttl_minutes)
            else:
                await self.dispatcher.send(
                    identifier=identifier,
                    title=NotificationText.OTP_PUSH_TITLE,
                    body=NotificationText.otp_push_body(code, self.ttl_minutes),
                )
        except (EmailDeliveryError, PushError, RecipientNotFound) as e:
            if self.echo_otp:
                logger.warning(f"[OTP] Delivery to {mask_identifier(identifier)} failed, echoing code: {e}")
                return code
            logger.error(f"[OTP] Delivery to {mask_identifier(identifier)} failed: {e}")
            raise OtpDeliveryError("Error sending OTP", details={"error": str(e)}) from e

        if is_email(identifier):
            self.side_effects.schedule(
                "otp_sent_push",
                self.dispatcher.notify_best_effort,
                identifier,
                NotificationText.OTP_SENT_TITLE,
                NotificationText.OTP_SENT_BODY,
            )
        return code

    async def verify_otp(self, identifier: str, code: str) -> AuthOutcome:
        if await self.otp.verify(identifier, code):
            return AuthOutcome.ok("OTP verified")
        return AuthOutcome.rejected(Rejection.OTP_INVALID)

    async def signup(
        self,
        identifier: str,
        password: str,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        delivery_token: Optional[str] = None,
    ) -> AuthOutcome:
        identity = await self.store.find_by_identifier(identifier)
        if not gate.can_assign_password(identity):
            logger.info(f"[AUTH] Signup rejected for {mask_identifier(identifier)}: gate closed")
            return AuthOutcome.rejected(Rejection.OTP_NOT_VERIFIED)

        profile = {}
        if full_name is not None:
            profile["full_name"] = full_name
        if phone is not None:
            profile["phone"] = phone
        if delivery_token:
            profile["delivery_token"] = delivery_token

        # Re-checked atomically: a concurrent signup may have used this verification
        identity = await self.store.assign_password(
            identifier,
            get_password_hash(password),
            self.otp.clock(),
            **profile,
        )
        if identity is None:
            logger.info(f"[AUTH] Signup rejected for {mask_identifier(identifier)}: verification already used")
            return AuthOutcome.rejected(Rejection.OTP_NOT_VERIFIED)

        logger.info(f"[AUTH] Signup completed for {mask_identifier(identifier)}")

        self.side_effects.schedule(
            "signup_push",
            self.dispatcher.notify_best_effort,
            identifier,
            NotificationText.SIGNUP_TITLE,
            NotificationText.signup_body(identity.full_name),
        )
        return AuthOutcome.ok("Signup successful")

    async def login(
        self,
        identifier: str,
        password: str,
        delivery_token: Optional[str] = None,
    ) -> AuthOutcome:
        identity = await self.store.find_by_identifier(identifier)

        if identity is None or not verify_password(password, identity.password_hash):
            logger.info(f"[AUTH] Login rejected for {mask_identifier(identifier)}: bad credentials")
            return AuthOutcome.rejected(Rejection.INVALID_CREDENTIALS)

        if not gate.is_verified(identity):
            logger.info(f"[AUTH] Login rejected for {mask_identifier(identifier)}: gate closed")
            return AuthOutcome.rejected(Rejection.OTP_NOT_VERIFIED)

        if delivery_token and delivery_token != identity.delivery_token:
            await self.dispatcher.register_token(identifier, delivery_token)

        self.side_effects.schedule(
            "login_push",
            self.dispatcher.notify_best_effort,
            identifier,
            NotificationText.LOGIN_TITLE,
            NotificationText.LOGIN_BODY,
        )
        return AuthOutcome.ok("Login successful")
