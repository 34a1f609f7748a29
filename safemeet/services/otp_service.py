"""OTP issuer/verifier backed by the identity store."""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..core.logger import mask_identifier
from ..core.security import codes_match, generate_otp
from ..models.identity import Identity, utcnow
from .identity_store import IdentityStore

logger = logging.getLogger(__name__)


class OtpService:
    """
    Issues and verifies one-time codes.

    - At most one valid code per identifier: issuing overwrites the previous one.
    - Issuing demotes the identity to UNVERIFIED until the new code is verified.
    - A code verifies at most once: it is cleared on success.
    - A code older than ``ttl`` never verifies.
    """

    def __init__(
        self,
        store: IdentityStore,
        ttl_seconds: int = 300,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock

    async def issue(self, identifier: str, delivery_token: Optional[str] = None) -> str:
        code = generate_otp()
        fields = {
            "current_otp": code,
            "otp_issued_at": self.clock(),
            "otp_verified": False,
        }
        if delivery_token:
            fields["delivery_token"] = delivery_token

        await self.store.upsert(identifier, **fields)
        logger.info(f"[OTP] Issued code for {mask_identifier(identifier)}")
        return code

    def is_expired(self, identity: Identity) -> bool:
        if identity.otp_issued_at is None:
            return True
        return self.clock() >= identity.otp_issued_at + self.ttl

    async def verify(self, identifier: str, code: str) -> bool:
        identity = await self.store.find_by_identifier(identifier)

        if identity is None or not identity.current_otp:
            logger.info(f"[OTP] No pending code for {mask_identifier(identifier)}")
            return False

        if not codes_match(identity.current_otp, code):
            logger.info(f"[OTP] Mismatch for {mask_identifier(identifier)}")
            return False

        if self.is_expired(identity):
            logger.info(f"[OTP] Expired code for {mask_identifier(identifier)}")
            return False

        # Compare-and-set: a code re-issued or consumed meanwhile loses
        if not await self.store.consume_otp(identifier, identity.current_otp, self.clock()):
            logger.info(f"[OTP] Code superseded for {mask_identifier(identifier)}")
            return False

        logger.info(f"[OTP] Verified {mask_identifier(identifier)}")
        return True
