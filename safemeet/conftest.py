"""
Shared test fixtures: an in-memory identity store and fake providers.

Run with: pytest safemeet -v
"""
import os

# Keep test runs off the log file and away from a developer .env
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("BCRYPT_ROUNDS", "10")

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from safemeet.models.identity import Identity, MUTABLE_COLUMNS, PROFILE_COLUMNS, utcnow
from safemeet.services.email_service import EmailDeliveryError
from safemeet.services.push_service import PushUnavailableError
from safemeet.services.side_effects import SideEffectQueue
from safemeet.services.verification_gate import can_assign_password


class InMemoryIdentityStore:
    """Dict-backed stand-in for IdentityStore with the same contract"""

    def __init__(self):
        self.records: Dict[str, Identity] = {}
        self.ping_ok = True

    async def find_by_identifier(self, identifier: str) -> Optional[Identity]:
        identity = self.records.get(identifier)
        return replace(identity) if identity else None

    async def find_by_delivery_token(self, token: str) -> Optional[Identity]:
        for identity in self.records.values():
            if identity.delivery_token == token:
                return replace(identity)
        return None

    async def upsert(self, identifier: str, **fields) -> Identity:
        unknown = set(fields) - set(MUTABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot write columns: {sorted(unknown)}")
        identity = self.records.get(identifier)
        if identity is None:
            identity = Identity(identifier=identifier)
            self.records[identifier] = identity
        for name, value in fields.items():
            setattr(identity, name, value)
        identity.updated_at = utcnow()
        return replace(identity)

    async def save(self, identity: Identity) -> None:
        saved = await self.upsert(
            identity.identifier,
            **{c: getattr(identity, c) for c in MUTABLE_COLUMNS},
        )
        identity.created_at = saved.created_at
        identity.updated_at = saved.updated_at

    async def assign_password(
        self,
        identifier: str,
        password_hash: str,
        password_set_at: datetime,
        **profile,
    ) -> Optional[Identity]:
        unknown = set(profile) - set(PROFILE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot write columns: {sorted(unknown)}")
        identity = self.records.get(identifier)
        if not can_assign_password(identity):
            return None
        identity.password_hash = password_hash
        identity.password_set_at = password_set_at
        for name, value in profile.items():
            setattr(identity, name, value)
        identity.updated_at = utcnow()
        return replace(identity)

    async def consume_otp(self, identifier: str, code: str, verified_at: datetime) -> bool:
        identity = self.records.get(identifier)
        if identity is None or identity.current_otp != code:
            return False
        identity.current_otp = None
        identity.otp_verified = True
        identity.otp_verified_at = verified_at
        return True

    async def clear_delivery_token(self, identifier: str, token: Optional[str] = None) -> bool:
        identity = self.records.get(identifier)
        if identity is None or identity.delivery_token is None:
            return False
        if token is not None and identity.delivery_token != token:
            return False
        identity.delivery_token = None
        return True

    async def ping(self) -> bool:
        return self.ping_ok


class FakePushService:
    """Records sends; set ``error`` to make the next sends raise it"""

    def __init__(self, available: bool = True):
        self.available = available
        self.sent: List[dict] = []
        self.error: Optional[Exception] = None

    async def send(self, token, title, body, data=None) -> str:
        if not self.available:
            raise PushUnavailableError("Firebase not configured - notification service unavailable")
        if self.error is not None:
            raise self.error
        self.sent.append({"token": token, "title": title, "body": body, "data": data})
        return f"projects/safemeet/messages/{len(self.sent)}"


class FakeEmailService:
    def __init__(self, configured: bool = True):
        self.configured = configured
        self.sent: List[dict] = []
        self.fail = False

    async def send_otp_email(self, to_email: str, code: str, ttl_minutes: int = 5) -> None:
        if self.fail or not self.configured:
            raise EmailDeliveryError("SendGrid returned 401", details={"status_code": 401})
        self.sent.append({"to": to_email, "code": code, "ttl_minutes": ttl_minutes})

    def last_code(self, to_email: str) -> Optional[str]:
        for message in reversed(self.sent):
            if message["to"] == to_email:
                return message["code"]
        return None


class FrozenClock:
    """Manually advanced clock for OTP expiry tests"""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def store():
    return InMemoryIdentityStore()


@pytest.fixture
def push():
    return FakePushService()


@pytest.fixture
def email():
    return FakeEmailService()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def hooks():
    return SideEffectQueue()
