from fastapi import Depends
import asyncpg

from .config import settings
from .core.database import get_db_pool
from .services.auth_service import AuthService
from .services.email_service import EmailService, get_email_service
from .services.identity_store import IdentityStore
from .services.notification_service import NotificationDispatcher
from .services.otp_service import OtpService
from .services.push_service import PushService, get_push_service
from .services.side_effects import SideEffectQueue, get_side_effects


async def get_identity_store(pool: asyncpg.Pool = Depends(get_db_pool)) -> IdentityStore:
    """Dependency for the identity store"""
    return IdentityStore(pool)


def get_push() -> PushService:
    return get_push_service()


def get_email() -> EmailService:
    return get_email_service()


def get_hooks() -> SideEffectQueue:
    return get_side_effects()


def get_dispatcher(
    store: IdentityStore = Depends(get_identity_store),
    push: PushService = Depends(get_push),
) -> NotificationDispatcher:
    return NotificationDispatcher(store, push)


def get_otp_service(store: IdentityStore = Depends(get_identity_store)) -> OtpService:
    return OtpService(store, ttl_seconds=settings.otp_ttl_seconds)


def get_auth_service(
    store: IdentityStore = Depends(get_identity_store),
    otp: OtpService = Depends(get_otp_service),
    email: EmailService = Depends(get_email),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    hooks: SideEffectQueue = Depends(get_hooks),
) -> AuthService:
    return AuthService(
        store=store,
        otp=otp,
        email=email,
        dispatcher=dispatcher,
        side_effects=hooks,
        echo_otp=settings.debug and settings.otp_echo_in_response,
    )
