"""Health and monitoring endpoints"""

from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from typing import Annotated

from ..core.exceptions import StoreUnavailableError
from ..dependencies import get_email, get_identity_store, get_push
from ..services.email_service import EmailService
from ..services.identity_store import IdentityStore
from ..services.push_service import PushService

router = APIRouter()


@router.get("/health")
async def health_check(
    store: Annotated[IdentityStore, Depends(get_identity_store)],
    push: Annotated[PushService, Depends(get_push)],
    email: Annotated[EmailService, Depends(get_email)],
):
    """Health check endpoint with dependency validation"""
    try:
        database = "Connected" if await store.ping() else "Disconnected"
    except StoreUnavailableError:
        database = "Disconnected"

    return {
        "status": "OK" if database == "Connected" else "DEGRADED",
        "database": database,
        "notificationProvider": "Available" if push.available else "Unavailable",
        "email": "Configured" if email.configured else "Unconfigured",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
