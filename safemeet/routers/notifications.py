"""Notifications router - delivery token registration and push sends"""

from fastapi import APIRouter, Depends
from typing import Annotated
import logging

from ..schemas.notifications import (
    RegisterTokenRequest,
    SendNotificationRequest,
    SendNotificationResponse,
)
from ..schemas.auth import AuthResponse
from ..core.exceptions import (
    InfrastructureError,
    NotFoundError,
    RecipientNotFound,
    ServiceUnavailableError,
    StoreUnavailableError,
)
from ..dependencies import get_dispatcher
from ..services.notification_service import NotificationDispatcher
from ..services.push_service import PushError, PushUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register-token", response_model=AuthResponse)
async def register_token(
    request: RegisterTokenRequest,
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
):
    """Store the push delivery token for an identifier, replacing the old one"""
    try:
        await dispatcher.register_token(request.identifier, request.token)
    except StoreUnavailableError as e:
        raise InfrastructureError("Failed to register token", error=e.message)

    return AuthResponse(success=True, message="Token registered successfully")


@router.post("/send-notification", response_model=SendNotificationResponse)
async def send_notification(
    request: SendNotificationRequest,
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
):
    """
    Send a push notification to an identifier's stored token or to a raw token.
    """
    if not dispatcher.push.available:
        raise ServiceUnavailableError("Firebase not configured - notification service unavailable")

    try:
        result = await dispatcher.send(
            identifier=request.identifier,
            token=request.token,
            title=request.title,
            body=request.body,
            data=request.data,
        )
    except RecipientNotFound as e:
        raise NotFoundError(e.message)
    except PushUnavailableError as e:
        raise ServiceUnavailableError(e.message)
    except PushError as e:
        logger.error(f"Error sending notification: {e.code} - {e.message}")
        raise InfrastructureError("Failed to send notification", error=e.message, code=e.code)
    except StoreUnavailableError as e:
        raise InfrastructureError("Failed to send notification", error=e.message)

    return SendNotificationResponse(message_id=result.message_id)
