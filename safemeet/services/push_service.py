"""
Push service - Firebase Cloud Messaging through firebase-admin.

The SDK call is blocking, so it runs in a worker thread under a timeout.
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin import exceptions as firebase_exceptions

from ..core.exceptions import ServiceError

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "safemeet"


class PushError(ServiceError):
    """Base push delivery error"""
    def __init__(self, message: str, code: Optional[str] = None, details: dict = None):
        self.code = code
        super().__init__(message, details)


class PushUnavailableError(PushError):
    """Firebase is not configured"""
    pass


class PushTokenInvalidError(PushError):
    """Provider reports the delivery token as invalid or unregistered"""
    pass


class PushProviderError(PushError):
    """Any other provider failure (network, quota, auth, timeout)"""
    pass


@dataclass
class PushConfig:
    """FCM configuration"""
    service_account_json: Optional[str] = None
    credentials_file: Optional[str] = None
    timeout: float = 10.0

    @property
    def configured(self) -> bool:
        return bool(self.service_account_json or self.credentials_file)


def _is_invalid_token_error(error: firebase_exceptions.FirebaseError) -> bool:
    if isinstance(error, (messaging.UnregisteredError, messaging.SenderIdMismatchError)):
        return True
    if isinstance(error, firebase_exceptions.InvalidArgumentError):
        return "registration token" in str(error).lower()
    return False


class PushService:
    """Sends notifications to FCM registration tokens."""

    def __init__(self, config: PushConfig = None):
        self.config = config or PushConfig()
        self._app: Optional[firebase_admin.App] = None

    @property
    def available(self) -> bool:
        return self.config.configured

    def _get_app(self) -> firebase_admin.App:
        """Initialise the Firebase app once (lazy initialization)"""
        if self._app is not None:
            return self._app

        if not self.config.configured:
            raise PushUnavailableError("Firebase not configured - notification service unavailable")

        try:
            if self.config.service_account_json:
                cred = credentials.Certificate(json.loads(self.config.service_account_json))
            else:
                cred = credentials.Certificate(self.config.credentials_file)
        except (ValueError, OSError) as e:
            logger.error(f"Invalid Firebase credentials: {e}")
            raise PushUnavailableError(
                "Firebase credentials are invalid - notification service unavailable",
                details={"error": str(e)},
            ) from e

        try:
            self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            self._app = firebase_admin.initialize_app(cred, name=FIREBASE_APP_NAME)
        logger.info("Firebase Admin SDK initialized")
        return self._app

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Send one notification.

        Args:
            token: FCM registration token
            title: Notification title
            body: Notification body
            data: Optional payload; values are sent as strings

        Returns:
            Provider message ID

        Raises:
            PushUnavailableError: Firebase not configured
            PushTokenInvalidError: token invalid or no longer registered
            PushProviderError: any other provider failure
        """
        app = self._get_app()
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data={str(k): str(v) for k, v in (data or {}).items()},
            token=token,
        )

        try:
            message_id = await asyncio.wait_for(
                asyncio.to_thread(messaging.send, message, app=app),
                timeout=self.config.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"FCM send timed out after {self.config.timeout}s")
            raise PushProviderError("Push provider timeout", code="timeout") from e
        except firebase_exceptions.FirebaseError as e:
            if _is_invalid_token_error(e):
                logger.warning(f"FCM rejected delivery token: {e.code}")
                raise PushTokenInvalidError(str(e), code=e.code) from e
            logger.error(f"FCM send failed: {e.code} - {e}")
            raise PushProviderError(str(e), code=e.code) from e

        logger.info(f"FCM message sent: {message_id}")
        return message_id


_push_service: Optional[PushService] = None


def get_push_service() -> PushService:
    """Get singleton instance of PushService"""
    global _push_service

    if _push_service is None:
        from ..config import settings

        _push_service = PushService(PushConfig(
            service_account_json=settings.firebase_service_account,
            credentials_file=settings.firebase_credentials_file,
            timeout=settings.push_timeout_seconds,
        ))

    return _push_service
