"""Services - business logic layer"""

from .identity_store import IdentityStore
from .otp_service import OtpService
from .verification_gate import (
    VerificationState,
    state_of,
    is_verified,
    can_assign_password,
)
from .auth_service import (
    AuthService,
    AuthOutcome,
    Rejection,
    OtpDeliveryError,
)
from .notification_service import (
    NotificationDispatcher,
    NotificationText,
    DeliveryResult,
)
from .push_service import (
    PushService,
    PushConfig,
    PushError,
    PushUnavailableError,
    PushTokenInvalidError,
    PushProviderError,
    get_push_service,
)
from .email_service import (
    EmailService,
    EmailConfig,
    EmailDeliveryError,
    get_email_service,
)
from .side_effects import SideEffectQueue, get_side_effects

__all__ = [
    "IdentityStore",
    "OtpService",
    "VerificationState",
    "state_of",
    "is_verified",
    "can_assign_password",
    "AuthService",
    "AuthOutcome",
    "Rejection",
    "OtpDeliveryError",
    "NotificationDispatcher",
    "NotificationText",
    "DeliveryResult",
    "PushService",
    "PushConfig",
    "PushError",
    "PushUnavailableError",
    "PushTokenInvalidError",
    "PushProviderError",
    "get_push_service",
    "EmailService",
    "EmailConfig",
    "EmailDeliveryError",
    "get_email_service",
    "SideEffectQueue",
    "get_side_effects",
]
