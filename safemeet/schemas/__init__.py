"""API schemas - Pydantic models for request/response validation"""

from .auth import (
    SendOtpRequest,
    VerifyOtpRequest,
    SignupRequest,
    LoginRequest,
    AuthResponse,
    SendOtpResponse,
)
from .notifications import (
    RegisterTokenRequest,
    SendNotificationRequest,
    SendNotificationResponse,
)

__all__ = [
    "SendOtpRequest",
    "VerifyOtpRequest",
    "SignupRequest",
    "LoginRequest",
    "AuthResponse",
    "SendOtpResponse",
    "RegisterTokenRequest",
    "SendNotificationRequest",
    "SendNotificationResponse",
]
