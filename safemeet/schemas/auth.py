"""Authentication schemas for API requests and responses"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional

from ..utils.identifiers import normalize_identifier


class IdentifierRequest(BaseModel):
    """Base schema for requests keyed by an email address or phone number"""
    model_config = ConfigDict(populate_by_name=True)

    identifier: str = Field(..., max_length=255)

    @field_validator('identifier')
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        return normalize_identifier(v)


def _validate_password(v: str) -> str:
    # bcrypt only uses the first 72 bytes
    if len(v.encode()) > 72:
        raise ValueError('Password must be at most 72 bytes')
    return v


class SendOtpRequest(IdentifierRequest):
    """Schema for OTP issuance"""
    delivery_token: Optional[str] = Field(None, alias="deliveryToken", max_length=4096)


class VerifyOtpRequest(IdentifierRequest):
    """Schema for OTP verification"""
    code: str = Field(..., min_length=1, max_length=32)

    @field_validator('code')
    @classmethod
    def strip_code(cls, v: str) -> str:
        return v.strip()


class SignupRequest(IdentifierRequest):
    """Schema for password signup after OTP verification"""
    password: str = Field(..., min_length=1)
    full_name: Optional[str] = Field(None, alias="fullName", max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    delivery_token: Optional[str] = Field(None, alias="deliveryToken", max_length=4096)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _validate_password(v)


class LoginRequest(IdentifierRequest):
    """Schema for password login"""
    password: str = Field(..., min_length=1)
    delivery_token: Optional[str] = Field(None, alias="deliveryToken", max_length=4096)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _validate_password(v)


class AuthResponse(BaseModel):
    """Schema for every auth endpoint response"""
    success: bool
    message: str


class SendOtpResponse(AuthResponse):
    otp: Optional[str] = None
