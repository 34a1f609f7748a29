"""Notification schemas"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, Dict, Optional

from ..utils.identifiers import normalize_identifier
from .auth import IdentifierRequest


class RegisterTokenRequest(IdentifierRequest):
    """Schema for delivery token registration"""
    token: str = Field(..., min_length=1, max_length=4096)


class SendNotificationRequest(BaseModel):
    """Schema for a push send, addressed by identifier or by raw token"""
    model_config = ConfigDict(populate_by_name=True)

    identifier: Optional[str] = Field(None, max_length=255)
    token: Optional[str] = Field(None, max_length=4096)
    title: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=1, max_length=4000)
    data: Optional[Dict[str, Any]] = None

    @field_validator('identifier')
    @classmethod
    def validate_identifier(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return normalize_identifier(v)

    @model_validator(mode='after')
    def require_recipient(self):
        if not self.identifier and not self.token:
            raise ValueError('identifier or token is required')
        return self


class SendNotificationResponse(BaseModel):
    success: bool = True
    message: str = "Notification sent successfully"
    message_id: str = Field(..., serialization_alias="messageId")
