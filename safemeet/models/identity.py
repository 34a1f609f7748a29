from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Identity:
    """Identity record - one per email address or phone number"""
    identifier: str
    password_hash: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    current_otp: Optional[str] = None
    otp_issued_at: Optional[datetime] = None
    otp_verified: bool = False
    otp_verified_at: Optional[datetime] = None
    password_set_at: Optional[datetime] = None
    delivery_token: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_row(cls, row):
        """Create Identity from database row"""
        return cls(**{f.name: row[f.name] for f in fields(cls)})

    @property
    def has_password(self) -> bool:
        return self.password_hash is not None

    def to_dict(self) -> dict:
        """Public view - never includes the hash, the OTP or the delivery token"""
        return {
            'identifier': self.identifier,
            'full_name': self.full_name,
            'phone': self.phone,
            'otp_verified': self.otp_verified,
            'has_password': self.has_password,
            'has_delivery_token': self.delivery_token is not None,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }


# Columns that upsert()/save() are allowed to write
MUTABLE_COLUMNS = (
    'password_hash',
    'full_name',
    'phone',
    'current_otp',
    'otp_issued_at',
    'otp_verified',
    'otp_verified_at',
    'password_set_at',
    'delivery_token',
)

# Columns signup may write next to the password
PROFILE_COLUMNS = (
    'full_name',
    'phone',
    'delivery_token',
)
