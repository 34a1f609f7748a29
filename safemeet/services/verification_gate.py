"""
Verification gate.

Per identity: UNVERIFIED -> VERIFIED only through a successful OTP
verification, and VERIFIED -> UNVERIFIED whenever a new OTP is issued.
Signup and login consult the gate before touching credentials.
"""

from enum import Enum
from typing import Optional

from ..models.identity import Identity


class VerificationState(str, Enum):
    UNVERIFIED = "UNVERIFIED"
    VERIFIED = "VERIFIED"


def state_of(identity: Optional[Identity]) -> VerificationState:
    if identity is not None and identity.otp_verified:
        return VerificationState.VERIFIED
    return VerificationState.UNVERIFIED


def is_verified(identity: Optional[Identity]) -> bool:
    return state_of(identity) is VerificationState.VERIFIED


def can_assign_password(identity: Optional[Identity]) -> bool:
    """
    Whether signup may (re)assign the password.

    Each verification authorizes one password assignment: once a password
    has been set after the latest verification, a new OTP round is needed.
    """
    if not is_verified(identity):
        return False
    if identity.password_set_at is None:
        return True
    if identity.otp_verified_at is None:
        return False
    return identity.otp_verified_at > identity.password_set_at
