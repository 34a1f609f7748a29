import hmac
import secrets

import bcrypt

from ..config import settings

OTP_MIN = 100000
OTP_MAX = 999999


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash"""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    """Hash password"""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode()


def generate_otp() -> str:
    """Generate a 6-digit numeric code, uniform over 100000..999999"""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def codes_match(stored: str, presented: str) -> bool:
    """Constant-time comparison of two OTP codes"""
    return hmac.compare_digest(stored.encode(), presented.encode())
