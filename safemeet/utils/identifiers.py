"""Identifier normalization - one canonical key per email address or phone number."""

import re

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_email(identifier: str) -> bool:
    return "@" in identifier


def normalize_identifier(raw: str) -> str:
    """
    Canonical form of an identifier.

    Emails are trimmed and lower-cased. Phone numbers become ``+`` followed
    by their digits, whether or not the caller wrote the ``+``.

    Raises:
        ValueError: empty, malformed email, or phone outside 10-15 digits
    """
    value = (raw or "").strip()
    if not value:
        raise ValueError("Identifier is required")

    if is_email(value):
        value = value.lower()
        if len(value) > 255 or not _EMAIL_RE.match(value):
            raise ValueError("Invalid email address")
        return value

    digits = "".join(c for c in value if c.isdigit())
    if len(digits) < 10 or len(digits) > 15:
        raise ValueError("Phone must be 10-15 digits")
    return f"+{digits}"
