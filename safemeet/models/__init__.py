"""Database models - dataclasses for representing database records"""

from .identity import Identity, MUTABLE_COLUMNS, PROFILE_COLUMNS

__all__ = [
    "Identity",
    "MUTABLE_COLUMNS",
    "PROFILE_COLUMNS",
]
