"""Credential store - persistent identity records keyed by identifier."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

import asyncpg

from ..core.database import acquire
from ..core.exceptions import StoreUnavailableError
from ..core.logger import mask_identifier
from ..models.identity import Identity, MUTABLE_COLUMNS, PROFILE_COLUMNS

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = """
    identifier, password_hash, full_name, phone, current_otp, otp_issued_at,
    otp_verified, otp_verified_at, password_set_at, delivery_token,
    created_at, updated_at
"""

_STORE_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


class IdentityStore:
    """asyncpg-backed store for the ``identities`` table."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    @asynccontextmanager
    async def _connection(self, operation: str, identifier: Optional[str] = None) -> AsyncIterator[asyncpg.Connection]:
        try:
            async with acquire(self.pool) as conn:
                yield conn
        except _STORE_ERRORS as e:
            logger.error(
                f"Identity store {operation} failed for {mask_identifier(identifier or '')}: "
                f"{type(e).__name__}: {e}"
            )
            raise StoreUnavailableError(
                message=f"Identity store unavailable during {operation}",
                details={"operation": operation, "error": str(e)},
            ) from e

    async def find_by_identifier(self, identifier: str) -> Optional[Identity]:
        async with self._connection("find", identifier) as conn:
            row = await conn.fetchrow(
                f"SELECT {_SELECT_COLUMNS} FROM identities WHERE identifier = $1",
                identifier,
            )
        return Identity.from_row(row) if row else None

    async def find_by_delivery_token(self, token: str) -> Optional[Identity]:
        async with self._connection("find_by_token") as conn:
            row = await conn.fetchrow(
                f"SELECT {_SELECT_COLUMNS} FROM identities WHERE delivery_token = $1 LIMIT 1",
                token,
            )
        return Identity.from_row(row) if row else None

    async def upsert(self, identifier: str, **fields) -> Identity:
        """
        Insert or update the record for ``identifier`` in one statement.

        Only the given columns are written; concurrent upserts for the same
        identifier resolve as last-writer-wins.
        """
        unknown = set(fields) - set(MUTABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot write columns: {sorted(unknown)}")

        columns = list(fields)
        placeholders = ", ".join(f"${i}" for i in range(2, len(columns) + 2))
        assignments = ", ".join(f"{c} = EXCLUDED.{c}" for c in columns)
        insert_columns = ", ".join(["identifier", *columns])
        values_clause = f"$1, {placeholders}" if columns else "$1"
        update_clause = f"{assignments}, updated_at = NOW()" if columns else "updated_at = NOW()"

        query = f"""
            INSERT INTO identities ({insert_columns})
            VALUES ({values_clause})
            ON CONFLICT (identifier) DO UPDATE SET {update_clause}
            RETURNING {_SELECT_COLUMNS}
        """

        async with self._connection("upsert", identifier) as conn:
            row = await conn.fetchrow(query, identifier, *(fields[c] for c in columns))
        return Identity.from_row(row)

    async def save(self, identity: Identity) -> None:
        """Persist every mutable column of ``identity``"""
        saved = await self.upsert(
            identity.identifier,
            **{c: getattr(identity, c) for c in MUTABLE_COLUMNS},
        )
        identity.created_at = saved.created_at
        identity.updated_at = saved.updated_at

    async def assign_password(
        self,
        identifier: str,
        password_hash: str,
        password_set_at: datetime,
        **profile,
    ) -> Optional[Identity]:
        """
        Set the password, only while the latest verification has not been
        used for one already.

        Returns the updated record, or None when the gate was closed or
        another signup consumed the verification first.
        """
        unknown = set(profile) - set(PROFILE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot write columns: {sorted(unknown)}")

        columns = ["password_hash", "password_set_at", *profile]
        values = [password_hash, password_set_at, *profile.values()]
        assignments = ", ".join(f"{c} = ${i}" for i, c in enumerate(columns, start=2))

        async with self._connection("assign_password", identifier) as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE identities
                SET {assignments}, updated_at = NOW()
                WHERE identifier = $1
                  AND otp_verified
                  AND (password_set_at IS NULL OR otp_verified_at > password_set_at)
                RETURNING {_SELECT_COLUMNS}
                """,
                identifier,
                *values,
            )
        return Identity.from_row(row) if row else None

    async def consume_otp(self, identifier: str, code: str, verified_at: datetime) -> bool:
        """Clear ``code`` and open the verification gate, only if ``code`` is still current"""
        async with self._connection("consume_otp", identifier) as conn:
            result = await conn.execute(
                """
                UPDATE identities
                SET current_otp = NULL, otp_verified = TRUE, otp_verified_at = $3, updated_at = NOW()
                WHERE identifier = $1 AND current_otp = $2
                """,
                identifier,
                code,
                verified_at,
            )
        return result != "UPDATE 0"

    async def clear_delivery_token(self, identifier: str, token: Optional[str] = None) -> bool:
        """
        Unset the stored delivery token.

        When ``token`` is given the token is only cleared if it is still the
        stored one, so a token registered meanwhile survives.
        """
        async with self._connection("clear_token", identifier) as conn:
            result = await conn.execute(
                """
                UPDATE identities
                SET delivery_token = NULL, updated_at = NOW()
                WHERE identifier = $1
                  AND delivery_token IS NOT NULL
                  AND ($2::text IS NULL OR delivery_token = $2::text)
                """,
                identifier,
                token,
            )
        return result != "UPDATE 0"

    async def ping(self) -> bool:
        async with self._connection("ping") as conn:
            return await conn.fetchval("SELECT 1") == 1
