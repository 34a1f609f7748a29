"""
Tests for settings and database pool wiring

Run with: pytest safemeet/test_config.py -v
"""

import pytest
from unittest.mock import AsyncMock, patch
from urllib.parse import unquote, urlsplit

from .config import Settings
from .core import database


class TestSettings:

    def test_database_url_escapes_credentials(self):
        config = Settings(
            postgres_user="safe:meet",
            postgres_password="p@ss/w#rd",
            postgres_host="db.internal",
            postgres_port=5433,
            postgres_db="safemeet",
        )

        parts = urlsplit(config.database_url)

        assert parts.hostname == "db.internal"
        assert parts.port == 5433
        assert parts.path == "/safemeet"
        assert unquote(parts.username) == "safe:meet"
        assert unquote(parts.password) == "p@ss/w#rd"

    def test_bcrypt_rounds_floor(self):
        with pytest.raises(ValueError):
            Settings(bcrypt_rounds=4)


@pytest.mark.asyncio
class TestCreatePool:

    async def test_credentials_passed_as_keywords(self):
        pool = AsyncMock()
        database._pool = None

        with patch.object(database.settings, "postgres_password", "p@ss/w#rd"), \
                patch("safemeet.core.database.asyncpg.create_pool", AsyncMock(return_value=pool)) as mock_create:
            try:
                assert await database.create_pool() is pool
            finally:
                database._pool = None

        kwargs = mock_create.call_args.kwargs
        assert "dsn" not in kwargs
        assert kwargs["password"] == "p@ss/w#rd"
        assert kwargs["host"] == database.settings.postgres_host
        assert kwargs["command_timeout"] == database.settings.db_timeout_seconds
