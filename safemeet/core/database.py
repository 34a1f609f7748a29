import asyncio
import asyncpg
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
import logging

from ..config import settings

logger = logging.getLogger(__name__)

# Global connection pool
_pool: Optional[asyncpg.Pool] = None


async def create_pool() -> asyncpg.Pool:
    """Create and return asyncpg connection pool"""
    global _pool

    if _pool is not None:
        return _pool

    try:
        _pool = await asyncio.wait_for(
            asyncpg.create_pool(
                host=settings.postgres_host,
                port=settings.postgres_port,
                database=settings.postgres_db,
                user=settings.postgres_user,
                password=settings.postgres_password,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
                command_timeout=settings.db_timeout_seconds,
            ),
            timeout=30.0
        )
        logger.info(
            f"Database pool created: {settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db} "
            f"(min={settings.db_pool_min_size}, max={settings.db_pool_max_size}, "
            f"timeout={settings.db_timeout_seconds}s)"
        )
        return _pool
    except asyncio.TimeoutError:
        logger.error("Database pool creation timed out after 30 seconds")
        raise
    except (asyncpg.PostgresError, OSError) as e:
        logger.error(f"Failed to create database pool: {e}")
        raise


async def close_pool():
    """Close the database connection pool"""
    global _pool

    if _pool is not None:
        await _pool.close()
        logger.info("Database pool closed")
        _pool = None


async def get_db_pool() -> asyncpg.Pool:
    """Dependency for getting database pool"""
    if _pool is None:
        await create_pool()
    return _pool


@asynccontextmanager
async def acquire(pool: asyncpg.Pool) -> AsyncIterator[asyncpg.Connection]:
    """Acquire a pooled connection, bounded by DB_TIMEOUT_SECONDS"""
    async with pool.acquire(timeout=settings.db_timeout_seconds) as connection:
        yield connection
