"""
Global HTTP client for outbound provider calls (SendGrid).

One pooled client is shared by the whole process and closed on
application shutdown via close_http_client().
"""
import httpx
import logging
from typing import Optional

from ..config import settings

logger = logging.getLogger(__name__)

_http_client: Optional[httpx.AsyncClient] = None


async def get_http_client() -> httpx.AsyncClient:
    """
    Get global HTTP client with connection pooling.

    Every request carries the EMAIL_TIMEOUT_SECONDS budget so a hung
    provider cannot hold a request open indefinitely.

    Returns:
        Shared httpx.AsyncClient instance
    """
    global _http_client

    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.email_timeout_seconds, connect=5.0),
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=5,
                keepalive_expiry=30.0
            ),
        )
        logger.info("HTTP client created with connection pooling")

    return _http_client


async def close_http_client():
    """Close the global HTTP client on shutdown."""
    global _http_client

    if _http_client is not None and not _http_client.is_closed:
        await _http_client.aclose()
        _http_client = None
        logger.info("HTTP client closed")
