"""Backend Service client lifecycle.

Initialized at startup from BACKEND_URL and BACKEND_ANON_KEY
(or BACKEND_PUBLISHABLE_KEY). One HTTP connection pool per process.
"""

import logging

from fiscalhub.core.config import get_settings
from fiscalhub.infrastructure.backend._rest_client import BackendRESTClient

logger = logging.getLogger(__name__)

_backend_client: BackendRESTClient | None = None


def init_backend() -> bool:
    """Create the shared client. Safe to call when unconfigured (returns False); idempotent."""
    global _backend_client
    if _backend_client is not None:
        return True
    settings = get_settings()
    anon_key = settings.backend_anon_key.get_secret_value()
    if not settings.backend_url or not anon_key:
        logger.warning("Backend Service not configured (BACKEND_URL / BACKEND_ANON_KEY missing)")
        return False
    _backend_client = BackendRESTClient(
        settings.backend_url,
        anon_key,
        timeout=settings.backend_timeout_seconds,
    )
    logger.info("Backend Service client initialized for %s", settings.backend_url)
    return True


def get_backend_client() -> BackendRESTClient | None:
    """Return the shared client, or None if not initialized."""
    return _backend_client


async def close_backend() -> None:
    """Close the client's HTTP connection pool. Call from shutdown."""
    global _backend_client
    if _backend_client is not None:
        await _backend_client.aclose()
        _backend_client = None
        logger.info("Backend Service HTTP client closed")
