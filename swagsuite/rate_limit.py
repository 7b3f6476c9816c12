"""Shared rate limiter.

Uses the configured storage URI (e.g. redis://) so limits are shared across
workers; without one, limits are kept in process memory.
"""

from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings


def _resolve_storage() -> str | None:
    """Return the limiter storage URI, or None for in-memory storage."""
    uri = settings.rate_limit_storage_uri.strip()
    if not uri:
        return None
    logger.info("Rate limiter using storage {}", uri.split("://")[0])
    return uri


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
    storage_uri=_resolve_storage(),
)
