"""
Global per-IP rate limit (slowapi).

Every route carries ``@api_limit``, a shared limit, so one budget of
``RATE_LIMIT`` requests per client IP is spent across the whole API.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import get_settings, settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def _current_limit() -> str:
    # Resolved on every request
    return get_settings().RATE_LIMIT


api_limit = limiter.shared_limit(_current_limit, scope="api")
