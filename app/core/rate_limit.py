"""Rate limiting configuration."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import get_settings

settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_scoring():
    """Rate limit for the pure scoring endpoints (demand, safety, score)."""
    return f"{settings.RATE_LIMIT_PER_MINUTE}/minute"


def rate_limit_directions():
    """Rate limit for endpoints that may call the directions provider."""
    return f"{max(1, settings.RATE_LIMIT_PER_MINUTE // 2)}/minute"
