"""
Rate limiting for public endpoints (contact submission, reviews, login)
using slowapi, backed by Redis when it is reachable.
"""

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
import redis

from core.config import get_settings
from core.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

# Development and test runs are effectively unlimited
RELAXED = settings.DEBUG or settings.ENVIRONMENT.lower() in ["development", "dev", "local", "test"]

if RELAXED:
    default_limit = "10000/minute"
else:
    default_limit = f"{settings.RATE_LIMIT_PER_MINUTE}/minute"


def route_limit(production_limit: str) -> str:
    """Per-route limit, relaxed outside production-like environments."""
    return default_limit if RELAXED else production_limit


try:
    redis.from_url(settings.REDIS_URL, socket_connect_timeout=1).ping()
    limiter = Limiter(
        key_func=get_remote_address,
        storage_uri=settings.REDIS_URL,
        default_limits=[default_limit]
    )
    logger.info(f"Rate limiting initialized with Redis: {default_limit}")
except redis.RedisError as e:
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[default_limit]
    )
    logger.warning(f"Rate limiting initialized with in-memory storage (Redis not available): {str(e)}")

__all__ = ['limiter', 'route_limit', '_rate_limit_exceeded_handler', 'RateLimitExceeded']
