# PURPOSE: slowapi limiter guarding the credential endpoints (signup, login).

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address

from .config import Settings, settings


def build_limiter(cfg: Settings) -> Limiter:
    """Per-client-address limiter; Redis-backed when REDIS_URL is set so limits hold across workers."""
    return Limiter(
        key_func=get_remote_address,
        storage_uri=cfg.REDIS_URL or cfg.RATE_LIMIT_STORAGE_URI,
        headers_enabled=True,
        enabled=cfg.RATE_LIMIT_ENABLED,
    )


limiter = build_limiter(settings)

__all__ = ["build_limiter", "limiter", "_rate_limit_exceeded_handler"]
