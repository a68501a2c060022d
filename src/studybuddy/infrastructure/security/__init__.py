"""Security helpers."""

from studybuddy.infrastructure.security.rate_limit_storage import RateLimitStorage

__all__ = ["RateLimitStorage"]
