"""
Middleware modules for the daycare portal.
"""

from .rate_limit import RateLimiter, RateLimitMiddleware, rate_limiter
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "RateLimiter",
    "RateLimitMiddleware",
    "rate_limiter",
    "SecurityHeadersMiddleware"
]
