"""
Rate limiting middleware.

Access codes are short enough to be guessed by brute force, so signup,
login and every endpoint that accepts a code get a tight per-IP budget.
Uses in-memory storage; each worker process keeps its own counters.
"""

import os
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

CODE_ATTEMPTS_PER_MINUTE = int(os.getenv("CODE_ATTEMPTS_PER_MINUTE", "10"))
API_REQUESTS_PER_MINUTE = int(os.getenv("API_REQUESTS_PER_MINUTE", "120"))


@dataclass
class RateLimitRule:
    name: str
    prefixes: Tuple[str, ...]
    limit: int
    window: int
    message: str

    def matches(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.prefixes)


class RateLimiter:
    """Sliding-window counter keyed by an arbitrary string."""

    def __init__(self, cleanup_interval: int = 300):
        # Storage: {key: [timestamp, ...]}
        self.requests: Dict[str, List[float]] = {}
        self.cleanup_interval = cleanup_interval
        self.last_cleanup = time.time()

    def _cleanup(self, now: float):
        """Drop keys with no activity in the last hour."""
        if now - self.last_cleanup <= self.cleanup_interval:
            return
        cutoff = now - 3600
        for key in list(self.requests.keys()):
            self.requests[key] = [ts for ts in self.requests[key] if ts > cutoff]
            if not self.requests[key]:
                del self.requests[key]
        self.last_cleanup = now

    def is_allowed(self, key: str, limit: int, window: int) -> Tuple[bool, Dict[str, str]]:
        """
        Record a request and report whether it fits in the window.

        Returns:
            Tuple of (allowed, rate limit response headers)
        """
        now = time.time()
        self._cleanup(now)

        recent = [ts for ts in self.requests.get(key, []) if ts > now - window]
        allowed = len(recent) < limit
        if allowed:
            recent.append(now)
        self.requests[key] = recent

        reset_at = int(min(recent) + window) if recent else int(now + window)
        headers = {
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": str(max(0, limit - len(recent))),
            "X-RateLimit-Reset": str(reset_at)
        }
        return allowed, headers

    def reset(self):
        self.requests.clear()


# Global rate limiter instance
rate_limiter = RateLimiter()

RULES = [
    RateLimitRule(
        name="code",
        prefixes=("/auth/", "/me/access-code", "/access-codes/"),
        limit=CODE_ATTEMPTS_PER_MINUTE,
        window=60,
        message="Too many attempts. Please wait a minute and try again."
    ),
    RateLimitRule(
        name="api",
        prefixes=("/",),
        limit=API_REQUESTS_PER_MINUTE,
        window=60,
        message="Too many requests. Please slow down."
    ),
]


def match_rule(path: str) -> Optional[RateLimitRule]:
    if path == "/health":
        return None
    for rule in RULES:
        if rule.matches(path):
            return rule
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply the first matching rule per client IP."""

    async def dispatch(self, request: Request, call_next):
        rule = match_rule(request.url.path)
        if rule is None:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        allowed, headers = rate_limiter.is_allowed(f"{rule.name}:{client_ip}", rule.limit, rule.window)

        if not allowed:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": rule.message},
                headers=headers
            )

        response = await call_next(request)
        for header_name, header_value in headers.items():
            response.headers[header_name] = header_value
        return response
