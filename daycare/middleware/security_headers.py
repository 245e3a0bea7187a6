"""
Security headers middleware.

Adds security headers to all API responses. Responses that can carry access
codes, tokens or child records are also marked uncacheable.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request

# Paths whose responses must never sit in a shared or browser cache
NO_STORE_PREFIXES = ("/auth/", "/me/", "/children", "/access-codes", "/admin/")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Headers added:
    - X-Content-Type-Options: Prevent MIME type sniffing
    - X-Frame-Options: Prevent clickjacking
    - Strict-Transport-Security: Force HTTPS (only if secure connection)
    - Content-Security-Policy: JSON only, nothing to load
    - Referrer-Policy: Keep codes in URLs out of referrers
    - Cache-Control: no-store on code and account endpoints
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        # Preview URLs contain the code itself
        response.headers["Referrer-Policy"] = "no-referrer"

        if request.url.path.startswith(NO_STORE_PREFIXES):
            response.headers["Cache-Control"] = "no-store"

        if "server" in response.headers:
            del response.headers["server"]

        return response
