"""
Rate limiting middleware.

Limits the public license endpoints per client IP with a fixed window
counter kept in the Django cache.
"""

import hashlib
import time
from typing import Callable, Tuple

from django.conf import settings
from django.core.cache import cache
from django.http import HttpRequest, HttpResponse

from core.metrics import errors_total
from core.middleware.auth import error_response


def client_ip(request: HttpRequest) -> str:
    """
    Resolve the client address.

    The first X-Forwarded-For hop is used when present (the service runs
    behind a reverse proxy), REMOTE_ADDR otherwise.
    """
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "unknown")


class RateLimitMiddleware:
    """
    Rate limiting middleware per client IP.

    Default limit: LICENSE_RATE_LIMIT requests per minute.
    """

    RATE_LIMIT_WINDOW = 60  # seconds

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def _get_rate_limit_key(self, identity: str, window_start: int) -> str:
        # Hash the address so raw IPs are not stored in the cache
        identity_hash = hashlib.sha256(identity.encode()).hexdigest()[:16]
        return f"rate_limit:{identity_hash}:{window_start}"

    def _check_rate_limit(self, identity: str, limit: int) -> Tuple[bool, int, int]:
        """
        Check if request is within rate limit.

        Args:
            identity: Client identity (IP address)
            limit: Requests allowed per window

        Returns:
            Tuple of (is_allowed, remaining, reset_time)
        """
        window_start = int(time.time() / self.RATE_LIMIT_WINDOW)
        reset_time = (window_start + 1) * self.RATE_LIMIT_WINDOW
        full_key = self._get_rate_limit_key(identity, window_start)

        if cache.add(full_key, 1, timeout=self.RATE_LIMIT_WINDOW):
            count = 1
        else:
            try:
                count = cache.incr(full_key, 1)
            except ValueError:
                # Key expired between add and incr
                cache.set(full_key, 1, timeout=self.RATE_LIMIT_WINDOW)
                count = 1

        if count > limit:
            return False, 0, reset_time
        return True, max(0, limit - count), reset_time

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """
        Process request with rate limiting.

        Args:
            request: HTTP request

        Returns:
            HTTP response with rate limit headers
        """
        if not request.path.startswith(settings.LICENSE_RATE_LIMIT_PREFIX):
            return self.get_response(request)

        limit = settings.LICENSE_RATE_LIMIT
        is_allowed, remaining, reset_time = self._check_rate_limit(client_ip(request), limit)

        if not is_allowed:
            errors_total.labels(error_type="RATE_LIMITED", endpoint=request.path).inc()
            response = error_response(
                "RATE_LIMITED", "Too many requests. Please try again later.", 429
            )
        else:
            response = self.get_response(request)

        # Add rate limit headers (RFC 6585)
        response["X-RateLimit-Limit"] = str(limit)
        response["X-RateLimit-Remaining"] = str(remaining)
        response["X-RateLimit-Reset"] = str(reset_time)
        if not is_allowed:
            response["Retry-After"] = str(max(0, reset_time - int(time.time())))
        return response
