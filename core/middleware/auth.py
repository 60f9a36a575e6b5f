"""
Admin token authentication middleware.

Operator endpoints (under ADMIN_PATH_PREFIX) require a shared secret in
the X-Admin-Token header. A server without a configured token is
misconfigured, which is reported differently from a wrong token.
"""

import hmac
import logging
from typing import Optional

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.deprecation import MiddlewareMixin

from core.metrics import errors_total

logger = logging.getLogger(__name__)


def error_response(code: str, message: str, status: int) -> JsonResponse:
    """Build the standard error body outside of DRF views."""
    return JsonResponse({"ok": False, "code": code, "message": message}, status=status)


def admin_token_matches(provided: str, expected: str) -> bool:
    """Compare tokens in constant time."""
    return hmac.compare_digest(provided.encode(), expected.encode())


class AdminTokenMiddleware(MiddlewareMixin):
    """
    Middleware for admin shared-secret authentication.

    This middleware:
    1. Leaves every path outside the admin API alone
    2. Returns 500 ADMIN_TOKEN_NOT_SET if no token is configured
    3. Returns 401 UNAUTHORIZED if the header is missing or wrong
    """

    def process_request(self, request: HttpRequest) -> Optional[HttpResponse]:
        """
        Process request and validate the admin token.

        Args:
            request: HTTP request

        Returns:
            Error response if authentication fails, None otherwise
        """
        if not request.path.startswith(settings.ADMIN_PATH_PREFIX):
            return None

        expected = getattr(settings, "ADMIN_TOKEN", "") or ""
        if not expected:
            logger.error("Admin endpoint called but ADMIN_TOKEN is not configured")
            errors_total.labels(error_type="ADMIN_TOKEN_NOT_SET", endpoint=request.path).inc()
            return error_response("ADMIN_TOKEN_NOT_SET", "Admin token is not configured", 500)

        provided = request.headers.get(settings.ADMIN_TOKEN_HEADER, "")
        if not provided or not admin_token_matches(provided, expected):
            logger.warning(
                "Rejected admin request",
                extra={"path": request.path, "remote_addr": request.META.get("REMOTE_ADDR")},
            )
            errors_total.labels(error_type="UNAUTHORIZED", endpoint=request.path).inc()
            return error_response("UNAUTHORIZED", "Unauthorized", 401)

        request.is_admin = True  # type: ignore
        return None
