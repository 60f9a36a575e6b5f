"""
API exception handlers.

This module maps domain exceptions to REST API responses. Every error
body has the shape {"ok": false, "code": ..., "message": ...}.
"""

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DeviceChangeAlreadyUsedError,
    DeviceMismatchError,
    DomainException,
    InvalidInputError,
    InvalidPaymentEventError,
    InvalidWebhookSignatureError,
    LicenseBlockedError,
    LicenseExpiredError,
    LicenseNotActiveError,
    LicenseNotFoundError,
    OrderNotFoundError,
    OrderNotPendingError,
    OrderNotResendableError,
    RecoveryAlreadyUsedError,
)
from core.metrics import errors_total

logger = logging.getLogger(__name__)

# Checked in order; the first matching class wins
DOMAIN_STATUS_CODES = [
    ((InvalidInputError, InvalidPaymentEventError, InvalidWebhookSignatureError), status.HTTP_400_BAD_REQUEST),
    ((AuthenticationError,), status.HTTP_401_UNAUTHORIZED),
    (
        (
            LicenseBlockedError,
            LicenseExpiredError,
            DeviceMismatchError,
            LicenseNotActiveError,
            DeviceChangeAlreadyUsedError,
            RecoveryAlreadyUsedError,
        ),
        status.HTTP_403_FORBIDDEN,
    ),
    ((LicenseNotFoundError, OrderNotFoundError), status.HTTP_404_NOT_FOUND),
    ((OrderNotPendingError, OrderNotResendableError), status.HTTP_409_CONFLICT),
]


def error_body(code: str, message: str, **extra) -> Dict[str, Any]:
    """Build the standard error body."""
    body = {"ok": False, "code": code, "message": message}
    body.update(extra)
    return body


def status_for(exc: DomainException) -> int:
    """
    Pick the HTTP status of a domain exception.

    Configuration, exhaustion, storage and notification failures are
    server-side and fall through to 500.
    """
    for classes, status_code in DOMAIN_STATUS_CODES:
        if isinstance(exc, classes):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Custom exception handler for REST API."""
    trace_id = _get_trace_id(context)
    endpoint = _get_path(context)

    if isinstance(exc, DomainException):
        response = _handle_domain_exception(exc, trace_id, endpoint)
    elif isinstance(exc, ValidationError):
        errors_total.labels(error_type="VALIDATION_ERROR", endpoint=endpoint).inc()
        response = Response(
            error_body("VALIDATION_ERROR", "Invalid request", details=exc.detail),
            status=status.HTTP_400_BAD_REQUEST,
        )
    elif isinstance(exc, Http404):
        response = Response(
            error_body("NOT_FOUND", "Resource not found"),
            status=status.HTTP_404_NOT_FOUND,
        )
    elif isinstance(exc, APIException):
        response = exception_handler(exc, context)
        detail = response.data.get("detail", exc.default_detail) if isinstance(response.data, dict) else exc.default_detail
        code = str(getattr(exc, "default_code", "api_error")).upper().replace("-", "_")
        response.data = error_body(code, str(detail))
    else:
        response = _handle_unexpected_exception(exc, trace_id, endpoint)

    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def _get_trace_id(context: Dict[str, Any]) -> Optional[str]:
    """Extract trace ID from request context."""
    request = context.get("request")
    if not request:
        return None
    return getattr(request, "trace_id", getattr(request, "correlation_id", None))


def _get_path(context: Dict[str, Any]) -> str:
    request = context.get("request")
    return request.path if request is not None else "unknown"


def _handle_domain_exception(exc: DomainException, trace_id: Optional[str], endpoint: str) -> Response:
    """Handle domain-specific exceptions."""
    status_code = status_for(exc)
    errors_total.labels(error_type=exc.code, endpoint=endpoint).inc()
    if status_code >= 500:
        logger.error(
            "Server-side domain error: %s - %s",
            exc.code,
            exc.message,
            extra={"trace_id": trace_id},
            exc_info=not isinstance(exc, ConfigurationError),
        )
    else:
        logger.warning("Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id})
    return Response(error_body(exc.code, exc.message), status=status_code)


def _handle_unexpected_exception(exc: Exception, trace_id: Optional[str], endpoint: str) -> Response:
    """Handle unexpected or untracked exceptions without leaking internals."""
    errors_total.labels(error_type="INTERNAL_ERROR", endpoint=endpoint).inc()
    logger.error("Unexpected error: %s", exc, extra={"trace_id": trace_id}, exc_info=True)
    return Response(
        error_body("INTERNAL_ERROR", "An internal error occurred"),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
