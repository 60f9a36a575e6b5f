"""
Database utilities and transaction management.
"""

import logging
import time
from typing import Callable, TypeVar

from django.db import OperationalError, transaction

from core.domain.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TRANSACTION_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF = 0.05


def run_in_transaction(
    body: Callable[..., T],
    *args,
    attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
    backoff: float = DEFAULT_RETRY_BACKOFF,
    **kwargs,
) -> T:
    """
    Run a callable inside one database transaction.

    The transaction is committed when the body returns and rolled back
    when it raises. Transient storage failures (lock timeouts, serialization
    failures, dropped connections) are retried a bounded number of times
    with exponential backoff. Domain exceptions are never retried.

    Usage:
        result = run_in_transaction(self._allocate, year)

    Args:
        body: Callable executed inside the transaction
        attempts: Maximum number of attempts
        backoff: Initial backoff in seconds, doubled after each failure

    Returns:
        Whatever the body returns

    Raises:
        StorageUnavailableError: If every attempt failed with a storage error
    """
    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return body(*args, **kwargs)
        except OperationalError as exc:
            if attempt == attempts:
                logger.error(
                    "Transaction %s failed after %s attempts",
                    getattr(body, "__name__", repr(body)),
                    attempts,
                    exc_info=True,
                )
                raise StorageUnavailableError() from exc
            logger.warning(
                "Transient storage error in %s (attempt %s/%s): %s",
                getattr(body, "__name__", repr(body)),
                attempt,
                attempts,
                exc,
            )
            time.sleep(backoff * (2 ** (attempt - 1)))
    raise StorageUnavailableError()
