"""
License domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from core.domain.events import utcnow
from core.domain.exceptions import LicenseCodeCollisionError, LicenseCodeExhaustedError
from core.domain.value_objects import LicenseSource
from licenses.domain.license import License
from licenses.domain.license_code import generate_license_code
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 20
MAX_ISSUE_ATTEMPTS = 3


@dataclass(frozen=True)
class LicenseRequest:
    """Everything needed to mint a license for a payment."""

    email: str
    source: LicenseSource
    payment_reference: str
    paid_at: datetime
    amount_total: Optional[int] = None
    currency: Optional[str] = None


class LicenseIssuer:
    """
    Domain service that mints licenses with unique codes.

    Uniqueness is guaranteed in two layers: candidates are looked up
    against the store before use, and the insert itself re-checks
    the code inside a transaction.
    """

    def __init__(
        self,
        repository: LicenseRepository,
        code_generator: Callable[[], str] = generate_license_code,
    ):
        """
        Initialize issuer.

        Args:
            repository: License repository
            code_generator: Source of candidate codes
        """
        self.repository = repository
        self.code_generator = code_generator

    async def issue_unique_code(self, max_attempts: int = MAX_CODE_ATTEMPTS) -> str:
        """
        Find a code that is not taken yet.

        Args:
            max_attempts: Number of candidates to try

        Returns:
            Free license code

        Raises:
            LicenseCodeExhaustedError: If every candidate was taken
        """
        for attempt in range(1, max_attempts + 1):
            candidate = self.code_generator()
            if not await self.repository.exists(candidate):
                return candidate
            logger.warning("License code candidate already taken (attempt %s)", attempt)

        logger.critical(
            "No free license code after %s attempts; storage is likely misbehaving",
            max_attempts,
        )
        raise LicenseCodeExhaustedError()

    async def create_license(self, request: LicenseRequest, now: Optional[datetime] = None) -> License:
        """
        Mint and store one license.

        Args:
            request: License request
            now: Issuance time (defaults to now)

        Returns:
            Stored License entity

        Raises:
            LicenseCodeCollisionError: If the code appeared before commit
            LicenseAlreadyIssuedError: If the payment already has a license
            LicenseCodeExhaustedError: If no free code was found
        """
        code = await self.issue_unique_code()
        license = License.create(
            code=code,
            email=request.email,
            source=request.source,
            payment_reference=request.payment_reference,
            paid_at=request.paid_at,
            now=now or utcnow(),
            amount_total=request.amount_total,
            currency=request.currency,
        )
        return await self.repository.insert(license)

    async def issue(self, request: LicenseRequest, max_attempts: int = MAX_ISSUE_ATTEMPTS) -> License:
        """
        Mint a license, retrying the whole issuance on code collisions.

        Args:
            request: License request
            max_attempts: Number of full issuance attempts

        Returns:
            Stored License entity

        Raises:
            LicenseAlreadyIssuedError: If the payment already has a license
            LicenseCodeExhaustedError: If issuance kept colliding
        """
        for attempt in range(1, max_attempts + 1):
            try:
                return await self.create_license(request)
            except LicenseCodeCollisionError:
                logger.warning(
                    "License code collision on insert, retrying issuance (attempt %s/%s)",
                    attempt,
                    max_attempts,
                )
        raise LicenseCodeExhaustedError("License issuance kept colliding")
