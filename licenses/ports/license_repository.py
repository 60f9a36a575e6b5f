"""
License repository port (interface).

This defines the contract for license persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from core.domain.value_objects import LicenseSource
from licenses.domain.license import License
from licenses.domain.transitions import LicenseTransition, TransitionFn


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    This is a port in hexagonal architecture - it defines
    the interface without implementation details.
    """

    @abstractmethod
    async def exists(self, code: str) -> bool:
        """
        Check whether a license code is taken.

        Args:
            code: License code

        Returns:
            True if a license with this code exists
        """
        pass

    @abstractmethod
    async def find_by_code(self, code: str) -> Optional[License]:
        """
        Find a license by code.

        Args:
            code: License code

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_payment_reference(
        self, source: LicenseSource, payment_reference: str
    ) -> Optional[License]:
        """
        Find the license issued for a payment.

        Args:
            source: Payment provenance
            payment_reference: Order id or checkout session id

        Returns:
            License entity or None if nothing was issued yet
        """
        pass

    @abstractmethod
    async def find_by_email(self, email: str, limit: int = 20) -> List[License]:
        """
        Find licenses owned by an email address.

        Args:
            email: Normalized purchaser email
            limit: Maximum number of licenses returned

        Returns:
            List of License entities
        """
        pass

    @abstractmethod
    async def find_overdue_codes(self, now: datetime, limit: int = 500) -> List[str]:
        """
        Find entitled licenses whose expiry has passed.

        Args:
            now: Reference time
            limit: Maximum number of codes returned

        Returns:
            List of license codes
        """
        pass

    @abstractmethod
    async def insert(self, license: License) -> License:
        """
        Insert a new license atomically.

        Args:
            license: Freshly created license

        Returns:
            Stored license entity

        Raises:
            LicenseCodeCollisionError: If the code was taken concurrently
            LicenseAlreadyIssuedError: If the payment already has a license
        """
        pass

    @abstractmethod
    async def apply(self, code: str, transition: TransitionFn) -> LicenseTransition:
        """
        Apply a transition to one license inside a locked transaction.

        Args:
            code: License code
            transition: Pure function of the current license

        Returns:
            The transition outcome, after commit
        """
        pass
