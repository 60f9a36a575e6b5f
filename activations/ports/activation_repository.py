"""
Activation attempt repository port (interface).

This defines the contract for activation attempt persistence.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import List

from activations.domain.activation import ActivationAttempt


class ActivationAttemptRepository(ABC):
    """
    Abstract repository for ActivationAttempt entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def record(self, attempt: ActivationAttempt) -> ActivationAttempt:
        """
        Append an attempt to the log.

        Args:
            attempt: Attempt to store

        Returns:
            Stored attempt
        """
        pass

    @abstractmethod
    async def find_by_code(self, code: str, limit: int = 50) -> List[ActivationAttempt]:
        """
        List the most recent attempts for a code.

        Args:
            code: License code
            limit: Maximum number of attempts

        Returns:
            Attempts, newest first
        """
        pass
