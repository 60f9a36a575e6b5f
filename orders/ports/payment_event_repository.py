"""
Payment event repository port (interface).
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Tuple

from orders.domain.payment_event import PaymentEvent


class PaymentEventRepository(ABC):
    """Abstract repository for PaymentEvent records."""

    @abstractmethod
    async def record_received(
        self, event_id: str, event_type: str, now: datetime
    ) -> Tuple[PaymentEvent, bool]:
        """
        Record an upstream event by id, once.

        Args:
            event_id: Upstream event id
            event_type: Upstream event type
            now: Reception time

        Returns:
            Tuple of (stored event, created)
        """
        pass

    @abstractmethod
    async def claim(self, event_id: str, now: datetime) -> Tuple[PaymentEvent, bool]:
        """
        Claim a recorded event for processing, under a row lock.

        Only one delivery holds the claim at a time. Final events and
        events claimed by another delivery within the lease are left
        untouched.

        Args:
            event_id: Upstream event id
            now: Claim time

        Returns:
            Tuple of (stored event, claimed)
        """
        pass

    @abstractmethod
    async def find_by_id(self, event_id: str) -> Optional[PaymentEvent]:
        """
        Find a payment event by upstream id.

        Args:
            event_id: Upstream event id

        Returns:
            PaymentEvent or None if not found
        """
        pass

    @abstractmethod
    async def save(self, event: PaymentEvent) -> PaymentEvent:
        """
        Persist the processing outcome of an event.

        Args:
            event: Event with its new status

        Returns:
            Saved event
        """
        pass
