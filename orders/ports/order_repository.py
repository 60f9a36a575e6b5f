"""
Manual order repository port (interface).

This defines the contract for manual order persistence operations.
Implementations are in the infrastructure layer.
"""
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional

from core.domain.value_objects import OrderStatus
from orders.domain.order import ManualOrder

OrderChange = Callable[[ManualOrder], ManualOrder]


class ManualOrderRepository(ABC):
    """
    Abstract repository for ManualOrder entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def create(self, order: ManualOrder) -> ManualOrder:
        """
        Persist a new order.

        Args:
            order: Order to insert

        Returns:
            Saved order
        """
        pass

    @abstractmethod
    async def find_by_id(self, order_id: uuid.UUID) -> Optional[ManualOrder]:
        """
        Find an order by ID.

        Args:
            order_id: Order UUID

        Returns:
            ManualOrder entity or None if not found
        """
        pass

    @abstractmethod
    async def list_by_status(self, status: OrderStatus, limit: int = 200) -> List[ManualOrder]:
        """
        List orders in one status, newest first.

        Args:
            status: Status to filter by
            limit: Maximum number of orders

        Returns:
            List of ManualOrder entities
        """
        pass

    @abstractmethod
    async def update(self, order_id: uuid.UUID, change: OrderChange) -> ManualOrder:
        """
        Apply a change to one order under a row lock.

        The change receives the freshly read order and returns the new
        state; a domain exception raised by it aborts the transaction.

        Args:
            order_id: Order UUID
            change: Function computing the new state

        Returns:
            Updated order

        Raises:
            OrderNotFoundError: If the order does not exist
        """
        pass

    async def claim(self, order_id: uuid.UUID, now: datetime) -> ManualOrder:
        """
        Move a pending order to paid_processing.

        Two concurrent claims serialize on the row lock; the second one
        re-reads the updated status and fails.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderNotPendingError: If the order is not pending
        """
        return await self.update(order_id, lambda order: order.claim(now))
