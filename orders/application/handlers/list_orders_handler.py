"""
ListOrdersHandler.
"""

from typing import List

from core.domain.exceptions import InvalidInputError
from core.domain.value_objects import OrderStatus
from orders.application.dto.order_dto import ManualOrderDTO
from orders.application.queries.list_orders import DEFAULT_ORDER_LIST_LIMIT, ListOrdersQuery
from orders.domain.order import ManualOrder
from orders.ports.order_repository import ManualOrderRepository


def to_order_dto(order: ManualOrder) -> ManualOrderDTO:
    return ManualOrderDTO(
        id=order.id,
        method=order.method.value,
        email=order.email,
        amount=order.amount,
        currency=order.currency,
        reference=order.reference,
        status=order.status.value,
        created_at=order.created_at,
        updated_at=order.updated_at,
        license_code=order.license_code,
        invoice_number=order.invoice_number,
        last_error=order.last_error,
    )


class ListOrdersHandler:
    """Handler for ListOrdersQuery."""

    def __init__(self, order_repository: ManualOrderRepository):
        self.order_repository = order_repository

    async def handle(self, query: ListOrdersQuery) -> List[ManualOrderDTO]:
        """
        List orders in one status, newest first.

        Raises:
            InvalidInputError: If the status is unknown
        """
        try:
            status = OrderStatus(str(query.status or OrderStatus.PENDING.value).strip())
        except ValueError as exc:
            raise InvalidInputError(f"Unknown order status: {query.status}", code="INVALID_STATUS") from exc
        limit = max(1, min(query.limit or DEFAULT_ORDER_LIST_LIMIT, DEFAULT_ORDER_LIST_LIMIT))
        orders = await self.order_repository.list_by_status(status, limit=limit)
        return [to_order_dto(order) for order in orders]
