"""
CompleteManualOrderHandler.

Handles an operator confirming that a manual payment arrived.
"""

import logging
from typing import Optional

from billing.domain.pricing import to_minor_units
from core.domain.events import EventBus, utcnow
from core.domain.value_objects import LicenseSource, OrderStatus
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import orders_completed_total
from orders.application.commands.manual_order import CompleteManualOrderCommand
from orders.application.dto.order_dto import OrderCompletionDTO
from orders.application.services.purchase_fulfillment import (
    PurchaseFulfillmentService,
    PurchaseRequest,
)
from orders.domain.events import ManualOrderCompleted
from orders.ports.order_repository import ManualOrderRepository

logger = logging.getLogger(__name__)


class CompleteManualOrderHandler:
    """Handler for CompleteManualOrderCommand."""

    def __init__(
        self,
        order_repository: ManualOrderRepository,
        fulfillment: PurchaseFulfillmentService,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with repositories."""
        self.order_repository = order_repository
        self.fulfillment = fulfillment
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: CompleteManualOrderCommand) -> OrderCompletionDTO:
        """
        Handle complete manual order command.

        The order is claimed (pending -> paid_processing) in its own
        transaction, so a second concurrent click fails with
        ORDER_NOT_PENDING. If anything fails before the order is finished
        it goes back to pending with the error recorded.

        Args:
            command: CompleteManualOrderCommand

        Returns:
            OrderCompletionDTO

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderNotPendingError: If the order is not pending
        """
        now = utcnow()
        order = await self.order_repository.claim(command.order_id, now)
        logger.info("Manual order %s claimed", order.id)

        try:
            result = await self.fulfillment.fulfill(
                PurchaseRequest(
                    email=order.email,
                    source=LicenseSource.MANUAL,
                    method=order.method.value,
                    payment_reference=str(order.id),
                    paid_at=order.paid_at or now,
                    amount_paid=to_minor_units(order.amount),
                    currency=order.currency,
                    order_id=str(order.id),
                ),
                notify_if_processed=True,
            )
        except Exception as exc:
            message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
            await self.order_repository.update(
                order.id, lambda current: current.release(message, utcnow())
            )
            logger.error(
                "Manual order %s failed and was released to pending",
                order.id,
                exc_info=True,
            )
            raise

        order = await self.order_repository.update(
            order.id,
            lambda current: current.complete(
                result.license_code, result.invoice_number, utcnow(), result.email_error
            ),
        )
        orders_completed_total.labels(status=order.status.value).inc()
        logger.info(
            "Manual order completed",
            extra={
                "order_id": str(order.id),
                "status": order.status.value,
                "license_code": order.license_code,
                "invoice_number": order.invoice_number,
            },
        )
        await self.event_bus.publish(
            ManualOrderCompleted(
                order_id=str(order.id),
                status=order.status.value,
                license_code=order.license_code,
                invoice_number=order.invoice_number,
            )
        )

        warning = None
        if order.status == OrderStatus.LICENSE_CREATED_EMAIL_FAILED:
            warning = "License and invoice created but the purchase email could not be sent"
        return OrderCompletionDTO(
            order_id=order.id,
            status=order.status.value,
            license_code=order.license_code,
            invoice_number=order.invoice_number,
            email_sent=result.email_sent,
            warning=warning,
        )
