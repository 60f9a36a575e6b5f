"""
ResendPurchaseEmailHandler.

Sends the purchase email of a completed order again, typically after
the first attempt failed.
"""

import logging
import uuid

from billing.domain.invoice import InvoiceNumber
from billing.ports.invoice_repository import InvoiceRepository
from core.domain.events import utcnow
from core.domain.exceptions import LicenseNotFoundError, OrderNotFoundError, OrderNotResendableError
from licenses.ports.license_repository import LicenseRepository
from orders.application.commands.manual_order import ResendPurchaseEmailCommand
from orders.application.dto.order_dto import ManualOrderDTO
from orders.application.handlers.list_orders_handler import to_order_dto
from orders.application.services.purchase_fulfillment import PurchaseFulfillmentService
from orders.domain.order import ManualOrder
from orders.ports.order_repository import ManualOrderRepository

logger = logging.getLogger(__name__)


class ResendPurchaseEmailHandler:
    """Handler for ResendPurchaseEmailCommand."""

    def __init__(
        self,
        order_repository: ManualOrderRepository,
        license_repository: LicenseRepository,
        invoice_repository: InvoiceRepository,
        fulfillment: PurchaseFulfillmentService,
    ):
        """Initialize handler with repositories."""
        self.order_repository = order_repository
        self.license_repository = license_repository
        self.invoice_repository = invoice_repository
        self.fulfillment = fulfillment

    async def ensure_resendable(self, order_id: uuid.UUID) -> ManualOrder:
        """
        Check that an order has a license and an invoice to send.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderNotResendableError: If the order was never completed
        """
        order = await self.order_repository.find_by_id(order_id)
        if order is None:
            raise OrderNotFoundError()
        if not order.is_resendable:
            raise OrderNotResendableError()
        return order

    async def handle(self, command: ResendPurchaseEmailCommand) -> ManualOrderDTO:
        """
        Handle resend purchase email command.

        Args:
            command: ResendPurchaseEmailCommand

        Returns:
            The order, now in license_sent

        Raises:
            NotificationError: If the email could not be sent again
        """
        order = await self.ensure_resendable(command.order_id)
        license = await self.license_repository.find_by_code(order.license_code)
        if license is None:
            raise LicenseNotFoundError(f"License {order.license_code} not found")
        invoice = await self.invoice_repository.find_by_number(
            InvoiceNumber.parse(order.invoice_number)
        )
        if invoice is None:
            raise OrderNotResendableError(f"Invoice {order.invoice_number} not found")

        await self.fulfillment.send_purchase_email(
            order.email, license.code, license.expires_at, invoice
        )

        order = await self.order_repository.update(
            order.id, lambda current: current.mark_email_sent(utcnow())
        )
        logger.info("Purchase email resent for order %s", order.id)
        return to_order_dto(order)
