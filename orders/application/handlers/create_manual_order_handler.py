"""
CreateManualOrderHandler.

Opens a pending manual order and returns the payment instructions.
"""

import logging
from typing import Optional

from billing.domain.pricing import PricingConfig
from core.domain.events import EventBus, utcnow
from core.domain.exceptions import InvalidEmailError, InvalidInputError
from core.domain.value_objects import Email, PaymentMethod
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import orders_created_total
from orders.application.commands.manual_order import CreateManualOrderCommand
from orders.application.dto.order_dto import ManualOrderCreatedDTO
from orders.domain.events import ManualOrderCreated
from orders.domain.order import ManualOrder
from orders.domain.payment_instructions import PaymentInstructionsConfig
from orders.domain.reference import generate_order_reference
from orders.ports.order_repository import ManualOrderRepository

logger = logging.getLogger(__name__)


def parse_payment_method(raw) -> PaymentMethod:
    """
    Parse the payment method chosen by the customer.

    Raises:
        InvalidInputError: If the method is unknown
    """
    try:
        return PaymentMethod(str(raw or "").strip().lower())
    except ValueError as exc:
        raise InvalidInputError(
            "Payment method must be 'bizum' or 'transfer'", code="INVALID_METHOD"
        ) from exc


class CreateManualOrderHandler:
    """Handler for CreateManualOrderCommand."""

    def __init__(
        self,
        order_repository: ManualOrderRepository,
        pricing: PricingConfig,
        instructions: PaymentInstructionsConfig,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with repositories and configuration."""
        self.order_repository = order_repository
        self.pricing = pricing
        self.instructions = instructions
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: CreateManualOrderCommand) -> ManualOrderCreatedDTO:
        """
        Handle create manual order command.

        Args:
            command: CreateManualOrderCommand

        Returns:
            ManualOrderCreatedDTO with the payment instructions

        Raises:
            InvalidInputError: If the method is unknown
            InvalidEmailError: If the email is malformed
            ConfigurationError: If the chosen method cannot be paid
        """
        method = parse_payment_method(command.method)
        try:
            email = Email(command.email or "")
        except ValueError as exc:
            raise InvalidEmailError() from exc
        self.instructions.ensure_configured(method)

        order = ManualOrder.create(
            method=method,
            email=email.value,
            amount=self.pricing.price_total,
            currency=self.pricing.currency,
            reference=generate_order_reference(self.instructions.reference_prefix, method),
            now=utcnow(),
        )
        order = await self.order_repository.create(order)

        orders_created_total.labels(method=method.value).inc()
        logger.info(
            "Manual order created",
            extra={"order_id": str(order.id), "reference": order.reference, "method": method.value},
        )
        await self.event_bus.publish(
            ManualOrderCreated(
                order_id=str(order.id),
                reference=order.reference,
                method=method.value,
                email=order.email,
            )
        )

        return ManualOrderCreatedDTO(
            order_id=order.id,
            reference=order.reference,
            amount=order.amount,
            currency=order.currency,
            instructions=self.instructions.instructions_for(
                method, order.reference, order.amount, order.currency
            ),
        )
