"""
Django implementation of ManualOrderRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import uuid
from typing import List, Optional

from asgiref.sync import sync_to_async

from core.domain.exceptions import OrderNotFoundError
from core.domain.value_objects import OrderStatus, PaymentMethod
from core.infrastructure.database import run_in_transaction
from orders.domain.order import ManualOrder
from orders.infrastructure.models import ManualOrder as ManualOrderModel
from orders.ports.order_repository import ManualOrderRepository, OrderChange


class DjangoManualOrderRepository(ManualOrderRepository):
    """Django ORM implementation of ManualOrderRepository."""

    def _to_domain(self, model: ManualOrderModel) -> ManualOrder:
        """
        Convert Django model to domain entity.

        Args:
            model: Django ManualOrder model

        Returns:
            ManualOrder domain entity
        """
        return ManualOrder(
            id=model.id,
            method=PaymentMethod(model.method),
            email=model.email,
            amount=model.amount,
            currency=model.currency,
            reference=model.reference,
            status=OrderStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
            paid_at=model.paid_at,
            completed_at=model.completed_at,
            license_code=model.license_code,
            invoice_number=model.invoice_number,
            last_error=model.last_error,
        )

    def _apply_to_model(self, order: ManualOrder, model: ManualOrderModel) -> ManualOrderModel:
        model.method = order.method.value
        model.email = order.email
        model.amount = order.amount
        model.currency = order.currency
        model.reference = order.reference
        model.status = order.status.value
        model.created_at = order.created_at
        model.updated_at = order.updated_at
        model.paid_at = order.paid_at
        model.completed_at = order.completed_at
        model.license_code = order.license_code
        model.invoice_number = order.invoice_number
        model.last_error = order.last_error
        return model

    @sync_to_async
    def create(self, order: ManualOrder) -> ManualOrder:
        model = self._apply_to_model(order, ManualOrderModel(id=order.id))
        model.save(force_insert=True)
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, order_id: uuid.UUID) -> Optional[ManualOrder]:
        """Find an order by ID."""
        model = ManualOrderModel.objects.filter(id=order_id).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def list_by_status(self, status: OrderStatus, limit: int = 200) -> List[ManualOrder]:
        """List orders in one status, newest first."""
        models = ManualOrderModel.objects.filter(status=status.value).order_by("-created_at")[:limit]
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def update(self, order_id: uuid.UUID, change: OrderChange) -> ManualOrder:
        """Apply a change to one order under a row lock."""

        def _update() -> ManualOrderModel:
            model = ManualOrderModel.objects.select_for_update().filter(id=order_id).first()
            if model is None:
                raise OrderNotFoundError()
            updated = change(self._to_domain(model))
            self._apply_to_model(updated, model)
            model.save()
            return model

        return self._to_domain(run_in_transaction(_update))
