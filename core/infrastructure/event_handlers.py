"""
Event handlers for domain events.

These handlers process domain events for side effects: the audit trail
and the activation attempt log.
"""

import logging

from asgiref.sync import sync_to_async

from activations.domain.activation import ActivationAttempt
from activations.domain.events import LicenseCheckAttempted
from activations.infrastructure.repositories.django_activation_repository import (
    DjangoActivationAttemptRepository,
)
from billing.domain.events import InvoiceIssued
from core.domain.events import DomainEvent, EventHandler
from core.domain.value_objects import CheckOperation, CheckResult
from licenses.domain.events import (
    LicenseActivated,
    LicenseDeviceChanged,
    LicenseExpired,
    LicenseIssued,
    LicenseRecovered,
)
from orders.domain.events import ManualOrderCompleted, ManualOrderCreated, PaymentEventProcessed

logger = logging.getLogger(__name__)

AUDITED_EVENTS = {
    LicenseIssued: ("license", "issued"),
    LicenseActivated: ("license", "activated"),
    LicenseDeviceChanged: ("license", "device_changed"),
    LicenseRecovered: ("license", "recovered"),
    LicenseExpired: ("license", "expired"),
    InvoiceIssued: ("invoice", "issued"),
    ManualOrderCreated: ("order", "created"),
    ManualOrderCompleted: ("order", "completed"),
    PaymentEventProcessed: ("payment_event", "processed"),
}


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes one AuditLog row per event; a redelivered event id is ignored.
    """

    @sync_to_async
    def _write(self, event: DomainEvent, entity_type: str, action: str) -> bool:
        from licenses.infrastructure.models import AuditLog

        _, created = AuditLog.objects.get_or_create(
            event_id=event.event_id,
            defaults={
                "entity_type": entity_type,
                "entity_id": str(event.aggregate_id),
                "action": action,
                "changes": event.to_dict()["data"],
            },
        )
        return created

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        entity_type, action = AUDITED_EVENTS.get(type(event), ("unknown", event.event_type))
        await self._write(event, entity_type, action)
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )


class ActivationAttemptRecorder(EventHandler):
    """Stores every runtime license check in the activation attempt log."""

    def __init__(self, repository=None):
        self.repository = repository or DjangoActivationAttemptRepository()

    async def handle(self, event: LicenseCheckAttempted) -> None:
        """
        Handle a license check event.

        Args:
            event: LicenseCheckAttempted event
        """
        await self.repository.record(
            ActivationAttempt.create(
                code=event.code,
                device_id=event.device_id,
                operation=CheckOperation(event.operation),
                result=CheckResult(event.result),
                created_at=event.occurred_at,
            )
        )


def register_event_handlers(event_bus=None):
    """Register all event handlers with the event bus."""
    if event_bus is None:
        from core.infrastructure.events import event_bus

    audit_handler = AuditLogEventHandler()
    for event_type in AUDITED_EVENTS:
        event_bus.subscribe(event_type, audit_handler)
    event_bus.subscribe(LicenseCheckAttempted, ActivationAttemptRecorder())

    logger.info("Event handlers registered")
