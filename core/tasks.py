"""
Celery tasks for background processing.

Tasks for purchase email resends and the license expiry sweep.
"""
import logging
import uuid

from asgiref.sync import async_to_sync

from LicenseCommerceService.celery import app

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3)
def resend_purchase_email_task(self, order_id: str):
    """
    Celery task that sends the purchase email of an order again.

    Args:
        order_id: Manual order UUID
    """
    from api.v1.dependencies import build_resend_purchase_email_handler
    from core.domain.exceptions import NotificationError
    from orders.application.commands.manual_order import ResendPurchaseEmailCommand

    handler = build_resend_purchase_email_handler()
    try:
        order = async_to_sync(handler.handle)(ResendPurchaseEmailCommand(order_id=uuid.UUID(order_id)))
    except NotificationError as exc:
        logger.error("Purchase email resend failed for order %s", order_id, exc_info=True)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)
    return order.status


@app.task
def expire_licenses_task(limit: int = 500):
    """
    Celery task that marks overdue licenses as expired.

    Args:
        limit: Maximum number of licenses per run

    Returns:
        Number of licenses expired
    """
    from licenses.application.handlers.expire_licenses_handler import ExpireLicensesHandler
    from licenses.infrastructure.repositories.django_license_repository import (
        DjangoLicenseRepository,
    )

    expired = async_to_sync(ExpireLicensesHandler(DjangoLicenseRepository()).handle)(limit=limit)
    logger.info("Expiry sweep marked %s license(s) as expired", len(expired))
    return len(expired)
