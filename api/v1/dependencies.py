"""
Wiring of API handlers.

Handlers depend on ports only; this module plugs in the Django
adapters and the configuration read from settings. Configuration is
read per call so a misconfigured price or phone surfaces as an error
on the request that needs it.
"""

from django.conf import settings

from activations.application.handlers.change_device_handler import ChangeDeviceHandler
from activations.application.handlers.license_check_handler import (
    ActivateLicenseHandler,
    GetLicenseInfoHandler,
    ValidateLicenseHandler,
)
from activations.application.handlers.recover_license_handler import RecoverLicenseHandler
from billing.application.handlers.list_invoices_handler import ListInvoicesHandler
from billing.domain.pricing import PricingConfig
from billing.infrastructure.repositories.django_invoice_repository import DjangoInvoiceRepository
from core.infrastructure.documents import ReportLabPdfRenderer
from core.infrastructure.mail import DjangoMailSender
from core.infrastructure.webhooks import WebhookSignatureVerifier
from licenses.application.services.license_mailer import LicenseMailer
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from orders.application.handlers.complete_manual_order_handler import CompleteManualOrderHandler
from orders.application.handlers.create_manual_order_handler import CreateManualOrderHandler
from orders.application.handlers.list_orders_handler import ListOrdersHandler
from orders.application.handlers.process_payment_event_handler import ProcessPaymentEventHandler
from orders.application.handlers.resend_purchase_email_handler import ResendPurchaseEmailHandler
from orders.application.services.purchase_fulfillment import PurchaseFulfillmentService
from orders.domain.payment_instructions import PaymentInstructionsConfig
from orders.infrastructure.repositories.django_order_repository import DjangoManualOrderRepository
from orders.infrastructure.repositories.django_payment_event_repository import (
    DjangoPaymentEventRepository,
)

# Repositories are stateless and safe to share
_license_repo = DjangoLicenseRepository()
_invoice_repo = DjangoInvoiceRepository()
_order_repo = DjangoManualOrderRepository()
_payment_event_repo = DjangoPaymentEventRepository()
_mail_sender = DjangoMailSender()
_document_renderer = ReportLabPdfRenderer()


def build_fulfillment_service() -> PurchaseFulfillmentService:
    """Build the purchase fulfillment pipeline."""
    return PurchaseFulfillmentService(
        license_repository=_license_repo,
        invoice_repository=_invoice_repo,
        mail_sender=_mail_sender,
        document_renderer=_document_renderer,
        pricing=PricingConfig.from_settings(),
        support_email=settings.SUPPORT_EMAIL,
    )


def build_create_manual_order_handler() -> CreateManualOrderHandler:
    return CreateManualOrderHandler(
        order_repository=_order_repo,
        pricing=PricingConfig.from_settings(),
        instructions=PaymentInstructionsConfig.from_settings(),
    )


def build_complete_manual_order_handler() -> CompleteManualOrderHandler:
    return CompleteManualOrderHandler(
        order_repository=_order_repo,
        fulfillment=build_fulfillment_service(),
    )


def build_resend_purchase_email_handler() -> ResendPurchaseEmailHandler:
    return ResendPurchaseEmailHandler(
        order_repository=_order_repo,
        license_repository=_license_repo,
        invoice_repository=_invoice_repo,
        fulfillment=build_fulfillment_service(),
    )


def build_list_orders_handler() -> ListOrdersHandler:
    return ListOrdersHandler(order_repository=_order_repo)


def build_process_payment_event_handler() -> ProcessPaymentEventHandler:
    return ProcessPaymentEventHandler(
        payment_event_repository=_payment_event_repo,
        fulfillment=build_fulfillment_service(),
    )


def build_webhook_verifier() -> WebhookSignatureVerifier:
    return WebhookSignatureVerifier(getattr(settings, "PAYMENT_WEBHOOK_SECRET", "") or "")


def build_activate_license_handler() -> ActivateLicenseHandler:
    return ActivateLicenseHandler(license_repository=_license_repo)


def build_validate_license_handler() -> ValidateLicenseHandler:
    return ValidateLicenseHandler(license_repository=_license_repo)


def build_license_info_handler() -> GetLicenseInfoHandler:
    return GetLicenseInfoHandler(license_repository=_license_repo)


def build_change_device_handler() -> ChangeDeviceHandler:
    return ChangeDeviceHandler(license_repository=_license_repo)


def build_recover_license_handler() -> RecoverLicenseHandler:
    return RecoverLicenseHandler(
        license_repository=_license_repo,
        mailer=LicenseMailer(_mail_sender, support_email=settings.SUPPORT_EMAIL),
    )


def build_list_invoices_handler() -> ListInvoicesHandler:
    return ListInvoicesHandler(invoice_repository=_invoice_repo)
