"""
Pytest configuration and shared fixtures.

Unit tests run handlers against the in-memory repositories below;
integration tests go through the Django repositories and the HTTP API.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import pytest
from rest_framework.test import APIClient

from billing.domain.invoice import Invoice, InvoiceDraft, InvoiceNumber
from billing.domain.pricing import PricingConfig
from billing.infrastructure.repositories.django_invoice_repository import invoice_year
from billing.ports.invoice_repository import InvoiceRepository
from core.domain.events import EventHandler, utcnow
from core.domain.exceptions import (
    DocumentRenderError,
    LicenseAlreadyIssuedError,
    LicenseCodeCollisionError,
    NotificationError,
    OrderNotFoundError,
)
from core.domain.value_objects import LicenseSource, OrderStatus, PaymentEventStatus
from core.infrastructure.events import InMemoryEventBus
from core.infrastructure.webhooks import WebhookSignatureVerifier
from core.ports.document_renderer import DocumentRenderer
from core.ports.mail_sender import MailSender
from licenses.domain.license import License
from licenses.domain.transitions import LicenseTransition
from licenses.ports.license_repository import LicenseRepository
from orders.application.services.purchase_fulfillment import PurchaseFulfillmentService
from orders.domain.order import ManualOrder
from orders.domain.payment_event import PaymentEvent
from orders.ports.order_repository import ManualOrderRepository
from orders.ports.payment_event_repository import PaymentEventRepository

ADMIN_TOKEN = "test-admin-token"
WEBHOOK_SECRET = "test-webhook-secret"


class InMemoryLicenseRepository(LicenseRepository):
    """License repository backed by a dict, serialized by an asyncio lock."""

    def __init__(self):
        self.licenses: Dict[str, License] = {}
        self.lock = asyncio.Lock()

    async def exists(self, code: str) -> bool:
        return code in self.licenses

    async def find_by_code(self, code: str) -> Optional[License]:
        return self.licenses.get(code)

    async def find_by_payment_reference(self, source, payment_reference):
        for license in self.licenses.values():
            if license.source == source and license.payment_reference == payment_reference:
                return license
        return None

    async def find_by_email(self, email: str, limit: int = 20) -> List[License]:
        owned = [lic for lic in self.licenses.values() if lic.email == email.strip().lower()]
        return owned[:limit]

    async def find_overdue_codes(self, now: datetime, limit: int = 500) -> List[str]:
        return [
            lic.code
            for lic in self.licenses.values()
            if lic.status.is_entitled and lic.expires_at <= now
        ][:limit]

    async def insert(self, license: License) -> License:
        async with self.lock:
            if license.code in self.licenses:
                raise LicenseCodeCollisionError()
            existing = await self.find_by_payment_reference(
                license.source, license.payment_reference
            )
            if existing is not None:
                raise LicenseAlreadyIssuedError(existing.code)
            self.licenses[license.code] = license
            return license

    async def apply(self, code: str, transition) -> LicenseTransition:
        async with self.lock:
            outcome = transition(self.licenses.get(code))
            if outcome.changed and outcome.license is not None and code in self.licenses:
                self.licenses[code] = outcome.license
            return outcome


class InMemoryInvoiceRepository(InvoiceRepository):
    """Invoice ledger with one counter per year."""

    def __init__(self):
        self.counters: Dict[int, int] = {}
        self.invoices: List[Invoice] = []

    async def next_invoice_number(self, now: datetime) -> InvoiceNumber:
        year = invoice_year(now)
        self.counters[year] = self.counters.get(year, 0) + 1
        return InvoiceNumber(sequence=self.counters[year], year=year)

    async def issue(self, draft: InvoiceDraft, now: Optional[datetime] = None) -> Tuple[Invoice, bool]:
        existing = await self.find_by_payment_reference(draft.source, draft.payment_reference)
        if existing is not None:
            return existing, False
        issued_at = now or utcnow()
        invoice = Invoice.from_draft(draft, await self.next_invoice_number(issued_at), issued_at)
        self.invoices.append(invoice)
        return invoice, True

    async def find_by_payment_reference(self, source: str, payment_reference: str):
        for invoice in self.invoices:
            if invoice.source == source and invoice.payment_reference == payment_reference:
                return invoice
        return None

    async def find_by_number(self, number: InvoiceNumber) -> Optional[Invoice]:
        return next((inv for inv in self.invoices if inv.number == number), None)

    async def list_between(self, start, end) -> List[Invoice]:
        return [
            inv
            for inv in self.invoices
            if (start is None or inv.issued_at >= start) and (end is None or inv.issued_at < end)
        ]


class InMemoryOrderRepository(ManualOrderRepository):
    """Manual order repository backed by a dict."""

    def __init__(self):
        self.orders: Dict = {}
        self.lock = asyncio.Lock()

    async def create(self, order: ManualOrder) -> ManualOrder:
        self.orders[order.id] = order
        return order

    async def find_by_id(self, order_id) -> Optional[ManualOrder]:
        return self.orders.get(order_id)

    async def list_by_status(self, status: OrderStatus, limit: int = 200) -> List[ManualOrder]:
        matching = [order for order in self.orders.values() if order.status == status]
        return sorted(matching, key=lambda order: order.created_at, reverse=True)[:limit]

    async def update(self, order_id, change) -> ManualOrder:
        async with self.lock:
            current = self.orders.get(order_id)
            if current is None:
                raise OrderNotFoundError()
            self.orders[order_id] = change(current)
            return self.orders[order_id]


class InMemoryPaymentEventRepository(PaymentEventRepository):
    """Payment event ledger backed by a dict."""

    def __init__(self):
        self.events: Dict[str, PaymentEvent] = {}

    async def record_received(self, event_id: str, event_type: str, now: datetime):
        if event_id in self.events:
            return self.events[event_id], False
        event = PaymentEvent(
            id=event_id, type=event_type, status=PaymentEventStatus.RECEIVED, received_at=now
        )
        self.events[event_id] = event
        return event, True

    async def claim(self, event_id: str, now: datetime):
        event = self.events[event_id]
        if not event.can_claim(now):
            return event, False
        self.events[event_id] = event.claim(now)
        return self.events[event_id], True

    async def find_by_id(self, event_id: str) -> Optional[PaymentEvent]:
        return self.events.get(event_id)

    async def save(self, event: PaymentEvent) -> PaymentEvent:
        self.events[event.id] = event
        return event


class RecordingMailSender(MailSender):
    """Mail sender that keeps messages, or fails when told to."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, message) -> None:
        await asyncio.sleep(0)
        if self.fail:
            raise NotificationError("SMTP server unavailable")
        self.sent.append(message)


class StaticDocumentRenderer(DocumentRenderer):
    """Renderer returning fixed bytes, or failing when told to."""

    def __init__(self):
        self.fail = False
        self.rendered = []

    async def render(self, document) -> bytes:
        if self.fail:
            raise DocumentRenderError("renderer crashed")
        self.rendered.append(document)
        return b"%PDF-1.4 test"


def make_license(
    code: str = "ABCD-EFGH-JKMN",
    email: str = "buyer@example.com",
    paid_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
    source: LicenseSource = LicenseSource.STRIPE,
    payment_reference: str = "cs_test_1",
) -> License:
    """Build a freshly issued license."""
    now = now or datetime.now(timezone.utc)
    return License.create(
        code=code,
        email=email,
        source=source,
        payment_reference=payment_reference,
        paid_at=paid_at or now,
        now=now,
        amount_total=14820,
        currency="eur",
    )


@pytest.fixture
def event_bus():
    """Fixture for an isolated event bus without subscribers."""
    return InMemoryEventBus()


@pytest.fixture
def license_repository():
    """Fixture for an in-memory LicenseRepository."""
    return InMemoryLicenseRepository()


@pytest.fixture
def invoice_repository():
    """Fixture for an in-memory InvoiceRepository."""
    return InMemoryInvoiceRepository()


@pytest.fixture
def order_repository():
    """Fixture for an in-memory ManualOrderRepository."""
    return InMemoryOrderRepository()


@pytest.fixture
def payment_event_repository():
    """Fixture for an in-memory PaymentEventRepository."""
    return InMemoryPaymentEventRepository()


@pytest.fixture
def mail_sender():
    """Fixture for a recording MailSender."""
    return RecordingMailSender()


@pytest.fixture
def document_renderer():
    """Fixture for a static DocumentRenderer."""
    return StaticDocumentRenderer()


@pytest.fixture
def pricing():
    """Fixture for the default pricing: 130.00 + 21% IVA - 7% retention."""
    return PricingConfig(
        base_price=Decimal("130.00"),
        iva_percent=Decimal("21"),
        retention_percent=Decimal("7"),
        price_total=Decimal("148.20"),
        currency="EUR",
    )


@pytest.fixture
def sample_license():
    """Fixture for an unbound license paid just now."""
    return make_license()


@pytest.fixture
def license_factory():
    """Fixture returning the license builder."""
    return make_license


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    return APIClient()


@pytest.fixture
def admin_headers():
    """Fixture for the admin token header."""
    return {"HTTP_X_ADMIN_TOKEN": ADMIN_TOKEN}


@pytest.fixture
def post_webhook(api_client):
    """Fixture posting a correctly signed payment event."""

    def post(event: dict, secret: str = WEBHOOK_SECRET, signature: Optional[str] = None):
        body = json.dumps(event).encode()
        if signature is None:
            signature = WebhookSignatureVerifier.generate_signature(body, secret)
        return api_client.generic(
            "POST",
            "/api/v1/webhook/payment",
            body,
            content_type="application/json",
            HTTP_X_WEBHOOK_SIGNATURE=signature,
        )

    return post


def build_checkout_event(
    event_id: str = "evt_1",
    payment_ref: str = "cs_test_1",
    email: str = "buyer@example.com",
    paid: bool = True,
    event_type: str = "checkout.session.completed",
) -> dict:
    """Build a payment provider event."""
    return {
        "id": event_id,
        "type": event_type,
        "payload": {
            "email": email,
            "amountTotal": 14820,
            "currency": "eur",
            "paymentRef": payment_ref,
            "paid": paid,
            "paidAt": (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat(),
        },
    }


@pytest.fixture
def checkout_event():
    """Fixture returning the payment event builder."""
    return build_checkout_event


class CollectingHandler(EventHandler):
    """Event handler that keeps every event it receives."""

    def __init__(self):
        self.events = []

    async def handle(self, event) -> None:
        self.events.append(event)

    def of_type(self, event_type):
        return [event for event in self.events if isinstance(event, event_type)]


@pytest.fixture
def collected(event_bus):
    """Fixture subscribing a collector to the given event types on the test bus."""
    collector = CollectingHandler()

    def subscribe(*event_types):
        for event_type in event_types:
            event_bus.subscribe(event_type, collector)
        return collector

    return subscribe


@pytest.fixture
def fulfillment(
    license_repository, invoice_repository, mail_sender, document_renderer, pricing, event_bus
):
    """Fixture for a PurchaseFulfillmentService wired to the in-memory fakes."""
    return PurchaseFulfillmentService(
        license_repository,
        invoice_repository,
        mail_sender,
        document_renderer,
        pricing,
        event_bus=event_bus,
        support_email="support@example.com",
    )
