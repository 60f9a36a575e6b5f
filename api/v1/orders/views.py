"""
Purchase API views.

These endpoints are used by the storefront and the payment provider to:
- Open manual (Bizum or bank transfer) orders
- Deliver trusted payment events
"""

import json

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.dependencies import (
    build_create_manual_order_handler,
    build_process_payment_event_handler,
    build_webhook_verifier,
)
from api.v1.orders.serializers import (
    CreateManualOrderRequestSerializer,
    ManualOrderCreatedResponseSerializer,
    PaymentEventRequestSerializer,
    PaymentEventResultSerializer,
)
from core.domain.exceptions import InvalidPaymentEventError
from core.instrumentation import Status, StatusCode, get_tracer
from core.schema_extensions import WEBHOOK_SIGNATURE_PARAMETER
from orders.application.commands.manual_order import CreateManualOrderCommand
from orders.application.commands.process_payment_event import ProcessPaymentEventCommand

SIGNATURE_HEADER = "X-Webhook-Signature"

tracer = get_tracer(__name__)


def parse_event_envelope(body: bytes) -> ProcessPaymentEventCommand:
    """
    Parse the {id, type, payload} envelope of a payment event.

    Args:
        body: Raw request body, already signature-checked

    Returns:
        ProcessPaymentEventCommand

    Raises:
        InvalidPaymentEventError: If the body is not a usable event
    """
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise InvalidPaymentEventError("Event body is not valid JSON") from exc
    if not isinstance(data, dict):
        raise InvalidPaymentEventError("Event body must be an object")

    event_id = str(data.get("id") or "").strip()
    event_type = str(data.get("type") or "").strip()
    if not event_id or not event_type:
        raise InvalidPaymentEventError("Event id and type are required")
    payload = data.get("payload")
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise InvalidPaymentEventError("Event payload must be an object")
    return ProcessPaymentEventCommand(event_id=event_id, event_type=event_type, payload=payload)


class CreateManualOrderView(APIView):
    """View for opening manual orders."""

    @extend_schema(
        operation_id="create_manual_order",
        summary="Create Manual Order",
        description=(
            "Open a pending order paid by Bizum or bank transfer. "
            "Returns the order reference, the amount and the payment instructions."
        ),
        tags=["Orders"],
        request=CreateManualOrderRequestSerializer,
        responses={
            201: ManualOrderCreatedResponseSerializer,
            400: {"description": "Invalid method or email"},
            500: {"description": "Payment method not configured"},
        },
    )
    def post(self, request: Request) -> Response:
        """Create a manual order."""
        return async_to_sync(self._handle_create_order)(request)

    async def _handle_create_order(self, request: Request) -> Response:
        """Async handler for create manual order."""
        with tracer.start_as_current_span("create_manual_order") as span:
            serializer = CreateManualOrderRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            method = serializer.validated_data.get("method")
            span.set_attribute("order.method", str(method))

            handler = build_create_manual_order_handler()
            result = await handler.handle(
                CreateManualOrderCommand(
                    method=method,
                    email=serializer.validated_data.get("email"),
                )
            )

            span.set_attribute("order.id", str(result.order_id))
            span.set_attribute("order.reference", result.reference)
            span.set_status(Status(StatusCode.OK))
            return Response(
                {"ok": True, **ManualOrderCreatedResponseSerializer(result).data},
                status=status.HTTP_201_CREATED,
            )


class PaymentWebhookView(APIView):
    """
    View receiving payment provider events.

    The signature is verified over the raw body before anything is
    parsed or stored. Once the event is recorded every business outcome
    (processed, ignored, invalid payload, duplicate, email failed) answers
    200 so the provider stops redelivering.
    """

    @extend_schema(
        operation_id="payment_webhook",
        summary="Payment Webhook",
        description="Receive a signed payment event and fulfill completed checkouts.",
        tags=["Orders"],
        parameters=[WEBHOOK_SIGNATURE_PARAMETER],
        request=PaymentEventRequestSerializer,
        responses={
            200: PaymentEventResultSerializer,
            400: {"description": "Invalid signature or event envelope"},
            500: {"description": "Webhook secret not configured or processing failed"},
        },
    )
    def post(self, request: Request) -> Response:
        """Receive a payment event."""
        # The raw body has to be read before DRF parses it
        body = request.body
        return async_to_sync(self._handle_event)(request, body)

    async def _handle_event(self, request: Request, body: bytes) -> Response:
        """Async handler for payment events."""
        with tracer.start_as_current_span("payment_webhook") as span:
            build_webhook_verifier().verify(body, request.headers.get(SIGNATURE_HEADER, ""))
            command = parse_event_envelope(body)

            span.set_attribute("payment_event.id", command.event_id)
            span.set_attribute("payment_event.type", command.event_type)

            handler = build_process_payment_event_handler()
            result = await handler.handle(command)

            span.set_attribute("payment_event.status", result.status)
            span.set_attribute("payment_event.duplicate", result.duplicate)
            span.set_status(Status(StatusCode.OK))
            return Response(
                {"ok": True, **PaymentEventResultSerializer(result).data},
                status=status.HTTP_200_OK,
            )
