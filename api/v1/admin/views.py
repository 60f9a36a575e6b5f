"""
Operator back office API views.

Every path under the admin prefix is gated by AdminTokenMiddleware
before it reaches these views. They are used to:
- Confirm manual payments and resend purchase emails
- List orders by status
- Move a license to another device
- List the invoice ledger with totals
"""

import uuid

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from activations.application.commands.change_device import ChangeDeviceCommand
from api.v1.admin.serializers import (
    ChangeDeviceRequestSerializer,
    DeviceChangeResponseSerializer,
    InvoiceListRequestSerializer,
    InvoiceListResponseSerializer,
    ManualOrderSerializer,
    OrderCompletionSerializer,
)
from api.v1.dependencies import (
    build_change_device_handler,
    build_complete_manual_order_handler,
    build_list_invoices_handler,
    build_list_orders_handler,
    build_resend_purchase_email_handler,
)
from billing.application.queries.list_invoices import ListInvoicesQuery
from core.instrumentation import Status, StatusCode, get_tracer
from core.schema_extensions import ADMIN_TOKEN_PARAMETER
from core.tasks import resend_purchase_email_task
from orders.application.commands.manual_order import CompleteManualOrderCommand
from orders.application.queries.list_orders import DEFAULT_ORDER_LIST_LIMIT, ListOrdersQuery

tracer = get_tracer(__name__)

ADMIN_ERRORS = {
    401: {"description": "Missing or wrong admin token"},
    500: {"description": "Admin token not configured"},
}


class CompleteManualOrderView(APIView):
    """View for confirming that a manual payment arrived."""

    @extend_schema(
        operation_id="complete_manual_order",
        summary="Complete Manual Order",
        description=(
            "Issue the license and invoice of a pending manual order and email "
            "them to the purchaser. A second call answers ORDER_NOT_PENDING."
        ),
        tags=["Admin"],
        parameters=[ADMIN_TOKEN_PARAMETER],
        request=None,
        responses={
            200: OrderCompletionSerializer,
            404: {"description": "Order not found"},
            409: {"description": "Order is not pending"},
            **ADMIN_ERRORS,
        },
    )
    def post(self, request: Request, order_id: uuid.UUID) -> Response:
        """Complete a manual order."""
        return async_to_sync(self._handle_complete)(request, order_id)

    async def _handle_complete(self, request: Request, order_id: uuid.UUID) -> Response:
        """Async handler for order completion."""
        with tracer.start_as_current_span("complete_manual_order") as span:
            span.set_attribute("order.id", str(order_id))

            handler = build_complete_manual_order_handler()
            result = await handler.handle(CompleteManualOrderCommand(order_id=order_id))

            span.set_attribute("order.status", result.status)
            span.set_attribute("license.code", result.license_code)
            span.set_status(Status(StatusCode.OK))
            return Response(
                {"ok": True, **OrderCompletionSerializer(result).data},
                status=status.HTTP_200_OK,
            )


class ResendPurchaseEmailView(APIView):
    """View for queueing another delivery of the purchase email."""

    @extend_schema(
        operation_id="resend_purchase_email",
        summary="Resend Purchase Email",
        description=(
            "Queue the purchase email (license code and invoice) of a completed "
            "order for delivery again."
        ),
        tags=["Admin"],
        parameters=[ADMIN_TOKEN_PARAMETER],
        request=None,
        responses={
            202: {"description": "Email queued"},
            404: {"description": "Order not found"},
            409: {"description": "Order has no issued license to resend"},
            **ADMIN_ERRORS,
        },
    )
    def post(self, request: Request, order_id: uuid.UUID) -> Response:
        """Queue a purchase email resend."""
        with tracer.start_as_current_span("resend_purchase_email") as span:
            span.set_attribute("order.id", str(order_id))

            handler = build_resend_purchase_email_handler()
            order = async_to_sync(handler.ensure_resendable)(order_id)
            # Queued outside the event loop, eager workers run the task inline
            resend_purchase_email_task.delay(str(order.id))

            span.set_status(Status(StatusCode.OK))
            return Response(
                {"ok": True, "orderId": str(order.id), "queued": True},
                status=status.HTTP_202_ACCEPTED,
            )


class ListOrdersView(APIView):
    """View for listing manual orders by status."""

    @extend_schema(
        operation_id="list_orders",
        summary="List Orders",
        description="List manual orders in one status (default pending), newest first.",
        tags=["Admin"],
        parameters=[
            ADMIN_TOKEN_PARAMETER,
            OpenApiParameter(
                name="status",
                type=str,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Order status (pending, paid_processing, license_sent, license_created_email_failed)",
            ),
        ],
        responses={
            200: ManualOrderSerializer(many=True),
            400: {"description": "Unknown status"},
            **ADMIN_ERRORS,
        },
    )
    def get(self, request: Request) -> Response:
        """List orders."""
        return async_to_sync(self._handle_list)(request)

    async def _handle_list(self, request: Request) -> Response:
        """Async handler for listing orders."""
        with tracer.start_as_current_span("list_orders") as span:
            order_status = request.query_params.get("status") or "pending"
            span.set_attribute("order.status", order_status)

            handler = build_list_orders_handler()
            orders = await handler.handle(
                ListOrdersQuery(status=order_status, limit=DEFAULT_ORDER_LIST_LIMIT)
            )

            span.set_attribute("orders.count", len(orders))
            span.set_status(Status(StatusCode.OK))
            return Response(
                {"ok": True, "orders": ManualOrderSerializer(orders, many=True).data},
                status=status.HTTP_200_OK,
            )


class ChangeDeviceView(APIView):
    """View for moving a license to another device."""

    @extend_schema(
        operation_id="change_device",
        summary="Change Device",
        description="Rebind a license to a new device, at most once per 365 days.",
        tags=["Admin"],
        parameters=[ADMIN_TOKEN_PARAMETER],
        request=ChangeDeviceRequestSerializer,
        responses={
            200: DeviceChangeResponseSerializer,
            400: {"description": "Missing or malformed code or device id"},
            403: {"description": "License expired, not active or change already used"},
            404: {"description": "License not found"},
            **ADMIN_ERRORS,
        },
    )
    def post(self, request: Request) -> Response:
        """Change the bound device."""
        return async_to_sync(self._handle_change_device)(request)

    async def _handle_change_device(self, request: Request) -> Response:
        """Async handler for device changes."""
        with tracer.start_as_current_span("change_device") as span:
            serializer = ChangeDeviceRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            handler = build_change_device_handler()
            result = await handler.handle(
                ChangeDeviceCommand(
                    code=serializer.validated_data.get("code"),
                    new_device_id=serializer.validated_data.get("new_device_id"),
                    reason=serializer.validated_data.get("reason"),
                )
            )

            span.set_attribute("license.code", result.code)
            span.set_status(Status(StatusCode.OK))
            return Response(
                {"ok": True, **DeviceChangeResponseSerializer(result).data},
                status=status.HTTP_200_OK,
            )


class ListInvoicesView(APIView):
    """View for the invoice ledger."""

    @extend_schema(
        operation_id="list_invoices",
        summary="List Invoices",
        description="List invoices issued between two dates (inclusive) with totals.",
        tags=["Admin"],
        parameters=[
            ADMIN_TOKEN_PARAMETER,
            OpenApiParameter(name="startDate", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="endDate", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={
            200: InvoiceListResponseSerializer,
            400: {"description": "Malformed or inverted date range"},
            **ADMIN_ERRORS,
        },
    )
    def get(self, request: Request) -> Response:
        """List invoices."""
        return async_to_sync(self._handle_list)(request)

    async def _handle_list(self, request: Request) -> Response:
        """Async handler for the invoice ledger."""
        with tracer.start_as_current_span("list_invoices") as span:
            serializer = InvoiceListRequestSerializer(data=request.query_params)
            serializer.is_valid(raise_exception=True)

            handler = build_list_invoices_handler()
            result = await handler.handle(
                ListInvoicesQuery(
                    start_date=serializer.validated_data.get("start_date"),
                    end_date=serializer.validated_data.get("end_date"),
                )
            )

            span.set_attribute("invoices.count", result.totals.count)
            span.set_status(Status(StatusCode.OK))
            return Response(
                {"ok": True, **InvoiceListResponseSerializer(result).data},
                status=status.HTTP_200_OK,
            )
