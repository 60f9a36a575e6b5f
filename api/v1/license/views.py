"""
Runtime license API views.

These endpoints are called by installed clients to:
- Activate a license on a device
- Re-validate a license online
- Show license details
- Recover a lost license code by email
"""

from abc import ABC, abstractmethod

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from activations.application.commands.activate_license import (
    ActivateLicenseCommand,
    ValidateLicenseCommand,
)
from activations.application.commands.recover_license import RecoverLicenseCommand
from activations.application.queries.get_license_info import GetLicenseInfoQuery
from api.v1.dependencies import (
    build_activate_license_handler,
    build_license_info_handler,
    build_recover_license_handler,
    build_validate_license_handler,
)
from api.v1.license.serializers import (
    LicenseCheckRequestSerializer,
    LicenseCheckResponseSerializer,
    RecoverLicenseRequestSerializer,
    RecoveryResponseSerializer,
)
from core.instrumentation import Status, StatusCode, get_tracer

tracer = get_tracer(__name__)

CHECK_RESPONSES = {
    200: LicenseCheckResponseSerializer,
    400: {"description": "Missing or malformed code or device id"},
    403: {"description": "License blocked, expired or bound to another device"},
    404: {"description": "License not found"},
    429: {"description": "Too many requests"},
}


class LicenseCheckView(ABC, APIView):
    """Base view for activate, validate and info."""

    span_name = "license_check"
    message_class = None

    @abstractmethod
    def build_handler(self):
        """Handler serving this endpoint."""
        pass

    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_check)(request)

    async def _handle_check(self, request: Request) -> Response:
        """Async handler for license checks."""
        with tracer.start_as_current_span(self.span_name) as span:
            serializer = LicenseCheckRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            code = serializer.validated_data.get("code")
            if code:
                span.set_attribute("license.code", code.strip().upper())

            result = await self.build_handler().handle(
                self.message_class(code=code, device_id=serializer.validated_data.get("device_id"))
            )

            span.set_attribute("license.result", result.result)
            span.set_status(Status(StatusCode.OK))
            return Response(
                {"ok": True, **LicenseCheckResponseSerializer(result).data},
                status=status.HTTP_200_OK,
            )


class ActivateLicenseView(LicenseCheckView):
    """View for activating a license on a device."""

    span_name = "activate_license"
    message_class = ActivateLicenseCommand

    def build_handler(self):
        return build_activate_license_handler()

    @extend_schema(
        operation_id="activate_license",
        summary="Activate License",
        description=(
            "Bind a license to a device on first use. Later calls from the same "
            "device succeed; any other device gets DEVICE_MISMATCH."
        ),
        tags=["License"],
        request=LicenseCheckRequestSerializer,
        responses=CHECK_RESPONSES,
    )
    def post(self, request: Request) -> Response:
        """Activate a license."""
        return super().post(request)


class ValidateLicenseView(LicenseCheckView):
    """View for online re-validation."""

    span_name = "validate_license"
    message_class = ValidateLicenseCommand

    def build_handler(self):
        return build_validate_license_handler()

    @extend_schema(
        operation_id="validate_license",
        summary="Validate License",
        description="Same checks as activation; also stamps the last online validation.",
        tags=["License"],
        request=LicenseCheckRequestSerializer,
        responses=CHECK_RESPONSES,
    )
    def post(self, request: Request) -> Response:
        """Validate a license."""
        return super().post(request)


class LicenseInfoView(LicenseCheckView):
    """View for read-only license details."""

    span_name = "license_info"
    message_class = GetLicenseInfoQuery

    def build_handler(self):
        return build_license_info_handler()

    @extend_schema(
        operation_id="license_info",
        summary="License Info",
        description="Return status and expiry for a device without binding it.",
        tags=["License"],
        request=LicenseCheckRequestSerializer,
        responses=CHECK_RESPONSES,
    )
    def post(self, request: Request) -> Response:
        """Show license details."""
        return super().post(request)


class RecoverLicenseView(APIView):
    """View for recovering a lost license code."""

    @extend_schema(
        operation_id="recover_license",
        summary="Recover License",
        description=(
            "Email the license code to its owner. The answer is the same whether "
            "or not a license exists; recovery can be used once per license."
        ),
        tags=["License"],
        request=RecoverLicenseRequestSerializer,
        responses={
            200: RecoveryResponseSerializer,
            400: {"description": "Invalid email"},
            403: {"description": "Recovery already used"},
            500: {"description": "Email could not be sent"},
        },
    )
    def post(self, request: Request) -> Response:
        """Recover a license."""
        return async_to_sync(self._handle_recover)(request)

    async def _handle_recover(self, request: Request) -> Response:
        """Async handler for license recovery."""
        with tracer.start_as_current_span("recover_license") as span:
            serializer = RecoverLicenseRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            handler = build_recover_license_handler()
            result = await handler.handle(
                RecoverLicenseCommand(email=serializer.validated_data.get("email"))
            )

            span.set_status(Status(StatusCode.OK))
            return Response(
                {"ok": True, **RecoveryResponseSerializer(result).data},
                status=status.HTTP_200_OK,
            )
