"""
Shared OpenAPI parameters for drf-spectacular.

Admin endpoints and the payment webhook are authenticated by headers
checked outside DRF (middleware and signature verification), so the
headers are declared on the operations explicitly.
"""

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter

ADMIN_TOKEN_PARAMETER = OpenApiParameter(
    name="X-Admin-Token",
    type=OpenApiTypes.STR,
    location=OpenApiParameter.HEADER,
    required=True,
    description="Shared operator secret (ADMIN_TOKEN).",
)

WEBHOOK_SIGNATURE_PARAMETER = OpenApiParameter(
    name="X-Webhook-Signature",
    type=OpenApiTypes.STR,
    location=OpenApiParameter.HEADER,
    required=True,
    description="Hex HMAC-SHA256 of the raw request body keyed by PAYMENT_WEBHOOK_SECRET.",
)
