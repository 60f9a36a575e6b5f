"""
Webhook signature verification.

Inbound payment webhooks are signed with HMAC SHA-256 over the raw
request body using a shared secret.
"""
import hashlib
import hmac
import logging

from core.domain.exceptions import ConfigurationError, InvalidWebhookSignatureError

logger = logging.getLogger(__name__)


class WebhookSignatureVerifier:
    """Verifies HMAC signatures of inbound webhooks."""

    def __init__(self, secret: str):
        """
        Initialize verifier.

        Args:
            secret: Shared webhook secret
        """
        self.secret = secret

    @staticmethod
    def generate_signature(payload: bytes, secret: str) -> str:
        """
        Generate HMAC signature for webhook payload.

        Args:
            payload: Raw request body
            secret: Webhook secret

        Returns:
            HMAC SHA-256 signature (hex)
        """
        return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()

    def verify(self, payload: bytes, signature: str) -> None:
        """
        Verify webhook signature.

        Args:
            payload: Raw request body
            signature: Signature sent by the provider

        Raises:
            ConfigurationError: If no webhook secret is configured
            InvalidWebhookSignatureError: If the signature is missing or wrong
        """
        if not self.secret:
            raise ConfigurationError(
                "Payment webhook secret is not configured", code="WEBHOOK_SECRET_NOT_SET"
            )
        if not signature:
            raise InvalidWebhookSignatureError("Missing webhook signature")

        expected = self.generate_signature(payload, self.secret)
        if not hmac.compare_digest(expected, signature.strip()):
            logger.warning("Webhook signature mismatch")
            raise InvalidWebhookSignatureError()
