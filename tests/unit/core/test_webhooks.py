"""
Unit tests for webhook signature verification.
"""
import pytest

from core.domain.exceptions import ConfigurationError, InvalidWebhookSignatureError
from core.infrastructure.webhooks import WebhookSignatureVerifier

BODY = b'{"id":"evt_1","type":"checkout.session.completed","payload":{}}'


class TestWebhookSignatureVerifier:
    """Tests for WebhookSignatureVerifier."""

    def test_valid_signature(self):
        signature = WebhookSignatureVerifier.generate_signature(BODY, "secret")

        WebhookSignatureVerifier("secret").verify(BODY, signature)

    def test_signature_is_hex_sha256(self):
        signature = WebhookSignatureVerifier.generate_signature(BODY, "secret")

        assert len(signature) == 64
        int(signature, 16)

    def test_wrong_secret(self):
        signature = WebhookSignatureVerifier.generate_signature(BODY, "other")

        with pytest.raises(InvalidWebhookSignatureError):
            WebhookSignatureVerifier("secret").verify(BODY, signature)

    def test_tampered_body(self):
        signature = WebhookSignatureVerifier.generate_signature(BODY, "secret")

        with pytest.raises(InvalidWebhookSignatureError):
            WebhookSignatureVerifier("secret").verify(BODY + b" ", signature)

    def test_missing_signature(self):
        with pytest.raises(InvalidWebhookSignatureError):
            WebhookSignatureVerifier("secret").verify(BODY, "")

    def test_missing_secret(self):
        with pytest.raises(ConfigurationError) as exc_info:
            WebhookSignatureVerifier("").verify(BODY, "anything")

        assert exc_info.value.code == "WEBHOOK_SECRET_NOT_SET"
