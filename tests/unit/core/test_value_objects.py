"""
Unit tests for core value objects.
"""
import pytest

from core.domain.exceptions import DomainException, InvalidInputError
from core.domain.value_objects import (
    Email,
    LicenseStatus,
    OrderStatus,
    PaymentEventStatus,
    PaymentMethod,
)


class TestEmail:
    """Tests for Email value object."""

    def test_valid_email(self):
        """Test valid email creation."""
        email = Email("test@example.com")
        assert str(email) == "test@example.com"
        assert email.value == "test@example.com"

    def test_email_is_normalized(self):
        """Test email is trimmed and lower cased."""
        assert Email("  Test@Example.COM ").value == "test@example.com"

    def test_invalid_email_no_at(self):
        """Test invalid email without @."""
        with pytest.raises(ValueError, match="Invalid email"):
            Email("invalid-email")

    def test_empty_email(self):
        """Test empty email."""
        with pytest.raises(ValueError):
            Email("")

    def test_equality(self):
        """Test emails compare by normalized value."""
        assert Email("A@b.com") == Email("a@B.com")


class TestLicenseStatus:
    """Tests for LicenseStatus."""

    def test_blocked_statuses(self):
        assert LicenseStatus.REVOKED.is_blocked
        assert LicenseStatus.REFUNDED.is_blocked
        assert not LicenseStatus.EXPIRED.is_blocked

    def test_entitled_statuses(self):
        assert LicenseStatus.ACTIVE.is_entitled
        assert LicenseStatus.USED.is_entitled
        assert not LicenseStatus.EXPIRED.is_entitled
        assert not LicenseStatus.REVOKED.is_entitled


class TestPaymentEventStatus:
    """Tests for PaymentEventStatus."""

    @pytest.mark.parametrize(
        "status,final",
        [
            (PaymentEventStatus.RECEIVED, False),
            (PaymentEventStatus.PROCESSING, False),
            (PaymentEventStatus.ERROR, False),
            (PaymentEventStatus.PROCESSED, True),
            (PaymentEventStatus.IGNORED, True),
            (PaymentEventStatus.INVALID, True),
            (PaymentEventStatus.LICENSE_CREATED_EMAIL_FAILED, True),
        ],
    )
    def test_is_final(self, status, final):
        assert status.is_final is final


def test_payment_method_reference_tags():
    assert PaymentMethod.BIZUM.reference_tag == "BIZ"
    assert PaymentMethod.TRANSFER.reference_tag == "TRF"


def test_order_status_values():
    assert OrderStatus("license_created_email_failed") == OrderStatus.LICENSE_CREATED_EMAIL_FAILED


class TestDomainException:
    """Tests for domain exception codes."""

    def test_default_code_is_class_name(self):
        assert DomainException("boom").code == "DomainException"

    def test_explicit_code(self):
        error = InvalidInputError("bad date", code="INVALID_DATE_RANGE")
        assert error.code == "INVALID_DATE_RANGE"
        assert error.message == "bad date"
