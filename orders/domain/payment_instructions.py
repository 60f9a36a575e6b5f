"""
Payment instructions for manual orders.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict

from django.conf import settings

from core.domain.exceptions import ConfigurationError
from core.domain.value_objects import PaymentMethod


def _setting(name: str) -> str:
    return str(getattr(settings, name, "") or "").strip()


@dataclass(frozen=True)
class PaymentInstructionsConfig:
    """Where customers send out-of-band payments."""

    bizum_phone: str = ""
    bank_iban: str = ""
    bank_holder: str = ""
    bank_concept_hint: str = ""
    reference_prefix: str = "LIC"

    @classmethod
    def from_settings(cls) -> "PaymentInstructionsConfig":
        return cls(
            bizum_phone=_setting("BIZUM_PHONE"),
            bank_iban=_setting("BANK_IBAN"),
            bank_holder=_setting("BANK_HOLDER"),
            bank_concept_hint=_setting("BANK_CONCEPT_HINT"),
            reference_prefix=_setting("ORDER_REFERENCE_PREFIX") or "LIC",
        )

    def ensure_configured(self, method: PaymentMethod) -> None:
        """
        Check that the chosen method can actually be paid.

        Raises:
            ConfigurationError: If the phone or IBAN for the method is missing
        """
        if method == PaymentMethod.BIZUM and not self.bizum_phone:
            raise ConfigurationError("Bizum phone is not configured", code="BIZUM_PHONE_NOT_SET")
        if method == PaymentMethod.TRANSFER and not self.bank_iban:
            raise ConfigurationError("Bank IBAN is not configured", code="BANK_IBAN_NOT_SET")

    def instructions_for(
        self, method: PaymentMethod, reference: str, amount: Decimal, currency: str
    ) -> Dict[str, Any]:
        """
        Build the instructions shown to the customer.

        Args:
            method: Payment method
            reference: Order reference to quote
            amount: Amount to pay
            currency: ISO currency code

        Returns:
            Dictionary with method specific fields
        """
        instructions = {
            "method": method.value,
            "reference": reference,
            "amount": amount,
            "currency": currency,
        }
        if method == PaymentMethod.BIZUM:
            instructions["bizumPhone"] = self.bizum_phone
        else:
            instructions["bankIban"] = self.bank_iban
            instructions["bankHolder"] = self.bank_holder
            instructions["bankConceptHint"] = self.bank_concept_hint
        return instructions
