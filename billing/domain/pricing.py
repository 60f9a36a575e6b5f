"""
Pricing configuration and invoice amount calculation.

Percentages are configuration, not tax rules: the invoice breakdown
is a pure function of the PricingConfig it is given.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from core.domain.exceptions import ConfigurationError

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """
    Round a value to cents, half up.

    Args:
        value: Anything Decimal accepts

    Returns:
        Decimal with two decimal places
    """
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Convert a money amount to integer cents."""
    return int((to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    """Convert integer cents to a money amount."""
    return to_money(Decimal(amount) / 100)


@dataclass(frozen=True)
class InvoiceAmounts:
    """Invoice breakdown: total = base + iva - ret."""

    base: Decimal
    iva: Decimal
    ret: Decimal
    total: Decimal


@dataclass(frozen=True)
class PricingConfig:
    """
    Explicit pricing configuration.

    Attributes:
        base_price: Taxable base of one license
        iva_percent: VAT percentage added to the base
        retention_percent: Withholding percentage subtracted from the base
        price_total: Price shown to and charged from customers
        currency: ISO currency code
    """

    base_price: Decimal
    iva_percent: Decimal
    retention_percent: Decimal
    price_total: Decimal
    currency: str = "EUR"

    @classmethod
    def from_settings(cls) -> "PricingConfig":
        """
        Build the configuration from Django settings.

        Returns:
            PricingConfig instance

        Raises:
            ConfigurationError: If a price or percentage is missing or not numeric
        """

        def read(name: str, code: str) -> Decimal:
            raw = getattr(settings, name, None)
            if raw in (None, ""):
                raise ConfigurationError(f"{name} is not configured", code=code)
            try:
                return Decimal(str(raw))
            except InvalidOperation as exc:
                raise ConfigurationError(f"{name} is not a number: {raw!r}", code=code) from exc

        return cls(
            base_price=to_money(read("BASE_PRICE", "BASE_PRICE_NOT_SET")),
            iva_percent=read("IVA_PERCENT", "IVA_PERCENT_NOT_SET"),
            retention_percent=read("RETENTION_PERCENT", "RETENTION_PERCENT_NOT_SET"),
            price_total=to_money(read("PRICE_TOTAL", "PRICE_NOT_SET")),
            currency=(getattr(settings, "CURRENCY", "") or "EUR").upper(),
        )

    @property
    def price_total_minor(self) -> int:
        """Customer price in minor currency units."""
        return to_minor_units(self.price_total)


def calculate_invoice_amounts(pricing: PricingConfig) -> InvoiceAmounts:
    """
    Compute the invoice breakdown for one license.

    Args:
        pricing: Pricing configuration

    Returns:
        InvoiceAmounts rounded to cents
    """
    base = to_money(pricing.base_price)
    iva = to_money(base * pricing.iva_percent / Decimal(100))
    ret = to_money(base * pricing.retention_percent / Decimal(100))
    return InvoiceAmounts(base=base, iva=iva, ret=ret, total=to_money(base + iva - ret))
