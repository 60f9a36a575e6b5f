"""
Order reference generation.

References look like ``LIC-BIZ-7KQ2MX``: a configurable prefix, the
payment method tag and six random symbols.
"""

import secrets
import string

from core.domain.value_objects import PaymentMethod

REFERENCE_SYMBOLS = string.ascii_uppercase + string.digits
REFERENCE_RANDOM_LENGTH = 6


def generate_order_reference(prefix: str, method: PaymentMethod) -> str:
    """
    Build a reference the customer quotes when paying.

    Args:
        prefix: Business prefix (ORDER_REFERENCE_PREFIX)
        method: Payment method

    Returns:
        Order reference
    """
    suffix = "".join(secrets.choice(REFERENCE_SYMBOLS) for _ in range(REFERENCE_RANDOM_LENGTH))
    return f"{prefix}-{method.reference_tag}-{suffix}"
