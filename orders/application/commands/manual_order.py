"""
Manual order commands.
"""

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class CreateManualOrderCommand:
    """Command to open a manual order."""

    method: Optional[str]
    email: Optional[str]


@dataclass
class CompleteManualOrderCommand:
    """Command for an operator confirming that a manual payment arrived."""

    order_id: uuid.UUID


@dataclass
class ResendPurchaseEmailCommand:
    """Command to send the purchase email of a completed order again."""

    order_id: uuid.UUID
