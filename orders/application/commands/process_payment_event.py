"""
ProcessPaymentEventCommand.
"""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class ProcessPaymentEventCommand:
    """Command to process one trusted, already verified payment event."""

    event_id: str
    event_type: str
    payload: Dict[str, Any] = field(default_factory=dict)
