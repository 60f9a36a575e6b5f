"""
License check commands.

Commands for the runtime activate and validate operations.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ActivateLicenseCommand:
    """Command to activate a license on a device."""

    code: Optional[str]
    device_id: Optional[str]


@dataclass
class ValidateLicenseCommand:
    """Command to re-check a license online from an installed device."""

    code: Optional[str]
    device_id: Optional[str]
