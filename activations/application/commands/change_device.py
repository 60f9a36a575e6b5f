"""
ChangeDeviceCommand.

Support-side command to move a license to another device.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ChangeDeviceCommand:
    """Command to rebind a license to a new device."""

    code: Optional[str]
    new_device_id: Optional[str]
    reason: Optional[str] = None
