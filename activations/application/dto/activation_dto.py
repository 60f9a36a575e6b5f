"""
Activation DTOs for API responses.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class LicenseCheckDTO:
    """Result of an activate, validate or info call."""

    code: str
    status: str
    result: str
    expires_at: datetime
    first_activation: bool = False
    activated_at: Optional[datetime] = None
    device_change_available: bool = False


@dataclass
class DeviceChangeDTO:
    """Result of a device change."""

    code: str
    device_id: str
    previous_device_id: Optional[str]
    device_changed_at: datetime
    expires_at: datetime


@dataclass
class RecoveryDTO:
    """Response to a recovery request, identical whether or not a license exists."""

    message: str
