"""
GetLicenseInfoQuery.

Read-only query used by installed clients to show license details.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class GetLicenseInfoQuery:
    """Query for the state of a license as seen from one device."""

    code: Optional[str]
    device_id: Optional[str]
