"""
RecoverLicenseCommand.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class RecoverLicenseCommand:
    """Command to email a lost license code back to its owner."""

    email: Optional[str]
