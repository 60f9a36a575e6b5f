"""
ExpireLicensesHandler.

Marks entitled licenses whose expiry has passed as expired.
"""

import logging
from datetime import datetime
from typing import List, Optional

from core.domain.events import EventBus, utcnow
from core.infrastructure.events import event_bus as default_event_bus
from licenses.domain.events import LicenseExpired
from licenses.domain.license import License
from licenses.domain.transitions import LicenseTransition
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class ExpireLicensesHandler:
    """Sweeps overdue licenses."""

    def __init__(self, license_repository: LicenseRepository, event_bus: Optional[EventBus] = None):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.event_bus = event_bus or default_event_bus

    async def find_overdue(self, now: Optional[datetime] = None, limit: int = 500) -> List[str]:
        """
        List overdue license codes without changing them.

        Args:
            now: Reference time
            limit: Maximum number of codes

        Returns:
            License codes past their expiry
        """
        return await self.license_repository.find_overdue_codes(now or utcnow(), limit=limit)

    async def handle(self, now: Optional[datetime] = None, limit: int = 500) -> List[str]:
        """
        Expire every overdue license.

        Each license is re-checked under its own row lock, so a license
        renewed or revoked in the meantime is left alone.

        Args:
            now: Reference time
            limit: Maximum number of licenses per sweep

        Returns:
            Codes that were marked expired
        """
        now = now or utcnow()
        expired = []

        def expire(current: Optional[License]) -> LicenseTransition:
            if current is None or not current.status.is_entitled or current.expires_at > now:
                return LicenseTransition(license=current)
            return LicenseTransition.write(current.mark_expired(now))

        for code in await self.find_overdue(now, limit=limit):
            outcome = await self.license_repository.apply(code, expire)
            if outcome.changed:
                expired.append(code)
                logger.info("Marked license %s as expired", code)
                await self.event_bus.publish(
                    LicenseExpired(code=code, expires_at=outcome.license.expires_at)
                )
        return expired
