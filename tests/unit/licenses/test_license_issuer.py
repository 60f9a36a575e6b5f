"""
Unit tests for license issuance and the expiry sweep.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from itertools import cycle

import pytest

from core.domain.exceptions import LicenseCodeExhaustedError
from core.domain.value_objects import LicenseSource, LicenseStatus
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.handlers.expire_licenses_handler import ExpireLicensesHandler
from licenses.application.handlers.issue_license_handler import IssueLicenseHandler
from licenses.domain.events import LicenseExpired, LicenseIssued
from licenses.domain.services import LicenseIssuer, LicenseRequest

PAID_AT = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


def command(reference="cs_test_1") -> IssueLicenseCommand:
    return IssueLicenseCommand(
        email="buyer@example.com",
        source=LicenseSource.STRIPE,
        payment_reference=reference,
        paid_at=PAID_AT,
        amount_total=14820,
        currency="eur",
    )


class CollectingHandler:
    def __init__(self):
        self.events = []

    async def handle(self, event):
        self.events.append(event)


@pytest.mark.asyncio
class TestLicenseIssuer:
    """Tests for LicenseIssuer."""

    async def test_skips_taken_candidates(self, license_repository, license_factory):
        """Test that a taken candidate is never reused."""
        await license_repository.insert(license_factory(code="AAAA-AAAA-AAAA"))
        codes = iter(["AAAA-AAAA-AAAA", "BBBB-BBBB-BBBB"])
        issuer = LicenseIssuer(license_repository, code_generator=lambda: next(codes))

        assert await issuer.issue_unique_code() == "BBBB-BBBB-BBBB"

    async def test_exhausted_when_every_candidate_is_taken(self, license_repository, license_factory):
        """Test that the lookup stops after the attempt cap."""
        await license_repository.insert(license_factory(code="AAAA-AAAA-AAAA"))
        issuer = LicenseIssuer(license_repository, code_generator=lambda: "AAAA-AAAA-AAAA")

        with pytest.raises(LicenseCodeExhaustedError) as exc_info:
            await issuer.issue_unique_code(max_attempts=5)
        assert exc_info.value.code == "EXHAUSTED"

    async def test_collision_on_insert_retries_issuance(self, license_repository, license_factory):
        """A code taken between lookup and insert triggers a fresh attempt."""
        original_exists = license_repository.exists
        calls = {"count": 0}

        async def racing_exists(code):
            calls["count"] += 1
            if calls["count"] == 1:
                # Another issuer takes the code right after our lookup
                await license_repository.insert(
                    license_factory(code=code, payment_reference="cs_other")
                )
                return False
            return await original_exists(code)

        license_repository.exists = racing_exists
        codes = cycle(["CCCC-CCCC-CCCC", "DDDD-DDDD-DDDD"])
        issuer = LicenseIssuer(license_repository, code_generator=lambda: next(codes))

        license = await issuer.issue(
            LicenseRequest(
                email="buyer@example.com",
                source=LicenseSource.STRIPE,
                payment_reference="cs_test_1",
                paid_at=PAID_AT,
            )
        )

        assert license.code == "DDDD-DDDD-DDDD"
        assert len(license_repository.licenses) == 2


@pytest.mark.asyncio
class TestIssueLicenseHandler:
    """Tests for IssueLicenseHandler."""

    async def test_issue_license(self, license_repository, event_bus):
        """Test successful issuance publishes LicenseIssued."""
        collector = CollectingHandler()
        event_bus.subscribe(LicenseIssued, collector)
        handler = IssueLicenseHandler(license_repository, event_bus=event_bus)

        result = await handler.handle(command())

        assert result.created is True
        assert result.email == "buyer@example.com"
        assert result.expires_at == datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)
        stored = license_repository.licenses[result.code]
        assert stored.status == LicenseStatus.ACTIVE
        assert [event.code for event in collector.events] == [result.code]

    async def test_same_payment_returns_existing_license(self, license_repository, event_bus):
        """Test that a retried payment never mints a second license."""
        handler = IssueLicenseHandler(license_repository, event_bus=event_bus)

        first = await handler.handle(command())
        second = await handler.handle(command())

        assert second.created is False
        assert second.code == first.code
        assert len(license_repository.licenses) == 1

    async def test_concurrent_issuance_for_one_payment(self, license_repository, event_bus):
        """Concurrent deliveries of the same payment converge on one license."""
        handler = IssueLicenseHandler(license_repository, event_bus=event_bus)

        results = await asyncio.gather(*(handler.handle(command()) for _ in range(10)))

        assert len({result.code for result in results}) == 1
        assert sum(result.created for result in results) == 1
        assert len(license_repository.licenses) == 1

    async def test_concurrent_issuance_for_many_payments(self, license_repository, event_bus):
        handler = IssueLicenseHandler(license_repository, event_bus=event_bus)

        results = await asyncio.gather(*(handler.handle(command(f"cs_{n}")) for n in range(25)))

        codes = {result.code for result in results}
        assert len(codes) == 25
        assert all(result.created for result in results)
        assert set(license_repository.licenses) == codes


@pytest.mark.asyncio
class TestExpireLicensesHandler:
    """Tests for the expiry sweep."""

    async def test_expires_only_overdue_licenses(self, license_repository, license_factory, event_bus):
        collector = CollectingHandler()
        event_bus.subscribe(LicenseExpired, collector)
        now = datetime.now(timezone.utc)
        overdue = license_factory(
            code="EEEE-EEEE-EEEE", paid_at=now - timedelta(days=400), payment_reference="cs_old"
        )
        current = license_factory(code="FFFF-FFFF-FFFF", payment_reference="cs_new")
        await license_repository.insert(overdue)
        await license_repository.insert(current)

        handler = ExpireLicensesHandler(license_repository, event_bus=event_bus)
        assert await handler.find_overdue(now) == ["EEEE-EEEE-EEEE"]

        expired = await handler.handle(now)

        assert expired == ["EEEE-EEEE-EEEE"]
        assert license_repository.licenses["EEEE-EEEE-EEEE"].status == LicenseStatus.EXPIRED
        assert license_repository.licenses["FFFF-FFFF-FFFF"].status == LicenseStatus.ACTIVE
        assert [event.code for event in collector.events] == ["EEEE-EEEE-EEEE"]
        assert await handler.handle(now) == []
