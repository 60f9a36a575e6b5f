"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import logging
from datetime import datetime
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError

from core.domain.exceptions import LicenseAlreadyIssuedError, LicenseCodeCollisionError
from core.domain.value_objects import LicenseSource, LicenseStatus
from core.infrastructure.database import run_in_transaction
from core.metrics import license_code_collisions_total
from licenses.domain.license import License
from licenses.domain.transitions import LicenseTransition, TransitionFn
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

_ENTITLED_STATUSES = [LicenseStatus.ACTIVE.value, LicenseStatus.USED.value]


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Runs every read-modify-write under a row lock
    """

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        return License(
            code=model.code,
            email=model.email,
            status=LicenseStatus(model.status),
            source=LicenseSource(model.source),
            payment_reference=model.payment_reference,
            created_at=model.created_at,
            paid_at=model.paid_at,
            expires_at=model.expires_at,
            amount_total=model.amount_total,
            currency=model.currency,
            device_id=model.device_id,
            activated_at=model.activated_at,
            device_change_used=model.device_change_used,
            device_changed_at=model.device_changed_at,
            previous_device_id=model.previous_device_id,
            device_change_reason=model.device_change_reason,
            recovery_used=model.recovery_used,
            recovery_used_at=model.recovery_used_at,
            last_validated_at=model.last_validated_at,
            updated_at=model.updated_at,
        )

    def _apply_to_model(self, license: License, model: LicenseModel) -> LicenseModel:
        """
        Copy the mutable state of a domain entity onto a model.

        Args:
            license: License domain entity
            model: Django License model to update

        Returns:
            The updated model (unsaved)
        """
        model.email = license.email
        model.status = license.status.value
        model.device_id = license.device_id
        model.activated_at = license.activated_at
        model.device_change_used = license.device_change_used
        model.device_changed_at = license.device_changed_at
        model.previous_device_id = license.previous_device_id
        model.device_change_reason = license.device_change_reason
        model.recovery_used = license.recovery_used
        model.recovery_used_at = license.recovery_used_at
        model.last_validated_at = license.last_validated_at
        model.expires_at = license.expires_at
        return model

    def _to_model(self, license: License) -> LicenseModel:
        """
        Build a new Django model from a domain entity.

        Args:
            license: License domain entity

        Returns:
            Unsaved Django License model
        """
        model = LicenseModel(
            code=license.code,
            source=license.source.value,
            payment_reference=license.payment_reference,
            amount_total=license.amount_total,
            currency=license.currency,
            paid_at=license.paid_at,
            created_at=license.created_at,
        )
        return self._apply_to_model(license, model)

    @sync_to_async
    def exists(self, code: str) -> bool:
        """Check whether a license code is taken."""
        return LicenseModel.objects.filter(code=code).exists()

    @sync_to_async
    def find_by_code(self, code: str) -> Optional[License]:
        """
        Find a license by code.

        Args:
            code: License code

        Returns:
            License entity or None if not found
        """
        try:
            return self._to_domain(LicenseModel.objects.get(code=code))
        except LicenseModel.DoesNotExist:
            return None

    @sync_to_async
    def find_by_payment_reference(
        self, source: LicenseSource, payment_reference: str
    ) -> Optional[License]:
        """Find the license issued for a payment."""
        model = LicenseModel.objects.filter(
            source=source.value, payment_reference=payment_reference
        ).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_by_email(self, email: str, limit: int = 20) -> List[License]:
        """Find licenses owned by an email address."""
        models = LicenseModel.objects.filter(email=email.strip().lower())[:limit]
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def find_overdue_codes(self, now: datetime, limit: int = 500) -> List[str]:
        """Find entitled licenses whose expiry has passed."""
        return list(
            LicenseModel.objects.filter(status__in=_ENTITLED_STATUSES, expires_at__lte=now)
            .order_by("expires_at")
            .values_list("code", flat=True)[:limit]
        )

    @sync_to_async
    def insert(self, license: License) -> License:
        """
        Insert a new license atomically.

        Args:
            license: Freshly created license

        Returns:
            Stored license entity

        Raises:
            LicenseCodeCollisionError: If the code was taken concurrently
            LicenseAlreadyIssuedError: If the payment already has a license
        """

        def _insert() -> LicenseModel:
            if LicenseModel.objects.select_for_update().filter(code=license.code).exists():
                raise LicenseCodeCollisionError()
            model = self._to_model(license)
            model.save(force_insert=True)
            return model

        try:
            model = run_in_transaction(_insert)
        except LicenseCodeCollisionError:
            license_code_collisions_total.inc()
            raise
        except IntegrityError as exc:
            existing = LicenseModel.objects.filter(
                source=license.source.value, payment_reference=license.payment_reference
            ).first()
            if existing is not None:
                logger.info(
                    "License already issued for payment %s", license.payment_reference
                )
                raise LicenseAlreadyIssuedError(existing.code) from exc
            license_code_collisions_total.inc()
            raise LicenseCodeCollisionError() from exc

        return self._to_domain(model)

    @sync_to_async
    def apply(self, code: str, transition: TransitionFn) -> LicenseTransition:
        """
        Apply a transition to one license inside a locked transaction.

        Args:
            code: License code
            transition: Pure function of the current license

        Returns:
            The transition outcome, after commit
        """

        def _apply() -> LicenseTransition:
            model = LicenseModel.objects.select_for_update().filter(code=code).first()
            current = self._to_domain(model) if model else None
            outcome = transition(current)
            if outcome.changed and outcome.license is not None and model is not None:
                self._apply_to_model(outcome.license, model).save()
            return outcome

        return run_in_transaction(_apply)
