"""
Django implementation of ActivationAttemptRepository port.

This adapter converts between domain entities and Django ORM models.
"""

from typing import List

from asgiref.sync import sync_to_async

from activations.domain.activation import ActivationAttempt
from activations.infrastructure.models import ActivationAttempt as ActivationAttemptModel
from activations.ports.activation_repository import ActivationAttemptRepository
from core.domain.value_objects import CheckOperation, CheckResult


class DjangoActivationAttemptRepository(ActivationAttemptRepository):
    """Django ORM implementation of ActivationAttemptRepository."""

    def _to_domain(self, model: ActivationAttemptModel) -> ActivationAttempt:
        """
        Convert Django model to domain entity.

        Args:
            model: Django ActivationAttempt model

        Returns:
            ActivationAttempt domain entity
        """
        return ActivationAttempt(
            id=model.id,
            code=model.code,
            device_id=model.device_id,
            operation=CheckOperation(model.operation),
            result=CheckResult(model.result),
            created_at=model.created_at,
        )

    @sync_to_async
    def record(self, attempt: ActivationAttempt) -> ActivationAttempt:
        # pylint: disable=no-member
        model = ActivationAttemptModel.objects.create(
            id=attempt.id,
            code=attempt.code[:64],
            device_id=attempt.device_id[:255] if attempt.device_id else None,
            operation=attempt.operation.value,
            result=attempt.result.value,
            created_at=attempt.created_at,
        )
        return self._to_domain(model)

    @sync_to_async
    def find_by_code(self, code: str, limit: int = 50) -> List[ActivationAttempt]:
        # pylint: disable=no-member
        models = ActivationAttemptModel.objects.filter(code=code).order_by("-created_at")[:limit]
        return [self._to_domain(model) for model in models]
