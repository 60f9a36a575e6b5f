"""
Model registry for the activations app.
"""
from activations.infrastructure.models import ActivationAttempt  # noqa: F401
