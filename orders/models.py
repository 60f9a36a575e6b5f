"""
Model registry for the orders app.
"""
from orders.infrastructure.models import ManualOrder, PaymentEvent  # noqa: F401
