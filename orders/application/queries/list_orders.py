"""
ListOrdersQuery.
"""

from dataclasses import dataclass
from typing import Optional

DEFAULT_ORDER_LIST_LIMIT = 200


@dataclass
class ListOrdersQuery:
    """Query orders in one status."""

    status: Optional[str] = "pending"
    limit: int = DEFAULT_ORDER_LIST_LIMIT
