"""
ListInvoicesQuery.

Query to list ledger entries in a date range.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class ListInvoicesQuery:
    """Query for invoices issued between two dates, both inclusive."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
