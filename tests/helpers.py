"""Builders shared by the test modules.

- ts: UTC epoch-millisecond timestamps from calendar fields.
- make_txn: a Transaction with sensible defaults.
- FailingStore: a store whose reads always raise StoreReadError.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from daily_expense.errors import StoreReadError
from daily_expense.models import Transaction
from daily_expense.store import InMemoryStore

UTC = timezone.utc

# Reference "now" for most tests: Wednesday 14 Oct 2026, 15:30 UTC.
NOW_MS = int(datetime(2026, 10, 14, 15, 30, tzinfo=UTC).timestamp() * 1000)


def ts(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0,
       millis: int = 0) -> int:
    """Epoch milliseconds for a UTC wall-clock time."""
    dt = datetime(year, month, day, hour, minute, second, tzinfo=UTC)
    return int(dt.timestamp()) * 1000 + millis


def make_txn(
    title: str = "Lunch",
    amount: str | Decimal = "100.00",
    category: str = "FOOD",
    timestamp: int = NOW_MS,
    notes: str | None = None,
    txn_id: int = 0,
) -> Transaction:
    """Build a Transaction with sensible defaults for tests."""
    return Transaction(
        title=title,
        amount=Decimal(amount) if isinstance(amount, str) else amount,
        category=category,
        notes=notes,
        timestamp=timestamp,
        id=txn_id,
    )


class FailingStore(InMemoryStore):
    """A store whose reads always fail."""

    def __init__(self, message: str = "disk unavailable") -> None:
        super().__init__()
        self.message = message

    def get_all(self):
        raise StoreReadError(self.message)

    def get_by_range(self, start_ms, end_ms):
        raise StoreReadError(self.message)
