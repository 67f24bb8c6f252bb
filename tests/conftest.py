"""Shared pytest fixtures for Daily Expense tests.

Provides reusable fixtures for:
- sample_transactions: a week of realistic expenses across categories,
  including a same-day cluster and an unknown stored category.
- memory_store: an InMemoryStore preloaded with sample_transactions.
- failing_store: a store whose reads always fail.
- tmp_project_dir: a temporary project with config.toml and an exports dir.

Every test that touches calendar days passes ``tz=timezone.utc`` so results
do not depend on the machine's local timezone.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from helpers import FailingStore, make_txn, ts

from daily_expense.config import initialize
from daily_expense.models import Transaction
from daily_expense.store import InMemoryStore


# ---------------------------------------------------------------------------
# Transactions and stores
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """A spread of expenses over the week ending 14 Oct 2026 (UTC).

    Includes:
    - Two FOOD expenses today in the same 3-hour slot.
    - A TRANSPORTATION expense yesterday evening.
    - A lowercase stored category ("shopping") that must match SHOPPING.
    - An unknown stored category ("GROCERIES") that must fall back to OTHER.
    - An expense 8 days back, outside the 7-day report window.
    """
    return [
        make_txn("Lunch", "100.00", "FOOD", ts(2026, 10, 14, 13, 15), txn_id=1),
        make_txn("Coffee", "50.00", "FOOD", ts(2026, 10, 14, 14, 5), txn_id=2),
        make_txn("Cab home", "240.50", "TRANSPORTATION", ts(2026, 10, 13, 21, 40), txn_id=3),
        make_txn("Shoes", "1999.00", "shopping", ts(2026, 10, 11, 11, 0), txn_id=4),
        make_txn("Farmers market", "320.00", "GROCERIES", ts(2026, 10, 9, 8, 30), txn_id=5),
        make_txn("Old dinner", "800.00", "FOOD", ts(2026, 10, 6, 20, 0), txn_id=6),
    ]


@pytest.fixture
def memory_store(sample_transactions: list[Transaction]) -> InMemoryStore:
    """InMemoryStore holding sample_transactions with ids 1..6."""
    return InMemoryStore(sample_transactions)


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


# ---------------------------------------------------------------------------
# tmp_project_dir -- temp directory with config.toml
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """A temporary project initialized with the default config, pinned to UTC."""
    project = tmp_path / "project"
    initialize(project)
    config_path = project / "config.toml"
    config_path.write_text(
        config_path.read_text(encoding="utf-8").replace('timezone = ""', 'timezone = "UTC"'),
        encoding="utf-8",
    )
    return project
