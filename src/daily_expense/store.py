"""Transaction store interface and implementations.

Defines the :class:`TransactionStore` protocol the rest of the package
consumes, plus two implementations:

- :class:`InMemoryStore`: dict-backed, for tests and embedding.
- :class:`JsonLedgerStore`: a single JSON ledger file on disk.

The ledger file looks like::

    {
        "next_id": 4,
        "transactions": [
            {"id": 1, "title": "Lunch", "amount": "120.00", "category": "FOOD",
             "notes": null, "image_uri": null, "timestamp": 1760000000000},
            ...
        ]
    }

Amounts are stored as strings so the :class:`~decimal.Decimal` value
round-trips exactly.  ``next_id`` only ever grows, so deleted ids are never
handed out again.

All range bounds are inclusive.  Queries return transactions newest first.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Protocol

from daily_expense.errors import StoreReadError
from daily_expense.models import Transaction

logger = logging.getLogger(__name__)


class TransactionStore(Protocol):
    """Durable keyed ledger of transactions.

    Read methods raise :class:`~daily_expense.errors.StoreReadError` when
    the underlying storage cannot be read.  ``update`` and ``delete`` raise
    ``KeyError`` for ids that are not in the ledger.
    """

    def insert(self, transaction: Transaction) -> int:
        """Store a new transaction and return its assigned id."""
        ...

    def update(self, transaction: Transaction) -> None: ...

    def delete(self, transaction_id: int) -> None: ...

    def get_by_id(self, transaction_id: int) -> Transaction | None: ...

    def get_all(self) -> list[Transaction]: ...

    def get_by_range(self, start_ms: int, end_ms: int) -> list[Transaction]:
        """Transactions with ``start_ms <= timestamp <= end_ms``."""
        ...


def _newest_first(transactions: list[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda t: (t.timestamp, t.id), reverse=True)


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryStore:
    """A store that keeps transactions in memory, keyed by id.

    Returned transactions are copies, so callers cannot mutate the ledger
    by accident.
    """

    def __init__(self, transactions: list[Transaction] | None = None) -> None:
        self._rows: dict[int, Transaction] = {}
        self._next_id = 1
        for txn in transactions or []:
            self.insert(txn)

    def insert(self, transaction: Transaction) -> int:
        new_id = self._next_id
        self._next_id += 1
        self._rows[new_id] = replace(transaction, id=new_id)
        return new_id

    def update(self, transaction: Transaction) -> None:
        if transaction.id not in self._rows:
            raise KeyError(transaction.id)
        self._rows[transaction.id] = replace(transaction)

    def delete(self, transaction_id: int) -> None:
        del self._rows[transaction_id]

    def get_by_id(self, transaction_id: int) -> Transaction | None:
        row = self._rows.get(transaction_id)
        return replace(row) if row is not None else None

    def get_all(self) -> list[Transaction]:
        return _newest_first([replace(t) for t in self._rows.values()])

    def get_by_range(self, start_ms: int, end_ms: int) -> list[Transaction]:
        return _newest_first(
            [replace(t) for t in self._rows.values() if start_ms <= t.timestamp <= end_ms]
        )


# ---------------------------------------------------------------------------
# JSON ledger file
# ---------------------------------------------------------------------------


class JsonLedgerStore:
    """A store persisted as one JSON ledger file.

    The file is re-read on every query, so the store always reflects what
    is on disk.  A missing file is an empty ledger; it is created on the
    first write.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    # -- reads --------------------------------------------------------------

    def get_by_id(self, transaction_id: int) -> Transaction | None:
        _, rows = self._load()
        for txn in rows:
            if txn.id == transaction_id:
                return txn
        return None

    def get_all(self) -> list[Transaction]:
        _, rows = self._load()
        return _newest_first(rows)

    def get_by_range(self, start_ms: int, end_ms: int) -> list[Transaction]:
        _, rows = self._load()
        return _newest_first([t for t in rows if start_ms <= t.timestamp <= end_ms])

    # -- writes -------------------------------------------------------------

    def insert(self, transaction: Transaction) -> int:
        next_id, rows = self._load()
        stored = replace(transaction, id=next_id)
        rows.append(stored)
        self._save(next_id + 1, rows)
        logger.debug("Inserted transaction %d into %s", stored.id, self.path)
        return stored.id

    def update(self, transaction: Transaction) -> None:
        next_id, rows = self._load()
        for idx, existing in enumerate(rows):
            if existing.id == transaction.id:
                rows[idx] = replace(transaction)
                self._save(next_id, rows)
                return
        raise KeyError(transaction.id)

    def delete(self, transaction_id: int) -> None:
        next_id, rows = self._load()
        remaining = [t for t in rows if t.id != transaction_id]
        if len(remaining) == len(rows):
            raise KeyError(transaction_id)
        self._save(next_id, remaining)
        logger.debug("Deleted transaction %d from %s", transaction_id, self.path)

    # -- file handling ------------------------------------------------------

    def _load(self) -> tuple[int, list[Transaction]]:
        """Read the ledger file.

        Raises:
            StoreReadError: If the file exists but cannot be read or does
                not hold a valid ledger.
        """
        if not self.path.exists():
            return 1, []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            rows = [_from_record(r) for r in raw.get("transactions", [])]
            next_id = int(raw.get("next_id", 1))
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreReadError(f"Could not read ledger {self.path}: {exc}") from exc
        except (AttributeError, KeyError, TypeError, ValueError, InvalidOperation) as exc:
            raise StoreReadError(f"Malformed ledger {self.path}: {exc}") from exc

        # Guard against a hand-edited next_id that would reuse an id.
        highest = max((t.id for t in rows), default=0)
        return max(next_id, highest + 1), rows

    def _save(self, next_id: int, rows: list[Transaction]) -> None:
        payload = {
            "next_id": next_id,
            "transactions": [_to_record(t) for t in sorted(rows, key=lambda t: t.id)],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        os.replace(tmp_path, self.path)


def _to_record(transaction: Transaction) -> dict:
    record = asdict(transaction)
    record["amount"] = str(transaction.amount)
    return record


def _from_record(record: dict) -> Transaction:
    return Transaction(
        id=int(record["id"]),
        title=record["title"],
        amount=Decimal(str(record["amount"])),
        category=record.get("category", ""),
        notes=record.get("notes"),
        image_uri=record.get("image_uri"),
        timestamp=int(record["timestamp"]),
    )
