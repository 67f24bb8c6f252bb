"""Expense entry: validate user input and record it in the store.

This is where the transaction invariants are enforced: a non-blank title,
a positive amount, and notes of at most :data:`MAX_NOTES_LENGTH`
characters.  Everything downstream may assume them.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal

from daily_expense.categories import Category
from daily_expense.errors import ExpenseValidationError
from daily_expense.formatting import CURRENCY_SYMBOL, parse_formatted_amount
from daily_expense.models import Transaction
from daily_expense.store import TransactionStore

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 100

# Optional sign and rupee symbol, digits with optional grouping commas,
# optional fraction.
_AMOUNT_PATTERN = re.compile(
    r"-?\s*" + re.escape(CURRENCY_SYMBOL) + r"?\s*(\d[\d,]*(\.\d*)?|\.\d+)"
)


def validate_expense(title: str, amount_text: str, notes: str | None = None) -> dict[str, str]:
    """Check the entry fields and return a mapping of field errors.

    An empty mapping means the input is valid.  The amount may be typed
    plainly (``"250"``) or pasted in display form (``"₹1,250.00"``).
    """
    errors: dict[str, str] = {}

    if not title or not title.strip():
        errors["title"] = "Title cannot be empty"

    amount_str = (amount_text or "").strip()
    if not amount_str:
        errors["amount"] = "Amount cannot be empty"
    elif not _AMOUNT_PATTERN.fullmatch(amount_str):
        errors["amount"] = "Invalid amount format"
    elif parse_formatted_amount(amount_str, context=title or "N/A") <= 0:
        errors["amount"] = "Amount must be positive"

    if notes is not None and len(notes.strip()) > MAX_NOTES_LENGTH:
        errors["notes"] = f"Notes must be {MAX_NOTES_LENGTH} characters or fewer"

    return errors


def record_expense(
    store: TransactionStore,
    title: str,
    amount_text: str,
    category: Category = Category.FOOD,
    notes: str | None = None,
    image_uri: str | None = None,
    timestamp: int | None = None,
) -> Transaction:
    """Validate the input, insert a new transaction and return it.

    Args:
        store: Where to record the expense.
        title: Title as typed; surrounding whitespace is removed.
        amount_text: Amount as typed.
        category: Catalog category.  Its key is what gets stored.
        notes: Optional notes; blank notes are stored as ``None``.
        image_uri: Optional receipt reference.
        timestamp: Creation time in ms; defaults to now.

    Returns:
        The stored :class:`Transaction`, with its assigned id.

    Raises:
        ExpenseValidationError: If any field is invalid.  Nothing is stored.
    """
    errors = validate_expense(title, amount_text, notes)
    if errors:
        raise ExpenseValidationError(errors)

    amount: Decimal = parse_formatted_amount(amount_text.strip(), context=title)
    cleaned_notes = notes.strip() if notes else ""

    txn = Transaction(
        title=title.strip(),
        amount=amount,
        category=category.key,
        notes=cleaned_notes or None,
        image_uri=image_uri,
    )
    if timestamp is not None:
        txn.timestamp = timestamp

    txn.id = store.insert(txn)
    logger.info("Recorded expense %d: %s %s", txn.id, txn.title, txn.amount)
    return txn
