"""Exception types raised across the package.

Every error here is recoverable: callers catch them at their boundary (the
view controllers or the CLI) and turn them into a state value or a message.
"""

from __future__ import annotations


class ExpenseTrackerError(Exception):
    """Base class for all Daily Expense errors."""


class StoreReadError(ExpenseTrackerError):
    """A full or range query against the transaction store failed."""


class ReportLoadError(ExpenseTrackerError):
    """The 7-day report could not be built because its store read failed."""


class MissingDateRangeParameter(ExpenseTrackerError, ValueError):
    """A custom-date filter was selected without the date it needs."""


class ExportWriteError(ExpenseTrackerError):
    """Writing an export artifact to disk failed."""


class ExpenseValidationError(ExpenseTrackerError, ValueError):
    """User-entered expense fields failed validation.

    Attributes:
        field_errors: Mapping of field name (``"title"``, ``"amount"``,
            ``"notes"``) to a human-readable message.
    """

    def __init__(self, field_errors: dict[str, str]) -> None:
        self.field_errors = dict(field_errors)
        summary = "; ".join(f"{name}: {msg}" for name, msg in self.field_errors.items())
        super().__init__(summary or "invalid expense")
