"""View state for the expense list, the report and the "spent today" total.

These controllers sit between a UI (the CLI, or anything else) and the pure
aggregation/report code.  They own the rules about *when* results are
applied:

- Every load re-reads the store; nothing is cached between loads except
  the last successfully loaded snapshot, which is kept only so a grouping
  change can be re-aggregated without another read.
- When loads overlap, only the most recently started one may publish its
  result (:class:`RequestTracker`).  Older results are dropped.
- A failed list load keeps the previous result on screen and sets
  ``error``.  A failed report load clears the report and sets ``error``,
  since there is no partial report to keep.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from daily_expense.aggregation import aggregate, total_amount
from daily_expense.date_range import (
    DEFAULT_WEEK_START,
    DateFilter,
    DateRange,
    now_millis,
    resolve,
)
from daily_expense.errors import (
    ExportWriteError,
    MissingDateRangeParameter,
    ReportLoadError,
    StoreReadError,
)
from daily_expense.export import render_export, write_export
from daily_expense.formatting import format_currency
from daily_expense.models import AggregationResult, ExpenseReportData, Grouping, Transaction
from daily_expense.report import build_report
from daily_expense.store import TransactionStore

logger = logging.getLogger(__name__)


class RequestTracker:
    """Hands out increasing request tokens; only the newest is current."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest = 0

    def begin(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._latest


# ---------------------------------------------------------------------------
# Expense list
# ---------------------------------------------------------------------------


@dataclass
class ExpenseListState:
    """What the expense list screen shows.

    Attributes:
        date_filter: The selected filter.
        custom_date_ms: Day selected for ``CUSTOM_DATE``.
        range_start_ms: Start selected for ``DATE_RANGE``.
        range_end_ms: End selected for ``DATE_RANGE``.
        grouping: The selected grouping mode.
        window: The window the current ``result`` was loaded for.
        snapshot: The transactions behind ``result``, as loaded.
        result: The latest successful aggregation, or ``None`` before the
            first successful load.
        error: Message from the latest failed load, cleared on success.
        is_loading: True between ``start_load`` and ``complete_load``.
    """

    date_filter: DateFilter = DateFilter.TODAY
    custom_date_ms: int | None = None
    range_start_ms: int | None = None
    range_end_ms: int | None = None
    grouping: Grouping = Grouping.NONE
    window: DateRange | None = None
    snapshot: tuple[Transaction, ...] = ()
    result: AggregationResult | None = None
    error: str | None = None
    is_loading: bool = False

    @property
    def show_empty_state(self) -> bool:
        return not self.is_loading and (self.result is None or self.result.total_count == 0)


@dataclass
class PendingLoad:
    """A started list load waiting for its store read."""

    token: int
    window: DateRange | None
    reference_ms: int
    error: str | None = None


class ExpenseListController:
    """Drives :class:`ExpenseListState` from filter and grouping changes."""

    def __init__(
        self,
        store: TransactionStore,
        week_start: int = DEFAULT_WEEK_START,
        tz: tzinfo | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.store = store
        self.week_start = week_start
        self.tz = tz
        self.clock = clock
        self.state = ExpenseListState()
        self._requests = RequestTracker()

    def start_load(
        self,
        date_filter: DateFilter | None = None,
        *,
        custom_date_ms: int | None = None,
        range_start_ms: int | None = None,
        range_end_ms: int | None = None,
    ) -> PendingLoad:
        """Record a filter selection and resolve its window.

        With no arguments the current selection is reloaded.  Selecting a
        filter other than ``CUSTOM_DATE`` clears the custom date.

        A selection that cannot be resolved (a custom date filter with no
        date) yields a :class:`PendingLoad` carrying the error; completing
        it reports the error without touching the store.
        """
        state = self.state
        if date_filter is not None:
            state.date_filter = date_filter
            state.custom_date_ms = custom_date_ms if date_filter is DateFilter.CUSTOM_DATE else None
            if date_filter is DateFilter.DATE_RANGE:
                state.range_start_ms = range_start_ms
                state.range_end_ms = range_end_ms

        state.is_loading = True
        token = self._requests.begin()
        reference_ms = self.clock()

        try:
            window = resolve(
                state.date_filter,
                reference_ms,
                custom_date_ms=state.custom_date_ms,
                range_start_ms=state.range_start_ms,
                range_end_ms=state.range_end_ms,
                week_start=self.week_start,
                tz=self.tz,
            )
        except MissingDateRangeParameter as exc:
            return PendingLoad(token=token, window=None, reference_ms=reference_ms, error=str(exc))

        return PendingLoad(token=token, window=window, reference_ms=reference_ms)

    def complete_load(
        self,
        pending: PendingLoad,
        transactions: list[Transaction] | None = None,
        error: str | None = None,
    ) -> bool:
        """Apply the outcome of *pending* if it is still the newest request.

        Returns:
            True if the outcome was applied, False if a newer load has
            started since and this one was discarded.
        """
        if not self._requests.is_current(pending.token):
            logger.debug("Discarding superseded load %d", pending.token)
            return False

        state = self.state
        state.is_loading = False
        error = error or pending.error
        if error is not None:
            state.error = error
            return True

        snapshot = tuple(transactions or ())
        state.window = pending.window
        state.snapshot = snapshot
        state.result = aggregate(snapshot, state.grouping, pending.reference_ms, self.tz)
        state.error = None
        return True

    def load(self, date_filter: DateFilter | None = None, **params: int | None) -> ExpenseListState:
        """Start a load, read the store once, and complete it."""
        pending = self.start_load(date_filter, **params)
        if pending.error is not None or pending.window is None:
            self.complete_load(pending)
            return self.state

        try:
            transactions = self.store.get_by_range(pending.window.start, pending.window.end)
        except StoreReadError as exc:
            logger.warning("Error loading expenses: %s", exc)
            self.complete_load(pending, error=f"Failed to load expenses: {exc}")
            return self.state

        self.complete_load(pending, transactions)
        return self.state

    def regroup(self, grouping: Grouping) -> ExpenseListState:
        """Switch grouping and re-aggregate the last loaded snapshot.

        Does not read the store.  Before any successful load there is
        nothing to re-aggregate and only the selection changes.
        """
        state = self.state
        state.grouping = grouping
        if state.result is not None:
            state.result = aggregate(state.snapshot, grouping, self.clock(), self.tz)
        return state


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass
class ReportState:
    """What the report screen shows.

    Attributes:
        report: The loaded report, or ``None`` if it failed or never loaded.
        error: Load failure message.
        message: Transient export notification.
        exported_path: Path of the last successful export.
        exported_mime_type: MIME type of the last successful export.
        is_loading: True while the report is being built.
    """

    report: ExpenseReportData | None = None
    error: str | None = None
    message: str | None = None
    exported_path: Path | None = None
    exported_mime_type: str | None = None
    is_loading: bool = False


class ReportController:
    """Loads the 7-day report and exports it."""

    def __init__(
        self,
        store: TransactionStore,
        tz: tzinfo | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.store = store
        self.tz = tz
        self.clock = clock
        self.state = ReportState()

    def load(self) -> ReportState:
        self.state.is_loading = True
        try:
            report = build_report(self.store, self.clock(), self.tz)
        except ReportLoadError as exc:
            logger.warning("%s", exc)
            self.state.report = None
            self.state.error = str(exc)
        else:
            self.state.report = report
            self.state.error = None
        self.state.is_loading = False
        return self.state

    def export(self, fmt: str, output_dir: str | Path) -> ReportState:
        """Export the loaded report and record a transient message.

        An unsupported format or a write failure only changes ``message``;
        the report is untouched.
        """
        label = fmt.upper()
        report = self.state.report
        if report is None:
            self.state.message = f"Nothing to export: {self.state.error or 'report not loaded'}"
            return self.state

        try:
            artifact = render_export(report, fmt, self.clock(), self.tz)
        except ValueError as exc:
            logger.warning("%s export failed: %s", label, exc)
            self.state.message = f"Error during {label} export: {exc}"
            return self.state

        try:
            path = write_export(artifact, output_dir)
        except ExportWriteError as exc:
            logger.warning("%s export failed: %s", label, exc)
            self.state.message = f"Error during {label} export: {exc}"
            return self.state

        self.state.exported_path = path
        self.state.exported_mime_type = artifact.mime_type
        if artifact.is_stub:
            self.state.message = f"{label} export is a placeholder. Wrote {path.name}."
        else:
            self.state.message = f"{label} export complete. Ready to share {path.name}."
        return self.state

    def dismiss_message(self) -> None:
        self.state.message = None


# ---------------------------------------------------------------------------
# Spent today
# ---------------------------------------------------------------------------


def spent_today(
    store: TransactionStore,
    reference_ms: int | None = None,
    tz: tzinfo | None = None,
) -> str:
    """Formatted total of today's expenses.

    A store read failure is logged and shown as a zero total.
    """
    if reference_ms is None:
        reference_ms = now_millis()
    window = resolve(DateFilter.TODAY, reference_ms, tz=tz)
    try:
        transactions = store.get_by_range(window.start, window.end)
    except StoreReadError as exc:
        logger.warning("Error fetching total spent today: %s", exc)
        return format_currency(0)
    return format_currency(total_amount(transactions))
