"""Trailing 7-day expense report.

:func:`build_report` reads one window of transactions from the store and
hands it to :func:`summarize`, which is pure and does all the work:
zero-filled daily totals, category totals with percentage shares, and the
two chart series.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime, time, timedelta, tzinfo

from daily_expense.aggregation import category_totals, daily_totals, total_amount
from daily_expense.date_range import DateRange, end_of_day, local_date, now_millis, start_of_day
from daily_expense.errors import ReportLoadError, StoreReadError
from daily_expense.formatting import format_currency, format_full_date, format_weekday
from daily_expense.models import ChartDataEntry, ExpenseReportData, Transaction
from daily_expense.store import TransactionStore

logger = logging.getLogger(__name__)

REPORT_WINDOW_DAYS = 7


def report_days(reference_ms: int, tz: tzinfo | None = None) -> list[date]:
    """The calendar days covered by the report, oldest first."""
    last = local_date(reference_ms, tz)
    return [last - timedelta(days=offset) for offset in range(REPORT_WINDOW_DAYS - 1, -1, -1)]


def report_window(reference_ms: int, tz: tzinfo | None = None) -> DateRange:
    """Start of the day six days back through the end of the reference day."""
    days = report_days(reference_ms, tz)
    return DateRange(start_of_day(days[0], tz), end_of_day(days[-1], tz))


def summarize(
    transactions: Sequence[Transaction],
    window: DateRange,
    tz: tzinfo | None = None,
) -> ExpenseReportData:
    """Build the report structure for *transactions* over *window*.

    Transactions outside *window* are ignored, so every rollup in the
    result is over the same set: the daily totals, the category totals and
    the overall total all sum to the same amount.

    Args:
        transactions: Snapshot to report on.
        window: The inclusive report window; its days are enumerated for
            zero-filling.
        tz: Timezone for calendar days; ``None`` is system local.

    Returns:
        A fully populated :class:`ExpenseReportData`.
    """
    in_window = [t for t in transactions if _in_window(t, window)]
    if len(in_window) != len(transactions):
        logger.debug(
            "Ignoring %d transaction(s) outside the report window",
            len(transactions) - len(in_window),
        )

    first = local_date(window.start, tz)
    last = local_date(window.end, tz)
    days = [first + timedelta(days=i) for i in range((last - first).days + 1)]

    dailies = daily_totals(in_window, days, tz)
    categories = category_totals(in_window)
    overall = total_amount(in_window)

    daily_chart = [
        ChartDataEntry(
            label=format_weekday(datetime.combine(d.day, time.min)),
            value=float(d.total_amount),
        )
        for d in dailies
    ]
    category_chart = [
        ChartDataEntry(label=c.category.short_label, value=float(c.total_amount))
        for c in categories
    ]

    start_label = format_full_date(datetime.combine(first, time.min))
    end_label = format_full_date(datetime.combine(last, time.min))

    return ExpenseReportData(
        report_title=f"Report: {start_label} - {end_label}",
        start_ms=window.start,
        end_ms=window.end,
        daily_totals=dailies,
        category_totals=categories,
        overall_total_amount=overall,
        overall_total_amount_formatted=format_currency(overall),
        daily_chart=daily_chart,
        category_chart=category_chart,
        transactions=sorted(in_window, key=lambda t: (t.timestamp, t.id)),
    )


def build_report(
    store: TransactionStore,
    reference_ms: int | None = None,
    tz: tzinfo | None = None,
) -> ExpenseReportData:
    """Query the store once and build the 7-day report ending today.

    Raises:
        ReportLoadError: If the store read fails.  No partial report is
            returned.
    """
    if reference_ms is None:
        reference_ms = now_millis()
    window = report_window(reference_ms, tz)

    try:
        transactions = store.get_by_range(window.start, window.end)
    except StoreReadError as exc:
        raise ReportLoadError(f"Failed to load report: {exc}") from exc

    logger.info("Loaded %d transaction(s) for the report window", len(transactions))
    return summarize(transactions, window, tz)


def _in_window(transaction: Transaction, window: DateRange) -> bool:
    ts = transaction.timestamp
    return isinstance(ts, int) and not isinstance(ts, bool) and window.contains(ts)
