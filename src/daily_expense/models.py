"""Core data models for Daily Expense.

This module defines the dataclasses passed between the store, the
aggregation engine, the report builder and the exporters.  Apart from the
category catalog and the clock it has no internal imports.

Money is always a :class:`~decimal.Decimal`; it is only turned into a
display string at the presentation boundary, and the formatted string is
carried *alongside* the raw value, never instead of it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from daily_expense.categories import Category
from daily_expense.date_range import now_millis


class Grouping(Enum):
    """How the expense list is partitioned into buckets."""

    NONE = "none"
    BY_CATEGORY = "category"
    BY_TIME = "time"


@dataclass
class Transaction:
    """A single recorded expense.

    Transactions are owned by the store.  Nothing in the aggregation or
    reporting code mutates one; the store hands out copies and assigns
    ``id`` on insert.

    Attributes:
        title: Short description, e.g. "Lunch".  Never blank once stored.
        amount: Positive amount in rupees.
        category: Catalog key as stored, e.g. ``"FOOD"``.  Matched
            case-insensitively; unknown values are reported as ``OTHER``.
        notes: Optional free text, at most 100 characters.
        image_uri: Optional opaque reference to a receipt image.
        timestamp: Creation time in milliseconds since the epoch.  The only
            ordering and bucketing key.
        id: Store-assigned identifier, ``0`` until inserted.  Never reused.
    """

    title: str
    amount: Decimal
    category: str
    notes: str | None = None
    image_uri: str | None = None
    timestamp: int = field(default_factory=now_millis)
    id: int = 0


@dataclass
class DisplayItem:
    """A transaction mapped for presentation.

    Attributes:
        id: Transaction id.
        title: Transaction title.
        amount: Raw (sanitized) amount.
        amount_formatted: ``amount`` as a currency string.
        category: Resolved catalog member.
        date_label: Relative label: a time for today, ``"Yesterday, ..."``
            for yesterday, otherwise a short date.
        timestamp: Original timestamp in milliseconds.
        image_uri: Receipt reference, passed through untouched.
    """

    id: int
    title: str
    amount: Decimal
    amount_formatted: str
    category: Category
    date_label: str
    timestamp: int
    image_uri: str | None = None


@dataclass
class GroupedBucket:
    """A named, ordered subgroup of display items with its own subtotal."""

    title: str
    items: list[DisplayItem] = field(default_factory=list)
    total: Decimal = Decimal("0")
    total_formatted: str = ""


@dataclass
class AggregationResult:
    """Output of one aggregation pass over a transaction snapshot.

    Attributes:
        grouping: The grouping mode that produced the buckets.
        flat_list: Every transaction as a display item, newest first.
        grouped_buckets: Buckets for the grouping mode; empty for ``NONE``.
        total_count: Number of input transactions.
        total_amount: Sum of all sanitized amounts.
        total_amount_formatted: ``total_amount`` as a currency string.
    """

    grouping: Grouping
    flat_list: list[DisplayItem] = field(default_factory=list)
    grouped_buckets: list[GroupedBucket] = field(default_factory=list)
    total_count: int = 0
    total_amount: Decimal = Decimal("0")
    total_amount_formatted: str = ""


@dataclass
class DailyTotal:
    day: date
    date_label: str
    total_amount: Decimal
    total_amount_formatted: str


@dataclass
class CategoryTotal:
    """Spending for one category within a report window.

    ``percentage_of_total`` is a fraction in ``[0, 1]``; it is ``0.0`` for
    every category when the window's overall total is zero.
    """

    category: Category
    category_display_name: str
    total_amount: Decimal
    total_amount_formatted: str
    percentage_of_total: float


@dataclass
class ChartDataEntry:
    label: str
    value: float


@dataclass
class ExpenseReportData:
    """A trailing 7-day expense report.

    Attributes:
        report_title: ``"Report: <start> - <end>"``.
        start_ms: Inclusive window start.
        end_ms: Inclusive window end.
        daily_totals: One entry per day in the window, oldest first,
            zero-filled.
        category_totals: One entry per category present, largest first.
        overall_total_amount: Sum over the window.
        overall_total_amount_formatted: Formatted overall total.
        daily_chart: (weekday, total) series.
        category_chart: (short category name, total) series.
        transactions: The raw transactions in the window, kept for export.
    """

    report_title: str
    start_ms: int
    end_ms: int
    daily_totals: list[DailyTotal] = field(default_factory=list)
    category_totals: list[CategoryTotal] = field(default_factory=list)
    overall_total_amount: Decimal = Decimal("0")
    overall_total_amount_formatted: str = ""
    daily_chart: list[ChartDataEntry] = field(default_factory=list)
    category_chart: list[ChartDataEntry] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)


@dataclass
class ExportArtifact:
    """Generated export content, ready to be written and shared.

    Attributes:
        fmt: Export format key: ``"csv"``, ``"txt"`` or ``"pdf"``.
        mime_type: MIME type handed to whatever shares the file.
        filename: Suggested file name.
        content: The text payload.
        is_stub: True when ``content`` is a placeholder rather than a real
            rendering of the format (currently only PDF).
    """

    fmt: str
    mime_type: str
    filename: str
    content: str
    is_stub: bool = False


@dataclass
class AppConfig:
    """Top-level application configuration loaded from config.toml.

    Attributes:
        ledger_file: Path of the JSON transaction ledger, relative to the
            project root.  Default: "ledger.json".
        export_dir: Directory export files are written to.
            Default: "exports".
        week_start: First day of the week for the "this week" filter, as
            a lowercase day name.  Default: "sunday".
        timezone: IANA timezone name used for calendar-day boundaries, or
            empty for the system local time.
    """

    ledger_file: str = "ledger.json"
    export_dir: str = "exports"
    week_start: str = "sunday"
    timezone: str = ""
