"""Aggregation engine.

Turns a snapshot of transactions into presentation structures:

- a flat list of display items, newest first;
- grouped buckets, by category or by 3-hour time-of-day slot, each with its
  own subtotal;
- rollups (count, total, per-day totals, per-category totals with
  percentage shares).

Everything here is a pure function of its arguments.  Amounts stay as
:class:`~decimal.Decimal` throughout and are formatted only when a display
string is attached, so no aggregation step ever parses a formatted amount.

Ordering guarantees:

- the flat list is sorted by timestamp descending (ties: id descending);
- category buckets are sorted by title;
- time buckets are sorted by their newest member, most recent first, with
  ties broken by slot index;
- transactions whose timestamp cannot be placed on a calendar day land in
  one trailing ``Invalid date`` bucket instead of being dropped.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, tzinfo
from decimal import Decimal, InvalidOperation

from daily_expense.categories import Category
from daily_expense.date_range import now_millis, to_local
from daily_expense.formatting import (
    format_currency,
    format_full_date,
    format_time,
    relative_date_label,
)
from daily_expense.models import (
    AggregationResult,
    CategoryTotal,
    DailyTotal,
    DisplayItem,
    GroupedBucket,
    Grouping,
    Transaction,
)

logger = logging.getLogger(__name__)

SLOT_HOURS = 3
SLOTS_PER_DAY = 24 // SLOT_HOURS

INVALID_GROUP_TITLE = "Invalid date"

_ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def safe_amount(value: object) -> Decimal:
    """Coerce *value* to a non-negative finite :class:`Decimal`.

    Anything that is not a finite, non-negative number counts as zero so a
    single bad ledger row cannot poison a total.
    """
    if isinstance(value, bool):
        return _ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return _ZERO
    else:
        return _ZERO
    if not amount.is_finite() or amount < 0:
        return _ZERO
    return amount


def total_amount(transactions: Iterable[Transaction]) -> Decimal:
    """Sum of :func:`safe_amount` over *transactions*."""
    return sum((safe_amount(t.amount) for t in transactions), _ZERO)


# ---------------------------------------------------------------------------
# Display mapping
# ---------------------------------------------------------------------------


def to_display_item(
    transaction: Transaction,
    reference_ms: int,
    tz: tzinfo | None = None,
) -> DisplayItem:
    """Map a stored transaction to a :class:`DisplayItem`.

    The date label is relative to *reference_ms*; the category is resolved
    through the catalog regardless of how the stored string is cased.
    """
    amount = safe_amount(transaction.amount)
    return DisplayItem(
        id=transaction.id,
        title=transaction.title,
        amount=amount,
        amount_formatted=format_currency(amount),
        category=Category.parse(transaction.category),
        date_label=relative_date_label(transaction.timestamp, reference_ms, tz),
        timestamp=transaction.timestamp,
        image_uri=transaction.image_uri,
    )


def _order_key(item: DisplayItem) -> tuple[bool, int, int]:
    # Non-integer timestamps sort after every real one.
    ts = item.timestamp
    valid = isinstance(ts, int) and not isinstance(ts, bool)
    return (valid, ts if valid else 0, item.id)


def _newest_first(items: Iterable[DisplayItem]) -> list[DisplayItem]:
    return sorted(items, key=_order_key, reverse=True)


def _bucket(title: str, items: list[DisplayItem]) -> GroupedBucket:
    subtotal = sum((i.amount for i in items), _ZERO)
    return GroupedBucket(
        title=title,
        items=items,
        total=subtotal,
        total_formatted=format_currency(subtotal),
    )


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


def slot_index(dt: datetime) -> int:
    """The 3-hour slot (0..7) containing *dt*."""
    return dt.hour // SLOT_HOURS


def slot_title(day: date, slot: int) -> str:
    """Bucket title for a (day, slot) key.

    E.g. ``"Oct 26, 2026 (09:00 PM - 12:00 AM)"``.  The last slot of the day
    ends at midnight of the following day, rendered as ``12:00 AM``.
    """
    start = datetime.combine(day, time(hour=slot * SLOT_HOURS))
    end = datetime.combine(day, time(hour=((slot + 1) * SLOT_HOURS) % 24))
    return f"{format_full_date(start)} ({format_time(start)} - {format_time(end)})"


def group_by_category(items: Sequence[DisplayItem]) -> list[GroupedBucket]:
    """One bucket per category present, titled with the uppercased name."""
    by_category: dict[Category, list[DisplayItem]] = defaultdict(list)
    for item in items:
        by_category[item.category].append(item)

    buckets = [
        _bucket(category.display_name.upper(), _newest_first(members))
        for category, members in by_category.items()
    ]
    buckets.sort(key=lambda b: b.title)
    return buckets


def group_by_time(items: Sequence[DisplayItem], tz: tzinfo | None = None) -> list[GroupedBucket]:
    """One bucket per (calendar day, 3-hour slot) present.

    Buckets are ordered by their most recent member, newest first; equal
    newest timestamps fall back to slot order.  Items whose timestamp has
    no calendar day are collected into a final ``Invalid date`` bucket.
    """
    by_slot: dict[tuple[date, int], list[DisplayItem]] = defaultdict(list)
    invalid: list[DisplayItem] = []

    for item in items:
        try:
            dt = to_local(item.timestamp, tz)
        except ValueError:
            logger.warning(
                "Transaction %s has an unusable timestamp %r; grouping it as invalid",
                item.id,
                item.timestamp,
            )
            invalid.append(item)
            continue
        by_slot[(dt.date(), slot_index(dt))].append(item)

    keyed = []
    for (day, slot), members in by_slot.items():
        ordered = _newest_first(members)
        keyed.append((ordered[0].timestamp, slot, slot_title(day, slot), ordered))

    keyed.sort(key=lambda k: (-k[0], k[1]))
    buckets = [_bucket(title, members) for _, _, title, members in keyed]

    if invalid:
        buckets.append(_bucket(INVALID_GROUP_TITLE, _newest_first(invalid)))
    return buckets


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def aggregate(
    transactions: Sequence[Transaction],
    grouping: Grouping = Grouping.NONE,
    reference_ms: int | None = None,
    tz: tzinfo | None = None,
) -> AggregationResult:
    """Run one aggregation pass over an immutable transaction snapshot.

    Args:
        transactions: The snapshot, typically one store range query.
        grouping: Which buckets to build.  ``NONE`` builds none.
        reference_ms: "Now" for relative date labels.  Defaults to the
            current time.
        tz: Timezone for calendar days; ``None`` is system local.

    Returns:
        An :class:`AggregationResult`.  The flat list is always populated.
    """
    if reference_ms is None:
        reference_ms = now_millis()

    flat = _newest_first(to_display_item(t, reference_ms, tz) for t in transactions)

    if grouping is Grouping.NONE:
        buckets: list[GroupedBucket] = []
    elif grouping is Grouping.BY_CATEGORY:
        buckets = group_by_category(flat)
    elif grouping is Grouping.BY_TIME:
        buckets = group_by_time(flat, tz)
    else:
        raise ValueError(f"Unknown grouping: {grouping!r}")

    total = sum((i.amount for i in flat), _ZERO)
    return AggregationResult(
        grouping=grouping,
        flat_list=flat,
        grouped_buckets=buckets,
        total_count=len(flat),
        total_amount=total,
        total_amount_formatted=format_currency(total),
    )


def category_totals(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """Per-category totals with percentage shares, largest first.

    Only categories present in *transactions* get an entry.  Ties on the
    amount are ordered by display name so the output is deterministic.
    """
    sums: dict[Category, Decimal] = defaultdict(Decimal)
    for t in transactions:
        sums[Category.parse(t.category)] += safe_amount(t.amount)

    overall = sum(sums.values(), _ZERO)
    totals = [
        CategoryTotal(
            category=category,
            category_display_name=category.display_name,
            total_amount=amount,
            total_amount_formatted=format_currency(amount),
            percentage_of_total=float(amount / overall) if overall > 0 else 0.0,
        )
        for category, amount in sums.items()
    ]
    totals.sort(key=lambda c: (-c.total_amount, c.category_display_name))
    return totals


def daily_totals(
    transactions: Iterable[Transaction],
    days: Sequence[date],
    tz: tzinfo | None = None,
) -> list[DailyTotal]:
    """Totals for each of *days*, zero-filled, in the order given.

    Transactions falling on a day not in *days* (or with no calendar day at
    all) do not contribute.
    """
    sums: dict[date, Decimal] = {day: _ZERO for day in days}
    for t in transactions:
        try:
            day = to_local(t.timestamp, tz).date()
        except ValueError:
            continue
        if day in sums:
            sums[day] += safe_amount(t.amount)

    return [
        DailyTotal(
            day=day,
            date_label=format_full_date(datetime.combine(day, time.min)),
            total_amount=sums[day],
            total_amount_formatted=format_currency(sums[day]),
        )
        for day in days
    ]
