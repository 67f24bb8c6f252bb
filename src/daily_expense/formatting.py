"""Money and date formatting.

Currency is fixed to the Indian Rupee with en-IN digit grouping: the last
three integer digits form one group and every group above it has two
digits (``₹12,34,567.89``).  Amounts are rounded half-to-even to two places,
which is what a platform number formatter does by default; there is no
formatter state, so the same amount always renders the same string.

Date labels use fixed English patterns so output does not depend on the
process locale.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, tzinfo
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from daily_expense.date_range import to_local

logger = logging.getLogger(__name__)

CURRENCY_CODE = "INR"
CURRENCY_SYMBOL = "₹"

_CENTS = Decimal("0.01")

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
_WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

UNKNOWN_DATE_LABEL = "Unknown date"

_PLAIN_NUMBER = re.compile(r"\d+(\.\d*)?|\.\d+")


# ---------------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------------


def _group_indian(digits: str) -> str:
    """Insert en-IN grouping separators into a string of integer digits."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount: Decimal | int | float) -> str:
    """Format *amount* as a rupee string, e.g. ``₹1,23,456.50``.

    Non-finite values format as zero.  Negative values get a leading minus
    before the symbol (``-₹5.00``).
    """
    value = Decimal(str(amount)) if not isinstance(amount, Decimal) else amount
    if not value.is_finite():
        value = Decimal("0")
    value = value.quantize(_CENTS, rounding=ROUND_HALF_EVEN)
    sign = "-" if value < 0 else ""
    whole, frac = f"{abs(value):f}".split(".")
    return f"{sign}{CURRENCY_SYMBOL}{_group_indian(whole)}.{frac}"


def parse_formatted_amount(text: str, context: str = "N/A") -> Decimal:
    """Parse a formatted currency string back into a number.

    Strips surrounding whitespace, an optional leading minus, the rupee
    symbol and grouping commas, then parses what remains as a plain
    decimal.  Empty input is zero.

    This never raises: anything unparseable is logged as a warning and
    returns ``Decimal("0")``.

    Args:
        text: The string to parse, e.g. ``"₹1,250.00"``.
        context: A label identifying where the string came from, included
            in the warning (typically the transaction title).

    Returns:
        The parsed amount, or zero on failure.
    """
    cleaned = (text or "").strip()
    negative = cleaned.startswith("-")
    if negative:
        cleaned = cleaned[1:]
    cleaned = cleaned.strip().removeprefix(CURRENCY_SYMBOL).replace(",", "").strip()

    if not cleaned:
        return Decimal("0")

    if not _PLAIN_NUMBER.fullmatch(cleaned):
        logger.warning(
            "Could not parse amount %r (original %r) for %r", cleaned, text, context
        )
        return Decimal("0")

    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        logger.warning(
            "Could not parse amount %r (original %r) for %r", cleaned, text, context
        )
        return Decimal("0")

    return -value if negative else value


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def format_time(dt: datetime) -> str:
    """``hh:mm AM`` -- zero-padded 12-hour clock."""
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{hour:02d}:{dt.minute:02d} {suffix}"


def format_short_date(dt: datetime) -> str:
    """``MMM dd``, e.g. ``Oct 05``."""
    return f"{_MONTHS[dt.month - 1]} {dt.day:02d}"


def format_full_date(dt: datetime) -> str:
    """``MMM dd, yyyy``, e.g. ``Oct 05, 2026``."""
    return f"{format_short_date(dt)}, {dt.year:04d}"


def format_weekday(dt: datetime) -> str:
    """Three-letter weekday, e.g. ``Mon``."""
    return _WEEKDAYS[dt.weekday()]


def format_timestamp(timestamp: int, tz: tzinfo | None = None) -> str:
    """``YYYY-MM-DD HH:MM:SS`` in local time, or ``Unknown date``."""
    try:
        dt = to_local(timestamp, tz)
    except ValueError:
        return UNKNOWN_DATE_LABEL
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def relative_date_label(timestamp: int, reference_ms: int, tz: tzinfo | None = None) -> str:
    """Human label for a transaction time relative to *reference_ms*.

    - same calendar day as the reference: ``"hh:mm AM"``
    - the day before: ``"Yesterday, hh:mm AM"``
    - anything else: ``"MMM dd"``
    """
    try:
        dt = to_local(timestamp, tz)
    except ValueError:
        return UNKNOWN_DATE_LABEL
    today = to_local(reference_ms, tz).date()

    if dt.date() == today:
        return format_time(dt)
    if dt.date() == today - timedelta(days=1):
        return f"Yesterday, {format_time(dt)}"
    return format_short_date(dt)
