"""Report export: CSV serialization, text rendering and export artifacts.

- :func:`to_csv` serializes a transaction list under a small header block.
  Rows are written **oldest first**, the reverse of the on-screen list.
- :func:`render_text_report` / :func:`print_report` produce the
  human-readable report summary.
- :func:`render_export` builds an :class:`~daily_expense.models.ExportArtifact`
  for ``csv``, ``txt`` or ``pdf``.  PDF output is a placeholder text payload
  (``is_stub=True``), not a rendered PDF.
- :func:`write_export` writes an artifact into the export directory.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Sequence
from datetime import tzinfo
from decimal import Decimal
from pathlib import Path

from daily_expense.date_range import to_local
from daily_expense.errors import ExportWriteError
from daily_expense.formatting import format_timestamp
from daily_expense.models import ExpenseReportData, ExportArtifact, Transaction

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Date", "Title", "Amount", "Category", "Notes"]

MIME_TYPES = {
    "csv": "text/csv",
    "txt": "text/plain",
    "pdf": "application/pdf",
}

EXPORT_FORMATS = list(MIME_TYPES)


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def to_csv(
    transactions: Sequence[Transaction],
    report_title: str,
    generated_at_ms: int,
    tz: tzinfo | None = None,
) -> str:
    """Serialize *transactions* as CSV text.

    Layout::

        Report Title:,<title>

        Exported Date:,<YYYY-MM-DD HH:MM:SS>

        Date,Title,Amount,Category,Notes
        "2026-10-12 09:30:00","Lunch",12.5,"FOOD",""

    Every text column is quoted and embedded double quotes are doubled;
    ``Amount`` is an unquoted plain decimal.  ``Category`` is written as
    stored, so reading the file back gives the original values.  Missing
    notes are written as an empty quoted string.  Rows are sorted by
    timestamp ascending.

    Args:
        transactions: Transactions to export.
        report_title: Title written on the first line.
        generated_at_ms: Export time, written on the third line.
        tz: Timezone for the date columns; ``None`` is system local.

    Returns:
        The CSV document, ``\\n``-terminated lines.
    """
    buf = io.StringIO()

    header = csv.writer(buf, lineterminator="\n")
    header.writerow(["Report Title:", report_title])
    header.writerow([])
    header.writerow(["Exported Date:", format_timestamp(generated_at_ms, tz)])
    header.writerow([])
    header.writerow(CSV_COLUMNS)

    rows = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_NONNUMERIC)
    for txn in sorted(transactions, key=lambda t: (t.timestamp, t.id)):
        rows.writerow(
            [
                format_timestamp(txn.timestamp, tz),
                txn.title,
                _plain_amount(txn.amount),
                txn.category or "",
                txn.notes or "",
            ]
        )

    return buf.getvalue()


def _plain_amount(amount: object) -> object:
    # Decimal("1E+2") would otherwise be written in exponent form.
    if isinstance(amount, Decimal) and amount.is_finite():
        return Decimal(f"{amount:f}")
    return amount


# ---------------------------------------------------------------------------
# Text report
# ---------------------------------------------------------------------------


def render_text_report(report: ExpenseReportData) -> str:
    """Render *report* as a plain-text summary.

    Includes the overall total, the per-day breakdown (every day of the
    window, zero days included) and the per-category breakdown with
    percentage shares.
    """
    lines = [f"== {report.report_title} ==", f"Total spent: {report.overall_total_amount_formatted}"]

    lines.append("")
    lines.append("Daily totals:")
    for day in report.daily_totals:
        lines.append(f"  {day.date_label + ':':<15} {day.total_amount_formatted:>14}")

    lines.append("")
    if report.category_totals:
        lines.append("Spending by category:")
        for cat in report.category_totals:
            pct = cat.percentage_of_total * 100
            lines.append(
                f"  {cat.category_display_name + ':':<25} "
                f"{cat.total_amount_formatted:>14}  ({pct:5.1f}%)"
            )
    else:
        lines.append("Spending by category: (no expenses)")

    lines.append("")
    lines.append(f"Transactions: {len(report.transactions)}")
    return "\n".join(lines) + "\n"


def print_report(report: ExpenseReportData) -> None:
    """Print the text summary of *report* to stdout."""
    print()
    print(render_text_report(report), end="")
    print()


# ---------------------------------------------------------------------------
# Export artifacts
# ---------------------------------------------------------------------------


def render_export(
    report: ExpenseReportData,
    fmt: str,
    generated_at_ms: int,
    tz: tzinfo | None = None,
) -> ExportArtifact:
    """Build the export payload for *report* in format *fmt*.

    Args:
        report: The report to export.
        fmt: ``"csv"``, ``"txt"`` or ``"pdf"`` (case-insensitive).
        generated_at_ms: Export time; used in the CSV header and file name.
        tz: Timezone for rendered dates.

    Returns:
        An :class:`ExportArtifact`.  For ``pdf`` the content is a
        placeholder and ``is_stub`` is True.

    Raises:
        ValueError: If *fmt* is not a supported format.
    """
    key = fmt.lower()
    if key not in MIME_TYPES:
        raise ValueError(
            f"Unsupported export format {fmt!r}. Expected one of: {', '.join(EXPORT_FORMATS)}."
        )

    stamp = to_local(generated_at_ms, tz).strftime("%Y%m%d_%H%M%S")
    filename = f"expense_report_{stamp}.{key}"

    if key == "csv":
        content = to_csv(report.transactions, report.report_title, generated_at_ms, tz)
        is_stub = False
    elif key == "txt":
        content = render_text_report(report)
        is_stub = False
    else:
        logger.warning("PDF export is a placeholder; writing a text stub instead of a PDF")
        content = f"This is a simulated PDF report.\nReport Title: {report.report_title}\n"
        is_stub = True

    return ExportArtifact(
        fmt=key,
        mime_type=MIME_TYPES[key],
        filename=filename,
        content=content,
        is_stub=is_stub,
    )


def write_export(artifact: ExportArtifact, output_dir: str | Path) -> Path:
    """Write *artifact* into *output_dir* (created if needed).

    Returns:
        The path of the written file.

    Raises:
        ExportWriteError: If the directory or file cannot be written.
    """
    output_dir = Path(output_dir)
    output_path = output_dir / artifact.filename
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            f.write(artifact.content)
    except OSError as exc:
        raise ExportWriteError(f"Could not write {output_path}: {exc}") from exc

    logger.info("Wrote %s export to %s", artifact.fmt.upper(), output_path)
    return output_path
