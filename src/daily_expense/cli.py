"""Click CLI entry point for the expense command.

Handles argument parsing, config loading, and error display. All business
logic is delegated to ``entry``, ``views``, ``report`` and ``export``.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, tzinfo
from pathlib import Path

import click

from daily_expense import __version__
from daily_expense.categories import Category, category_keys
from daily_expense.date_range import DateFilter, to_millis
from daily_expense.models import AggregationResult, AppConfig, DisplayItem, Grouping
from daily_expense.store import JsonLedgerStore

_FILTER_LABELS = {
    DateFilter.TODAY: "Today",
    DateFilter.YESTERDAY: "Yesterday",
    DateFilter.THIS_WEEK: "This week",
    DateFilter.THIS_MONTH: "This month",
    DateFilter.CUSTOM_DATE: "Selected date",
    DateFilter.DATE_RANGE: "Date range",
}


def _configure_logging(verbose: bool, debug: bool) -> None:
    """Set up logging based on verbosity flags."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        force=True,
    )


def _load_project(root: Path) -> tuple[AppConfig, JsonLedgerStore, tzinfo | None]:
    """Load config from *root* and open its ledger, or exit with an error."""
    from daily_expense.config import load_config, resolve_timezone

    try:
        config = load_config(root)
        tz = resolve_timezone(config)
    except FileNotFoundError as exc:
        click.echo(
            f"Error: {exc}. Run 'expense init' to create the project structure.",
            err=True,
        )
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error loading configuration: {exc}", err=True)
        sys.exit(1)

    return config, JsonLedgerStore(root / config.ledger_file), tz


def _to_ms(value: datetime | None, tz: tzinfo | None) -> int | None:
    """Interpret a naive CLI datetime in the configured timezone."""
    if value is None:
        return None
    if tz is not None:
        value = value.replace(tzinfo=tz)
    return to_millis(value)


def _echo_item(item: DisplayItem, indent: str = "  ") -> None:
    click.echo(
        f"{indent}#{item.id:<5} {item.date_label:<20} {item.title:<28.28} "
        f"{item.amount_formatted:>14}  {item.category.display_name}"
    )


def _echo_result(result: AggregationResult, heading: str) -> None:
    click.echo()
    click.echo(f"== Expenses: {heading} ==")
    click.echo(f"Total: {result.total_amount_formatted} ({result.total_count} expenses)")

    if result.total_count == 0:
        click.echo()
        click.echo("No expenses recorded for this period.")
    elif result.grouping is Grouping.NONE:
        click.echo()
        for item in result.flat_list:
            _echo_item(item)
    else:
        for bucket in result.grouped_buckets:
            click.echo()
            click.echo(f"{bucket.title}  ({bucket.total_formatted})")
            for item in bucket.items:
                _echo_item(item, indent="    ")
    click.echo()


@click.group()
@click.version_option(version=__version__, prog_name="daily-expense")
def cli() -> None:
    """Record daily expenses and report on where the money went."""


@cli.command()
@click.option(
    "--dir", "target_dir", default=".", type=click.Path(), help="Directory to initialize."
)
def init(target_dir: str) -> None:
    """Initialize a new data directory with a default config."""
    from daily_expense.config import initialize

    target = Path(target_dir).resolve()

    try:
        initialize(target)
    except Exception as exc:
        click.echo(f"Error initializing project: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Initialized expense project in {target}")


@cli.command()
@click.argument("title")
@click.argument("amount")
@click.option(
    "--category",
    type=click.Choice(category_keys(), case_sensitive=False),
    default=Category.FOOD.key,
    show_default=True,
    help="Expense category.",
)
@click.option("--notes", default=None, help="Optional notes (max 100 characters).")
@click.option("--image", "image_uri", default=None, help="Reference to a receipt image.")
@click.option(
    "--at",
    "at",
    type=click.DateTime(formats=["%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d"]),
    default=None,
    help="When the expense happened (default: now).",
)
def add(
    title: str,
    amount: str,
    category: str,
    notes: str | None,
    image_uri: str | None,
    at: datetime | None,
) -> None:
    """Record a new expense."""
    from daily_expense.entry import record_expense
    from daily_expense.errors import ExpenseValidationError
    from daily_expense.formatting import format_currency

    _, store, tz = _load_project(Path.cwd())

    try:
        txn = record_expense(
            store,
            title=title,
            amount_text=amount,
            category=Category.parse(category),
            notes=notes,
            image_uri=image_uri,
            timestamp=_to_ms(at, tz),
        )
    except ExpenseValidationError as exc:
        for field_name, message in exc.field_errors.items():
            click.echo(f"Error: {field_name}: {message}", err=True)
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Failed to add expense: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Added expense #{txn.id}: {txn.title} {format_currency(txn.amount)}")


@cli.command()
@click.argument("transaction_id", type=int)
def delete(transaction_id: int) -> None:
    """Delete a recorded expense by id."""
    _, store, _ = _load_project(Path.cwd())

    try:
        store.delete(transaction_id)
    except KeyError:
        click.echo(f"Error: no expense with id {transaction_id}.", err=True)
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error deleting expense: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Deleted expense #{transaction_id}")


@cli.command(name="list")
@click.option(
    "--filter",
    "filter_name",
    type=click.Choice([f.value for f in DateFilter], case_sensitive=False),
    default=DateFilter.TODAY.value,
    show_default=True,
    help="Which days to show.",
)
@click.option(
    "--date",
    "on_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Day to show with --filter date.",
)
@click.option(
    "--from",
    "from_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="First day with --filter range (default: the beginning).",
)
@click.option(
    "--to",
    "to_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Last day with --filter range (default: now).",
)
@click.option(
    "--group",
    "group_name",
    type=click.Choice([g.value for g in Grouping], case_sensitive=False),
    default=Grouping.NONE.value,
    show_default=True,
    help="Group expenses by category or by 3-hour time slot.",
)
@click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
@click.option("--debug", is_flag=True, default=False, help="Developer-level diagnostics.")
def list_expenses(
    filter_name: str,
    on_date: datetime | None,
    from_date: datetime | None,
    to_date: datetime | None,
    group_name: str,
    verbose: bool,
    debug: bool,
) -> None:
    """List expenses for a period, optionally grouped."""
    _configure_logging(verbose, debug)
    from daily_expense.date_range import parse_week_start
    from daily_expense.views import ExpenseListController

    config, store, tz = _load_project(Path.cwd())

    date_filter = DateFilter(filter_name.lower())
    controller = ExpenseListController(
        store,
        week_start=parse_week_start(config.week_start),
        tz=tz,
    )
    controller.state.grouping = Grouping(group_name.lower())

    state = controller.load(
        date_filter,
        custom_date_ms=_to_ms(on_date, tz),
        range_start_ms=_to_ms(from_date, tz),
        range_end_ms=_to_ms(to_date, tz),
    )

    if state.error is not None:
        click.echo(f"Error: {state.error}", err=True)
        sys.exit(1)

    heading = _FILTER_LABELS[date_filter]
    if date_filter is DateFilter.CUSTOM_DATE and on_date is not None:
        heading = on_date.strftime("%Y-%m-%d")
    _echo_result(state.result, heading)


@cli.command()
def today() -> None:
    """Show the total spent today."""
    from daily_expense.views import spent_today

    _, store, tz = _load_project(Path.cwd())
    click.echo(f"Spent today: {spent_today(store, tz=tz)}")


@cli.command()
@click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
@click.option("--debug", is_flag=True, default=False, help="Developer-level diagnostics.")
def report(verbose: bool, debug: bool) -> None:
    """Show the report for the last 7 days."""
    _configure_logging(verbose, debug)
    from daily_expense.export import print_report
    from daily_expense.views import ReportController

    _, store, tz = _load_project(Path.cwd())

    state = ReportController(store, tz=tz).load()
    if state.report is None:
        click.echo(f"Error: {state.error}", err=True)
        sys.exit(1)

    print_report(state.report)


@cli.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "txt", "pdf"], case_sensitive=False),
    default="csv",
    show_default=True,
    help="Export format. PDF output is a placeholder.",
)
@click.option(
    "--output-dir",
    default=None,
    type=click.Path(),
    help="Directory to write to (default: export_dir from config).",
)
@click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
@click.option("--debug", is_flag=True, default=False, help="Developer-level diagnostics.")
def export(fmt: str, output_dir: str | None, verbose: bool, debug: bool) -> None:
    """Export the last-7-days report for sharing."""
    _configure_logging(verbose, debug)
    from daily_expense.views import ReportController

    root = Path.cwd()
    config, store, tz = _load_project(root)

    controller = ReportController(store, tz=tz)
    state = controller.load()
    if state.report is None:
        click.echo(f"Error: {state.error}", err=True)
        sys.exit(1)

    target = Path(output_dir) if output_dir else root / config.export_dir
    state = controller.export(fmt.lower(), target)
    if state.exported_path is None:
        click.echo(f"Error: {state.message}", err=True)
        sys.exit(1)

    click.echo(state.message)
    if verbose:
        click.echo(f"Wrote {state.exported_mime_type} to {state.exported_path}")
