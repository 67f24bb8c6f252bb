"""Tests for the Click CLI layer.

Uses Click's CliRunner to invoke commands without spawning subprocesses.
Each test runs inside a temporary project (config.toml pinned to UTC) so
commands read and write a throwaway ledger.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from daily_expense import __version__
from daily_expense.cli import cli

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def project(tmp_project_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run commands from inside the temporary project."""
    monkeypatch.chdir(tmp_project_dir)
    return tmp_project_dir


def _ledger(project: Path) -> dict:
    return json.loads((project / "ledger.json").read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Group / init
# ---------------------------------------------------------------------------


class TestGroup:
    def test_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner: CliRunner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("init", "add", "delete", "list", "today", "report", "export"):
            assert name in result.output


class TestInit:
    def test_creates_project(self, runner: CliRunner, tmp_path: Path):
        target = tmp_path / "new"
        result = runner.invoke(cli, ["init", "--dir", str(target)])

        assert result.exit_code == 0
        assert "Initialized expense project" in result.output
        assert (target / "config.toml").exists()
        assert (target / "exports").is_dir()

    def test_commands_need_init(self, runner: CliRunner, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["today"])
        assert result.exit_code == 1
        assert "expense init" in result.output

    def test_bad_config_reported(self, runner: CliRunner, project: Path):
        (project / "config.toml").write_text('[calendar]\ntimezone = "Nowhere/Land"\n')
        result = runner.invoke(cli, ["today"])
        assert result.exit_code == 1
        assert "Error loading configuration" in result.output


# ---------------------------------------------------------------------------
# add / delete
# ---------------------------------------------------------------------------


class TestAdd:
    def test_add_records_expense(self, runner: CliRunner, project: Path):
        result = runner.invoke(
            cli,
            ["add", "Lunch", "120", "--category", "food", "--notes", "team",
             "--at", "2026-10-12 13:15"],
        )

        assert result.exit_code == 0, result.output
        assert "Added expense #1: Lunch ₹120.00" in result.output

        record = _ledger(project)["transactions"][0]
        assert record["title"] == "Lunch"
        assert record["amount"] == "120"
        assert record["category"] == "FOOD"
        assert record["notes"] == "team"
        assert record["timestamp"] == 1791810900000

    def test_add_formatted_amount(self, runner: CliRunner, project: Path):
        result = runner.invoke(cli, ["add", "Rent", "₹15,000.00", "--category", "HOUSING"])
        assert result.exit_code == 0, result.output
        assert "₹15,000.00" in result.output

    def test_add_invalid_amount(self, runner: CliRunner, project: Path):
        result = runner.invoke(cli, ["add", "Lunch", "lots"])
        assert result.exit_code == 1
        assert "amount: Invalid amount format" in result.output
        assert not (project / "ledger.json").exists()

    def test_add_unknown_category_rejected(self, runner: CliRunner, project: Path):
        result = runner.invoke(cli, ["add", "Lunch", "10", "--category", "GROCERIES"])
        assert result.exit_code == 2


class TestDelete:
    def test_delete(self, runner: CliRunner, project: Path):
        runner.invoke(cli, ["add", "Tea", "20"])
        result = runner.invoke(cli, ["delete", "1"])
        assert result.exit_code == 0
        assert _ledger(project)["transactions"] == []

    def test_delete_unknown(self, runner: CliRunner, project: Path):
        result = runner.invoke(cli, ["delete", "9"])
        assert result.exit_code == 1
        assert "no expense with id 9" in result.output


# ---------------------------------------------------------------------------
# list / today
# ---------------------------------------------------------------------------


class TestList:
    @pytest.fixture(autouse=True)
    def _seed(self, runner: CliRunner, project: Path):
        for args in (
            ["add", "Lunch", "100", "--at", "2026-10-12 13:15"],
            ["add", "Coffee", "50", "--at", "2026-10-12 14:05"],
            ["add", "Cab", "240.50", "--category", "TRANSPORTATION", "--at", "2026-10-12 21:40"],
            ["add", "Shoes", "1999", "--category", "SHOPPING", "--at", "2026-10-10 11:00"],
        ):
            assert runner.invoke(cli, args).exit_code == 0

    def test_custom_date(self, runner: CliRunner):
        result = runner.invoke(cli, ["list", "--filter", "date", "--date", "2026-10-12"])

        assert result.exit_code == 0, result.output
        assert "== Expenses: 2026-10-12 ==" in result.output
        assert "Total: ₹390.50 (3 expenses)" in result.output
        assert "Shoes" not in result.output
        assert result.output.index("Cab") < result.output.index("Coffee") < result.output.index(
            "Lunch"
        )

    def test_custom_date_requires_date(self, runner: CliRunner):
        result = runner.invoke(cli, ["list", "--filter", "date"])
        assert result.exit_code == 1
        assert "needs a date" in result.output

    def test_range_grouped_by_category(self, runner: CliRunner):
        result = runner.invoke(
            cli,
            ["list", "--filter", "range", "--from", "2026-10-10", "--to", "2026-10-12",
             "--group", "category"],
        )

        assert result.exit_code == 0, result.output
        assert "Total: ₹2,389.50 (4 expenses)" in result.output
        assert "FOOD  (₹150.00)" in result.output
        assert "SHOPPING  (₹1,999.00)" in result.output
        assert "TRANSPORTATION  (₹240.50)" in result.output

    def test_grouped_by_time(self, runner: CliRunner):
        result = runner.invoke(
            cli, ["list", "--filter", "date", "--date", "2026-10-12", "--group", "time"]
        )
        assert result.exit_code == 0, result.output
        assert "Oct 12, 2026 (09:00 PM - 12:00 AM)  (₹240.50)" in result.output
        assert "Oct 12, 2026 (12:00 PM - 03:00 PM)  (₹150.00)" in result.output

    def test_empty_period(self, runner: CliRunner):
        result = runner.invoke(cli, ["list", "--filter", "date", "--date", "2020-01-01"])
        assert result.exit_code == 0
        assert "No expenses recorded for this period." in result.output


class TestToday:
    def test_spent_today(self, runner: CliRunner, project: Path):
        runner.invoke(cli, ["add", "Tea", "20"])
        runner.invoke(cli, ["add", "Samosa", "35.5"])
        result = runner.invoke(cli, ["today"])
        assert result.exit_code == 0
        assert "Spent today: ₹55.50" in result.output

    def test_nothing_today(self, runner: CliRunner, project: Path):
        result = runner.invoke(cli, ["today"])
        assert "Spent today: ₹0.00" in result.output


# ---------------------------------------------------------------------------
# report / export
# ---------------------------------------------------------------------------


class TestReport:
    def test_report(self, runner: CliRunner, project: Path):
        runner.invoke(cli, ["add", "Groceries", "1250", "--category", "FOOD"])
        result = runner.invoke(cli, ["report"])

        assert result.exit_code == 0, result.output
        assert "== Report:" in result.output
        assert "Total spent: ₹1,250.00" in result.output
        assert "Food:" in result.output

    def test_report_unreadable_ledger(self, runner: CliRunner, project: Path):
        (project / "ledger.json").write_text("{broken", encoding="utf-8")
        result = runner.invoke(cli, ["report"])
        assert result.exit_code == 1
        assert "Failed to load report" in result.output


class TestExport:
    def test_export_csv(self, runner: CliRunner, project: Path):
        runner.invoke(cli, ["add", 'Lunch "Special"', "12.5"])
        result = runner.invoke(cli, ["export"])

        assert result.exit_code == 0, result.output
        assert "CSV export complete" in result.output

        files = list((project / "exports").glob("expense_report_*.csv"))
        assert len(files) == 1
        with open(files[0], newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[4] == ["Date", "Title", "Amount", "Category", "Notes"]
        assert rows[5][1:] == ['Lunch "Special"', "12.5", "FOOD", ""]

    def test_export_txt_to_output_dir(self, runner: CliRunner, project: Path, tmp_path: Path):
        out = tmp_path / "shared"
        result = runner.invoke(cli, ["export", "--format", "txt", "--output-dir", str(out)])
        assert result.exit_code == 0, result.output
        assert len(list(out.glob("*.txt"))) == 1

    def test_export_pdf_placeholder(self, runner: CliRunner, project: Path):
        result = runner.invoke(cli, ["export", "--format", "pdf"])
        assert result.exit_code == 0
        assert "PDF export is a placeholder" in result.output

    def test_export_write_failure(self, runner: CliRunner, project: Path):
        blocker = project / "blocker"
        blocker.write_text("x", encoding="utf-8")
        result = runner.invoke(cli, ["export", "--output-dir", str(blocker)])
        assert result.exit_code == 1
        assert "Error during CSV export" in result.output
