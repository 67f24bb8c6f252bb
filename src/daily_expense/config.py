"""Configuration loading and project initialization.

Reads ``config.toml`` using stdlib ``tomllib`` and writes the default file
using ``tomli_w``.  Depends only on ``models.py`` and ``date_range.py``.
"""

from __future__ import annotations

import sys
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

import tomli_w

from daily_expense.date_range import parse_week_start
from daily_expense.models import AppConfig

CONFIG_FILENAME = "config.toml"

_HEADER = """\
# Daily Expense configuration
#
# [general]
#   ledger_file -- JSON ledger holding every recorded expense
#   export_dir  -- where `expense export` writes report files
# [calendar]
#   week_start  -- first day of the week for the "week" filter (monday..sunday)
#   timezone    -- IANA zone for day boundaries, e.g. "Asia/Kolkata";
#                  empty means the system local time

"""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(root: Path) -> AppConfig:
    """Load ``config.toml`` from *root* and return an :class:`AppConfig`.

    Keys missing from the file take their defaults.

    Args:
        root: Project root directory containing ``config.toml``.

    Returns:
        A fully-populated :class:`AppConfig` instance.

    Raises:
        FileNotFoundError: If ``config.toml`` does not exist.
        ValueError: If ``week_start`` is not a day name.
    """
    data = _read_toml(root / CONFIG_FILENAME)
    defaults = AppConfig()

    general = data.get("general", {})
    calendar = data.get("calendar", {})

    config = AppConfig(
        ledger_file=general.get("ledger_file", defaults.ledger_file),
        export_dir=general.get("export_dir", defaults.export_dir),
        week_start=str(calendar.get("week_start", defaults.week_start)).strip().lower(),
        timezone=str(calendar.get("timezone", defaults.timezone)).strip(),
    )
    # Fail at load time rather than on the first "week" query.
    parse_week_start(config.week_start)
    return config


def resolve_timezone(config: AppConfig) -> tzinfo | None:
    """Return the configured timezone, or ``None`` for system local time.

    Raises:
        ValueError: If the configured name is not a known IANA timezone.
    """
    if not config.timezone:
        return None
    try:
        return ZoneInfo(config.timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone {config.timezone!r} in {CONFIG_FILENAME}") from exc


def default_config_toml() -> str:
    """The text of a fresh ``config.toml``."""
    defaults = AppConfig()
    body = tomli_w.dumps(
        {
            "general": {
                "ledger_file": defaults.ledger_file,
                "export_dir": defaults.export_dir,
            },
            "calendar": {
                "week_start": defaults.week_start,
                "timezone": defaults.timezone,
            },
        }
    )
    return _HEADER + body


def initialize(target_dir: Path) -> None:
    """Create the default config file and export directory.

    Idempotent: existing directories are left alone and an existing
    ``config.toml`` is **not** overwritten.

    Args:
        target_dir: The directory in which to create the project structure.
    """
    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / AppConfig().export_dir).mkdir(parents=True, exist_ok=True)
    _write_if_missing(target_dir / CONFIG_FILENAME, default_config_toml())


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_toml(path: Path) -> dict:
    """Read and parse a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _write_if_missing(path: Path, content: str) -> None:
    """Write *content* to *path* only if the file does not already exist."""
    if not path.exists():
        path.write_text(content, encoding="utf-8")
