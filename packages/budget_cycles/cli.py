# ruff: noqa: I001
"""CLI for the ``budget_cycles`` package.

This module exposes callable command handlers (``cmd_*``) returning process
exit codes, and a Typer-based console interface wrapping them. Environment
variables (``DATABASE_URL``, ``BUDGET_CYCLES_SETTINGS``,
``BUDGET_CYCLES_LOG_LEVEL``) are loaded from a local ``.env`` using
``python-dotenv`` before any command runs. Business logic lives in
``budget_cycles.periods``, ``budget_cycles.aggregate`` and
``budget_cycles.persistence``.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from typer.models import OptionInfo

from .config import load_settings
from .logging_setup import configure_logging, get_logger
from .models import CYCLE_INFO, CycleType, Period, UserSettings

_logger = get_logger("budget_cycles.cli")


# ---- Small module-level helpers used by CLI commands -------------------------


def _parse_when(value: str | None) -> datetime:
    """Parse an optional ``--date`` value; ``None`` means now."""

    from .ingest import parse_datetime

    if value is None:
        return datetime.now()
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValueError(f"unrecognized date {value!r}; use YYYY-MM-DD")
    return parsed


def _resolve_cycle(
    settings: UserSettings, cycle: str | None, anchor: int | None
) -> tuple[CycleType | str, int]:
    """Command-line overrides win over the settings file."""

    resolved: CycleType | str = settings.budget_cycle
    if cycle is not None:
        parsed = CycleType.parse(cycle)
        if parsed is None:
            _logger.warning("Unrecognized cycle %r; falling back to the 1st/16th split", cycle)
        resolved = parsed or cycle
    return resolved, anchor if anchor is not None else settings.cycle_start_day


def _format_period(period: Period) -> str:
    return f"{period.start_date.isoformat()}\t{period.end_date.isoformat()}"


def _load_settings_or_report(settings_path: str | None) -> UserSettings | None:
    try:
        return load_settings(settings_path)
    except FileNotFoundError:
        print(f"Error: Settings file not found: {settings_path}", file=sys.stderr)
    except ValidationError as e:
        print(f"Error: Invalid settings: {e}", file=sys.stderr)
    return None


# ---- Command handlers ---------------------------------------------------------


def cmd_period(
    *,
    date: str | None = None,
    cycle: str | None = None,
    anchor: int | None = None,
    settings_path: str | None = None,
) -> int:
    """Print ``<start>\\t<end>`` of the period containing ``date``."""

    from .periods import compute_period, cycle_description

    settings = _load_settings_or_report(settings_path)
    if settings is None:
        return 1
    try:
        when = _parse_when(date)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    cycle_type, anchor_day = _resolve_cycle(settings, cycle, anchor)
    period = compute_period(when, cycle_type, anchor_day)
    print(_format_period(period))
    print(f"# {cycle_description(cycle_type, anchor_day)}, {period.days} days")
    return 0


def cmd_periods(
    *,
    count: int,
    date: str | None = None,
    cycle: str | None = None,
    anchor: int | None = None,
    settings_path: str | None = None,
) -> int:
    """Print ``count`` consecutive periods starting with the one containing ``date``."""

    from .periods import iter_periods

    if count <= 0:
        print("Error: --count must be positive", file=sys.stderr)
        return 1
    settings = _load_settings_or_report(settings_path)
    if settings is None:
        return 1
    try:
        when = _parse_when(date)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    cycle_type, anchor_day = _resolve_cycle(settings, cycle, anchor)
    for period in iter_periods(when, cycle_type, anchor_day, count):
        print(_format_period(period))
    return 0


def cmd_summary(
    csv_path: str,
    *,
    date: str | None = None,
    settings_path: str | None = None,
) -> int:
    """Summarize spending from an expense CSV for the period containing ``date``.

    Expenses are selected by interval membership (the CSV need not carry
    period identifiers). Output is one tab-separated row per category budget
    followed by an overall ``TOTAL`` row:

    ``<name>\\t<spent>\\t<allocated>\\t<remaining>\\t<percent>%[\\tOVER]``
    """

    import csv

    from .aggregate import (
        expenses_in_period,
        summarize_budget,
        summarize_categories,
    )
    from .ingest import load_expenses_csv
    from .periods import compute_period

    settings = _load_settings_or_report(settings_path)
    if settings is None:
        return 1
    try:
        when = _parse_when(date)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        expenses = load_expenses_csv(csv_path)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
        return 1
    except (csv.Error, ValueError) as e:
        print(f"Error: Failed to parse CSV: {e}", file=sys.stderr)
        return 1

    period = compute_period(when, settings.budget_cycle, settings.cycle_start_day)
    in_period = expenses_in_period(expenses, period)
    _logger.info("%d of %d expenses fall within %s", len(in_period), len(expenses), period)

    info = CYCLE_INFO[settings.budget_cycle]
    print(f"# {info.name} period {period.start_date.isoformat()}..{period.end_date.isoformat()}")

    def _row(name: str, spent, allocated, left, pct: float, over: bool) -> str:
        line = f"{name}\t{spent:.2f}\t{allocated:.2f}\t{left:.2f}\t{pct:.1f}%"
        return line + ("\tOVER" if over else "")

    for cs in summarize_categories(in_period, settings.category_budgets):
        print(
            _row(cs.name, cs.spent, cs.allocated, cs.remaining, cs.raw_percentage, cs.over_budget)
        )

    overall = summarize_budget(in_period, settings.income, period, today=when)
    print(
        _row(
            "TOTAL",
            overall.spent,
            overall.allocated,
            overall.remaining,
            overall.raw_percentage,
            overall.over_budget,
        )
    )
    print(f"# {overall.days_remaining} days left, {overall.daily_limit:.2f} per day")
    return 0


def cmd_ensure_period(
    *,
    user_id: str,
    database_url: str | None = None,
    settings_path: str | None = None,
    date: str | None = None,
) -> int:
    """Materialize the current period for ``user_id`` when none covers ``date``."""

    settings = _load_settings_or_report(settings_path)
    if settings is None:
        return 1
    try:
        when = _parse_when(date)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        from db.client import session_scope
        from .persistence import ensure_current_period, to_period

        with session_scope(database_url=database_url) as session:
            row, created = ensure_current_period(
                session, user_id=user_id, settings=settings, now=when
            )
            period = to_period(row)
            period_id = row.id
    except Exception as e:
        print(f"Error: persistence failed: {e}", file=sys.stderr)
        return 1

    status = "created" if created else "existing"
    print(f"{period_id}\t{_format_period(period)}\t{status}")
    return 0


def cmd_add_expense(
    *,
    user_id: str,
    amount: str,
    category: str,
    date: str | None = None,
    description: str = "",
    database_url: str | None = None,
) -> int:
    """Record an expense, tagging it with the stored period covering now."""

    try:
        when = _parse_when(date)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        from db.client import session_scope
        from .persistence import add_expense

        with session_scope(database_url=database_url) as session:
            row = add_expense(
                session,
                user_id=user_id,
                amount=amount,
                category=category,
                spent_at=when,
                description=description,
            )
            expense_id, period_id = row.id, row.budget_period_id
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: persistence failed: {e}", file=sys.stderr)
        return 1

    print(f"{expense_id}\t{period_id if period_id is not None else ''}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Compute budget-cycle periods and spending summaries. "
        "Loads DATABASE_URL and BUDGET_CYCLES_SETTINGS from a local .env."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
SETTINGS_OPTION: OptionInfo = typer.Option(
    None,
    "--settings",
    help="Path to a settings JSON file (falls back to BUDGET_CYCLES_SETTINGS).",
    dir_okay=False,
)
DATE_OPTION: OptionInfo = typer.Option(
    None, "--date", help="Reference date (YYYY-MM-DD); defaults to now."
)
CYCLE_OPTION: OptionInfo = typer.Option(
    None, "--cycle", help="Cycle type override: weekly, semi-monthly, monthly, quarterly, yearly."
)
ANCHOR_OPTION: OptionInfo = typer.Option(
    None, "--anchor", help="Anchor day override (1-7 for weekly, else 1-31)."
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("period")
def period_cmd(
    *,
    date: str | None = DATE_OPTION,
    cycle: str | None = CYCLE_OPTION,
    anchor: int | None = ANCHOR_OPTION,
    settings: Path | None = SETTINGS_OPTION,
) -> None:
    """Show the budget period containing a date."""

    _exit(
        cmd_period(
            date=date,
            cycle=cycle,
            anchor=anchor,
            settings_path=str(settings) if settings else None,
        )
    )


@app.command("periods")
def periods_cmd(
    *,
    count: int = typer.Option(3, "--count", help="Number of consecutive periods to list."),
    date: str | None = DATE_OPTION,
    cycle: str | None = CYCLE_OPTION,
    anchor: int | None = ANCHOR_OPTION,
    settings: Path | None = SETTINGS_OPTION,
) -> None:
    """List consecutive budget periods."""

    _exit(
        cmd_periods(
            count=count,
            date=date,
            cycle=cycle,
            anchor=anchor,
            settings_path=str(settings) if settings else None,
        )
    )


@app.command("summary")
def summary_cmd(
    *,
    expenses_csv: Path = typer.Option(
        ..., "--expenses-csv", help="CSV with date, amount, category columns.", dir_okay=False
    ),
    date: str | None = DATE_OPTION,
    settings: Path | None = SETTINGS_OPTION,
) -> None:
    """Summarize category and overall spending for the current period."""

    _exit(
        cmd_summary(
            str(expenses_csv),
            date=date,
            settings_path=str(settings) if settings else None,
        )
    )


@app.command("ensure-period")
def ensure_period_cmd(
    *,
    user_id: str = typer.Option(..., "--user-id", help="Owner of the budget period."),
    date: str | None = DATE_OPTION,
    settings: Path | None = SETTINGS_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Store the current budget period for a user if none covers the date."""

    _exit(
        cmd_ensure_period(
            user_id=user_id,
            database_url=database_url,
            settings_path=str(settings) if settings else None,
            date=date,
        )
    )


@app.command("add-expense")
def add_expense_cmd(
    *,
    user_id: str = typer.Option(..., "--user-id", help="Owner of the expense."),
    amount: str = typer.Option(..., "--amount", help="Positive amount, e.g. 12.50."),
    category: str = typer.Option(..., "--category", help="Category name."),
    description: str = typer.Option("", "--description", help="Optional note."),
    date: str | None = DATE_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Record an expense against the current stored period."""

    _exit(
        cmd_add_expense(
            user_id=user_id,
            amount=amount,
            category=category,
            date=date,
            description=description,
            database_url=database_url,
        )
    )


@app.callback()
def _root() -> None:
    """Load ``.env`` (without overriding set variables) and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:  # pragma: no cover - console script entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
