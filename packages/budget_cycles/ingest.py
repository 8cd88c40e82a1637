"""CSV ingest for expense records.

Expected header (order free, extra columns ignored):

``date, amount, category`` (required) and ``description, period_id, id``
(optional).

Dates accept ``YYYY-MM-DD``, ``YYYY-MM-DD HH:MM[:SS]`` (also ``T``-separated)
and ``MM/DD/YYYY``. Amounts are parsed as ``Decimal`` and must be positive.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from os import PathLike
from pathlib import Path

from .models import Expense

REQUIRED_HEADERS = frozenset({"date", "amount", "category"})

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%m/%d/%Y",
)


def _clean_text(value: str | None) -> str:
    if value is None:
        return ""
    return re.sub(r"\s+", " ", value).strip()


def parse_datetime(value: str | None) -> datetime | None:
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def parse_amount(value: str | None) -> Decimal | None:
    if value is None:
        return None
    s = value.strip().replace(",", "")
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def to_expenses(rows: Iterable[Mapping[str, str]]) -> Iterator[Expense]:
    """Convert CSV rows (``csv.DictReader`` output) to :class:`Expense` values.

    Line numbers in error messages count the header as line 1.
    """

    for line_no, row in enumerate(rows, start=2):
        when = parse_datetime(row.get("date"))
        if when is None:
            raise ValueError(f"line {line_no}: unparseable date {row.get('date')!r}")
        amount = parse_amount(row.get("amount"))
        if amount is None or amount <= 0:
            raise ValueError(f"line {line_no}: amount must be a positive number")
        category = _clean_text(row.get("category"))
        if not category:
            raise ValueError(f"line {line_no}: category is required")
        yield Expense(
            amount=amount,
            category=category,
            date=when,
            period_id=_clean_text(row.get("period_id")) or None,
            description=_clean_text(row.get("description")),
            id=_clean_text(row.get("id")) or None,
        )


def load_expenses_csv(csv_path: str | PathLike[str]) -> list[Expense]:
    """Read an expense CSV and return its records in file order."""

    p = Path(csv_path)
    with p.open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames:
            raise csv.Error(f"CSV appears to have no header row: {csv_path}")
        headers = {h.strip().lower() for h in reader.fieldnames if h}
        missing = sorted(REQUIRED_HEADERS - headers)
        if missing:
            raise csv.Error("CSV header mismatch. Missing columns: " + ", ".join(missing))
        rows = ({(k or "").strip().lower(): v for k, v in r.items()} for r in reader)
        return list(to_expenses(rows))


__all__ = ["load_expenses_csv", "parse_amount", "parse_datetime", "to_expenses"]
