"""Data models, enumerations, and static configuration for ``budget_cycles``.

Domain values (periods, expenses, category budgets, bills) are frozen
dataclasses: they are computed or loaded on demand and never mutated. User
settings arrive from outside the process (JSON files, a host application) and
are therefore a validated pydantic model.

Static tables such as :data:`CYCLE_INFO` and :data:`DEFAULT_SETTINGS` are
plain module-level data. Functions that depend on them accept them as explicit
arguments (with these values as defaults) so they can be exercised in
isolation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ---------------------------------------------------------------------------
# Cycle types and their display metadata
# ---------------------------------------------------------------------------


class CycleType(StrEnum):
    """Recurrence pattern governing when a budget period resets."""

    WEEKLY = "weekly"
    SEMI_MONTHLY = "semi-monthly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: object) -> CycleType | None:
        """Return the matching member, or ``None`` for unrecognized values.

        Matching ignores case and surrounding whitespace. Underscores are
        accepted in place of hyphens (``semi_monthly``).
        """

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "-")
        try:
            return cls(key)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class CycleInfo:
    """Display metadata for a cycle type.

    ``days`` is a nominal length used for estimates (e.g., a default daily
    spending limit). It is never used to compute period boundaries.
    """

    name: str
    description: str
    days: int
    income_label: str
    spending_limit_label: str


CYCLE_INFO: Mapping[CycleType, CycleInfo] = MappingProxyType(
    {
        CycleType.WEEKLY: CycleInfo(
            name="Weekly",
            description="Reset every week",
            days=7,
            income_label="Weekly Budget",
            spending_limit_label="Weekly Spending Limit",
        ),
        CycleType.SEMI_MONTHLY: CycleInfo(
            name="Semi-Monthly",
            description="Reset on 1st & 16th",
            days=15,
            income_label="Semi-Monthly Budget",
            spending_limit_label="Semi-Monthly Spending Limit",
        ),
        CycleType.MONTHLY: CycleInfo(
            name="Monthly",
            description="Reset every month",
            days=30,
            income_label="Monthly Budget",
            spending_limit_label="Monthly Spending Limit",
        ),
        CycleType.QUARTERLY: CycleInfo(
            name="Quarterly",
            description="Reset every 3 months",
            days=90,
            income_label="Quarterly Budget",
            spending_limit_label="Quarterly Spending Limit",
        ),
        CycleType.YEARLY: CycleInfo(
            name="Yearly",
            description="Reset every year",
            days=365,
            income_label="Yearly Budget",
            spending_limit_label="Yearly Spending Limit",
        ),
    }
)


# ---------------------------------------------------------------------------
# Period
# ---------------------------------------------------------------------------

# Periods end on the last millisecond of their final calendar day.
END_OF_DAY: time = time(23, 59, 59, 999_000)


@dataclass(frozen=True, slots=True)
class Period:
    """A concrete, closed ``[start, end]`` budget interval in local time.

    Attributes
    ----------
    start:
        First instant (00:00:00.000) of the period's first calendar day.
    end:
        Last instant (23:59:59.999) of the period's final calendar day.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Period start {self.start} is after end {self.end}")

    @classmethod
    def from_dates(cls, start: date, end: date) -> Period:
        """Build a period covering the calendar days ``start`` through ``end``."""

        return cls(
            start=datetime.combine(_as_date(start), time.min),
            end=datetime.combine(_as_date(end), END_OF_DAY),
        )

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()

    @property
    def days(self) -> int:
        """Number of calendar days covered (both ends inclusive)."""

        return (self.end_date - self.start_date).days + 1

    def contains(self, instant: date | datetime) -> bool:
        """Inclusive membership test.

        A bare ``date`` is treated as its whole calendar day.
        """

        if isinstance(instant, datetime):
            return self.start <= instant <= self.end
        return self.start_date <= instant <= self.end_date


def _as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


# ---------------------------------------------------------------------------
# Records consumed by the aggregator
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Expense:
    """A single dated expense.

    ``period_id`` references the stored budget period the expense was tagged
    with at creation time; ``None`` (or empty) means untagged.
    """

    amount: Decimal
    category: str
    date: datetime
    period_id: str | None = None
    description: str = ""
    id: str | None = None


@dataclass(frozen=True, slots=True)
class CategoryBudget:
    """A user-defined category with an allocated budget ceiling.

    Names act as case-insensitive join keys against ``Expense.category``.
    ``icon`` and ``color`` are opaque to this package.
    """

    name: str
    allocated_budget: Decimal = Decimal("0")
    id: str | None = None
    icon: str | None = None
    color: str | None = None


class BillCategory(StrEnum):
    UTILITIES = "utilities"
    RENT = "rent"
    SUBSCRIPTION = "subscription"
    LOAN = "loan"
    INSURANCE = "insurance"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Bill:
    """A recurring bill due on a day of the month."""

    name: str
    amount: Decimal
    due_day: int
    is_paid: bool = False
    category: BillCategory = BillCategory.OTHER
    is_recurring: bool = True
    paid_at: datetime | None = None
    id: str | None = None


# ---------------------------------------------------------------------------
# Aggregation results
# ---------------------------------------------------------------------------


class BudgetStatus(StrEnum):
    """Coarse usage band for a progress percentage."""

    ON_TRACK = "on_track"
    CAUTION = "caution"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True, slots=True)
class CategorySummary:
    name: str
    allocated: Decimal
    spent: Decimal
    remaining: Decimal
    # Clamped to [0, 100] for progress bars.
    percentage: float
    # Unclamped spent/allocated ratio in percent.
    raw_percentage: float
    over_budget: bool


@dataclass(frozen=True, slots=True)
class BudgetSummary:
    """Overall roll-up for one period."""

    period: Period
    allocated: Decimal
    spent: Decimal
    remaining: Decimal
    percentage: float
    raw_percentage: float
    over_budget: bool
    days_remaining: int
    daily_limit: Decimal
    status: BudgetStatus


@dataclass(frozen=True, slots=True)
class WeekSummary:
    period: Period
    total: Decimal
    by_category: Mapping[str, Decimal]
    daily_average: Decimal
    expenses: tuple[Expense, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class WeeklyComparison:
    current_week: WeekSummary
    previous_week: WeekSummary
    percentage_change: float


# ---------------------------------------------------------------------------
# User settings (validated at the configuration boundary)
# ---------------------------------------------------------------------------


class UserSettings(BaseModel):
    """Validated per-user budget settings.

    ``cycle_start_day`` is the anchor day: 1-7 (Monday..Sunday) for weekly
    cycles, 1-31 (day of month) for every other cycle type.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    budget_cycle: CycleType = CycleType.SEMI_MONTHLY
    cycle_start_day: int = 1
    income: Decimal = Decimal("0")
    daily_spending_limit: Decimal | None = None
    currency: str = "PHP"
    category_budgets: tuple[CategoryBudget, ...] = ()

    @field_validator("budget_cycle", mode="before")
    @classmethod
    def _parse_cycle(cls, v: object) -> object:
        parsed = CycleType.parse(v)
        return parsed if parsed is not None else v

    @field_validator("income")
    @classmethod
    def _income_non_negative(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v < 0:
            raise ValueError("income must be a finite, non-negative amount")
        return v

    @field_validator("daily_spending_limit")
    @classmethod
    def _limit_positive(cls, v: Decimal | None) -> Decimal | None:
        if v is None:
            return None
        if not v.is_finite() or v <= 0:
            raise ValueError("daily_spending_limit must be positive when set")
        return v

    @field_validator("currency")
    @classmethod
    def _currency_code(cls, v: str) -> str:
        if not v:
            raise ValueError("currency must be non-empty")
        return v.upper()

    @field_validator("category_budgets")
    @classmethod
    def _categories_valid(
        cls, v: tuple[CategoryBudget, ...]
    ) -> tuple[CategoryBudget, ...]:
        seen: set[str] = set()
        for cat in v:
            key = cat.name.strip().casefold()
            if not key:
                raise ValueError("category names must be non-empty")
            if key in seen:
                raise ValueError(f"duplicate category name: {cat.name!r}")
            seen.add(key)
            if cat.allocated_budget < 0:
                raise ValueError(f"allocated_budget for {cat.name!r} must be non-negative")
        return v

    @model_validator(mode="after")
    def _anchor_in_domain(self) -> UserSettings:
        upper = 7 if self.budget_cycle is CycleType.WEEKLY else 31
        if not 1 <= self.cycle_start_day <= upper:
            raise ValueError(
                f"cycle_start_day must be within 1..{upper} for {self.budget_cycle.value} cycles"
            )
        return self

    def category(self, name: str) -> CategoryBudget | None:
        """Look up a category budget by case-insensitive name."""

        key = name.strip().casefold()
        for cat in self.category_budgets:
            if cat.name.strip().casefold() == key:
                return cat
        return None


DEFAULT_SETTINGS: UserSettings = UserSettings()


# Generic collections
type Expenses = Iterable[Expense]
"""Any iterable of :class:`Expense` records (lists, tuples, generators)."""
