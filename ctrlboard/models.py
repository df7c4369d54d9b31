"""ctrlboard Pydantic models for type-safe data validation.

Records are normalized once at the boundary (see ctrlboard.canonical.normalize)
and are immutable afterwards; aggregates and verdict rows are created fresh
for every evaluation and never persisted.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN = "Unknown"


class Metric(str, Enum):
    """Numeric record fields that can be summed."""

    HOURS_BILLED = "hours_billed"
    HOURS_WORKED = "hours_worked"


class Dimension(str, Enum):
    """Dimensions a monthly series can be keyed by."""

    CUSTOMER = "customer"
    PROJECT = "project"
    EMPLOYEE = "employee"


class ClassificationReason(str, Enum):
    """Which rule decided a classification verdict."""

    EXCLUDED = "excluded"  # absence/leave service type, never internal
    SERVICE_TYPE = "service_type"
    PROJECT_CODE = "project_code"
    TOKEN = "token"
    LEGACY_PREFIX = "legacy_prefix"
    LEGACY_TOKEN = "legacy_token"
    NONE = "none"


class TimesheetStatus(str, Enum):
    """Three-level timesheet completeness verdict."""

    BAD = "bad"
    WARN = "warn"
    GOOD = "good"


# ============================================================================
# Records
# ============================================================================


class TimeRecord(BaseModel):
    """One booked time entry in canonical shape."""

    model_config = ConfigDict(frozen=True)

    employee: str = UNKNOWN
    customer: str = UNKNOWN
    project_code: str = UNKNOWN
    project_name: str | None = None
    service_type_code: str | None = None
    business_unit: str | None = None
    date: dt.date | None = None
    hours_billed: float = 0.0
    hours_worked: float = 0.0

    def metric(self, metric: Metric) -> float:
        return self.hours_billed if metric == Metric.HOURS_BILLED else self.hours_worked


class RevenueRecord(BaseModel):
    """One revenue list entry in canonical shape."""

    model_config = ConfigDict(frozen=True)

    customer: str = UNKNOWN
    project_code: str = UNKNOWN
    date: dt.date | None = None
    revenue_actual: float = 0.0
    revenue_calculated: float | None = None
    hours_billed: float = 0.0
    hours_worked: float = 0.0


class ClassificationResult(BaseModel):
    """Verdict of the internal-work classifier for one record."""

    model_config = ConfigDict(frozen=True)

    matched: bool
    reason: ClassificationReason = ClassificationReason.NONE
    value: str | None = None

    @property
    def excluded(self) -> bool:
        return self.reason == ClassificationReason.EXCLUDED


class TaggedRecord(BaseModel):
    """A time record paired with its classification verdict."""

    model_config = ConfigDict(frozen=True)

    record: TimeRecord
    classification: ClassificationResult

    @property
    def is_internal(self) -> bool:
        return self.classification.matched

    @property
    def is_excluded(self) -> bool:
        return self.classification.excluded


# ============================================================================
# Aggregates
# ============================================================================


class EmployeeAggregate(BaseModel):
    name: str
    total_billed: float = 0.0
    total_worked: float = 0.0


class ProjectAggregate(BaseModel):
    code: str
    total_billed: float = 0.0
    total_worked: float = 0.0
    employees: list[EmployeeAggregate] = Field(default_factory=list)


class CustomerAggregate(BaseModel):
    """Customer node; totals are the sum of its project totals."""

    name: str
    total_billed: float = 0.0
    total_worked: float = 0.0
    projects: list[ProjectAggregate] = Field(default_factory=list)


class HoursTotals(BaseModel):
    total_billed: float = 0.0
    total_worked: float = 0.0


class HoursAggregate(BaseModel):
    """Customer -> project -> employee hour tree."""

    customers: list[CustomerAggregate] = Field(default_factory=list)
    totals: HoursTotals = Field(default_factory=HoursTotals)
    record_count: int = 0

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "customers": [
                    {
                        "name": "ACME",
                        "total_billed": 5.0,
                        "total_worked": 15.0,
                        "projects": [
                            {"code": "INT", "total_billed": 0.0, "total_worked": 10.0, "employees": []},
                            {"code": "P1", "total_billed": 5.0, "total_worked": 5.0, "employees": []},
                        ],
                    }
                ],
                "totals": {"total_billed": 5.0, "total_worked": 15.0},
                "record_count": 2,
            }
        }
    )


class ProjectTotal(BaseModel):
    code: str
    total_billed: float = 0.0
    total_worked: float = 0.0


class EmployeeTotal(BaseModel):
    name: str
    total: float = 0.0


class InternalVsBilledRow(BaseModel):
    employee: str
    internal: float = 0.0
    billed: float = 0.0
    diff: float = 0.0


class UnbilledRow(BaseModel):
    employee: str
    worked: float = 0.0
    billed: float = 0.0
    unbilled: float = 0.0
    quote: float = 0.0  # billed / worked, 0 when nothing worked


class RevenueCustomerAggregate(BaseModel):
    name: str
    revenue_actual: float = 0.0
    revenue_calculated: float = 0.0
    hours_billed: float = 0.0
    hours_worked: float = 0.0


class RevenueAggregate(BaseModel):
    customers: list[RevenueCustomerAggregate] = Field(default_factory=list)
    total_actual: float = 0.0
    total_calculated: float = 0.0


class MonthlySeries(BaseModel):
    """Dense monthly vectors, one per dimension value, over a shared month axis."""

    months: list[str] = Field(default_factory=list)
    series: dict[str, list[float]] = Field(default_factory=dict)


class MonthlyTotal(BaseModel):
    month: str
    total: float


class MomentumEntry(BaseModel):
    key: str
    current: float
    previous: float
    diff: float
    diff_pct: float | None = None


class Momentum(BaseModel):
    positive: list[MomentumEntry] = Field(default_factory=list)
    negative: list[MomentumEntry] = Field(default_factory=list)


class TrendInsight(BaseModel):
    id: str
    type: Literal["Info", "Trend"]
    title: str
    detail: str
    value: str | None = None


# ============================================================================
# Watchdog verdicts
# ============================================================================


class EvaluationRange(BaseModel):
    """Inclusive date range an evaluation covered (ISO dates)."""

    datum_von: str
    datum_bis: str


class InternalShareReason(BaseModel):
    kind: Literal["internal_share"] = "internal_share"
    weeks: list[str] = Field(default_factory=list)


class ZeroLastWeekReason(BaseModel):
    kind: Literal["zero_last_week"] = "zero_last_week"


class MinTotalReason(BaseModel):
    kind: Literal["min_total"] = "min_total"


Reason = Annotated[
    Union[InternalShareReason, ZeroLastWeekReason, MinTotalReason],
    Field(discriminator="kind"),
]


class WatchdogRow(BaseModel):
    """Internal-work figures for one employee in one ISO week."""

    employee: str
    week: str  # "2025-W02"
    week_start: dt.date
    internal_hours: float = 0.0
    total_hours: float = 0.0
    ratio: float = 0.0
    reasons: list[Reason] = Field(default_factory=list)
    offender: bool = False

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "employee": "A",
                "week": "2025-W02",
                "week_start": "2025-01-06",
                "internal_hours": 10.0,
                "total_hours": 15.0,
                "ratio": 0.667,
                "reasons": [{"kind": "internal_share", "weeks": ["2025-W02"]}],
                "offender": True,
            }
        }
    )


class WatchdogReport(BaseModel):
    rows: list[WatchdogRow] = Field(default_factory=list)
    offenders: list[WatchdogRow] = Field(default_factory=list)
    range: EvaluationRange


class EmployeeException(BaseModel):
    """Per-employee override for the timesheet watchdog."""

    name: str
    exclude: bool = False
    part_time_hours: float | None = Field(default=None, alias="partTimeHours")

    model_config = ConfigDict(populate_by_name=True)


class TimesheetRow(BaseModel):
    """Booked vs. expected hours for one employee in one period."""

    employee: str
    total: float = 0.0
    expected: float = 0.0
    ratio: float | None = None  # None when nothing is expected
    status: TimesheetStatus
    hours_per_day: float = 0.0
    part_time: bool = False


class TimesheetReport(BaseModel):
    rows: list[TimesheetRow] = Field(default_factory=list)
    offenders: list[TimesheetRow] = Field(default_factory=list)
    range: EvaluationRange
