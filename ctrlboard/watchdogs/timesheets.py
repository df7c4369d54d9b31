"""Timesheet-completeness watchdog.

Compares the hours each employee booked in a period against the expected
hours (working days x hours per day). Per-employee exceptions either remove
an employee from the check or replace the daily hours with a part-time value.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable, Mapping
from datetime import date, timedelta
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError, model_validator

from ctrlboard.classification.mapping import ConfigurationError, read_settings_file
from ctrlboard.config import TimesheetDefaults, get_config
from ctrlboard.models import (
    EmployeeException,
    EvaluationRange,
    TimeRecord,
    TimesheetReport,
    TimesheetRow,
    TimesheetStatus,
)
from ctrlboard.utils.performance import log_slow_operations

logger = logging.getLogger(__name__)


class TimesheetMode(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TimesheetSettings(BaseModel):
    hours_per_day: float = 8.0
    mode: TimesheetMode = TimesheetMode.WEEKLY

    @classmethod
    def from_defaults(cls, defaults: Optional[TimesheetDefaults] = None) -> TimesheetSettings:
        d = defaults or get_config().timesheets
        mode = TimesheetMode.MONTHLY if d.mode == "monthly" else TimesheetMode.WEEKLY
        return cls(hours_per_day=d.hours_per_day, mode=mode)


class Period(BaseModel):
    """Inclusive evaluation period."""

    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self) -> Period:
        if self.start > self.end:
            raise ValueError(f"Period start {self.start} is after end {self.end}")
        return self

    def to_range(self) -> EvaluationRange:
        return EvaluationRange(datum_von=self.start.isoformat(), datum_bis=self.end.isoformat())


def working_days(start: date, end: date, holidays: Iterable[date] = ()) -> int:
    """Count Monday-Friday days in [start, end], minus the given holidays.

    Example:
        >>> working_days(date(2025, 1, 6), date(2025, 1, 12))
        5
        >>> working_days(date(2025, 1, 6), date(2025, 1, 12), [date(2025, 1, 6)])
        4
    """
    if start > end:
        return 0
    skip = set(holidays or ())
    count = 0
    day = start
    while day <= end:
        if day.weekday() < 5 and day not in skip:
            count += 1
        day += timedelta(days=1)
    return count


def _last_iso_week(today: date) -> Period:
    monday = today - timedelta(days=today.weekday()) - timedelta(weeks=1)
    return Period(start=monday, end=monday + timedelta(days=6))


def _month(year: int, month: int) -> Period:
    last_day = calendar.monthrange(year, month)[1]
    return Period(start=date(year, month, 1), end=date(year, month, last_day))


def resolve_period(
    mode: TimesheetMode | str = TimesheetMode.WEEKLY,
    today: Optional[date] = None,
    datum_von: Optional[date] = None,
    datum_bis: Optional[date] = None,
    iso_week: Optional[int] = None,
    iso_year: Optional[int] = None,
    month: Optional[int] = None,
    month_year: Optional[int] = None,
) -> Period:
    """Resolve the evaluation period from the accepted parameter variants.

    Precedence: explicit ``datum_von``/``datum_bis`` range, then ISO week,
    then calendar month. Without any of them the default is the last
    complete ISO week (weekly) or the previous calendar month (monthly).
    A missing ``iso_year``/``month_year`` means the year of ``today``.

    Raises:
        ValueError: If the week/month does not exist or the range is reversed
    """
    today = today or date.today()

    if datum_von is not None and datum_bis is not None:
        return Period(start=datum_von, end=datum_bis)

    if iso_week is not None:
        year = iso_year if iso_year is not None else today.isocalendar()[0]
        monday = date.fromisocalendar(year, iso_week, 1)
        return Period(start=monday, end=monday + timedelta(days=6))

    if month is not None:
        return _month(month_year if month_year is not None else today.year, month)

    if TimesheetMode(mode) == TimesheetMode.MONTHLY:
        previous = today.replace(day=1) - timedelta(days=1)
        return _month(previous.year, previous.month)
    return _last_iso_week(today)


def load_exceptions(path: Path) -> list[EmployeeException]:
    """Load the per-employee exception list from a JSON or YAML file.

    Accepts a bare list or ``{"exceptions": [...]}``; a missing file means
    no exceptions.

    Raises:
        ConfigurationError: If the file exists but is not a valid list
    """
    data = read_settings_file(path)
    if data is None:
        return []
    if isinstance(data, Mapping):
        data = data.get("exceptions")
    if not isinstance(data, list):
        raise ConfigurationError(f"Exception file {path} must contain a list")

    try:
        exceptions = [EmployeeException.model_validate(entry) for entry in data]
    except ValidationError as e:
        raise ConfigurationError(f"Invalid exception entry in {path}: {e}") from e

    logger.info(f"Loaded {len(exceptions)} timesheet exceptions from {path}")
    return exceptions


def _status(total: float, expected: float) -> TimesheetStatus:
    if total <= 0:
        return TimesheetStatus.BAD
    if total < expected:
        return TimesheetStatus.WARN
    return TimesheetStatus.GOOD


def _exception_key(name: str) -> str:
    return name.strip().lower()


@log_slow_operations()
def evaluate_timesheets(
    records: Iterable[TimeRecord],
    settings: Optional[TimesheetSettings],
    period: Period,
    exceptions: Iterable[EmployeeException] = (),
    holidays: Iterable[date] = (),
    employees: Optional[Iterable[str]] = None,
) -> TimesheetReport:
    """Evaluate booked vs. expected hours per employee for one period.

    Every worked hour inside the period counts, absence bookings included.
    Excluded employees get no row at all; a part-time value replaces
    ``hours_per_day`` for that employee.

    Args:
        records: Normalized time records (unit filtering is the caller's job)
        settings: Default hours per day (configured defaults if None)
        period: Inclusive evaluation period
        exceptions: Per-employee overrides
        holidays: Dates not counted as working days
        employees: Explicit roster; defaults to everyone seen in ``records``

    Returns:
        TimesheetReport with all rows, the non-good rows and the period
    """
    settings = settings or TimesheetSettings.from_defaults()
    overrides = {_exception_key(e.name): e for e in exceptions or ()}
    days = working_days(period.start, period.end, holidays)

    seen: dict[str, None] = {}
    totals: dict[str, float] = {}
    for record in records or []:
        seen.setdefault(record.employee, None)
        if record.date is None or not period.start <= record.date <= period.end:
            continue
        totals[record.employee] = totals.get(record.employee, 0.0) + record.hours_worked

    roster = list(dict.fromkeys(employees)) if employees is not None else list(seen)

    rows: list[TimesheetRow] = []
    for employee in roster:
        override = overrides.get(_exception_key(employee))
        if override is not None and override.exclude:
            continue
        part_time = override is not None and override.part_time_hours is not None
        hours_per_day = override.part_time_hours if part_time else settings.hours_per_day
        expected = days * hours_per_day
        total = totals.get(employee, 0.0)
        rows.append(
            TimesheetRow(
                employee=employee,
                total=total,
                expected=expected,
                ratio=total / expected if expected else None,
                status=_status(total, expected),
                hours_per_day=hours_per_day,
                part_time=part_time,
            )
        )

    offenders = [r for r in rows if r.status != TimesheetStatus.GOOD]
    logger.info(
        f"Timesheet check {period.start}..{period.end}: "
        f"{len(rows)} employees, {len(offenders)} incomplete"
    )
    return TimesheetReport(rows=rows, offenders=offenders, range=period.to_range())
