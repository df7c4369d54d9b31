"""Internal-work watchdog.

Flags employees whose bookings in the trailing ISO weeks are dominated by
internal (non-billable) work, who booked nothing last week, or who stayed
below a minimum of hours. The three criteria are independent signals that
an operator combines with AND/OR.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Optional

from pydantic import BaseModel

from ctrlboard.classification.classifier import classify
from ctrlboard.classification.mapping import ClassificationMapping
from ctrlboard.config import WatchdogDefaults, get_config
from ctrlboard.models import (
    EvaluationRange,
    InternalShareReason,
    MinTotalReason,
    TimeRecord,
    WatchdogReport,
    WatchdogRow,
    ZeroLastWeekReason,
)
from ctrlboard.utils.performance import log_slow_operations
from ctrlboard.watchdogs.criteria import CombineMode, Criterion, combine_criteria

logger = logging.getLogger(__name__)


class WatchdogSettings(BaseModel):
    """Parameters of one internal-work watchdog run.

    Values are not range-checked: a threshold above 1 simply never fires,
    a threshold of 0 always does.
    """

    threshold: float = 0.2
    weeks_back: int = 1
    use_internal_share: bool = True
    use_zero_last_week: bool = True
    use_min_total: bool = False
    min_total_hours: float = 0.0
    combine: CombineMode = CombineMode.OR

    @classmethod
    def from_defaults(cls, defaults: Optional[WatchdogDefaults] = None) -> WatchdogSettings:
        """Settings from the configured defaults (environment)."""
        d = defaults or get_config().watchdog
        return cls(
            threshold=d.threshold,
            weeks_back=d.weeks_back,
            use_internal_share=d.use_internal_share,
            use_zero_last_week=d.use_zero_last_week,
            use_min_total=d.use_min_total,
            min_total_hours=d.min_total_hours,
            combine=CombineMode.AND if d.combine == "and" else CombineMode.OR,
        )


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def week_label(monday: date) -> str:
    year, week, _ = monday.isocalendar()
    return f"{year}-W{week:02d}"


def window_weeks(today: date, weeks_back: int) -> list[date]:
    """Mondays of the ``weeks_back`` complete ISO weeks before ``today``'s week.

    The last element is last week. ``weeks_back`` below 1 is treated as 1;
    values reaching past ``date.min`` are capped at the earliest full week.
    """
    current = week_start(today)
    available = (current - date.min).days // 7
    count = max(1, min(int(weeks_back), available))
    return [current - timedelta(weeks=i) for i in range(count, 0, -1)]


@log_slow_operations()
def evaluate_internal_watchdog(
    records: Iterable[TimeRecord],
    mapping: ClassificationMapping,
    settings: Optional[WatchdogSettings] = None,
    today: Optional[date] = None,
) -> WatchdogReport:
    """Evaluate the internal-work watchdog over the trailing ISO weeks.

    Every employee seen in ``records`` gets one row per window week (zero
    rows included). ``internal_hours`` sums worked hours of internal
    bookings, ``total_hours`` sums worked hours of every non-absence booking.

    Args:
        records: Normalized time records (unit filtering is the caller's job)
        mapping: Internal-project mapping
        settings: Criteria and combination mode (configured defaults if None)
        today: Reference day; the window ends with the week before it

    Returns:
        WatchdogReport with all rows, the offending rows and the covered range
    """
    settings = settings or WatchdogSettings.from_defaults()
    today = today or date.today()
    mondays = window_weeks(today, settings.weeks_back)
    first, last = mondays[0], mondays[-1]
    window_end = last + timedelta(days=6)

    employees: dict[str, None] = {}  # first-seen order
    # (employee, monday) -> [internal, total]
    sums: dict[tuple[str, date], list[float]] = {}

    for record in records or []:
        employees.setdefault(record.employee, None)
        if record.date is None or not first <= record.date <= window_end:
            continue
        verdict = classify(record, mapping)
        if verdict.excluded:
            continue
        bucket = sums.setdefault((record.employee, week_start(record.date)), [0.0, 0.0])
        if verdict.matched:
            bucket[0] += record.hours_worked
        bucket[1] += record.hours_worked

    rows: list[WatchdogRow] = []
    offenders: list[WatchdogRow] = []

    for employee in employees:
        employee_rows = []
        for monday in mondays:
            internal, total = sums.get((employee, monday), (0.0, 0.0))
            employee_rows.append(
                WatchdogRow(
                    employee=employee,
                    week=week_label(monday),
                    week_start=monday,
                    internal_hours=internal,
                    total_hours=total,
                    ratio=internal / total if total else 0.0,
                )
            )

        share_rows = [r for r in employee_rows if r.ratio >= settings.threshold]
        last_row = employee_rows[-1]
        zero_fired = last_row.total_hours == 0
        min_fired = last_row.total_hours < settings.min_total_hours

        if settings.use_internal_share and share_rows:
            weeks = [r.week for r in share_rows]
            for row in share_rows:
                row.reasons.append(InternalShareReason(weeks=weeks))
        if settings.use_zero_last_week and zero_fired:
            last_row.reasons.append(ZeroLastWeekReason())
        if settings.use_min_total and min_fired:
            last_row.reasons.append(MinTotalReason())

        offending = combine_criteria(
            [
                Criterion(settings.use_internal_share, bool(share_rows)),
                Criterion(settings.use_zero_last_week, zero_fired),
                Criterion(settings.use_min_total, min_fired),
            ],
            settings.combine,
        )
        for row in employee_rows:
            if offending and row.reasons:
                row.offender = True
                offenders.append(row)
        rows.extend(employee_rows)

    logger.info(
        f"Internal watchdog {week_label(first)}..{week_label(last)}: "
        f"{len(employees)} employees, {len(offenders)} offending rows"
    )
    return WatchdogReport(
        rows=rows,
        offenders=offenders,
        range=EvaluationRange(datum_von=first.isoformat(), datum_bis=window_end.isoformat()),
    )
