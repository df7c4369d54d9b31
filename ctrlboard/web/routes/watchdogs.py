"""Watchdog routes for the ctrlboard API.

Evaluation parameters travel as query parameters (camelCase, as the
dashboard sends them); records and optional mapping/exception overrides
travel in the body. Omitted parameters fall back to the configured defaults.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from ctrlboard.canonical.normalize import filter_by_unit, normalize_time_records
from ctrlboard.classification.mapping import ClassificationMapping
from ctrlboard.models import TimesheetReport, WatchdogReport
from ctrlboard.watchdogs.criteria import CombineMode
from ctrlboard.watchdogs.internal import WatchdogSettings, evaluate_internal_watchdog
from ctrlboard.watchdogs.timesheets import (
    TimesheetMode,
    TimesheetSettings,
    evaluate_timesheets,
    resolve_period,
)
from ctrlboard.web.dependencies import get_exceptions, get_mapping, resolve_unit
from ctrlboard.web.models import InternalWatchdogRequest, TimesheetWatchdogRequest

router = APIRouter(prefix="/api/watchdogs", tags=["watchdogs"])


def _overrides(**values) -> dict:
    return {key: value for key, value in values.items() if value is not None}


@router.post("/internal", response_model=WatchdogReport)
def internal_watchdog(
    request: InternalWatchdogRequest,
    unit: Optional[str] = Query(None),
    threshold: Optional[float] = Query(None),
    weeks_back: Optional[int] = Query(None, alias="weeksBack"),
    use_internal_share: Optional[bool] = Query(None, alias="useInternalShare"),
    use_zero_last_week: Optional[bool] = Query(None, alias="useZeroLastWeek"),
    use_min_total: Optional[bool] = Query(None, alias="useMinTotal"),
    min_total_hours: Optional[float] = Query(None, alias="minTotalHours"),
    combine: Optional[CombineMode] = Query(None),
):
    """Evaluate the internal-work watchdog over the trailing ISO weeks."""
    settings = WatchdogSettings.from_defaults().model_copy(
        update=_overrides(
            threshold=threshold,
            weeks_back=weeks_back,
            use_internal_share=use_internal_share,
            use_zero_last_week=use_zero_last_week,
            use_min_total=use_min_total,
            min_total_hours=min_total_hours,
            combine=combine,
        )
    )
    if request.mapping is not None:
        mapping = ClassificationMapping.from_dict(request.mapping)
    else:
        mapping = get_mapping()

    records = filter_by_unit(normalize_time_records(request.items).records, resolve_unit(unit))
    return evaluate_internal_watchdog(records, mapping, settings)


@router.post("/timesheets", response_model=TimesheetReport)
def timesheet_watchdog(
    request: TimesheetWatchdogRequest,
    unit: Optional[str] = Query(None),
    mode: Optional[TimesheetMode] = Query(None),
    hours_per_day: Optional[float] = Query(None, alias="hoursPerDay"),
    datum_von: Optional[date] = Query(None),
    datum_bis: Optional[date] = Query(None),
    iso_week: Optional[int] = Query(None, alias="isoWeek"),
    iso_year: Optional[int] = Query(None, alias="isoYear"),
    month: Optional[int] = Query(None),
    month_year: Optional[int] = Query(None, alias="monthYear"),
):
    """Evaluate booked vs. expected hours for one week, month or range."""
    settings = TimesheetSettings.from_defaults().model_copy(
        update=_overrides(hours_per_day=hours_per_day, mode=mode)
    )
    try:
        period = resolve_period(
            settings.mode,
            datum_von=datum_von,
            datum_bis=datum_bis,
            iso_week=iso_week,
            iso_year=iso_year,
            month=month,
            month_year=month_year,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    exceptions = request.exceptions if request.exceptions is not None else get_exceptions()
    records = filter_by_unit(normalize_time_records(request.items).records, resolve_unit(unit))
    return evaluate_timesheets(
        records,
        settings,
        period,
        exceptions=exceptions,
        holidays=request.holidays,
        employees=request.employees,
    )
