"""Request/response models for the ctrlboard web API.

Record payloads stay loosely typed (``items: Any``); the normalizer treats
anything that is not a list of rows as empty input.

Usage:
    from ctrlboard.web.models import HoursReportRequest

    @router.post("/api/reports/hours")
    def hours_report(request: HoursReportRequest):
        ...
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ctrlboard.models import (
    Dimension,
    EmployeeException,
    HoursAggregate,
    Metric,
    MonthlyTotal,
    TrendInsight,
)


# ============================================================================
# Classification Models
# ============================================================================


class ClassificationTestRequest(BaseModel):
    """Classify a single code/name pair against a mapping.

    Used by: POST /api/classifications/test
    """

    code: str
    name: Optional[str] = None
    service_type: Optional[str] = None
    mapping: Optional[Dict[str, Any]] = None  # configured mapping if omitted


# ============================================================================
# Report Models
# ============================================================================


class HoursReportRequest(BaseModel):
    """Used by: POST /api/reports/hours"""

    items: Any = None
    unit: Optional[str] = None


class HoursReportResponse(HoursAggregate):
    dropped: int = 0


class MonthlyReportRequest(BaseModel):
    """Used by: POST /api/reports/monthly"""

    items: Any = None
    unit: Optional[str] = None
    dimension: Dimension = Dimension.CUSTOMER
    metric: Metric = Metric.HOURS_BILLED
    top: int = Field(default=10, ge=0)
    customer: Optional[str] = None
    project: Optional[str] = None
    employee: Optional[str] = None
    datum_von: Optional[dt.date] = None
    datum_bis: Optional[dt.date] = None


class MonthlyReportResponse(BaseModel):
    months: List[str]
    series: Dict[str, List[float]]
    top: List[str]


class TrendReportRequest(BaseModel):
    """Used by: POST /api/reports/trend"""

    items: Any = None
    unit: Optional[str] = None
    metric: Metric = Metric.HOURS_BILLED


class TrendReportResponse(BaseModel):
    totals: List[MonthlyTotal]
    insights: List[TrendInsight]


class RevenueReportRequest(BaseModel):
    """Used by: POST /api/reports/revenue"""

    items: Any = None


# ============================================================================
# Watchdog Models
# ============================================================================


class InternalWatchdogRequest(BaseModel):
    """Body of POST /api/watchdogs/internal (parameters travel as query)."""

    items: Any = None
    mapping: Optional[Dict[str, Any]] = None


class TimesheetWatchdogRequest(BaseModel):
    """Body of POST /api/watchdogs/timesheets (parameters travel as query)."""

    items: Any = None
    exceptions: Optional[List[EmployeeException]] = None
    holidays: List[dt.date] = Field(default_factory=list)
    employees: Optional[List[str]] = None
