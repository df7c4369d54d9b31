"""Report routes for the ctrlboard API.

Hours tree, monthly series, trend and revenue views. Records travel in the
request body; every call normalizes and aggregates from scratch.
"""

from __future__ import annotations

from fastapi import APIRouter

from ctrlboard.canonical.normalize import (
    filter_by_unit,
    normalize_revenue_records,
    normalize_time_records,
)
from ctrlboard.models import RevenueAggregate
from ctrlboard.reporting.aggregation import aggregate_hours, aggregate_revenue
from ctrlboard.reporting.timeseries import monthly_series, monthly_totals, top_n, trend_insights
from ctrlboard.web.dependencies import resolve_unit
from ctrlboard.web.models import (
    HoursReportRequest,
    HoursReportResponse,
    MonthlyReportRequest,
    MonthlyReportResponse,
    RevenueReportRequest,
    TrendReportRequest,
    TrendReportResponse,
)

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.post("/hours", response_model=HoursReportResponse)
def hours_report(request: HoursReportRequest):
    """Customer -> project -> employee hours with grand totals."""
    normalized = normalize_time_records(request.items)
    records = filter_by_unit(normalized.records, resolve_unit(request.unit))
    aggregate = aggregate_hours(records)
    return HoursReportResponse(**aggregate.model_dump(), dropped=normalized.dropped)


@router.post("/monthly", response_model=MonthlyReportResponse)
def monthly_report(request: MonthlyReportRequest):
    """Dense monthly series per customer/project/employee plus the top keys."""
    records = filter_by_unit(
        normalize_time_records(request.items).records, resolve_unit(request.unit)
    )
    result = monthly_series(
        records,
        request.dimension,
        request.metric,
        customer=request.customer,
        project=request.project,
        employee=request.employee,
        start=request.datum_von,
        end=request.datum_bis,
    )
    return MonthlyReportResponse(
        months=result.months,
        series=result.series,
        top=top_n(result.series, request.top),
    )


@router.post("/trend", response_model=TrendReportResponse)
def trend_report(request: TrendReportRequest):
    """Monthly totals and trend statements."""
    records = filter_by_unit(
        normalize_time_records(request.items).records, resolve_unit(request.unit)
    )
    totals = monthly_totals(records, request.metric)
    return TrendReportResponse(totals=totals, insights=trend_insights(totals))


@router.post("/revenue", response_model=RevenueAggregate)
def revenue_report(request: RevenueReportRequest):
    """Actual vs. calculated revenue per customer."""
    return aggregate_revenue(normalize_revenue_records(request.items).records)
