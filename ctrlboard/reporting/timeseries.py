"""Monthly time series, momentum and trend statistics.

Months are keyed as ``"YYYY-MM"`` strings, which sort chronologically.
Records without a parsable date never appear in any series.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Optional

from ctrlboard.canonical.normalize import filter_by_period
from ctrlboard.models import (
    Dimension,
    Metric,
    Momentum,
    MomentumEntry,
    MonthlySeries,
    MonthlyTotal,
    TimeRecord,
    TrendInsight,
)
from ctrlboard.utils.performance import log_slow_operations

logger = logging.getLogger(__name__)

MOMENTUM_LIMIT = 5


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def months_between(start: date, end: date) -> list[str]:
    """Every month key from start to end inclusive (empty if start > end)."""
    months: list[str] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months


def _dimension_key(record: TimeRecord, dimension: Dimension) -> str:
    if dimension == Dimension.PROJECT:
        return record.project_code
    if dimension == Dimension.EMPLOYEE:
        return record.employee
    return record.customer


@log_slow_operations()
def monthly_series(
    records: Iterable[TimeRecord],
    dimension: Dimension = Dimension.CUSTOMER,
    metric: Metric = Metric.HOURS_BILLED,
    *,
    customer: Optional[str] = None,
    project: Optional[str] = None,
    employee: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> MonthlySeries:
    """Build dense per-key monthly vectors for one dimension.

    The month axis is the union of months touched by the dated records passed
    in. When both ``start`` and ``end`` are given the axis is every month in
    that range instead. Each given bound is applied on its own, so records
    before ``start`` or after ``end`` never contribute. Filters on
    customer/project/employee restrict which records contribute; they do not
    change the axis.

    Args:
        records: Normalized time records
        dimension: Series key (customer, project or employee)
        metric: Summed field
        customer: Only records of this customer
        project: Only records of this project code
        employee: Only records of this employee
        start: First day of the requested range
        end: Last day of the requested range

    Returns:
        MonthlySeries whose vectors all have ``len(months)`` entries
    """
    dated = filter_by_period(records, start, end)

    if start is not None and end is not None:
        months = months_between(start, end)
    else:
        months = sorted({month_key(r.date) for r in dated})

    index = {m: i for i, m in enumerate(months)}
    series: dict[str, list[float]] = {}

    for record in dated:
        if customer and record.customer != customer:
            continue
        if project and record.project_code != project:
            continue
        if employee and record.employee != employee:
            continue
        position = index.get(month_key(record.date))
        if position is None:
            continue
        key = _dimension_key(record, dimension)
        vector = series.setdefault(key, [0.0] * len(months))
        vector[position] += record.metric(metric)

    return MonthlySeries(months=months, series=series)


def top_n(series: Mapping[str, Sequence[float]], n: int = 10) -> list[str]:
    """Keys of the n series with the largest sums.

    Ties keep the series' insertion order, so repeated calls on the same
    input always return the same list.
    """
    if n <= 0:
        return []
    ranked = sorted(series.items(), key=lambda item: sum(item[1]), reverse=True)
    return [key for key, _ in ranked[:n]]


def monthly_totals(records: Iterable[TimeRecord], metric: Metric = Metric.HOURS_BILLED) -> list[MonthlyTotal]:
    """Sparse monthly sums in chronological order (months without data are absent)."""
    totals: dict[str, float] = {}
    for record in records or []:
        if record.date is None:
            continue
        key = month_key(record.date)
        totals[key] = totals.get(key, 0.0) + record.metric(metric)
    return [MonthlyTotal(month=m, total=totals[m]) for m in sorted(totals)]


def compute_momentum(
    months: Sequence[str],
    series: Mapping[str, Sequence[float]],
    limit: int = MOMENTUM_LIMIT,
) -> Momentum:
    """Biggest month-on-month risers and fallers between the last two months."""
    if len(months) < 2 or not isinstance(series, Mapping):
        return Momentum()

    positive: list[MomentumEntry] = []
    negative: list[MomentumEntry] = []
    for key, values in series.items():
        if len(values) < 2:
            continue
        current = float(values[-1])
        previous = float(values[-2])
        diff = current - previous
        if not diff:
            continue
        if previous:
            diff_pct: Optional[float] = diff / previous * 100
        else:
            diff_pct = None if current else 0.0
        entry = MomentumEntry(key=key, current=current, previous=previous, diff=diff, diff_pct=diff_pct)
        (positive if diff > 0 else negative).append(entry)

    positive.sort(key=lambda e: e.diff, reverse=True)
    negative.sort(key=lambda e: e.diff)
    return Momentum(positive=positive[:limit], negative=negative[:limit])


def _finite(values: Iterable[float]) -> list[float]:
    out = []
    for value in values or []:
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number):
            out.append(number)
    return out


def calc_median(values: Iterable[float]) -> float:
    """Median of the finite values; 0 for an empty input."""
    ordered = sorted(_finite(values))
    if not ordered:
        return 0.0
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def calc_std_dev(values: Iterable[float]) -> float:
    """Population standard deviation of the finite values; 0 for an empty input."""
    numbers = _finite(values)
    if not numbers:
        return 0.0
    mean = sum(numbers) / len(numbers)
    variance = sum((v - mean) ** 2 for v in numbers) / len(numbers)
    return math.sqrt(variance)


def _pct(diff: float, base: float) -> Optional[float]:
    return diff / base * 100 if base else None


def trend_insights(totals: Sequence[MonthlyTotal]) -> list[TrendInsight]:
    """Summarize a monthly total series as short trend statements.

    Produces ``trend-none`` for no data, ``trend-single`` for a single month,
    otherwise ``trend-current`` (last vs. previous month) and, when an
    earlier month-on-month change was larger, ``trend-strongest``.
    """
    if not totals:
        return [
            TrendInsight(
                id="trend-none",
                type="Info",
                title="No time series",
                detail="No monthly data is available for the selected period.",
            )
        ]

    if len(totals) == 1:
        only = totals[0]
        return [
            TrendInsight(
                id="trend-single",
                type="Trend",
                title="Single month",
                detail=f"Only one month available ({only.month}) with {only.total:.1f} h in total.",
                value=f"{only.total:.1f} h",
            )
        ]

    last, prev = totals[-1], totals[-2]
    diff = last.total - prev.total
    diff_pct = _pct(diff, prev.total)
    direction = "increase" if diff >= 0 else "decrease"
    pct_text = "" if diff_pct is None else f" ({diff_pct:.1f}%)"
    insights = [
        TrendInsight(
            id="trend-current",
            type="Trend",
            title=f"Current {direction}",
            detail=f"{direction.capitalize()} of {abs(diff):.1f} h{pct_text} in {last.month} compared to {prev.month}.",
            value=f"{abs(diff):.1f} h" if diff_pct is None else f"{diff_pct:.1f}%",
        )
    ]

    strongest_delta, strongest_month, strongest_prev = 0.0, last, prev
    for previous, current in zip(totals, totals[1:]):
        delta = current.total - previous.total
        if abs(delta) > abs(strongest_delta):
            strongest_delta, strongest_month, strongest_prev = delta, current, previous

    if abs(strongest_delta) > abs(diff):
        delta_pct = _pct(strongest_delta, strongest_prev.total)
        label = "largest increase" if strongest_delta >= 0 else "strongest decrease"
        pct_text = "" if delta_pct is None else f" ({delta_pct:.1f}%)"
        insights.append(
            TrendInsight(
                id="trend-strongest",
                type="Trend",
                title=label.capitalize(),
                detail=(
                    f"Historical {label}: {strongest_month.month} vs. {strongest_prev.month} "
                    f"with a difference of {abs(strongest_delta):.1f} h{pct_text}."
                ),
                value=f"{abs(strongest_delta):.1f} h" if delta_pct is None else f"{delta_pct:.1f}%",
            )
        )

    logger.debug(f"Built {len(insights)} trend insights over {len(totals)} months")
    return insights
