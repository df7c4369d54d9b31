"""Hour and revenue aggregation for the controlling dashboard.

Groups normalized records into customer -> project -> employee trees and the
flat per-employee rankings used by the top-employees, internal-vs-billed and
unbilled views. Customer totals are always rolled up from project sums, never
summed from raw records, so the tree stays internally consistent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional

from ctrlboard.classification.classifier import classify
from ctrlboard.classification.mapping import ClassificationMapping
from ctrlboard.models import (
    CustomerAggregate,
    EmployeeAggregate,
    EmployeeTotal,
    HoursAggregate,
    HoursTotals,
    InternalVsBilledRow,
    Metric,
    ProjectAggregate,
    ProjectTotal,
    RevenueAggregate,
    RevenueCustomerAggregate,
    RevenueRecord,
    TaggedRecord,
    TimeRecord,
    UnbilledRow,
)
from ctrlboard.utils.performance import log_slow_operations

logger = logging.getLogger(__name__)


@log_slow_operations()
def aggregate_hours(records: Iterable[TimeRecord]) -> HoursAggregate:
    """Build the customer -> project -> employee hours tree.

    Args:
        records: Normalized time records (None is treated as empty)

    Returns:
        HoursAggregate with customers sorted by billed hours (descending,
        stable on first appearance) and grand totals
    """
    # customer -> project code -> employee -> [billed, worked]
    tree: dict[str, dict[str, dict[str, list[float]]]] = {}
    count = 0

    for record in records or []:
        count += 1
        projects = tree.setdefault(record.customer, {})
        employees = projects.setdefault(record.project_code, {})
        sums = employees.setdefault(record.employee, [0.0, 0.0])
        sums[0] += record.hours_billed
        sums[1] += record.hours_worked

    customers: list[CustomerAggregate] = []
    for customer_name, projects in tree.items():
        project_nodes: list[ProjectAggregate] = []
        for code, employees in projects.items():
            employee_nodes = [
                EmployeeAggregate(name=name, total_billed=billed, total_worked=worked)
                for name, (billed, worked) in employees.items()
            ]
            project_nodes.append(
                ProjectAggregate(
                    code=code,
                    total_billed=sum(e.total_billed for e in employee_nodes),
                    total_worked=sum(e.total_worked for e in employee_nodes),
                    employees=employee_nodes,
                )
            )
        customers.append(
            CustomerAggregate(
                name=customer_name,
                total_billed=sum(p.total_billed for p in project_nodes),
                total_worked=sum(p.total_worked for p in project_nodes),
                projects=project_nodes,
            )
        )

    # sorted() is stable: equal totals keep first-seen order
    customers = sorted(customers, key=lambda c: c.total_billed, reverse=True)

    totals = HoursTotals(
        total_billed=sum(c.total_billed for c in customers),
        total_worked=sum(c.total_worked for c in customers),
    )
    logger.debug(f"Aggregated {count} records into {len(customers)} customers")
    return HoursAggregate(customers=customers, totals=totals, record_count=count)


def project_totals(customers: Iterable[CustomerAggregate]) -> list[ProjectTotal]:
    """Merge projects across customers, sorted by billed hours."""
    merged: dict[str, ProjectTotal] = {}
    for customer in customers or []:
        for project in customer.projects:
            current = merged.setdefault(project.code, ProjectTotal(code=project.code))
            current.total_billed += project.total_billed
            current.total_worked += project.total_worked
    return sorted(merged.values(), key=lambda p: p.total_billed, reverse=True)


def employee_totals(
    records: Iterable[TimeRecord],
    metric: Metric = Metric.HOURS_BILLED,
    mapping: Optional[ClassificationMapping] = None,
) -> list[EmployeeTotal]:
    """Sum one metric per employee, largest first.

    With a mapping, internal and absence bookings are left out so the ranking
    reflects productive customer work only.
    """
    totals: dict[str, float] = {}
    for record in records or []:
        if mapping is not None:
            verdict = classify(record, mapping)
            if verdict.matched or verdict.excluded:
                continue
        totals[record.employee] = totals.get(record.employee, 0.0) + record.metric(metric)

    rows = [EmployeeTotal(name=name, total=total) for name, total in totals.items()]
    return sorted(rows, key=lambda r: r.total, reverse=True)


def internal_vs_billed(tagged: Iterable[TaggedRecord]) -> list[InternalVsBilledRow]:
    """Compare internal worked hours with billed hours per employee.

    Absence bookings count as neither. Rows are sorted by ``internal - billed``
    descending, so employees with the most internal overhang come first.
    """
    rows: dict[str, InternalVsBilledRow] = {}
    for item in tagged or []:
        if item.is_excluded:
            continue
        row = rows.setdefault(item.record.employee, InternalVsBilledRow(employee=item.record.employee))
        if item.is_internal:
            row.internal += item.record.hours_worked
        row.billed += item.record.hours_billed

    for row in rows.values():
        row.diff = row.internal - row.billed
    return sorted(rows.values(), key=lambda r: r.diff, reverse=True)


def unbilled_ranking(records: Iterable[TimeRecord]) -> list[UnbilledRow]:
    """Rank employees by worked-but-not-billed hours."""
    rows: dict[str, UnbilledRow] = {}
    for record in records or []:
        row = rows.setdefault(record.employee, UnbilledRow(employee=record.employee))
        row.worked += record.hours_worked
        row.billed += record.hours_billed

    for row in rows.values():
        row.unbilled = row.worked - row.billed
        row.quote = row.billed / row.worked if row.worked else 0.0
    return sorted(rows.values(), key=lambda r: r.unbilled, reverse=True)


@log_slow_operations()
def aggregate_revenue(records: Iterable[RevenueRecord]) -> RevenueAggregate:
    """Sum actual vs. calculated revenue per customer.

    Records without a calculated revenue contribute 0 to that column.
    """
    customers: dict[str, RevenueCustomerAggregate] = {}
    for record in records or []:
        node = customers.setdefault(record.customer, RevenueCustomerAggregate(name=record.customer))
        node.revenue_actual += record.revenue_actual
        node.revenue_calculated += record.revenue_calculated or 0.0
        node.hours_billed += record.hours_billed
        node.hours_worked += record.hours_worked

    ordered = sorted(customers.values(), key=lambda c: c.revenue_actual, reverse=True)
    return RevenueAggregate(
        customers=ordered,
        total_actual=sum(c.revenue_actual for c in ordered),
        total_calculated=sum(c.revenue_calculated for c in ordered),
    )


def list_customers(records: Iterable[TimeRecord]) -> list[str]:
    return sorted({r.customer for r in records or []})


def list_projects(records: Iterable[TimeRecord]) -> list[str]:
    return sorted({r.project_code for r in records or []})


def list_employees(records: Iterable[TimeRecord]) -> list[str]:
    return sorted({r.employee for r in records or []})
