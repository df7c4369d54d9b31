"""ctrlboard CLI.

Commands:
- aggregate: Customer/project hour totals from a timesheet export
- monthly: Monthly series per customer, project or employee
- trend: Monthly totals with trend statements
- classify: Test a project code against the internal mapping
- watchdog-internal: Internal-work watchdog over the trailing ISO weeks
- watchdog-timesheets: Timesheet completeness for a week, month or range
- serve: Run the HTTP API

Record files are JSON, either a list of rows or ``{"items": [...]}``.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from ctrlboard.canonical.normalize import filter_by_unit, normalize_time_records
from ctrlboard.classification.classifier import quick_detect
from ctrlboard.classification.mapping import ClassificationMapping, ConfigurationError, load_mapping
from ctrlboard.config import get_config
from ctrlboard.core.logging import configure_logging
from ctrlboard.models import Dimension, Metric, TimeRecord, TimesheetStatus
from ctrlboard.reporting.aggregation import aggregate_hours
from ctrlboard.reporting.timeseries import monthly_series, monthly_totals, top_n, trend_insights
from ctrlboard.watchdogs.criteria import CombineMode
from ctrlboard.watchdogs.internal import WatchdogSettings, evaluate_internal_watchdog
from ctrlboard.watchdogs.timesheets import (
    TimesheetMode,
    TimesheetSettings,
    evaluate_timesheets,
    load_exceptions,
    resolve_period,
)

app = typer.Typer(
    name="ctrlboard",
    help="ctrlboard - controlling dashboard reports and watchdogs",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    configure_logging()
    if verbose:
        logging.getLogger("ctrlboard").setLevel(logging.DEBUG)


def _load_payload(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[bold red]✗ Cannot read {path}:[/bold red] {e}")
        raise typer.Exit(code=1)


def _load_records(path: Path, unit: Optional[str]) -> list[TimeRecord]:
    result = normalize_time_records(_load_payload(path))
    if result.dropped:
        console.print(f"[yellow]⚠[/yellow] {result.dropped} rows without hours skipped")
    return filter_by_unit(result.records, unit or get_config().default_unit)


def _load_mapping(mapping_path: Optional[Path]) -> ClassificationMapping:
    try:
        return load_mapping(mapping_path or get_config().classification_mapping_path)
    except ConfigurationError as e:
        console.print(f"[bold red]✗ Invalid mapping:[/bold red] {e}")
        raise typer.Exit(code=1)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}")


def _hours(value: float) -> str:
    return f"{value:,.2f}"


@app.command()
def aggregate(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Timesheet JSON export"),
    unit: Optional[str] = typer.Option(None, "--unit", "-u", help="Business unit (ALL for every unit)"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """Show billed/worked hours per customer and project."""
    result = aggregate_hours(_load_records(file, unit))

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    table = Table(title="Hours by Customer")
    table.add_column("Customer", style="cyan")
    table.add_column("Project")
    table.add_column("Billed (h)", justify="right", style="green")
    table.add_column("Worked (h)", justify="right")

    for customer in result.customers:
        table.add_row(customer.name, "", _hours(customer.total_billed), _hours(customer.total_worked), style="bold")
        for project in customer.projects:
            table.add_row("", project.code, _hours(project.total_billed), _hours(project.total_worked))

    console.print(table)
    console.print(
        f"\n[bold]Total:[/bold] {_hours(result.totals.total_billed)} h billed, "
        f"{_hours(result.totals.total_worked)} h worked ({result.record_count} records)"
    )


@app.command()
def monthly(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Timesheet JSON export"),
    dimension: Dimension = typer.Option(Dimension.CUSTOMER, "--by", help="Series key"),
    metric: Metric = typer.Option(Metric.HOURS_BILLED, "--metric", help="Summed field"),
    top: int = typer.Option(10, "--top", help="Number of series to show"),
    unit: Optional[str] = typer.Option(None, "--unit", "-u"),
    customer: Optional[str] = typer.Option(None, "--customer"),
    project: Optional[str] = typer.Option(None, "--project"),
    employee: Optional[str] = typer.Option(None, "--employee"),
    datum_von: Optional[str] = typer.Option(None, "--from", help="First day (YYYY-MM-DD)"),
    datum_bis: Optional[str] = typer.Option(None, "--to", help="Last day (YYYY-MM-DD)"),
    as_json: bool = typer.Option(False, "--json"),
):
    """Show dense monthly series for the top customers/projects/employees."""
    result = monthly_series(
        _load_records(file, unit),
        dimension,
        metric,
        customer=customer,
        project=project,
        employee=employee,
        start=_parse_date(datum_von),
        end=_parse_date(datum_bis),
    )
    keys = top_n(result.series, top)

    if as_json:
        typer.echo(json.dumps({"months": result.months, "series": result.series, "top": keys}, indent=2))
        return

    if not result.months:
        console.print("[yellow]No dated records found[/yellow]")
        return

    table = Table(title=f"Monthly {metric.value} by {dimension.value}")
    table.add_column(dimension.value.capitalize(), style="cyan")
    for month in result.months:
        table.add_column(month, justify="right")
    for key in keys:
        table.add_row(key, *(_hours(v) for v in result.series[key]))
    console.print(table)


@app.command()
def trend(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Timesheet JSON export"),
    metric: Metric = typer.Option(Metric.HOURS_BILLED, "--metric"),
    unit: Optional[str] = typer.Option(None, "--unit", "-u"),
):
    """Show monthly totals and trend statements."""
    totals = monthly_totals(_load_records(file, unit), metric)

    table = Table(title=f"Monthly {metric.value}")
    table.add_column("Month", style="cyan")
    table.add_column("Total (h)", justify="right")
    for entry in totals:
        table.add_row(entry.month, _hours(entry.total))
    console.print(table)

    for insight in trend_insights(totals):
        console.print(f"[bold]{insight.title}:[/bold] {insight.detail}")


@app.command()
def classify(
    code: str = typer.Argument(..., help="Project code"),
    name: Optional[str] = typer.Option(None, "--name", help="Project name"),
    service_type: Optional[str] = typer.Option(None, "--service-type", help="Leistungsart code"),
    mapping_path: Optional[Path] = typer.Option(None, "--mapping", help="Mapping file (JSON/YAML)"),
):
    """Test whether a project code counts as internal work."""
    result = quick_detect(code, name, service_type, _load_mapping(mapping_path))

    if result.excluded:
        console.print(f"[yellow]Excluded[/yellow] (absence service type {result.value})")
    elif result.matched:
        console.print(f"[bold green]✓ Internal[/bold green] via {result.reason.value} ({result.value})")
    else:
        console.print("[dim]Not internal[/dim]")


@app.command("watchdog-internal")
def watchdog_internal(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Timesheet JSON export"),
    unit: Optional[str] = typer.Option(None, "--unit", "-u"),
    threshold: Optional[float] = typer.Option(None, "--threshold", help="Internal share 0..1"),
    weeks_back: Optional[int] = typer.Option(None, "--weeks-back"),
    use_internal_share: Optional[bool] = typer.Option(None, "--internal-share/--no-internal-share"),
    use_zero_last_week: Optional[bool] = typer.Option(None, "--zero-last-week/--no-zero-last-week"),
    use_min_total: Optional[bool] = typer.Option(None, "--min-total/--no-min-total"),
    min_total_hours: Optional[float] = typer.Option(None, "--min-total-hours"),
    combine: Optional[CombineMode] = typer.Option(None, "--combine"),
    today: Optional[str] = typer.Option(None, "--today", help="Reference day (YYYY-MM-DD)"),
    mapping_path: Optional[Path] = typer.Option(None, "--mapping"),
    as_json: bool = typer.Option(False, "--json"),
):
    """Flag employees with high internal share or missing bookings."""
    overrides = {
        "threshold": threshold,
        "weeks_back": weeks_back,
        "use_internal_share": use_internal_share,
        "use_zero_last_week": use_zero_last_week,
        "use_min_total": use_min_total,
        "min_total_hours": min_total_hours,
        "combine": combine,
    }
    settings = WatchdogSettings.from_defaults().model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )
    report = evaluate_internal_watchdog(
        _load_records(file, unit), _load_mapping(mapping_path), settings, _parse_date(today)
    )

    if as_json:
        typer.echo(report.model_dump_json(indent=2))
        return

    console.print(f"[bold]Window:[/bold] {report.range.datum_von} .. {report.range.datum_bis}")
    table = Table(title="Internal Work")
    table.add_column("Employee", style="cyan")
    table.add_column("Week")
    table.add_column("Internal (h)", justify="right")
    table.add_column("Total (h)", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Reasons", style="yellow")
    for row in report.rows:
        table.add_row(
            row.employee,
            row.week,
            _hours(row.internal_hours),
            _hours(row.total_hours),
            f"{row.ratio:.0%}",
            ", ".join(r.kind for r in row.reasons) if row.offender else "",
            style="red" if row.offender else None,
        )
    console.print(table)

    if report.offenders:
        console.print(f"[yellow]⚠[/yellow] {len(report.offenders)} offending rows")
    else:
        console.print("[bold green]✓[/bold green] No offenders")


@app.command("watchdog-timesheets")
def watchdog_timesheets(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Timesheet JSON export"),
    unit: Optional[str] = typer.Option(None, "--unit", "-u"),
    mode: Optional[TimesheetMode] = typer.Option(None, "--mode"),
    hours_per_day: Optional[float] = typer.Option(None, "--hours-per-day"),
    datum_von: Optional[str] = typer.Option(None, "--from", help="First day (YYYY-MM-DD)"),
    datum_bis: Optional[str] = typer.Option(None, "--to", help="Last day (YYYY-MM-DD)"),
    iso_week: Optional[int] = typer.Option(None, "--iso-week"),
    iso_year: Optional[int] = typer.Option(None, "--iso-year"),
    month: Optional[int] = typer.Option(None, "--month"),
    month_year: Optional[int] = typer.Option(None, "--month-year"),
    exceptions_path: Optional[Path] = typer.Option(None, "--exceptions", help="Exception list (JSON/YAML)"),
    as_json: bool = typer.Option(False, "--json"),
):
    """Check booked vs. expected hours per employee."""
    overrides = {"hours_per_day": hours_per_day, "mode": mode}
    settings = TimesheetSettings.from_defaults().model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )
    try:
        period = resolve_period(
            settings.mode,
            datum_von=_parse_date(datum_von),
            datum_bis=_parse_date(datum_bis),
            iso_week=iso_week,
            iso_year=iso_year,
            month=month,
            month_year=month_year,
        )
        exceptions = load_exceptions(exceptions_path or get_config().timesheet_exceptions_path)
    except (ValueError, ConfigurationError) as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(code=1)

    report = evaluate_timesheets(_load_records(file, unit), settings, period, exceptions=exceptions)

    if as_json:
        typer.echo(report.model_dump_json(indent=2))
        return

    console.print(f"[bold]Period:[/bold] {report.range.datum_von} .. {report.range.datum_bis}")
    styles = {TimesheetStatus.BAD: "red", TimesheetStatus.WARN: "yellow", TimesheetStatus.GOOD: "green"}
    table = Table(title="Timesheet Completeness")
    table.add_column("Employee", style="cyan")
    table.add_column("Booked (h)", justify="right")
    table.add_column("Expected (h)", justify="right")
    table.add_column("Ratio", justify="right")
    table.add_column("Status")
    for row in report.rows:
        table.add_row(
            row.employee + (" (part-time)" if row.part_time else ""),
            _hours(row.total),
            _hours(row.expected),
            "-" if row.ratio is None else f"{row.ratio:.0%}",
            f"[{styles[row.status]}]{row.status.value}[/{styles[row.status]}]",
        )
    console.print(table)
    console.print(f"{len(report.offenders)} of {len(report.rows)} timesheets incomplete")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8000, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the HTTP API."""
    import uvicorn

    typer.echo(f"Starting ctrlboard API on http://{host}:{port}")
    uvicorn.run("ctrlboard.web.app:app", host=host, port=port, reload=reload, workers=1)


if __name__ == "__main__":
    app()
