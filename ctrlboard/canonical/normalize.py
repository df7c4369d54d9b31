"""Record normalization for upstream timesheet and revenue payloads.

Upstream rows arrive with mixed casing and German/English synonyms for the
same logical field. Each field has an explicit, ordered list of candidate
keys; the first present, non-null value wins. After this module nothing
downstream ever looks at raw keys again.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from ctrlboard.models import UNKNOWN, RevenueRecord, TimeRecord

logger = logging.getLogger(__name__)

# Candidate keys per logical field, lower-case, in priority order.
EMPLOYEE_KEYS = ("mitarbeiter", "employee")
CUSTOMER_KEYS = ("kunde", "customer")
PROJECT_CODE_KEYS = ("projektcode", "projekt", "project_code", "projectcode", "project")
PROJECT_NAME_KEYS = ("projektname", "project_name", "projectname")
SERVICE_TYPE_KEYS = ("leistungsart", "leistart", "service_type_code", "servicetypecode")
BUSINESS_UNIT_KEYS = ("unit", "business_unit", "businessunit")
DATE_KEYS = ("datum", "datum_bis", "datum_von", "date")
HOURS_BILLED_KEYS = ("stunden_fakt", "std_fakturiert", "fakt_std", "hours_billed", "hoursbilled")
HOURS_WORKED_KEYS = ("stunden_gel", "std_geleistet", "gel_std", "hours_worked", "hoursworked")
REVENUE_ACTUAL_KEYS = ("umsatz_tatsaechlich", "revenue_actual", "revenueactual")
REVENUE_CALCULATED_KEYS = ("umsatz_kalk", "revenue_calculated", "revenuecalculated")

_DE_DATE = re.compile(r"^(?P<d>\d{1,2})\.(?P<m>\d{1,2})\.(?P<y>\d{4})$")
_WHITESPACE = re.compile(r"\s+")

RecordT = TypeVar("RecordT", TimeRecord, RevenueRecord)


@dataclass
class NormalizationResult(Generic[RecordT]):
    """Normalized records plus counts of what was left out."""

    records: list[RecordT] = field(default_factory=list)
    dropped: int = 0  # no hours / revenue at all, or not a mapping
    undated: int = 0  # kept, but invisible to date-bucketed views


def parse_hours(raw: Any) -> float:
    """Parse a numeric upstream value; never raises, defaults to 0.

    Accepts ints, floats and Decimals, plain strings ("12.5") and German
    formatted strings ("1234,56" or "1.234,56"). None, booleans, NaN,
    infinities and anything unparsable become 0.0.

    Example:
        >>> parse_hours("1.234,56")
        1234.56
        >>> parse_hours("abc")
        0.0
    """
    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float, Decimal)):
        value = float(raw)
        return value if math.isfinite(value) else 0.0
    if not isinstance(raw, str):
        return 0.0

    text = _WHITESPACE.sub("", raw)
    if not text:
        return 0.0
    if "," in text:
        # Decimal comma: dots are thousands separators
        text = text.replace(".", "").replace(",", ".")
    try:
        value = float(text)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def parse_date(raw: Any) -> date | None:
    """Parse an upstream date value; returns None instead of raising."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not text:
        return None

    match = _DE_DATE.match(text)
    if match:
        try:
            return date(int(match["y"]), int(match["m"]), int(match["d"]))
        except ValueError:
            return None

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def extract_items(raw: Any) -> list[Any]:
    """Return the list of raw rows from an upstream payload.

    Accepts a bare list or an ``{"items": [...]}`` envelope; anything else
    (None, strings, numbers, malformed envelopes) is treated as no data.
    """
    if isinstance(raw, Mapping):
        raw = raw.get("items")
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return []


def _lower_keys(row: Mapping[Any, Any]) -> dict[str, Any]:
    lowered: dict[str, Any] = {}
    for key, value in row.items():
        name = str(key).lower()
        # Exact lower-case keys win over re-cased duplicates
        if name not in lowered or key == name:
            lowered[name] = value
    return lowered


def _lookup(row: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def _has_any(row: Mapping[str, Any], keys: Iterable[str]) -> bool:
    return _lookup(row, keys) is not None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_time_record(raw: Mapping[Any, Any]) -> TimeRecord | None:
    """Normalize one raw timesheet row, or return None if it carries no hours."""
    row = _lower_keys(raw)
    has_billed = _has_any(row, HOURS_BILLED_KEYS)
    has_worked = _has_any(row, HOURS_WORKED_KEYS)
    if not has_billed and not has_worked:
        return None

    return TimeRecord(
        employee=_text(_lookup(row, EMPLOYEE_KEYS)) or UNKNOWN,
        customer=_text(_lookup(row, CUSTOMER_KEYS)) or UNKNOWN,
        project_code=_text(_lookup(row, PROJECT_CODE_KEYS)) or UNKNOWN,
        project_name=_text(_lookup(row, PROJECT_NAME_KEYS)),
        service_type_code=_text(_lookup(row, SERVICE_TYPE_KEYS)),
        business_unit=_text(_lookup(row, BUSINESS_UNIT_KEYS)),
        date=parse_date(_lookup(row, DATE_KEYS)),
        hours_billed=parse_hours(_lookup(row, HOURS_BILLED_KEYS)),
        hours_worked=parse_hours(_lookup(row, HOURS_WORKED_KEYS)),
    )


def normalize_revenue_record(raw: Mapping[Any, Any]) -> RevenueRecord | None:
    """Normalize one raw revenue row, or return None if it carries no figures."""
    row = _lower_keys(raw)
    has_revenue = _has_any(row, REVENUE_ACTUAL_KEYS) or _has_any(row, REVENUE_CALCULATED_KEYS)
    has_hours = _has_any(row, HOURS_BILLED_KEYS) or _has_any(row, HOURS_WORKED_KEYS)
    if not has_revenue and not has_hours:
        return None

    calculated = _lookup(row, REVENUE_CALCULATED_KEYS)
    return RevenueRecord(
        customer=_text(_lookup(row, CUSTOMER_KEYS)) or UNKNOWN,
        project_code=_text(_lookup(row, PROJECT_CODE_KEYS)) or UNKNOWN,
        date=parse_date(_lookup(row, DATE_KEYS)),
        revenue_actual=parse_hours(_lookup(row, REVENUE_ACTUAL_KEYS)),
        revenue_calculated=parse_hours(calculated) if calculated is not None else None,
        hours_billed=parse_hours(_lookup(row, HOURS_BILLED_KEYS)),
        hours_worked=parse_hours(_lookup(row, HOURS_WORKED_KEYS)),
    )


def normalize_time_records(raw: Any) -> NormalizationResult[TimeRecord]:
    """Normalize an upstream timesheet payload into TimeRecords.

    Args:
        raw: List of rows or ``{"items": [...]}``; any other shape is empty

    Returns:
        NormalizationResult with the kept records and drop/undated counts
    """
    result: NormalizationResult[TimeRecord] = NormalizationResult()
    for row in extract_items(raw):
        record = normalize_time_record(row) if isinstance(row, Mapping) else None
        if record is None:
            result.dropped += 1
            continue
        if record.date is None:
            result.undated += 1
        result.records.append(record)

    if result.dropped or result.undated:
        logger.debug(
            "Normalized %d time records (%d dropped, %d undated)",
            len(result.records),
            result.dropped,
            result.undated,
        )
    return result


def normalize_revenue_records(raw: Any) -> NormalizationResult[RevenueRecord]:
    """Normalize an upstream revenue payload into RevenueRecords."""
    result: NormalizationResult[RevenueRecord] = NormalizationResult()
    for row in extract_items(raw):
        record = normalize_revenue_record(row) if isinstance(row, Mapping) else None
        if record is None:
            result.dropped += 1
            continue
        if record.date is None:
            result.undated += 1
        result.records.append(record)

    if result.dropped or result.undated:
        logger.debug(
            "Normalized %d revenue records (%d dropped, %d undated)",
            len(result.records),
            result.dropped,
            result.undated,
        )
    return result


def filter_by_unit(records: Iterable[TimeRecord], unit: str | None) -> list[TimeRecord]:
    """Keep records of one business unit; "ALL" or empty keeps everything.

    Records without a unit were scoped by the upstream query and are kept.
    """
    items = list(records or [])
    if not unit or unit.upper() == "ALL":
        return items
    return [r for r in items if r.business_unit is None or r.business_unit == unit]


def filter_by_period(
    records: Iterable[RecordT], start: date | None, end: date | None
) -> list[RecordT]:
    """Keep dated records inside the inclusive [start, end] range."""
    out: list[RecordT] = []
    for record in records or []:
        if record.date is None:
            continue
        if start is not None and record.date < start:
            continue
        if end is not None and record.date > end:
            continue
        out.append(record)
    return out
