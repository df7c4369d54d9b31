"""Internal-work classifier.

Decides whether a time record is internal (non-billable) work using an
ordered rule hierarchy; the first matching level wins:
1. Service-type exclusion (absence/leave, e.g. "J"): never internal
2. Service-type internal marker (e.g. "N")
3. Exact project code from the mapping
4. Mapping token found in "<code> <name>"
5. Legacy: code or name starts with "INT"
6. Legacy: "INT" appears as a whole token in "<code> <name>"
7. Not internal

Admin-configured rules (3, 4) always run before the legacy heuristics, and
the absence exclusion runs before everything so leave is counted neither as
internal nor as productive work.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Optional

from ctrlboard.classification.mapping import DEFAULT_EXCLUSION_PREFIXES, ClassificationMapping
from ctrlboard.models import ClassificationReason, ClassificationResult, TaggedRecord, TimeRecord

_TOKEN_SPLIT = re.compile(r"[^A-Z0-9]+")

_NOT_INTERNAL = ClassificationResult(matched=False, reason=ClassificationReason.NONE)


def _upper(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def _check_exclusion(service_type: str, mapping: ClassificationMapping) -> Optional[ClassificationResult]:
    # Absence ("J") stays excluded even when a mapping disables its rule
    for prefix in (*mapping.exclusion_prefixes, *DEFAULT_EXCLUSION_PREFIXES):
        if prefix and service_type.startswith(prefix):
            return ClassificationResult(
                matched=False, reason=ClassificationReason.EXCLUDED, value=prefix
            )
    return None


def _check_service_type(service_type: str, mapping: ClassificationMapping) -> Optional[ClassificationResult]:
    for prefix in mapping.internal_prefixes:
        if prefix and service_type.startswith(prefix):
            return ClassificationResult(
                matched=True, reason=ClassificationReason.SERVICE_TYPE, value=prefix
            )
    return None


def _check_project_code(code: str, mapping: ClassificationMapping) -> Optional[ClassificationResult]:
    if code and code in mapping.projects:
        return ClassificationResult(
            matched=True, reason=ClassificationReason.PROJECT_CODE, value=code
        )
    return None


def _check_tokens(haystack: str, mapping: ClassificationMapping) -> Optional[ClassificationResult]:
    for token in mapping.tokens:
        if token and token in haystack:
            return ClassificationResult(matched=True, reason=ClassificationReason.TOKEN, value=token)
    return None


def _check_legacy_prefix(code: str, name: str, mapping: ClassificationMapping) -> Optional[ClassificationResult]:
    prefix = mapping.legacy_prefix
    if mapping.legacy_prefix_enabled and (code.startswith(prefix) or name.startswith(prefix)):
        return ClassificationResult(
            matched=True, reason=ClassificationReason.LEGACY_PREFIX, value=prefix
        )
    return None


def _check_legacy_token(haystack: str, mapping: ClassificationMapping) -> Optional[ClassificationResult]:
    if mapping.legacy_token_enabled and mapping.legacy_prefix in _TOKEN_SPLIT.split(haystack):
        return ClassificationResult(
            matched=True, reason=ClassificationReason.LEGACY_TOKEN, value=mapping.legacy_prefix
        )
    return None


def quick_detect(
    code: Optional[str],
    name: Optional[str],
    service_type: Optional[str],
    mapping: ClassificationMapping,
) -> ClassificationResult:
    """Classify a bare code/name/service-type triple.

    Args:
        code: Project code
        name: Project name (the code is used when missing)
        service_type: Leistungsart / service-type code
        mapping: Immutable internal-project mapping

    Returns:
        ClassificationResult naming the rule that decided
    """
    code_u = _upper(code)
    name_u = _upper(name) or code_u
    service_u = _upper(service_type)
    haystack = f"{code_u} {name_u}"

    return (
        _check_exclusion(service_u, mapping)
        or _check_service_type(service_u, mapping)
        or _check_project_code(code_u, mapping)
        or _check_tokens(haystack, mapping)
        or _check_legacy_prefix(code_u, name_u, mapping)
        or _check_legacy_token(haystack, mapping)
        or _NOT_INTERNAL
    )


def classify(record: TimeRecord, mapping: ClassificationMapping) -> ClassificationResult:
    """Classify a normalized time record as internal work or not."""
    return quick_detect(
        record.project_code, record.project_name, record.service_type_code, mapping
    )


def is_internal(record: TimeRecord, mapping: ClassificationMapping) -> bool:
    return classify(record, mapping).matched


def is_excluded(record: TimeRecord, mapping: ClassificationMapping) -> bool:
    return classify(record, mapping).excluded


def tag_records(records: Iterable[TimeRecord], mapping: ClassificationMapping) -> list[TaggedRecord]:
    """Attach a classification verdict to every record (input order preserved)."""
    return [
        TaggedRecord(record=record, classification=classify(record, mapping))
        for record in records or []
    ]
