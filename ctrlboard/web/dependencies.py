"""Shared dependencies for ctrlboard web routes.

Settings files are re-read on every request; there is no cache that could
serve a stale mapping after an admin edits it.

Usage:
    from ctrlboard.web.dependencies import get_mapping

    mapping = (
        ClassificationMapping.from_dict(request.mapping)
        if request.mapping is not None
        else get_mapping()
    )
"""

from __future__ import annotations

from ctrlboard.classification.mapping import ClassificationMapping, load_mapping
from ctrlboard.config import get_config
from ctrlboard.models import EmployeeException
from ctrlboard.watchdogs.timesheets import load_exceptions


def get_mapping() -> ClassificationMapping:
    """Internal-project mapping from CLASSIFICATION_MAPPING_PATH.

    Raises:
        ConfigurationError: If the file exists but is invalid (served as 500)
    """
    return load_mapping(get_config().classification_mapping_path)


def get_exceptions() -> list[EmployeeException]:
    """Timesheet exception list from TIMESHEET_EXCEPTIONS_PATH."""
    return load_exceptions(get_config().timesheet_exceptions_path)


def resolve_unit(unit: str | None) -> str:
    """Requested business unit, falling back to DEFAULT_UNIT."""
    return unit or get_config().default_unit
