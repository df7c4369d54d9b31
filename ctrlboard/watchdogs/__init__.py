"""Compliance watchdogs: internal-work share and timesheet completeness."""

from ctrlboard.watchdogs.criteria import combine_criteria
from ctrlboard.watchdogs.internal import WatchdogSettings, evaluate_internal_watchdog
from ctrlboard.watchdogs.timesheets import TimesheetSettings, evaluate_timesheets

__all__ = [
    "TimesheetSettings",
    "WatchdogSettings",
    "combine_criteria",
    "evaluate_internal_watchdog",
    "evaluate_timesheets",
]
