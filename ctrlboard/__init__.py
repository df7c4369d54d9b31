"""ctrlboard - controlling dashboard core (reports, internal-work and timesheet watchdogs)."""

__version__ = "0.1.0"
