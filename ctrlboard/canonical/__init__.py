"""Record normalization for upstream timesheet and revenue payloads."""
