"""Reporting module for ctrlboard.

Hour/revenue aggregation trees and monthly time series.
"""

from ctrlboard.reporting.aggregation import aggregate_hours, aggregate_revenue
from ctrlboard.reporting.timeseries import monthly_series, top_n

__all__ = ["aggregate_hours", "aggregate_revenue", "monthly_series", "top_n"]
