"""Report package exports."""
from .reporter import StableReporter, format_bytes, format_entry, format_total
from .runner import ReportRunner, TreeReport
from .stats import AggregateResult, StatsAggregator, accumulate

__all__ = [
    "AggregateResult",
    "ReportRunner",
    "StableReporter",
    "StatsAggregator",
    "TreeReport",
    "accumulate",
    "format_bytes",
    "format_entry",
    "format_total",
]
