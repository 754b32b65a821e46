"""Aggregation package."""

from money_tracker.queries.executor import (
    BUILTIN_FILTERS,
    AggregationEngine,
    compute_totals,
    current_balance,
    cycle_window,
    filter_value_for,
    matches_filter,
    period_label,
    toggle_filter,
)

__all__ = [
    "BUILTIN_FILTERS",
    "AggregationEngine",
    "compute_totals",
    "current_balance",
    "cycle_window",
    "filter_value_for",
    "matches_filter",
    "period_label",
    "toggle_filter",
]
