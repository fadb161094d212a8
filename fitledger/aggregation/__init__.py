# -*- coding: utf-8 -*-
"""Aggregation over ledger snapshots (pure functions, no state)."""

from .engine import (
    activity_streak,
    daily_series,
    daily_totals,
    monthly_calendar_index,
    nutrition_breakdown_percentages,
    progress_summary,
    water_progress,
    water_total,
    weekly_averages,
    weight_trend,
)

__all__ = [
    "activity_streak",
    "daily_series",
    "daily_totals",
    "monthly_calendar_index",
    "nutrition_breakdown_percentages",
    "progress_summary",
    "water_progress",
    "water_total",
    "weekly_averages",
    "weight_trend",
]
