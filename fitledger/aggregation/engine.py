# -*- coding: utf-8 -*-
"""Aggregation engine.

Every function reads a :class:`LedgerSnapshot` and returns a fresh result;
nothing here writes to the ledger or keeps state between calls, so the same
snapshot always yields the same answer.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional, Set, Union

from ..ledger.days import iter_days, month_days, parse_day, week_days
from ..ledger.models import WaterEntry
from ..ledger.store import LedgerSnapshot
from .models import (
    DailyTotals,
    NutritionBreakdown,
    ProgressSummary,
    WaterProgress,
    WeeklyAverages,
    WeightTrend,
)

DayLike = Union[str, date]

NEUTRAL_BREAKDOWN = (25.0, 50.0, 25.0)


def _day_key(day: DayLike) -> str:
    parsed = parse_day(day)
    if parsed is None:
        raise ValueError(f"Invalid day: {day!r}")
    return parsed.isoformat()


def _totals_by_day(snapshot: LedgerSnapshot, wanted: Optional[Set[str]] = None) -> Dict[str, DailyTotals]:
    per_day: Dict[str, DailyTotals] = {}

    def bucket(day: Optional[str]) -> Optional[DailyTotals]:
        if day is None or (wanted is not None and day not in wanted):
            return None
        if day not in per_day:
            per_day[day] = DailyTotals(date=day)
        return per_day[day]

    for food in snapshot.foods:
        totals = bucket(snapshot.day_of(food))
        if totals is None:
            continue
        macros = food.macros()
        totals.calories += food.calories
        totals.protein += macros["protein"]
        totals.carbs += macros["carbs"]
        totals.fat += macros["fat"]
        totals.food_count += 1

    for workout in snapshot.workouts:
        totals = bucket(snapshot.day_of(workout))
        if totals is None:
            continue
        totals.calories_burned += workout.calories_burned or 0.0
        totals.workout_count += 1

    return per_day


def daily_totals(snapshot: LedgerSnapshot, day: DayLike) -> DailyTotals:
    """Food calories/macros and workout burn for ``day``.

    Absent macro fields are imputed from the entry's calories before summing.
    """
    key = _day_key(day)
    return _totals_by_day(snapshot, {key}).get(key) or DailyTotals(date=key)


def weekly_averages(snapshot: LedgerSnapshot, anchor: DayLike) -> WeeklyAverages:
    """Averages over the Sunday-first week containing ``anchor``.

    Only days with at least one food or workout record count toward the mean.
    """
    anchor_day = parse_day(anchor)
    if anchor_day is None:
        raise ValueError(f"Invalid day: {anchor!r}")
    days = week_days(anchor_day)
    per_day = _totals_by_day(snapshot, set(days))
    week = [per_day.get(d) or DailyTotals(date=d) for d in days]
    active = [d for d in week if d.has_activity]

    result = WeeklyAverages(start=days[0], end=days[-1], days=week, active_days=len(active))
    if active:
        n = float(len(active))
        result.avg_calories = sum(d.calories for d in active) / n
        result.avg_protein = sum(d.protein for d in active) / n
        result.avg_carbs = sum(d.carbs for d in active) / n
        result.avg_burned = sum(d.calories_burned for d in active) / n
    return result


def nutrition_breakdown_percentages(snapshot: LedgerSnapshot, day: DayLike) -> NutritionBreakdown:
    totals = daily_totals(snapshot, day)
    whole = totals.protein + totals.carbs + totals.fat
    if whole <= 0:
        protein, carbs, fat = NEUTRAL_BREAKDOWN
        return NutritionBreakdown(protein_pct=protein, carbs_pct=carbs, fat_pct=fat, is_default=True)
    return NutritionBreakdown(
        protein_pct=totals.protein / whole * 100.0,
        carbs_pct=totals.carbs / whole * 100.0,
        fat_pct=totals.fat / whole * 100.0,
    )


def monthly_calendar_index(snapshot: LedgerSnapshot, month: int, year: int) -> Set[str]:
    """Days of the month with any food, workout or weight record."""
    wanted = set(month_days(year, month))
    marked: Set[str] = set()
    for record in (*snapshot.foods, *snapshot.workouts, *snapshot.weights):
        day = snapshot.day_of(record)
        if day in wanted:
            marked.add(day)
    return marked


def _water_for_day(snapshot: LedgerSnapshot, key: str) -> List[WaterEntry]:
    return [w for w in snapshot.waters if snapshot.day_of(w) == key]


def water_total(snapshot: LedgerSnapshot, day: DayLike) -> float:
    """Millilitres of water logged on ``day``."""
    return sum(w.amount_ml for w in _water_for_day(snapshot, _day_key(day)))


def water_progress(snapshot: LedgerSnapshot, day: DayLike, *, goal_ml: float = 2000.0) -> WaterProgress:
    key = _day_key(day)
    entries = _water_for_day(snapshot, key)
    total = sum(w.amount_ml for w in entries)
    percent = min(total / goal_ml * 100.0, 100.0) if goal_ml > 0 else 0.0
    return WaterProgress(date=key, total_ml=total, goal_ml=goal_ml, percent=percent, entry_count=len(entries))


def weight_trend(snapshot: LedgerSnapshot) -> WeightTrend:
    history = sorted(snapshot.weights, key=lambda e: snapshot.day_of(e) or "")
    if not history:
        return WeightTrend()
    latest = history[-1]
    trend = WeightTrend(
        entries=len(history),
        latest_kg=latest.weight_kg,
        latest_date=snapshot.day_of(latest),
    )
    if len(history) >= 2:
        trend.change_kg = latest.weight_kg - history[-2].weight_kg
        trend.total_change_kg = latest.weight_kg - history[0].weight_kg
    return trend


def daily_series(snapshot: LedgerSnapshot, end: DayLike, days: int = 30) -> List[DailyTotals]:
    """Per-day totals for the ``days`` days ending at ``end``, oldest first."""
    end_day = parse_day(end)
    if end_day is None:
        raise ValueError(f"Invalid day: {end!r}")
    span = iter_days(end_day - timedelta(days=max(days, 1) - 1), end_day)
    per_day = _totals_by_day(snapshot, set(span))
    return [per_day.get(d) or DailyTotals(date=d) for d in span]


def activity_streak(snapshot: LedgerSnapshot, end: DayLike) -> int:
    """Consecutive days ending at ``end`` with at least one food entry."""
    end_day = parse_day(end)
    if end_day is None:
        raise ValueError(f"Invalid day: {end!r}")
    logged: Dict[str, int] = defaultdict(int)
    for food in snapshot.foods:
        day = snapshot.day_of(food)
        if day is not None:
            logged[day] += 1
    streak = 0
    cur = end_day
    while logged.get(cur.isoformat()):
        streak += 1
        cur -= timedelta(days=1)
    return streak


def progress_summary(snapshot: LedgerSnapshot, end: DayLike, days: int = 30) -> ProgressSummary:
    series = daily_series(snapshot, end, days)
    logged = [d for d in series if d.calories > 0]
    average = sum(d.calories for d in logged) / len(logged) if logged else 0.0
    return ProgressSummary(
        start=series[0].date,
        end=series[-1].date,
        days=series,
        average_calories=average,
        streak=activity_streak(snapshot, end),
        weight=weight_trend(snapshot),
    )
