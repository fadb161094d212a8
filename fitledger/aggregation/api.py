# -*- coding: utf-8 -*-
"""Aggregation — API endpoints (read-only rollups)."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..coach.goals import CalorieGoal, calculate_calorie_goal
from ..deps import get_surface, resolve_day
from ..runtime import LedgerSurface
from .engine import (
    daily_totals,
    monthly_calendar_index,
    nutrition_breakdown_percentages,
    progress_summary,
    water_progress,
    weekly_averages,
)
from .models import DailyTotals, NutritionBreakdown, ProgressSummary, WaterProgress, WeeklyAverages

router = APIRouter(prefix="/api/summary", tags=["Summary"])


class DailySummaryResponse(BaseModel):
    totals: DailyTotals
    net_calories: float
    water: WaterProgress


class CalendarResponse(BaseModel):
    year: int
    month: int
    days: List[str]


@router.get("/daily", response_model=DailySummaryResponse, summary="Totals for one day")
def get_daily(
    day: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    surface: LedgerSurface = Depends(get_surface),
):
    key = resolve_day(day)
    snapshot = surface.store.snapshot()
    totals = daily_totals(snapshot, key).rounded()
    water = water_progress(snapshot, key, goal_ml=surface.runtime.water_goal_ml).rounded()
    return DailySummaryResponse(totals=totals, net_calories=round(totals.net_calories, 1), water=water)


@router.get("/weekly", response_model=WeeklyAverages, summary="Averages for the week containing a day")
def get_weekly(
    day: Optional[str] = Query(default=None, description="Any day of the wanted week"),
    surface: LedgerSurface = Depends(get_surface),
):
    return weekly_averages(surface.store.snapshot(), resolve_day(day)).rounded()


@router.get("/breakdown", response_model=NutritionBreakdown, summary="Macro percentages for one day")
def get_breakdown(
    day: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    surface: LedgerSurface = Depends(get_surface),
):
    return nutrition_breakdown_percentages(surface.store.snapshot(), resolve_day(day)).rounded()


@router.get("/calendar", response_model=CalendarResponse, summary="Days of a month that have records")
def get_calendar(
    year: Optional[int] = Query(default=None, ge=1, le=9999),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    surface: LedgerSurface = Depends(get_surface),
):
    if year is None or month is None:
        current = date.fromisoformat(resolve_day(None))
        year = year or current.year
        month = month or current.month
    days = monthly_calendar_index(surface.store.snapshot(), month, year)
    return CalendarResponse(year=year, month=month, days=sorted(days))


@router.get("/progress", response_model=ProgressSummary, summary="Rolling progress for the last N days")
def get_progress(
    day: Optional[str] = Query(default=None, description="Last day of the window"),
    days: int = Query(default=30, ge=1, le=366),
    surface: LedgerSurface = Depends(get_surface),
):
    try:
        return progress_summary(surface.store.snapshot(), resolve_day(day), days).rounded()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/goal", response_model=CalorieGoal, summary="Daily calorie goal from the profile")
def get_goal(surface: LedgerSurface = Depends(get_surface)):
    return calculate_calorie_goal(surface.store.get_profile())
