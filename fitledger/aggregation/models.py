# -*- coding: utf-8 -*-
"""Aggregation — Pydantic result models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class _Rounded(BaseModel):
    def rounded(self, ndigits: int = 1):
        """Copy with every float field rounded for display."""
        data = {}
        for name, value in self:
            if isinstance(value, float):
                data[name] = round(value, ndigits)
            elif isinstance(value, _Rounded):
                data[name] = value.rounded(ndigits)
            elif isinstance(value, list):
                data[name] = [v.rounded(ndigits) if isinstance(v, _Rounded) else v for v in value]
            else:
                data[name] = value
        return type(self).model_validate(data)


class DailyTotals(_Rounded):
    date: str = Field(..., description="YYYY-MM-DD")
    calories: float = Field(0.0, ge=0)
    protein: float = Field(0.0, ge=0)
    carbs: float = Field(0.0, ge=0)
    fat: float = Field(0.0, ge=0)
    calories_burned: float = Field(0.0, ge=0)
    food_count: int = Field(0, ge=0)
    workout_count: int = Field(0, ge=0)

    @property
    def has_activity(self) -> bool:
        return self.food_count > 0 or self.workout_count > 0

    @property
    def net_calories(self) -> float:
        return self.calories - self.calories_burned


class WeeklyAverages(_Rounded):
    start: str
    end: str
    avg_calories: float = 0.0
    avg_protein: float = 0.0
    avg_carbs: float = 0.0
    avg_burned: float = 0.0
    active_days: int = Field(0, ge=0, le=7)
    days: List[DailyTotals] = []


class NutritionBreakdown(_Rounded):
    protein_pct: float
    carbs_pct: float
    fat_pct: float
    is_default: bool = False


class WeightTrend(_Rounded):
    entries: int = 0
    latest_kg: Optional[float] = None
    latest_date: Optional[str] = None
    change_kg: float = 0.0
    total_change_kg: float = 0.0


class WaterProgress(_Rounded):
    date: str
    total_ml: float = 0.0
    goal_ml: float = 2000.0
    percent: float = 0.0
    entry_count: int = 0


class ProgressSummary(_Rounded):
    start: str
    end: str
    days: List[DailyTotals] = []
    average_calories: float = 0.0
    streak: int = 0
    weight: WeightTrend = WeightTrend()
