# -*- coding: utf-8 -*-
"""
Daily calorie goal

Mifflin-St Jeor BMR scaled by activity level and adjusted for the goal;
profiles missing any body measurement fall back to a fixed table.
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel

from ..ledger.models import ActivityLevel, Gender, Goal, ProfileRecord

FALLBACK_GOALS: Dict[Optional[Goal], float] = {
    Goal.gain: 2500.0,
    Goal.loss: 1800.0,
    Goal.maintain: 2200.0,
    None: 2000.0,
}

ACTIVITY_FACTORS: Dict[ActivityLevel, float] = {
    ActivityLevel.sedentary: 1.2,
    ActivityLevel.light: 1.375,
    ActivityLevel.moderate: 1.55,
    ActivityLevel.very: 1.725,
    ActivityLevel.extra: 1.9,
}


class CalorieGoal(BaseModel):
    daily_calories: float
    bmr: Optional[float] = None
    tdee: Optional[float] = None
    method: str = "fallback"


def mifflin_st_jeor(weight_kg: float, height_cm: float, age: int, gender: Optional[Gender]) -> float:
    """BMR (kcal/day), Mifflin-St Jeor."""
    s = 5 if gender is Gender.male else -161
    return 10 * weight_kg + 6.25 * height_cm - 5 * age + s


def activity_factor(level: Optional[ActivityLevel]) -> float:
    return ACTIVITY_FACTORS.get(level, ACTIVITY_FACTORS[ActivityLevel.moderate])  # type: ignore[arg-type]


def goal_adjustment(tdee: float, goal: Optional[Goal]) -> float:
    if goal is Goal.loss:
        return max(-500.0, -0.15 * tdee)
    if goal is Goal.gain:
        return min(300.0, 0.10 * tdee)
    return 0.0


def calculate_calorie_goal(profile: Optional[ProfileRecord]) -> CalorieGoal:
    if profile is None:
        return CalorieGoal(daily_calories=FALLBACK_GOALS[None])
    if not (profile.weight_kg and profile.height_cm and profile.age):
        return CalorieGoal(daily_calories=FALLBACK_GOALS.get(profile.goal, FALLBACK_GOALS[None]))

    bmr = mifflin_st_jeor(profile.weight_kg, profile.height_cm, profile.age, profile.gender)
    tdee = bmr * activity_factor(profile.activity_level)
    target = tdee + goal_adjustment(tdee, profile.goal)
    return CalorieGoal(
        daily_calories=float(round(target)),
        bmr=round(bmr, 1),
        tdee=round(tdee, 1),
        method="mifflin_st_jeor",
    )
