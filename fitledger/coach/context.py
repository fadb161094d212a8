# -*- coding: utf-8 -*-
"""Coach prompt assembly.

Builds the system prompt from:
- the stored profile
- today's totals, food and workouts
- the latest weights
- the directive grammar the reply may use to log data
"""

from __future__ import annotations

from typing import List, Optional

from ..aggregation.engine import daily_totals, water_progress
from ..ledger.models import ProfileRecord
from ..ledger.store import LedgerSnapshot
from .goals import calculate_calorie_goal

DIRECTIVE_INSTRUCTIONS = """\
When the user reports something to log, add one line per kind at the end of your reply:
FOOD_UPDATE: name:calories, name2:calories2
WORKOUT_UPDATE: name:minutes, name2:minutes2
WEIGHT_UPDATE: kilograms
WATER_UPDATE: millilitres
PROFILE_UPDATE: goal:gain|loss|maintain, targetWeight:kilograms, activityLevel:sedentary|light|moderate|very|extra
Only emit these lines for data the user actually reported. They are hidden from the user."""


def _profile_line(profile: Optional[ProfileRecord]) -> str:
    if profile is None:
        return "User profile: not set up yet."
    parts: List[str] = []
    if profile.name:
        parts.append(f"Name: {profile.name}")
    if profile.goal:
        parts.append(f"Goal: {profile.goal.value}")
    if profile.age:
        parts.append(f"Age: {profile.age}")
    if profile.weight_kg:
        parts.append(f"Weight: {profile.weight_kg:g}kg")
    if profile.target_weight_kg:
        parts.append(f"Target weight: {profile.target_weight_kg:g}kg")
    if profile.height_cm:
        parts.append(f"Height: {profile.height_cm:g}cm")
    if profile.activity_level:
        parts.append(f"Activity level: {profile.activity_level.value}")
    if profile.diet_preference:
        parts.append(f"Diet: {profile.diet_preference.value}")
    if profile.workout_location:
        parts.append(f"Works out at: {profile.workout_location.value}")
    return "User profile: " + (", ".join(parts) if parts else "empty") + "."


def build_system_prompt(snapshot: LedgerSnapshot, day: str, *, water_goal_ml: float = 2000.0) -> str:
    totals = daily_totals(snapshot, day)
    water = water_progress(snapshot, day, goal_ml=water_goal_ml)
    goal = calculate_calorie_goal(snapshot.profile)
    foods = [f for f in snapshot.foods if snapshot.day_of(f) == day]
    workouts = [w for w in snapshot.workouts if snapshot.day_of(w) == day]
    weights = sorted(snapshot.weights, key=lambda w: w.date)[-3:]

    food_text = ", ".join(f"{f.name} ({f.calories:g} kcal)" for f in foods[-10:]) or "nothing logged"
    workout_text = (
        ", ".join(f"{w.name} ({w.duration_minutes:g} min)" for w in workouts[-5:]) or "none logged"
    )
    weight_text = ", ".join(f"{w.weight_kg:g}kg" for w in weights) or "no entries"

    return "\n".join(
        [
            "You are a friendly, professional fitness coach and nutritionist. "
            "Be encouraging and specific; keep replies to a few sentences.",
            _profile_line(snapshot.profile),
            f"Daily calorie goal: {goal.daily_calories:g} kcal.",
            f"Today ({day}): eaten {totals.calories:g} kcal ({food_text}); "
            f"burned {totals.calories_burned:g} kcal ({workout_text}); "
            f"water {water.total_ml:g}/{water.goal_ml:g} ml.",
            f"Recent weights: {weight_text}.",
            "",
            DIRECTIVE_INSTRUCTIONS,
        ]
    )
