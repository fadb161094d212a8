# -*- coding: utf-8 -*-
"""Apply directives to the ledger.

Tolerant by contract: a malformed directive is skipped (and reported in the
result), never raised, so the surrounding reply can always be displayed.
Food and workout segments whose number does not parse are still logged with
a fixed default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..ledger.models import ActivityLevel, Goal, MealType, WorkoutType, coerce_number
from ..ledger.store import LedgerStore
from .grammar import Directive, DirectiveKind, first_number, split_pairs, strip_directives, tokenize

logger = logging.getLogger(__name__)

DEFAULT_FOOD_CALORIES = 100.0
DEFAULT_WORKOUT_MINUTES = 30.0
MAX_NAME_LENGTH = 100

_WORKOUT_KEYWORDS = (
    (WorkoutType.swimming, ("swim",)),
    (WorkoutType.cycling, ("cycl", "bike", "biking", "spin")),
    (WorkoutType.walking, ("walk", "hike", "hiking", "step")),
    (WorkoutType.yoga, ("yoga", "stretch", "pilates", "meditat")),
    (WorkoutType.dancing, ("danc", "zumba", "aerobic")),
    (WorkoutType.strength, ("lift", "weight", "strength", "press", "squat", "deadlift", "push", "pull", "gym", "curl")),
    (WorkoutType.sports, ("football", "soccer", "tennis", "basketball", "cricket", "badminton", "volleyball", "sport")),
    (WorkoutType.cardio, ("run", "jog", "cardio", "hiit", "sprint", "row", "skip", "jump")),
)

_GOAL_ALIASES = {
    "gain": Goal.gain,
    "weight gain": Goal.gain,
    "bulk": Goal.gain,
    "loss": Goal.loss,
    "lose": Goal.loss,
    "weight loss": Goal.loss,
    "cut": Goal.loss,
    "maintain": Goal.maintain,
    "maintenance": Goal.maintain,
}

_ACTIVITY_ALIASES = {
    "sedentary": ActivityLevel.sedentary,
    "light": ActivityLevel.light,
    "lightly active": ActivityLevel.light,
    "moderate": ActivityLevel.moderate,
    "moderately active": ActivityLevel.moderate,
    "very": ActivityLevel.very,
    "very active": ActivityLevel.very,
    "active": ActivityLevel.very,
    "extra": ActivityLevel.extra,
    "extra active": ActivityLevel.extra,
    "extremely active": ActivityLevel.extra,
}


def infer_workout_type(name: str) -> WorkoutType:
    lowered = (name or "").lower()
    for workout_type, needles in _WORKOUT_KEYWORDS:
        if any(n in lowered for n in needles):
            return workout_type
    return WorkoutType.cardio


def _profile_key(key: str) -> str:
    return "".join(ch for ch in key.lower() if ch.isalnum())


@dataclass
class AppliedDirective:
    kind: DirectiveKind
    summary: str
    record_ids: List[str] = field(default_factory=list)
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SkippedDirective:
    kind: DirectiveKind
    payload: str
    reason: str


@dataclass
class CommandResult:
    display_text: str
    applied: List[AppliedDirective] = field(default_factory=list)
    skipped: List[SkippedDirective] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.applied)


class CommandProcessor:
    def __init__(
        self,
        store: LedgerStore,
        *,
        meal_type: MealType = MealType.snacks,
    ) -> None:
        self.store = store
        self.meal_type = meal_type
        self._handlers: Dict[DirectiveKind, Callable[[Directive, Optional[datetime]], Optional[AppliedDirective]]] = {
            DirectiveKind.FOOD_UPDATE: self._apply_food,
            DirectiveKind.WORKOUT_UPDATE: self._apply_workout,
            DirectiveKind.WEIGHT_UPDATE: self._apply_weight,
            DirectiveKind.WATER_UPDATE: self._apply_water,
            DirectiveKind.PROFILE_UPDATE: self._apply_profile,
        }

    def process(self, text: Any, *, at: Optional[datetime] = None) -> CommandResult:
        """Apply every directive in ``text``; return the cleaned text and what happened."""
        source = text if isinstance(text, str) else ("" if text is None else str(text))
        directives = tokenize(source)
        result = CommandResult(display_text=strip_directives(source, directives))
        for directive in directives:
            try:
                applied = self._handlers[directive.kind](directive, at)
            except Exception as exc:
                logger.warning("Skipping %s directive: %s", directive.kind.value, exc)
                result.skipped.append(SkippedDirective(directive.kind, directive.payload, str(exc)))
                continue
            if applied is None:
                result.skipped.append(SkippedDirective(directive.kind, directive.payload, "nothing to apply"))
            else:
                result.applied.append(applied)
        if directives:
            logger.info(
                "Processed %d directive(s): %d applied, %d skipped",
                len(directives),
                len(result.applied),
                len(result.skipped),
            )
        return result

    # ---- handlers ----

    def _apply_food(self, directive: Directive, at: Optional[datetime]) -> Optional[AppliedDirective]:
        ids: List[str] = []
        logged: List[str] = []
        total = 0.0
        for name, value in split_pairs(directive.payload):
            name = name[:MAX_NAME_LENGTH]
            if not name:
                continue
            calories = coerce_number(first_number(value), DEFAULT_FOOD_CALORIES)
            entry = self.store.add_food(name, calories, meal_type=self.meal_type, at=at)
            ids.append(entry.id)
            logged.append(f"{name} ({calories:g} kcal)")
            total += calories
        if not ids:
            return None
        return AppliedDirective(
            kind=directive.kind,
            summary="Logged " + ", ".join(logged),
            record_ids=ids,
            values={"calories": total},
        )

    def _apply_workout(self, directive: Directive, at: Optional[datetime]) -> Optional[AppliedDirective]:
        ids: List[str] = []
        logged: List[str] = []
        burned = 0.0
        for name, value in split_pairs(directive.payload):
            name = name[:MAX_NAME_LENGTH]
            if not name:
                continue
            minutes = coerce_number(first_number(value), DEFAULT_WORKOUT_MINUTES, positive=True)
            entry = self.store.add_workout(name, minutes, type=infer_workout_type(name), at=at)
            ids.append(entry.id)
            logged.append(f"{name} ({minutes:g} min)")
            burned += entry.calories_burned or 0.0
        if not ids:
            return None
        return AppliedDirective(
            kind=directive.kind,
            summary="Logged " + ", ".join(logged),
            record_ids=ids,
            values={"calories_burned": burned},
        )

    def _apply_weight(self, directive: Directive, at: Optional[datetime]) -> Optional[AppliedDirective]:
        weight = coerce_number(first_number(directive.payload), None, positive=True)
        if weight is None:
            return None
        entry = self.store.upsert_weight(None, weight, at=at)
        if entry is None:
            return None
        return AppliedDirective(
            kind=directive.kind,
            summary=f"Weight set to {weight:g} kg for {entry.date}",
            record_ids=[entry.id],
            values={"weight_kg": weight},
        )

    def _apply_water(self, directive: Directive, at: Optional[datetime]) -> Optional[AppliedDirective]:
        amount = coerce_number(first_number(directive.payload), None, positive=True)
        if amount is None:
            return None
        entry = self.store.add_water(amount, at=at)
        return AppliedDirective(
            kind=directive.kind,
            summary=f"Logged {amount:g} ml of water",
            record_ids=[entry.id],
            values={"amount_ml": amount},
        )

    def _apply_profile(self, directive: Directive, at: Optional[datetime]) -> Optional[AppliedDirective]:  # noqa: ARG002
        updates: Dict[str, Any] = {}
        for key, value in split_pairs(directive.payload):
            normalized = _profile_key(key)
            text = value.strip().lower()
            if normalized == "goal" and text in _GOAL_ALIASES:
                updates["goal"] = _GOAL_ALIASES[text].value
            elif normalized == "targetweight":
                target = coerce_number(first_number(value), None, positive=True)
                if target is not None:
                    updates["targetWeight"] = target
            elif normalized == "activitylevel" and text in _ACTIVITY_ALIASES:
                updates["activityLevel"] = _ACTIVITY_ALIASES[text].value
            else:
                logger.debug("Ignoring profile key %r=%r", key, value)
        if not updates:
            return None
        if self.store.update_profile(updates) is None:
            return None
        summary = ", ".join(f"{k}={v}" for k, v in updates.items())
        return AppliedDirective(kind=directive.kind, summary=f"Profile updated: {summary}", values=updates)
