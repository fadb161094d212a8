# -*- coding: utf-8 -*-
"""Food library — remembered foods and saved meal templates.

Two JSON array buckets next to the daily logs. Saved foods are unique by
name (case-insensitive) and unit; the first entry wins. Saved meals are
unique by name (case-insensitive) and meal type; saving again replaces.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from ..persistence.adapter import PersistenceAdapter
from .models import FoodEntry, FoodUnit, MealType, SavedFood, SavedMeal
from .store import SAVED_FOODS_BUCKET, SAVED_MEALS_BUCKET, LedgerStore

logger = logging.getLogger(__name__)

RECENT_FOODS = 6

M = TypeVar("M", bound=BaseModel)


def _same_food(food: SavedFood, name: str, unit: FoodUnit) -> bool:
    return food.name.strip().lower() == name.strip().lower() and food.unit == unit


def _same_meal(meal: SavedMeal, name: str, meal_type: MealType) -> bool:
    return meal.name.strip().lower() == name.strip().lower() and meal.meal_type == meal_type


class FoodLibrary:
    def __init__(self, adapter: PersistenceAdapter) -> None:
        self.adapter = adapter

    def _load(self, bucket: str, model_cls: Type[M]) -> List[M]:
        out: List[M] = []
        for raw in self.adapter.read_bucket(bucket):
            if not isinstance(raw, dict):
                continue
            try:
                out.append(model_cls.model_validate(raw))
            except ValidationError:
                logger.debug("Skipping unreadable %s record", bucket)
        return out

    # ---- saved foods ----

    def foods(self) -> List[SavedFood]:
        return self._load(SAVED_FOODS_BUCKET, SavedFood)

    def recent_foods(self, limit: int = RECENT_FOODS) -> List[SavedFood]:
        foods = self.foods()
        return foods[-limit:] if limit > 0 else []

    def search_foods(self, query: Optional[str]) -> List[SavedFood]:
        """Saved foods whose name contains ``query`` (case-insensitive); none for an empty query."""
        needle = (query or "").strip().lower()
        if not needle:
            return []
        return [f for f in self.foods() if needle in f.name.lower()]

    def save_food(
        self,
        name: str,
        calories_per_unit: Any,
        unit: Union[FoodUnit, str] = FoodUnit.piece,
    ) -> Tuple[SavedFood, bool]:
        """Remember a food; returns ``(food, created)``. An existing match is returned unchanged."""
        food = SavedFood.model_validate({"name": name, "caloriesPerUnit": calories_per_unit, "unit": unit})
        foods = self.foods()
        for existing in foods:
            if _same_food(existing, food.name, food.unit):
                return existing, False
        foods.append(food)
        self.adapter.write_bucket(SAVED_FOODS_BUCKET, [f.to_storage() for f in foods])
        return food, True

    def remember(self, entry: FoodEntry) -> Tuple[SavedFood, bool]:
        """Save a logged food by its per-unit calories."""
        return self.save_food(entry.name, entry.calories / entry.quantity, entry.unit)

    def forget_food(self, name: str, unit: Union[FoodUnit, str]) -> bool:
        target = FoodUnit(unit)
        foods = self.foods()
        kept = [f for f in foods if not _same_food(f, name, target)]
        if len(kept) == len(foods):
            return False
        self.adapter.write_bucket(SAVED_FOODS_BUCKET, [f.to_storage() for f in kept])
        return True

    # ---- saved meals ----

    def meals(self, meal_type: Optional[Union[MealType, str]] = None, limit: Optional[int] = None) -> List[SavedMeal]:
        meals = self._load(SAVED_MEALS_BUCKET, SavedMeal)
        if meal_type is not None:
            wanted = MealType(meal_type)
            meals = [m for m in meals if m.meal_type == wanted]
        if limit is not None:
            meals = meals[-limit:] if limit > 0 else []
        return meals

    def get_meal(self, name: str, meal_type: Union[MealType, str]) -> Optional[SavedMeal]:
        wanted = MealType(meal_type)
        for meal in self.meals():
            if _same_meal(meal, name, wanted):
                return meal
        return None

    def save_meal(
        self,
        name: str,
        meal_type: Union[MealType, str],
        items: Iterable[Mapping[str, Any]],
    ) -> SavedMeal:
        """Store a meal template, replacing one with the same name and meal type."""
        meal = SavedMeal.model_validate({"name": name, "mealType": meal_type, "items": [dict(i) for i in items]})
        meals = [m for m in self.meals() if not _same_meal(m, meal.name, meal.meal_type)]
        meals.append(meal)
        self.adapter.write_bucket(SAVED_MEALS_BUCKET, [m.to_storage() for m in meals])
        return meal

    def remove_meal(self, name: str, meal_type: Union[MealType, str]) -> bool:
        wanted = MealType(meal_type)
        meals = self.meals()
        kept = [m for m in meals if not _same_meal(m, name, wanted)]
        if len(kept) == len(meals):
            return False
        self.adapter.write_bucket(SAVED_MEALS_BUCKET, [m.to_storage() for m in kept])
        return True

    def log_meal(
        self,
        store: LedgerStore,
        name: str,
        meal_type: Union[MealType, str],
        *,
        at: Optional[datetime] = None,
    ) -> Optional[List[FoodEntry]]:
        """Append every item of a saved meal to the food log; ``None`` when the meal is unknown."""
        meal = self.get_meal(name, meal_type)
        if meal is None:
            return None
        logged: List[FoodEntry] = []
        for item in meal.items:
            logged.append(
                store.add_food(
                    item.name,
                    item.calories,
                    quantity=item.quantity,
                    unit=item.unit,
                    meal_type=meal.meal_type,
                    at=at,
                )
            )
        logger.info("Logged saved meal %r (%d items)", meal.name, len(logged))
        return logged
