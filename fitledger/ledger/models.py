# -*- coding: utf-8 -*-
"""Ledger — Pydantic record models.

Stored JSON keeps the browser client's camelCase keys (``timestamp``,
``mealType``, ``caloriesBurned`` ...); Python code uses the snake_case
attribute names. Numeric fields coerce bad input to a documented default
instead of raising.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class RecordKind(str, Enum):
    food = "food"
    workout = "workout"
    water = "water"
    weight = "weight"


class FoodUnit(str, Enum):
    gram = "gram"
    piece = "piece"
    cup = "cup"
    tablespoon = "tablespoon"
    teaspoon = "teaspoon"
    ml = "ml"
    slice = "slice"
    bowl = "bowl"
    plate = "plate"


class MealType(str, Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snacks = "snacks"
    other = "other"


class WorkoutType(str, Enum):
    cardio = "cardio"
    strength = "strength"
    yoga = "yoga"
    sports = "sports"
    walking = "walking"
    cycling = "cycling"
    swimming = "swimming"
    dancing = "dancing"


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class Goal(str, Enum):
    gain = "gain"
    loss = "loss"
    maintain = "maintain"


class ActivityLevel(str, Enum):
    sedentary = "sedentary"
    light = "light"
    moderate = "moderate"
    very = "very"
    extra = "extra"


class DietPreference(str, Enum):
    vegetarian = "vegetarian"
    non_vegetarian = "non-vegetarian"
    mixed = "mixed"


class WorkoutLocation(str, Enum):
    gym = "gym"
    home = "home"
    outdoor = "outdoor"


class Sender(str, Enum):
    user = "user"
    assistant = "assistant"


# kcal per minute, by workout type.
WORKOUT_CALORIES_PER_MINUTE: Dict[WorkoutType, float] = {
    WorkoutType.cardio: 8,
    WorkoutType.strength: 6,
    WorkoutType.yoga: 3,
    WorkoutType.sports: 10,
    WorkoutType.walking: 4,
    WorkoutType.cycling: 7,
    WorkoutType.swimming: 11,
    WorkoutType.dancing: 5,
}

# Applied to an entry's calories when its macro fields are absent.
IMPUTED_PROTEIN_FACTOR = 0.15
IMPUTED_CARBS_FACTOR = 0.55
IMPUTED_FAT_FACTOR = 0.30 / 9

DEFAULT_FOOD_CALORIES = 0.0
DEFAULT_FOOD_QUANTITY = 1.0
DEFAULT_WORKOUT_MINUTES = 30.0
DEFAULT_WATER_ML = 250.0

_LEGACY_MEAL_TYPES = {"snack": MealType.snacks}
_LEGACY_UNITS = {"g": FoodUnit.gram, "grams": FoodUnit.gram, "pieces": FoodUnit.piece, "serving": FoodUnit.piece}

_PROFILE_CHOICES: Dict[str, type[Enum]] = {
    "gender": Gender,
    "goal": Goal,
    "activity_level": ActivityLevel,
    "diet_preference": DietPreference,
    "workout_location": WorkoutLocation,
}


def coerce_number(value: Any, default: Optional[float], *, positive: bool = False) -> Optional[float]:
    """Parse ``value`` as a finite non-negative number, else return ``default``.

    With ``positive=True`` zero also falls back to the default.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number) or number < 0:
        return default
    if positive and number == 0:
        return default
    return number


def _coerce_enum(value: Any, enum_cls: type[Enum], default: Enum, legacy: Optional[Dict[str, Enum]] = None) -> Enum:
    if isinstance(value, enum_cls):
        return value
    text = str(value or "").strip().lower()
    if legacy and text in legacy:
        return legacy[text]
    try:
        return enum_cls(text)
    except ValueError:
        return default


def impute_macros(calories: float) -> Dict[str, float]:
    return {
        "protein": calories * IMPUTED_PROTEIN_FACTOR,
        "carbs": calories * IMPUTED_CARBS_FACTOR,
        "fat": calories * IMPUTED_FAT_FACTOR,
    }


class LedgerRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", use_enum_values=False)

    id: str = ""
    created_at: str = Field("", alias="timestamp", description="ISO8601 timestamp")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        # Older clients wrote numeric ids (Date.now()).
        if value is None:
            return ""
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value)

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class FoodEntry(LedgerRecord):
    name: str = Field(..., min_length=1)
    quantity: float = DEFAULT_FOOD_QUANTITY
    unit: FoodUnit = FoodUnit.piece
    calories: float = DEFAULT_FOOD_CALORIES
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    meal_type: MealType = Field(MealType.other, alias="mealType")

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: object) -> float:
        return coerce_number(value, DEFAULT_FOOD_QUANTITY, positive=True)

    @field_validator("calories", mode="before")
    @classmethod
    def _coerce_calories(cls, value: object) -> float:
        return coerce_number(value, DEFAULT_FOOD_CALORIES)

    @field_validator("protein", "carbs", "fat", mode="before")
    @classmethod
    def _coerce_macro(cls, value: object) -> Optional[float]:
        return coerce_number(value, None)

    @field_validator("unit", mode="before")
    @classmethod
    def _coerce_unit(cls, value: object) -> FoodUnit:
        return _coerce_enum(value, FoodUnit, FoodUnit.piece, _LEGACY_UNITS)  # type: ignore[return-value]

    @field_validator("meal_type", mode="before")
    @classmethod
    def _coerce_meal_type(cls, value: object) -> MealType:
        return _coerce_enum(value, MealType, MealType.other, _LEGACY_MEAL_TYPES)  # type: ignore[return-value]

    def macros(self) -> Dict[str, float]:
        """Protein/carbs/fat with absent fields filled from the calorie split."""
        estimated = impute_macros(self.calories)
        return {
            "protein": self.protein if self.protein is not None else estimated["protein"],
            "carbs": self.carbs if self.carbs is not None else estimated["carbs"],
            "fat": self.fat if self.fat is not None else estimated["fat"],
        }

    def to_storage(self) -> Dict[str, Any]:
        data = super().to_storage()
        for key in ("protein", "carbs", "fat"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


class WorkoutEntry(LedgerRecord):
    name: str = Field(..., min_length=1)
    duration_minutes: float = Field(DEFAULT_WORKOUT_MINUTES, alias="duration")
    calories_burned: Optional[float] = Field(None, alias="caloriesBurned")
    type: WorkoutType = WorkoutType.cardio

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _coerce_duration(cls, value: object) -> float:
        return coerce_number(value, DEFAULT_WORKOUT_MINUTES, positive=True)

    @field_validator("calories_burned", mode="before")
    @classmethod
    def _coerce_burned(cls, value: object) -> Optional[float]:
        return coerce_number(value, None)

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: object) -> WorkoutType:
        return _coerce_enum(value, WorkoutType, WorkoutType.cardio)  # type: ignore[return-value]

    @model_validator(mode="after")
    def _derive_burned(self) -> "WorkoutEntry":
        if self.calories_burned is None:
            rate = WORKOUT_CALORIES_PER_MINUTE[self.type]
            self.calories_burned = float(round(rate * self.duration_minutes))
        return self


class WaterEntry(LedgerRecord):
    amount_ml: float = Field(DEFAULT_WATER_ML, alias="amount")

    @field_validator("amount_ml", mode="before")
    @classmethod
    def _coerce_amount(cls, value: object) -> float:
        return coerce_number(value, DEFAULT_WATER_ML, positive=True)


class WeightEntry(LedgerRecord):
    """One entry per calendar day; the day doubles as the identity."""

    date: str = Field(..., description="YYYY-MM-DD")
    weight_kg: float = Field(..., gt=0, alias="weight")

    @field_validator("weight_kg", mode="before")
    @classmethod
    def _coerce_weight(cls, value: object) -> Optional[float]:
        # None fails the gt=0 constraint; callers check before building.
        return coerce_number(value, None, positive=True)


class ProfileRecord(BaseModel):
    """The singleton profile. Every field is optional so partial updates validate.

    A stored field that cannot be read (a cleared input saved as ``0``, an
    unknown goal) becomes ``None`` rather than invalidating the whole profile.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = None
    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[Gender] = None
    height_cm: Optional[float] = Field(None, gt=0, alias="height")
    weight_kg: Optional[float] = Field(None, gt=0, alias="weight")
    goal: Optional[Goal] = None
    target_weight_kg: Optional[float] = Field(None, gt=0, alias="targetWeight")
    activity_level: Optional[ActivityLevel] = Field(None, alias="activityLevel")
    diet_preference: Optional[DietPreference] = Field(None, alias="dietPreference")
    workout_location: Optional[WorkoutLocation] = Field(None, alias="workoutLocation")

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: object) -> Optional[str]:
        if value is None or isinstance(value, (dict, list)):
            return None
        return str(value).strip() or None

    @field_validator("age", mode="before")
    @classmethod
    def _coerce_age(cls, value: object) -> Optional[int]:
        number = coerce_number(value, None, positive=True)
        if number is None or number > 150:
            return None
        return int(round(number))

    @field_validator("height_cm", "weight_kg", "target_weight_kg", mode="before")
    @classmethod
    def _coerce_measure(cls, value: object) -> Optional[float]:
        return coerce_number(value, None, positive=True)

    @field_validator("gender", "goal", "activity_level", "diet_preference", "workout_location", mode="before")
    @classmethod
    def _coerce_choice(cls, value: object, info: ValidationInfo) -> Optional[Enum]:
        if value is None:
            return None
        enum_cls = _PROFILE_CHOICES[info.field_name]
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(str(value).strip().lower())
        except ValueError:
            return None

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConversationMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    text: str = ""
    sender: Sender
    timestamp: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return "" if value is None else str(value)

    @field_validator("sender", mode="before")
    @classmethod
    def _coerce_sender(cls, value: object) -> Sender:
        # Older stored conversations tag assistant messages as "ai".
        if value == "ai":
            return Sender.assistant
        return value  # type: ignore[return-value]


class SavedFood(BaseModel):
    """A remembered food: calories for one unit, reused when logging it again."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(..., min_length=1)
    calories_per_unit: float = Field(0.0, alias="caloriesPerUnit")
    unit: FoodUnit = FoodUnit.piece

    @field_validator("calories_per_unit", mode="before")
    @classmethod
    def _coerce_rate(cls, value: object) -> float:
        return coerce_number(value, 0.0)

    @field_validator("unit", mode="before")
    @classmethod
    def _coerce_unit(cls, value: object) -> FoodUnit:
        return _coerce_enum(value, FoodUnit, FoodUnit.piece, _LEGACY_UNITS)  # type: ignore[return-value]

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SavedMealItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(..., min_length=1)
    quantity: float = DEFAULT_FOOD_QUANTITY
    unit: FoodUnit = FoodUnit.piece
    calories: float = DEFAULT_FOOD_CALORIES

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: object) -> float:
        return coerce_number(value, DEFAULT_FOOD_QUANTITY, positive=True)

    @field_validator("calories", mode="before")
    @classmethod
    def _coerce_calories(cls, value: object) -> float:
        return coerce_number(value, DEFAULT_FOOD_CALORIES)

    @field_validator("unit", mode="before")
    @classmethod
    def _coerce_unit(cls, value: object) -> FoodUnit:
        return _coerce_enum(value, FoodUnit, FoodUnit.piece, _LEGACY_UNITS)  # type: ignore[return-value]


class SavedMeal(BaseModel):
    """A named group of foods for one meal type; its total is recomputed from the items."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(..., min_length=1)
    meal_type: MealType = Field(MealType.other, alias="mealType")
    items: List[SavedMealItem] = Field(default_factory=list)
    total_calories: float = Field(0.0, alias="totalCalories")

    @field_validator("meal_type", mode="before")
    @classmethod
    def _coerce_meal_type(cls, value: object) -> MealType:
        return _coerce_enum(value, MealType, MealType.other, _LEGACY_MEAL_TYPES)  # type: ignore[return-value]

    @field_validator("items", mode="before")
    @classmethod
    def _drop_unreadable_items(cls, value: object) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict) and str(item.get("name") or "").strip()]

    @model_validator(mode="after")
    def _total(self) -> "SavedMeal":
        self.total_calories = float(sum(item.calories for item in self.items))
        return self

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Conversation(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    title: str = "New Chat"
    messages: List[ConversationMessage] = Field(default_factory=list)
    created_at: str = Field("", alias="createdAt")
    updated_at: str = Field("", alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return "" if value is None else str(value)

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


RECORD_MODELS: Dict[RecordKind, type[LedgerRecord]] = {
    RecordKind.food: FoodEntry,
    RecordKind.workout: WorkoutEntry,
    RecordKind.water: WaterEntry,
    RecordKind.weight: WeightEntry,
}
