# -*- coding: utf-8 -*-
"""Ledger — API endpoints (food, workouts, water, weight, profile, reset, food library)."""

from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from ..deps import get_surface, resolve_day
from ..runtime import LedgerSurface
from .library import RECENT_FOODS
from .models import (
    ActivityLevel,
    DietPreference,
    FoodUnit,
    Gender,
    Goal,
    MealType,
    ProfileRecord,
    RecordKind,
    SavedFood,
    SavedMeal,
    WeightEntry,
    WorkoutLocation,
    WorkoutType,
)

router = APIRouter(prefix="/api", tags=["Ledger"])


class FoodCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    calories: float = Field(..., ge=0)
    quantity: float = Field(1, gt=0)
    unit: FoodUnit = FoodUnit.piece
    protein: Optional[float] = Field(None, ge=0)
    carbs: Optional[float] = Field(None, ge=0)
    fat: Optional[float] = Field(None, ge=0)
    meal_type: MealType = MealType.other
    remember: bool = Field(True, description="Also save the food to the library")


class WorkoutCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    duration_minutes: float = Field(..., gt=0)
    type: WorkoutType = WorkoutType.cardio
    calories_burned: Optional[float] = Field(None, ge=0)


class WaterCreateRequest(BaseModel):
    amount_ml: float = Field(..., gt=0)


class WeightUpsertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: Optional[str] = Field(None, description="YYYY-MM-DD; defaults to today")
    weight_kg: float = Field(..., gt=0, alias="weight")


class ProfileRequest(BaseModel):
    """Profile fields as the client sends them; unlike the stored record, bad values are rejected."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = Field(None, max_length=200)
    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[Gender] = None
    height_cm: Optional[float] = Field(None, gt=0, alias="height")
    weight_kg: Optional[float] = Field(None, gt=0, alias="weight")
    goal: Optional[Goal] = None
    target_weight_kg: Optional[float] = Field(None, gt=0, alias="targetWeight")
    activity_level: Optional[ActivityLevel] = Field(None, alias="activityLevel")
    diet_preference: Optional[DietPreference] = Field(None, alias="dietPreference")
    workout_location: Optional[WorkoutLocation] = Field(None, alias="workoutLocation")

    def to_record(self) -> ProfileRecord:
        return ProfileRecord.model_validate(self.model_dump(mode="json", by_alias=True, exclude_none=True))


class CreatedResponse(BaseModel):
    id: str
    status: str = "ok"


class RemovedResponse(BaseModel):
    status: str = "ok"
    removed: bool


class EntryListResponse(BaseModel):
    kind: RecordKind
    date: str
    count: int
    entries: List[dict]


def _list_response(surface: LedgerSurface, kind: RecordKind, day: Optional[str], order: str) -> EntryListResponse:
    key = resolve_day(day)
    records = surface.store.list_for_day(kind, key, newest_first=(order == "recent"))
    return EntryListResponse(
        kind=kind,
        date=key,
        count=len(records),
        entries=[r.to_storage() for r in records],
    )


# ---- food ----

@router.post("/food", response_model=CreatedResponse, summary="Log a food entry")
def create_food(request: FoodCreateRequest, surface: LedgerSurface = Depends(get_surface)):
    entry = surface.store.add_food(
        request.name,
        request.calories,
        quantity=request.quantity,
        unit=request.unit,
        protein=request.protein,
        carbs=request.carbs,
        fat=request.fat,
        meal_type=request.meal_type,
    )
    if request.remember:
        surface.library.remember(entry)
    return CreatedResponse(id=entry.id)


@router.get("/food", response_model=EntryListResponse, summary="List food entries for a day")
def list_food(
    day: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    order: Literal["inserted", "recent"] = Query(default="inserted"),
    surface: LedgerSurface = Depends(get_surface),
):
    return _list_response(surface, RecordKind.food, day, order)


# ---- workouts ----

@router.post("/workouts", response_model=CreatedResponse, summary="Log a workout")
def create_workout(request: WorkoutCreateRequest, surface: LedgerSurface = Depends(get_surface)):
    entry = surface.store.add_workout(
        request.name,
        request.duration_minutes,
        type=request.type,
        calories_burned=request.calories_burned,
    )
    return CreatedResponse(id=entry.id)


@router.get("/workouts", response_model=EntryListResponse, summary="List workouts for a day")
def list_workouts(
    day: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    order: Literal["inserted", "recent"] = Query(default="inserted"),
    surface: LedgerSurface = Depends(get_surface),
):
    return _list_response(surface, RecordKind.workout, day, order)


# ---- water ----

@router.post("/water", response_model=CreatedResponse, summary="Log water intake")
def create_water(request: WaterCreateRequest, surface: LedgerSurface = Depends(get_surface)):
    entry = surface.store.add_water(request.amount_ml)
    return CreatedResponse(id=entry.id)


@router.get("/water", response_model=EntryListResponse, summary="List water entries for a day")
def list_water(
    day: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    order: Literal["inserted", "recent"] = Query(default="inserted"),
    surface: LedgerSurface = Depends(get_surface),
):
    return _list_response(surface, RecordKind.water, day, order)


# ---- removal (any list kind) ----

@router.delete("/{kind}/{record_id}", response_model=RemovedResponse, summary="Remove an entry")
def remove_entry(kind: str, record_id: str, surface: LedgerSurface = Depends(get_surface)):
    aliases = {"workouts": "workout"}
    removed = surface.store.remove(aliases.get(kind, kind), record_id)
    return RemovedResponse(removed=removed)


# ---- weight ----

@router.put("/weight", response_model=WeightEntry, summary="Set the weight for a day")
def upsert_weight(request: WeightUpsertRequest, surface: LedgerSurface = Depends(get_surface)):
    day = resolve_day(request.date)
    entry = surface.store.upsert_weight(day, request.weight_kg)
    if entry is None:
        raise HTTPException(status_code=400, detail="Invalid weight")
    return entry


@router.get("/weight", response_model=List[WeightEntry], summary="Weight history (oldest first)")
def list_weight(surface: LedgerSurface = Depends(get_surface)):
    return surface.store.weight_history()


# ---- profile ----

@router.get("/profile", summary="Get the profile")
def get_profile(surface: LedgerSurface = Depends(get_surface)):
    profile = surface.store.get_profile()
    return {
        "onboarded": surface.store.is_onboarded(),
        "profile": profile.to_storage() if profile else None,
    }


@router.post("/profile", summary="Complete onboarding with a full profile")
def complete_onboarding(profile: ProfileRequest, surface: LedgerSurface = Depends(get_surface)):
    saved = surface.store.complete_onboarding(profile.to_record())
    return {"onboarded": True, "profile": saved.to_storage()}


@router.patch("/profile", summary="Merge fields into the profile")
def update_profile(updates: ProfileRequest, surface: LedgerSurface = Depends(get_surface)):
    merged = surface.store.update_profile(updates.to_record())
    if merged is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {"onboarded": surface.store.is_onboarded(), "profile": merged.to_storage()}


# ---- reset ----

@router.delete("/ledger", summary="Delete everything (profile and every log)")
def reset_ledger(surface: LedgerSurface = Depends(get_surface)):
    surface.store.reset_all()
    return {"status": "ok"}




# ---- food library ----

library_router = APIRouter(prefix="/api/library", tags=["Library"])


class SavedFoodCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    calories_per_unit: float = Field(..., ge=0)
    unit: FoodUnit = FoodUnit.piece


class SavedMealItemRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(1, gt=0)
    unit: FoodUnit = FoodUnit.piece
    calories: float = Field(..., ge=0)


class SavedMealCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    meal_type: MealType
    items: List[SavedMealItemRequest] = Field(..., min_length=1)


@library_router.get("/foods", response_model=List[SavedFood], summary="Search or list remembered foods")
def list_saved_foods(
    q: Optional[str] = Query(default=None, description="Case-insensitive name search"),
    limit: int = Query(default=RECENT_FOODS, ge=1, le=500),
    surface: LedgerSurface = Depends(get_surface),
):
    if q is not None:
        return surface.library.search_foods(q)
    return surface.library.recent_foods(limit)


@library_router.post("/foods", summary="Remember a food")
def save_food(request: SavedFoodCreateRequest, surface: LedgerSurface = Depends(get_surface)):
    food, created = surface.library.save_food(request.name, request.calories_per_unit, request.unit)
    return {"created": created, "food": food.to_storage()}


@library_router.delete("/foods/{unit}/{name}", response_model=RemovedResponse, summary="Forget a food")
def forget_food(unit: FoodUnit, name: str, surface: LedgerSurface = Depends(get_surface)):
    return RemovedResponse(removed=surface.library.forget_food(name, unit))


@library_router.get("/meals", response_model=List[SavedMeal], summary="List saved meals")
def list_saved_meals(
    meal_type: Optional[MealType] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    surface: LedgerSurface = Depends(get_surface),
):
    return surface.library.meals(meal_type, limit)


@library_router.post("/meals", response_model=SavedMeal, summary="Save a meal template")
def save_meal(request: SavedMealCreateRequest, surface: LedgerSurface = Depends(get_surface)):
    items = [item.model_dump(mode="json") for item in request.items]
    return surface.library.save_meal(request.name, request.meal_type, items)


@library_router.post("/meals/{meal_type}/{name}/log", response_model=EntryListResponse, summary="Log a saved meal")
def log_saved_meal(meal_type: MealType, name: str, surface: LedgerSurface = Depends(get_surface)):
    logged = surface.library.log_meal(surface.store, name, meal_type)
    if logged is None:
        raise HTTPException(status_code=404, detail="Saved meal not found")
    return EntryListResponse(
        kind=RecordKind.food,
        date=resolve_day(None),
        count=len(logged),
        entries=[e.to_storage() for e in logged],
    )


@library_router.delete("/meals/{meal_type}/{name}", response_model=RemovedResponse, summary="Delete a saved meal")
def remove_saved_meal(meal_type: MealType, name: str, surface: LedgerSurface = Depends(get_surface)):
    return RemovedResponse(removed=surface.library.remove_meal(name, meal_type))
