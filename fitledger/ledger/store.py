# -*- coding: utf-8 -*-
"""Ledger store — one JSON bucket per record kind.

Every mutation is a whole-bucket read-modify-write through the injected
:class:`PersistenceAdapter`, which publishes the change to other surfaces.
The read and the write are not atomic together: two surfaces racing on the
same bucket can lose one append (last writer wins at the bucket level).
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..errors import UnknownBucketError
from ..persistence.adapter import PersistenceAdapter
from .days import day_of, parse_day, to_zone, utc_now_iso
from .models import (
    RECORD_MODELS,
    FoodEntry,
    FoodUnit,
    LedgerRecord,
    MealType,
    ProfileRecord,
    RecordKind,
    WaterEntry,
    WeightEntry,
    WorkoutEntry,
    WorkoutType,
    coerce_number,
)

logger = logging.getLogger(__name__)

BUCKETS: Dict[RecordKind, str] = {
    RecordKind.food: "dailyFoodLog",
    RecordKind.workout: "dailyWorkoutLog",
    RecordKind.water: "dailyWaterLog",
    RecordKind.weight: "weightEntries",
}
PROFILE_BUCKET = "userProfile"
ONBOARDING_BUCKET = "onboardingComplete"
CONVERSATIONS_BUCKET = "aiCoachConversations"
SAVED_FOODS_BUCKET = "savedFoods"
SAVED_MEALS_BUCKET = "savedMeals"

ALL_BUCKETS = (
    *BUCKETS.values(),
    PROFILE_BUCKET,
    ONBOARDING_BUCKET,
    CONVERSATIONS_BUCKET,
    SAVED_FOODS_BUCKET,
    SAVED_MEALS_BUCKET,
)

BUCKET_KINDS: Dict[str, RecordKind] = {name: kind for kind, name in BUCKETS.items()}


class IdGenerator:
    """Millisecond clock, a per-tick sequence and a random tiebreaker.

    Ids generated by one process never collide and sort in creation order.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last_ms = 0
        self._seq = 0

    def __call__(self) -> str:
        with self._lock:
            ms = int(self._clock() * 1000)
            if ms <= self._last_ms:
                ms = self._last_ms
                self._seq += 1
            else:
                self._seq = 0
            self._last_ms = ms
            seq = self._seq
        return f"{ms}{seq:03d}{secrets.randbelow(1000):03d}"


new_id = IdGenerator()


def kind_of(kind: Union[RecordKind, str]) -> RecordKind:
    if isinstance(kind, RecordKind):
        return kind
    try:
        return RecordKind(str(kind))
    except ValueError:
        raise UnknownBucketError(kind) from None


@dataclass
class LedgerSnapshot:
    """Everything the aggregation functions read, captured at one moment."""

    foods: List[FoodEntry] = field(default_factory=list)
    workouts: List[WorkoutEntry] = field(default_factory=list)
    waters: List[WaterEntry] = field(default_factory=list)
    weights: List[WeightEntry] = field(default_factory=list)
    profile: Optional[ProfileRecord] = None
    tz: Optional[tzinfo] = None

    def day_of(self, record: LedgerRecord) -> Optional[str]:
        return record_day(record, self.tz)


def record_day(record: LedgerRecord, tz: Optional[tzinfo] = None) -> Optional[str]:
    if isinstance(record, WeightEntry):
        parsed = parse_day(record.date)
        if parsed is not None:
            return parsed.isoformat()
    return day_of(record.created_at, tz)


def _raw_day(kind: RecordKind, raw: Mapping[str, Any], tz: Optional[tzinfo]) -> Optional[str]:
    if kind is RecordKind.weight:
        parsed = parse_day(raw.get("date"))
        if parsed is not None:
            return parsed.isoformat()
    return day_of(raw.get("timestamp"), tz)


class LedgerStore:
    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        tz: Optional[tzinfo] = None,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.adapter = adapter
        self.tz = tz
        self._new_id = id_factory

    # ---- buckets ----

    @staticmethod
    def bucket_name(kind: Union[RecordKind, str]) -> str:
        return BUCKETS[kind_of(kind)]

    def _raw(self, kind: RecordKind) -> List[Any]:
        return self.adapter.read_bucket(BUCKETS[kind])

    def _write(self, kind: RecordKind, raw: List[Any]) -> None:
        self.adapter.write_bucket(BUCKETS[kind], raw)

    def _parse(self, kind: RecordKind, raw: Any) -> Optional[LedgerRecord]:
        if not isinstance(raw, dict):
            return None
        try:
            return RECORD_MODELS[kind].model_validate(raw)
        except ValidationError as exc:
            logger.debug("Skipping unreadable %s record: %s", kind.value, exc.errors()[:1])
            return None

    def _stamp(self, at: Optional[datetime]) -> str:
        if at is not None:
            return utc_now_iso(to_zone(at, self.tz))
        return utc_now_iso()

    # ---- reads ----

    def list_all(self, kind: Union[RecordKind, str]) -> List[Any]:
        k = kind_of(kind)
        parsed = (self._parse(k, raw) for raw in self._raw(k))
        return [r for r in parsed if r is not None]

    def list_for_day(
        self,
        kind: Union[RecordKind, str],
        day: str,
        *,
        newest_first: bool = False,
    ) -> List[Any]:
        """Records whose timestamp falls on ``day`` (YYYY-MM-DD) in the store's zone.

        Insertion order unless ``newest_first`` is requested.
        """
        k = kind_of(kind)
        target = parse_day(day)
        if target is None:
            return []
        key = target.isoformat()
        records = [r for r in self.list_all(k) if record_day(r, self.tz) == key]
        if newest_first:
            records.reverse()
            records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    def get(self, kind: Union[RecordKind, str], record_id: str) -> Optional[Any]:
        for record in self.list_all(kind):
            if record.id == str(record_id):
                return record
        return None

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            foods=self.list_all(RecordKind.food),
            workouts=self.list_all(RecordKind.workout),
            waters=self.list_all(RecordKind.water),
            weights=self.weight_history(),
            profile=self.get_profile(),
            tz=self.tz,
        )

    # ---- writes ----

    def append(
        self,
        kind: Union[RecordKind, str],
        record: Union[LedgerRecord, Mapping[str, Any]],
        *,
        at: Optional[datetime] = None,
    ) -> str:
        """Validate, stamp and append ``record``; returns its id.

        Weight entries are upserted by calendar day and the day is their id.
        """
        k = kind_of(kind)
        model_cls = RECORD_MODELS[k]
        data = record.to_storage() if isinstance(record, LedgerRecord) else dict(record)
        if at is not None or day_of(data.get("timestamp"), self.tz) is None:
            if data.get("timestamp") and at is None:
                logger.info("Re-stamping %s record with unreadable timestamp %r", k.value, data["timestamp"])
            data["timestamp"] = self._stamp(at)
        if k is RecordKind.weight:
            entry = self._upsert_weight_raw(data)
            return entry.id if entry is not None else ""
        data["id"] = data.get("id") or self._new_id()
        model = model_cls.model_validate(data)
        raw = self._raw(k)
        raw.append(model.to_storage())
        self._write(k, raw)
        return model.id

    def add_food(
        self,
        name: str,
        calories: Any,
        *,
        quantity: Any = 1,
        unit: Union[FoodUnit, str] = FoodUnit.piece,
        protein: Any = None,
        carbs: Any = None,
        fat: Any = None,
        meal_type: Union[MealType, str] = MealType.other,
        at: Optional[datetime] = None,
    ) -> FoodEntry:
        record: Dict[str, Any] = {
            "name": name,
            "quantity": quantity,
            "unit": unit,
            "calories": calories,
            "protein": protein,
            "carbs": carbs,
            "fat": fat,
            "mealType": meal_type,
        }
        record_id = self.append(RecordKind.food, record, at=at)
        return self.get(RecordKind.food, record_id)  # type: ignore[return-value]

    def add_workout(
        self,
        name: str,
        duration_minutes: Any,
        *,
        type: Union[WorkoutType, str] = WorkoutType.cardio,
        calories_burned: Any = None,
        at: Optional[datetime] = None,
    ) -> WorkoutEntry:
        record = {
            "name": name,
            "duration": duration_minutes,
            "type": type,
            "caloriesBurned": calories_burned,
        }
        record_id = self.append(RecordKind.workout, record, at=at)
        return self.get(RecordKind.workout, record_id)  # type: ignore[return-value]

    def add_water(self, amount_ml: Any, *, at: Optional[datetime] = None) -> WaterEntry:
        record_id = self.append(RecordKind.water, {"amount": amount_ml}, at=at)
        return self.get(RecordKind.water, record_id)  # type: ignore[return-value]

    def remove(self, kind: Union[RecordKind, str], record_id: str) -> bool:
        """Drop the record with ``record_id``; False (not an error) when absent."""
        k = kind_of(kind)
        raw = self._raw(k)
        target = str(record_id)
        kept = [r for r in raw if not (isinstance(r, dict) and self._raw_id(k, r) == target)]
        if len(kept) == len(raw):
            return False
        self._write(k, kept)
        return True

    def _raw_id(self, kind: RecordKind, raw: Mapping[str, Any]) -> str:
        if kind is RecordKind.weight:
            return _raw_day(kind, raw, self.tz) or ""
        value = raw.get("id")
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return "" if value is None else str(value)

    # ---- weight ----

    def upsert_weight(
        self,
        day: Optional[str],
        weight_kg: Any,
        *,
        at: Optional[datetime] = None,
    ) -> Optional[WeightEntry]:
        """Replace the entry for ``day`` (default: today) or append one.

        A non-positive or unparseable weight leaves the ledger unchanged.
        """
        data: Dict[str, Any] = {"weight": weight_kg, "timestamp": self._stamp(at)}
        if day:
            data["date"] = day
        return self._upsert_weight_raw(data)

    def _upsert_weight_raw(self, data: Dict[str, Any]) -> Optional[WeightEntry]:
        weight = coerce_number(data.get("weight"), None, positive=True)
        if weight is None:
            logger.warning("Ignoring weight entry with invalid value %r", data.get("weight"))
            return None
        parsed_day = parse_day(data.get("date")) if data.get("date") else None
        key = parsed_day.isoformat() if parsed_day else day_of(data.get("timestamp"), self.tz)
        if key is None:
            logger.warning("Ignoring weight entry without a usable day: %r", data.get("date"))
            return None
        entry = WeightEntry.model_validate({**data, "id": key, "date": key, "weight": weight})
        raw = [
            r
            for r in self._raw(RecordKind.weight)
            if not (isinstance(r, dict) and _raw_day(RecordKind.weight, r, self.tz) == key)
        ]
        raw.append(entry.to_storage())
        self._write(RecordKind.weight, raw)
        return entry

    def weight_history(self) -> List[WeightEntry]:
        entries: List[WeightEntry] = self.list_all(RecordKind.weight)
        return sorted(entries, key=lambda e: record_day(e, self.tz) or "")

    # ---- profile ----

    def get_profile(self) -> Optional[ProfileRecord]:
        raw = self.adapter.read_object(PROFILE_BUCKET)
        if raw is None:
            return None
        try:
            return ProfileRecord.model_validate(raw)
        except ValidationError as exc:
            logger.debug("Profile bucket unreadable: %s", exc.errors()[:1])
            return None

    def is_onboarded(self) -> bool:
        return self.adapter.read_text(ONBOARDING_BUCKET) == "true" and self.get_profile() is not None

    def complete_onboarding(self, profile: Union[ProfileRecord, Mapping[str, Any]]) -> ProfileRecord:
        model = profile if isinstance(profile, ProfileRecord) else ProfileRecord.model_validate(profile)
        self.adapter.write_object(PROFILE_BUCKET, model.to_storage())
        self.adapter.write_text(ONBOARDING_BUCKET, "true")
        return model

    def update_profile(self, updates: Union[ProfileRecord, Mapping[str, Any]]) -> Optional[ProfileRecord]:
        """Merge ``updates`` into the stored profile; ``None`` when there is no profile yet."""
        current = self.adapter.read_object(PROFILE_BUCKET)
        if current is None:
            logger.info("Profile update skipped: no profile stored")
            return None
        patch = updates if isinstance(updates, ProfileRecord) else ProfileRecord.model_validate(updates)
        merged = ProfileRecord.model_validate({**current, **patch.to_storage()})
        self.adapter.write_object(PROFILE_BUCKET, merged.to_storage())
        return merged

    # ---- reset ----

    def reset_all(self) -> None:
        for name in ALL_BUCKETS:
            self.adapter.remove_bucket(name)
