# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from datetime import datetime, timezone
from unittest import mock

from fitledger.commands import CommandProcessor, DirectiveKind, strip_directives, tokenize
from fitledger.commands.grammar import first_number, split_pairs
from fitledger.commands.processor import infer_workout_type
from fitledger.ledger import LedgerStore
from fitledger.ledger.models import Goal, MealType, WorkoutType
from fitledger.persistence import MemoryStorageArea, PersistenceAdapter

AT = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)
DAY = "2024-03-05"


class TestDirectiveGrammar(unittest.TestCase):
    def test_tokenize_finds_each_keyword(self) -> None:
        text = "Nice!\nFOOD_UPDATE: egg:70 WATER_UPDATE: 300\nWEIGHT_UPDATE: 80"
        found = tokenize(text)

        self.assertEqual(
            [d.kind for d in found],
            [DirectiveKind.FOOD_UPDATE, DirectiveKind.WATER_UPDATE, DirectiveKind.WEIGHT_UPDATE],
        )
        self.assertEqual([d.payload for d in found], ["egg:70", "300", "80"])
        self.assertEqual([d.line for d in found], [1, 1, 2])

    def test_keywords_are_case_sensitive(self) -> None:
        self.assertEqual(tokenize("food_update: apple:95"), [])
        self.assertEqual(tokenize("MYFOOD_UPDATE: apple:95"), [])

    def test_strip_keeps_text_before_keyword(self) -> None:
        text = "Great job! FOOD_UPDATE: apple:95, toast:80\nKeep it up!"
        self.assertEqual(strip_directives(text), "Great job! \nKeep it up!")

    def test_strip_removes_markdown_around_keyword(self) -> None:
        self.assertEqual(strip_directives("Logged.\n**FOOD_UPDATE:** banana:105"), "Logged.")

    def test_strip_without_directives_returns_text_unchanged(self) -> None:
        self.assertEqual(strip_directives("  hello  "), "  hello  ")
        self.assertEqual(strip_directives(None), "")

    def test_split_pairs(self) -> None:
        self.assertEqual(
            split_pairs(" apple:95 , greek yogurt: 120 kcal,, bread"),
            [("apple", "95"), ("greek yogurt", "120 kcal"), ("bread", "")],
        )

    def test_first_number(self) -> None:
        self.assertEqual(first_number("about 72.5 kg"), 72.5)
        self.assertIsNone(first_number("not-a-number"))


class TestCommandProcessor(unittest.TestCase):
    def setUp(self) -> None:
        self.store = LedgerStore(PersistenceAdapter(MemoryStorageArea()), tz=timezone.utc)
        self.processor = CommandProcessor(self.store)

    def test_food_directive_logs_each_segment(self) -> None:
        result = self.processor.process("Great job! FOOD_UPDATE: apple:95, toast:80\nKeep it up!", at=AT)

        foods = self.store.list_for_day("food", DAY)
        self.assertEqual([(f.name, f.calories) for f in foods], [("apple", 95), ("toast", 80)])
        self.assertTrue(all(f.meal_type is MealType.snacks for f in foods))
        self.assertEqual(result.display_text, "Great job! \nKeep it up!")
        self.assertNotIn("FOOD_UPDATE", result.display_text)
        self.assertTrue(result.changed)
        self.assertEqual(result.applied[0].record_ids, [f.id for f in foods])

    def test_unparseable_weight_is_skipped(self) -> None:
        result = self.processor.process("WEIGHT_UPDATE: not-a-number", at=AT)

        self.assertEqual(self.store.weight_history(), [])
        self.assertEqual(result.applied, [])
        self.assertEqual(len(result.skipped), 1)
        self.assertEqual(result.display_text, "")

    def test_unparseable_numbers_fall_back_to_defaults(self) -> None:
        self.processor.process("FOOD_UPDATE: mystery stew:lots\nWORKOUT_UPDATE: morning run:a while", at=AT)

        food = self.store.list_for_day("food", DAY)[0]
        workout = self.store.list_for_day("workout", DAY)[0]
        self.assertEqual(food.calories, 100)
        self.assertEqual(workout.duration_minutes, 30)
        self.assertIs(workout.type, WorkoutType.cardio)
        self.assertEqual(workout.calories_burned, 240)

    def test_workout_type_is_inferred(self) -> None:
        self.processor.process("WORKOUT_UPDATE: swimming laps:20, power yoga:15", at=AT)

        workouts = self.store.list_for_day("workout", DAY)
        self.assertEqual([w.type for w in workouts], [WorkoutType.swimming, WorkoutType.yoga])
        self.assertEqual(workouts[0].calories_burned, 220)

    def test_segments_without_a_name_are_skipped(self) -> None:
        result = self.processor.process("FOOD_UPDATE: :95", at=AT)
        self.assertEqual(self.store.list_all("food"), [])
        self.assertEqual(len(result.skipped), 1)

    def test_weight_directive_upserts_today(self) -> None:
        self.store.upsert_weight(DAY, 74)
        result = self.processor.process("You're doing great.\nWEIGHT_UPDATE: 72.5 kg", at=AT)

        history = self.store.weight_history()
        self.assertEqual([(w.date, w.weight_kg) for w in history], [(DAY, 72.5)])
        self.assertEqual(result.display_text, "You're doing great.")

    def test_water_directive(self) -> None:
        self.processor.process("WATER_UPDATE: 500ml", at=AT)
        self.assertEqual([w.amount_ml for w in self.store.list_for_day("water", DAY)], [500])

    def test_negative_water_is_skipped(self) -> None:
        result = self.processor.process("WATER_UPDATE: -200", at=AT)
        self.assertEqual(self.store.list_all("water"), [])
        self.assertFalse(result.changed)

    def test_profile_directive_merges_known_keys(self) -> None:
        self.store.complete_onboarding({"name": "Sam", "goal": "maintain", "activityLevel": "light"})

        result = self.processor.process(
            "PROFILE_UPDATE: goal:weight loss, targetWeight:70kg, favouriteColour:blue", at=AT
        )

        profile = self.store.get_profile()
        assert profile is not None
        self.assertIs(profile.goal, Goal.loss)
        self.assertEqual(profile.target_weight_kg, 70)
        self.assertEqual(profile.name, "Sam")
        self.assertEqual(profile.activity_level.value, "light")
        self.assertNotIn("favouriteColour", profile.model_extra or {})
        self.assertEqual(result.applied[0].values, {"goal": "loss", "targetWeight": 70.0})

    def test_profile_directive_without_profile_is_skipped(self) -> None:
        result = self.processor.process("PROFILE_UPDATE: goal:gain", at=AT)
        self.assertIsNone(self.store.get_profile())
        self.assertEqual(len(result.skipped), 1)

    def test_profile_directive_with_cleared_stored_field(self) -> None:
        self.store.adapter.write_object("userProfile", {"name": "Sam", "height": 0, "goal": "maintain"})

        result = self.processor.process("PROFILE_UPDATE: goal:gain", at=AT)

        self.assertEqual(result.skipped, [])
        profile = self.store.get_profile()
        assert profile is not None
        self.assertIs(profile.goal, Goal.gain)
        self.assertIsNone(profile.height_cm)

    def test_failing_directive_does_not_block_others(self) -> None:
        with mock.patch.object(self.store, "add_water", side_effect=RuntimeError("disk full")):
            result = self.processor.process("Done.\nWATER_UPDATE: 300\nFOOD_UPDATE: egg:70", at=AT)

        self.assertEqual(result.display_text, "Done.")
        self.assertEqual([a.kind for a in result.applied], [DirectiveKind.FOOD_UPDATE])
        self.assertEqual(result.skipped[0].reason, "disk full")
        self.assertEqual(len(self.store.list_all("food")), 1)

    def test_text_without_directives(self) -> None:
        result = self.processor.process("Drink more water today!")
        self.assertEqual(result.display_text, "Drink more water today!")
        self.assertFalse(result.changed)

    def test_non_text_input(self) -> None:
        self.assertEqual(self.processor.process(None).display_text, "")


class TestWorkoutTypeInference(unittest.TestCase):
    def test_keywords(self) -> None:
        cases = {
            "Evening jog": WorkoutType.cardio,
            "Bench press": WorkoutType.strength,
            "Hike": WorkoutType.walking,
            "Bike commute": WorkoutType.cycling,
            "Zumba class": WorkoutType.dancing,
            "Tennis": WorkoutType.sports,
            "Something new": WorkoutType.cardio,
        }
        for name, expected in cases.items():
            with self.subTest(name=name):
                self.assertIs(infer_workout_type(name), expected)


if __name__ == "__main__":
    unittest.main()
