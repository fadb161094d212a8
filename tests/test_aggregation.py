# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from datetime import datetime, timezone

from fitledger.aggregation import (
    activity_streak,
    daily_series,
    daily_totals,
    monthly_calendar_index,
    nutrition_breakdown_percentages,
    progress_summary,
    water_progress,
    water_total,
    weekly_averages,
    weight_trend,
)
from fitledger.ledger import LedgerStore
from fitledger.persistence import MemoryStorageArea, PersistenceAdapter


def at(day: str, hour: int = 12) -> datetime:
    return datetime.fromisoformat(f"{day}T{hour:02d}:00:00+00:00")


class TestAggregation(unittest.TestCase):
    def setUp(self) -> None:
        self.store = LedgerStore(PersistenceAdapter(MemoryStorageArea()), tz=timezone.utc)

    def test_daily_totals_sum_food_and_burn(self) -> None:
        for name, kcal in (("Apple", 100), ("Pasta", 250), ("Yogurt", 75)):
            self.store.add_food(name, kcal, protein=0, carbs=0, fat=0, at=at("2024-03-05"))
        self.store.add_workout("Run", 25, calories_burned=200, at=at("2024-03-05"))
        self.store.add_food("Other day", 999, at=at("2024-03-06"))

        totals = daily_totals(self.store.snapshot(), "2024-03-05")

        self.assertEqual(totals.calories, 425)
        self.assertEqual(totals.calories_burned, 200)
        self.assertEqual(totals.net_calories, 225)
        self.assertEqual(totals.food_count, 3)
        self.assertEqual(totals.workout_count, 1)

    def test_missing_macros_are_imputed_from_calories(self) -> None:
        self.store.add_food("Mystery", 200, at=at("2024-03-05"))

        totals = daily_totals(self.store.snapshot(), "2024-03-05")

        self.assertAlmostEqual(totals.protein, 30.0)
        self.assertAlmostEqual(totals.carbs, 110.0)
        self.assertAlmostEqual(totals.fat, 6.6667, places=3)

    def test_partial_macros_only_fill_the_gaps(self) -> None:
        self.store.add_food("Shake", 200, protein=40, at=at("2024-03-05"))

        totals = daily_totals(self.store.snapshot(), "2024-03-05")

        self.assertAlmostEqual(totals.protein, 40.0)
        self.assertAlmostEqual(totals.carbs, 110.0)

    def test_daily_totals_are_repeatable(self) -> None:
        self.store.add_food("Apple", 95, at=at("2024-03-05"))
        snap = self.store.snapshot()
        self.assertEqual(daily_totals(snap, "2024-03-05"), daily_totals(snap, "2024-03-05"))

    def test_empty_day(self) -> None:
        totals = daily_totals(self.store.snapshot(), "2024-03-05")
        self.assertEqual(totals.calories, 0)
        self.assertFalse(totals.has_activity)

    def test_invalid_day_raises(self) -> None:
        with self.assertRaises(ValueError):
            daily_totals(self.store.snapshot(), "someday")

    def test_breakdown_defaults_when_no_macros(self) -> None:
        result = nutrition_breakdown_percentages(self.store.snapshot(), "2024-03-05")
        self.assertEqual((result.protein_pct, result.carbs_pct, result.fat_pct), (25.0, 50.0, 25.0))
        self.assertTrue(result.is_default)

    def test_breakdown_normalizes_to_100(self) -> None:
        self.store.add_food("Bowl", 500, protein=30, carbs=50, fat=20, at=at("2024-03-05"))

        result = nutrition_breakdown_percentages(self.store.snapshot(), "2024-03-05")

        self.assertAlmostEqual(result.protein_pct, 30.0)
        self.assertAlmostEqual(result.carbs_pct, 50.0)
        self.assertAlmostEqual(result.fat_pct, 20.0)
        self.assertFalse(result.is_default)

    def test_weekly_averages_skip_idle_days(self) -> None:
        # 2024-03-05 is a Tuesday; its week runs Sunday 03-03 to Saturday 03-09.
        self.store.add_food("Brunch", 500, at=at("2024-03-03"))
        self.store.add_food("Dinner", 300, at=at("2024-03-05"))
        self.store.add_food("Next week", 900, at=at("2024-03-10"))

        week = weekly_averages(self.store.snapshot(), "2024-03-05")

        self.assertEqual((week.start, week.end), ("2024-03-03", "2024-03-09"))
        self.assertEqual(len(week.days), 7)
        self.assertEqual(week.active_days, 2)
        self.assertAlmostEqual(week.avg_calories, 400.0)

    def test_workout_only_day_counts_as_active(self) -> None:
        self.store.add_food("Lunch", 600, at=at("2024-03-04"))
        self.store.add_workout("Swim", 30, calories_burned=300, at=at("2024-03-06"))

        week = weekly_averages(self.store.snapshot(), "2024-03-09")

        self.assertEqual(week.active_days, 2)
        self.assertAlmostEqual(week.avg_calories, 300.0)
        self.assertAlmostEqual(week.avg_burned, 150.0)

    def test_empty_week(self) -> None:
        week = weekly_averages(self.store.snapshot(), "2024-03-05")
        self.assertEqual(week.active_days, 0)
        self.assertEqual(week.avg_calories, 0.0)

    def test_monthly_calendar_index(self) -> None:
        self.store.add_food("Apple", 95, at=at("2024-03-05"))
        self.store.upsert_weight("2024-03-20", 80)
        self.store.add_workout("Run", 30, at=at("2024-04-01"))
        self.store.add_water(500, at=at("2024-03-10"))

        self.assertEqual(
            monthly_calendar_index(self.store.snapshot(), 3, 2024),
            {"2024-03-05", "2024-03-20"},
        )
        self.assertEqual(monthly_calendar_index(self.store.snapshot(), 4, 2024), {"2024-04-01"})

    def test_water(self) -> None:
        self.store.add_water(500, at=at("2024-03-05", 8))
        self.store.add_water(500, at=at("2024-03-05", 14))
        snap = self.store.snapshot()

        self.assertEqual(water_total(snap, "2024-03-05"), 1000)
        progress = water_progress(snap, "2024-03-05", goal_ml=2000)
        self.assertEqual(progress.percent, 50.0)
        self.assertEqual(progress.entry_count, 2)

    def test_water_progress_caps_at_100(self) -> None:
        self.store.add_water(3000, at=at("2024-03-05"))
        self.assertEqual(water_progress(self.store.snapshot(), "2024-03-05", goal_ml=2000).percent, 100.0)

    def test_weight_trend(self) -> None:
        self.store.upsert_weight("2024-03-05", 78.5)
        self.store.upsert_weight("2024-03-01", 80)
        self.store.upsert_weight("2024-03-03", 79)

        trend = weight_trend(self.store.snapshot())

        self.assertEqual(trend.entries, 3)
        self.assertEqual(trend.latest_kg, 78.5)
        self.assertEqual(trend.latest_date, "2024-03-05")
        self.assertAlmostEqual(trend.change_kg, -0.5)
        self.assertAlmostEqual(trend.total_change_kg, -1.5)

    def test_activity_streak(self) -> None:
        for day in ("2024-03-01", "2024-03-03", "2024-03-04", "2024-03-05"):
            self.store.add_food("Meal", 400, at=at(day))
        snap = self.store.snapshot()

        self.assertEqual(activity_streak(snap, "2024-03-05"), 3)
        self.assertEqual(activity_streak(snap, "2024-03-06"), 0)

    def test_daily_series_and_progress(self) -> None:
        self.store.add_food("Meal", 400, at=at("2024-03-04"))
        self.store.add_food("Meal", 600, at=at("2024-03-05"))
        snap = self.store.snapshot()

        series = daily_series(snap, "2024-03-05", days=7)
        self.assertEqual([d.date for d in series][0], "2024-02-28")
        self.assertEqual(series[-1].calories, 600)

        summary = progress_summary(snap, "2024-03-05", days=7)
        self.assertEqual(summary.start, "2024-02-28")
        self.assertAlmostEqual(summary.average_calories, 500.0)
        self.assertEqual(summary.streak, 2)

    def test_rounded_copy(self) -> None:
        self.store.add_food("Mystery", 200, at=at("2024-03-05"))
        rounded = daily_totals(self.store.snapshot(), "2024-03-05").rounded()
        self.assertEqual(rounded.fat, 6.7)


if __name__ == "__main__":
    unittest.main()
