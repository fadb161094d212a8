# -*- coding: utf-8 -*-

from __future__ import annotations

import os
import sys
import unittest
from datetime import date
from unittest import mock

from fastapi.testclient import TestClient

FALLBACK = "I apologize, but I cannot connect right now. Please check your connection and try again."


class TestLedgerApi(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        os.environ["FITLEDGER_STORAGE"] = "memory"
        os.environ["FITLEDGER_TZ"] = "UTC"
        # No collaborator: chat falls back deterministically.
        os.environ.pop("COACH_API_KEY", None)

        # Ensure settings/app reflect the env vars above.
        for name in list(sys.modules.keys()):
            if name == "fitledger" or name.startswith("fitledger."):
                sys.modules.pop(name, None)

        from fitledger.api import app  # noqa: WPS433 (import inside test for env control)

        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls) -> None:
        try:
            cls.client.close()
        except Exception:
            pass

    def setUp(self) -> None:
        from fitledger.persistence import MemoryStorageArea
        from fitledger.runtime import LedgerRuntime, set_runtime
        from fitledger.config import settings

        self.runtime = LedgerRuntime(MemoryStorageArea(), tz=settings.local_zone())
        set_runtime(self.runtime)

    def tearDown(self) -> None:
        from fitledger.runtime import set_runtime

        set_runtime(None)

    def _today(self) -> str:
        from fitledger.ledger.days import today

        return today(self.runtime.tz)

    def test_health(self) -> None:
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")

    def test_food_lifecycle(self) -> None:
        resp = self.client.post("/api/food", json={"name": "Apple", "calories": 95, "meal_type": "snacks"})
        self.assertEqual(resp.status_code, 200, resp.text)
        food_id = resp.json()["id"]

        listed = self.client.get("/api/food").json()
        self.assertEqual(listed["date"], self._today())
        self.assertEqual(listed["count"], 1)
        self.assertEqual(listed["entries"][0]["name"], "Apple")
        self.assertEqual(listed["entries"][0]["mealType"], "snacks")

        resp = self.client.delete(f"/api/food/{food_id}")
        self.assertEqual(resp.json(), {"status": "ok", "removed": True})
        resp = self.client.delete(f"/api/food/{food_id}")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["removed"])

    def test_food_validation(self) -> None:
        resp = self.client.post("/api/food", json={"name": "Apple", "calories": -5})
        self.assertEqual(resp.status_code, 422)

    def test_list_other_day_and_bad_day(self) -> None:
        self.client.post("/api/water", json={"amount_ml": 300})
        self.assertEqual(self.client.get("/api/water?day=2000-01-01").json()["count"], 0)
        self.assertEqual(self.client.get("/api/water?day=garbage").status_code, 400)

    def test_recent_order(self) -> None:
        self.client.post("/api/water", json={"amount_ml": 100})
        self.client.post("/api/water", json={"amount_ml": 200})
        entries = self.client.get("/api/water?order=recent").json()["entries"]
        self.assertEqual([e["amount"] for e in entries], [200, 100])

    def test_workout_burn_is_derived(self) -> None:
        self.client.post("/api/workouts", json={"name": "Yoga", "duration_minutes": 20, "type": "yoga"})
        entry = self.client.get("/api/workouts").json()["entries"][0]
        self.assertEqual(entry["caloriesBurned"], 60)
        self.assertEqual(entry["duration"], 20)

    def test_weight_upsert(self) -> None:
        self.client.put("/api/weight", json={"date": "2024-03-05", "weight": 80})
        resp = self.client.put("/api/weight", json={"date": "2024-03-05", "weight_kg": 79.4})
        self.assertEqual(resp.status_code, 200)

        history = self.client.get("/api/weight").json()
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0]["weight"], 79.4)

        self.assertEqual(self.client.put("/api/weight", json={"weight_kg": 0}).status_code, 422)
        self.assertTrue(self.client.delete("/api/weight/2024-03-05").json()["removed"])

    def test_unknown_kind(self) -> None:
        self.assertEqual(self.client.delete("/api/steps/1").status_code, 404)

    def test_profile(self) -> None:
        self.assertEqual(self.client.get("/api/profile").json(), {"onboarded": False, "profile": None})
        self.assertEqual(self.client.patch("/api/profile", json={"goal": "loss"}).status_code, 404)

        resp = self.client.post(
            "/api/profile",
            json={"name": "Sam", "age": 30, "gender": "male", "height": 180, "weight": 80, "goal": "maintain"},
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        resp = self.client.patch("/api/profile", json={"targetWeight": 75, "goal": "loss"})
        body = resp.json()
        self.assertTrue(body["onboarded"])
        self.assertEqual(body["profile"]["name"], "Sam")
        self.assertEqual(body["profile"]["targetWeight"], 75)
        self.assertEqual(body["profile"]["goal"], "loss")

        goal = self.client.get("/api/summary/goal").json()
        self.assertEqual(goal["method"], "mifflin_st_jeor")

    def test_profile_validation(self) -> None:
        resp = self.client.post("/api/profile", json={"name": "Sam", "goal": "shrink"})
        self.assertEqual(resp.status_code, 422)

    def test_profile_patch_over_cleared_stored_field(self) -> None:
        self.runtime.area.set_item("userProfile", '{"name": "Sam", "age": 30, "height": 0, "weight": 80}')
        self.runtime.area.set_item("onboardingComplete", "true")

        self.assertTrue(self.client.get("/api/profile").json()["onboarded"])
        resp = self.client.patch("/api/profile", json={"height": 180})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["profile"]["height"], 180)
        self.assertEqual(resp.json()["profile"]["name"], "Sam")

    def test_food_library(self) -> None:
        self.client.post("/api/food", json={"name": "Almonds", "calories": 160, "quantity": 28, "unit": "gram"})
        self.client.post("/api/food", json={"name": "Secret snack", "calories": 300, "remember": False})

        foods = self.client.get("/api/library/foods").json()
        self.assertEqual([f["name"] for f in foods], ["Almonds"])
        self.assertEqual(foods[0]["unit"], "gram")

        resp = self.client.post("/api/library/foods", json={"name": "almonds", "calories_per_unit": 6, "unit": "gram"})
        self.assertFalse(resp.json()["created"])
        self.assertEqual(self.client.get("/api/library/foods?q=ALM").json()[0]["name"], "Almonds")
        self.assertEqual(self.client.get("/api/library/foods?q=zzz").json(), [])

        self.assertTrue(self.client.delete("/api/library/foods/gram/Almonds").json()["removed"])
        self.assertEqual(self.client.get("/api/library/foods").json(), [])

    def test_saved_meals(self) -> None:
        resp = self.client.post(
            "/api/library/meals",
            json={
                "name": "Usual breakfast",
                "meal_type": "breakfast",
                "items": [{"name": "Oats", "calories": 150}, {"name": "Banana", "calories": 105}],
            },
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["totalCalories"], 255)
        self.assertEqual(
            self.client.post("/api/library/meals", json={"name": "Empty", "meal_type": "lunch", "items": []}).status_code,
            422,
        )

        listed = self.client.get("/api/library/meals?meal_type=breakfast").json()
        self.assertEqual([m["name"] for m in listed], ["Usual breakfast"])
        self.assertEqual(self.client.get("/api/library/meals?meal_type=dinner").json(), [])

        logged = self.client.post("/api/library/meals/breakfast/Usual breakfast/log").json()
        self.assertEqual(logged["count"], 2)
        foods = self.client.get("/api/food").json()["entries"]
        self.assertEqual([(f["name"], f["mealType"]) for f in foods], [("Oats", "breakfast"), ("Banana", "breakfast")])

        self.assertEqual(self.client.post("/api/library/meals/lunch/Nothing/log").status_code, 404)
        self.assertTrue(self.client.delete("/api/library/meals/breakfast/Usual breakfast").json()["removed"])

    def test_summaries(self) -> None:
        for kcal in (100, 250, 75):
            self.client.post("/api/food", json={"name": "Item", "calories": kcal, "protein": 0, "carbs": 0, "fat": 0})
        self.client.post("/api/workouts", json={"name": "Run", "duration_minutes": 25, "calories_burned": 200})
        self.client.post("/api/water", json={"amount_ml": 500})

        daily = self.client.get("/api/summary/daily").json()
        self.assertEqual(daily["totals"]["calories"], 425)
        self.assertEqual(daily["totals"]["calories_burned"], 200)
        self.assertEqual(daily["net_calories"], 225)
        self.assertEqual(daily["water"]["total_ml"], 500)

        breakdown = self.client.get("/api/summary/breakdown").json()
        self.assertEqual([breakdown["protein_pct"], breakdown["carbs_pct"], breakdown["fat_pct"]], [25, 50, 25])
        self.assertTrue(breakdown["is_default"])

        weekly = self.client.get("/api/summary/weekly").json()
        self.assertEqual(weekly["active_days"], 1)
        self.assertEqual(weekly["avg_calories"], 425)

        current = date.fromisoformat(self._today())
        calendar = self.client.get(f"/api/summary/calendar?year={current.year}&month={current.month}").json()
        self.assertEqual(calendar["days"], [self._today()])

        progress = self.client.get("/api/summary/progress?days=7").json()
        self.assertEqual(len(progress["days"]), 7)
        self.assertEqual(progress["streak"], 1)

    def test_reset(self) -> None:
        self.client.post("/api/food", json={"name": "Apple", "calories": 95})
        self.client.post("/api/profile", json={"name": "Sam"})

        self.assertEqual(self.client.delete("/api/ledger").status_code, 200)

        self.assertEqual(self.client.get("/api/food").json()["count"], 0)
        self.assertFalse(self.client.get("/api/profile").json()["onboarded"])

    def test_commands_apply(self) -> None:
        resp = self.client.post("/api/commands/apply", json={"text": "Logged!\nWATER_UPDATE: 300\nWEIGHT_UPDATE: nope"})
        body = resp.json()
        self.assertEqual(body["display_text"], "Logged!")
        self.assertTrue(body["changed"])
        self.assertEqual(
            sorted((d["kind"], d["status"]) for d in body["directives"]),
            [("WATER_UPDATE", "applied"), ("WEIGHT_UPDATE", "skipped")],
        )
        self.assertEqual(self.client.get("/api/water").json()["count"], 1)

    def test_chat_falls_back_without_collaborator(self) -> None:
        conv = self.client.post("/api/chat/conversations", json={}).json()
        self.assertEqual(conv["title"], "New Chat")
        self.assertEqual(len(conv["messages"]), 1)

        resp = self.client.post(
            f"/api/chat/conversations/{conv['id']}/messages",
            json={"content": "What should I eat for dinner tonight?"},
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertTrue(body["degraded"])
        self.assertEqual(body["answer"], FALLBACK)

        detail = self.client.get(f"/api/chat/conversations/{conv['id']}").json()
        self.assertEqual(detail["title"], "What should I eat for dinner t...")
        self.assertEqual([m["sender"] for m in detail["messages"]], ["assistant", "user", "assistant"])

        listing = self.client.get("/api/chat/conversations").json()
        self.assertEqual(listing["count"], 1)
        self.assertEqual(listing["items"][0]["message_count"], 3)

    def test_chat_reply_directives_are_applied(self) -> None:
        conv = self.client.post("/api/chat/conversations", json={"greeting": False}).json()
        reply = "Nice choice! FOOD_UPDATE: apple:95\nAnything else?"

        with mock.patch("fitledger.coach.api.generate_reply", new=mock.AsyncMock(return_value=reply)):
            body = self.client.post(
                f"/api/chat/conversations/{conv['id']}/messages", json={"content": "I ate an apple"}
            ).json()

        self.assertFalse(body["degraded"])
        self.assertEqual(body["answer"], "Nice choice! \nAnything else?")
        self.assertEqual(body["directives"][0]["kind"], "FOOD_UPDATE")
        foods = self.client.get("/api/food").json()["entries"]
        self.assertEqual([(f["name"], f["calories"]) for f in foods], [("apple", 95)])

        detail = self.client.get(f"/api/chat/conversations/{conv['id']}").json()
        self.assertEqual(detail["messages"][-1]["text"], "Nice choice! \nAnything else?")

    def test_chat_missing_conversation(self) -> None:
        resp = self.client.post("/api/chat/conversations/nope/messages", json={"content": "hi"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(self.client.delete("/api/chat/conversations/nope").status_code, 404)

    def test_sync_socket_relays_other_surface_writes(self) -> None:
        with self.client.websocket_connect("/ws/sync?surface_id=tab-b&topics=dailyWaterLog") as ws:
            hello = ws.receive_json()
            self.assertEqual(hello["type"], "connected")
            self.assertEqual(hello["topics"], ["dailyWaterLog"])

            ws.send_json({"type": "ping"})
            self.assertEqual(ws.receive_json()["type"], "pong")

            self.client.post("/api/water", json={"amount_ml": 300}, headers={"X-Surface-Id": "tab-a"})
            message = ws.receive_json()
            self.assertEqual(message["type"], "storage")
            self.assertEqual(message["key"], "dailyWaterLog")
            self.assertIsNone(message["oldValue"])
            self.assertIn('"amount":300', message["newValue"])

            ws.send_json({"type": "subscribe", "topics": ["weightEntries", "bogus"]})
            self.assertEqual(ws.receive_json(), {"type": "subscribed", "topics": ["weightEntries"]})


if __name__ == "__main__":
    unittest.main()
