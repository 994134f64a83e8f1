import os
import tempfile
import unittest

from fastapi.testclient import TestClient

from skilltrack.config import settings
from skilltrack.main import app

FEED = {
    "entities": [{"id": 1, "name": "Zezima"}, {"id": 2, "name": "Woox"}],
    "snapshots": {
        "1": [
            {"captured_at": "2026-01-10T00:00:00Z", "overall_experience": 999_999, "overall_level": 1840,
             "skills": {"Attack": {"rank": 1, "level": 50, "experience": 101_333}}},
            {"captured_at": "2026-01-12T00:00:00Z", "overall_experience": 1_000_001, "overall_level": 1850,
             "skills": {"Attack": {"rank": 1, "level": 51, "experience": 111_945}}},
        ],
        "2": [
            {"captured_at": "2026-01-11T00:00:00Z", "overall_experience": 10, "overall_level": 30},
        ],
    },
    "now": "2026-01-14T00:00:00Z",
}


class ApiTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self._db_path = settings.db_path
        settings.db_path = os.path.join(self.tmp.name, "test.db")
        self.client = TestClient(app)

    def tearDown(self):
        settings.db_path = self._db_path
        self.tmp.cleanup()

    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["ok"])

    def test_activity_feed(self):
        resp = self.client.post("/activity", json=FEED)
        self.assertEqual(resp.status_code, 200)
        kinds = [e["kind"] for e in resp.json()["events"]]
        self.assertEqual(kinds, ["level_gain", "xp_milestone", "total_level_milestone"])
        limited = self.client.post("/activity", json={**FEED, "limit": 1}).json()["events"]
        self.assertEqual(len(limited), 1)
        other = self.client.post("/activity", json={**FEED, "entity_id": "2"}).json()["events"]
        self.assertEqual(other, [])

    def test_deltas(self):
        resp = self.client.post("/deltas", json={**FEED, "period": "weekly"})
        self.assertEqual(resp.status_code, 200)
        rows = resp.json()["deltas"]
        self.assertEqual([(r["entity"]["name"], r["total"]) for r in rows], [("Zezima", 2), ("Woox", 0)])
        self.assertEqual(rows[0]["per_category"], {"Attack": 10_612})
        bad = self.client.post("/deltas", json={**FEED, "period": "hourly"})
        self.assertEqual(bad.status_code, 400)

    def test_rankings_and_distribution(self):
        self.assertEqual(self.client.post("/rankings/next-level", json=FEED).status_code, 200)
        self.assertEqual(self.client.post("/rankings/ninety-nines", json=FEED).status_code, 200)
        totals = self.client.post("/rankings/combined-totals", json=FEED).json()
        self.assertEqual(totals["combined_level"], 1880)
        general = self.client.post("/rankings/general-stats", json=FEED).json()
        self.assertEqual(general["xp_gap"]["experience"], 999_991)
        dist = self.client.post("/training-distribution", json=FEED).json()
        self.assertEqual(dist["categories"][0]["category"], "Attack")
        timeline = self.client.post("/xp-over-time", json={**FEED, "span": "weekly"}).json()
        self.assertEqual(len(timeline["buckets"]), 7)

    def test_layout_lifecycle(self):
        layout = self.client.get("/layout/dashboard").json()
        self.assertEqual(layout["enabled"][0], "overall-rankings")

        self.client.post("/layout/dashboard/toggle", json={"panel_id": "ninety-nines", "enabled": False})
        layout = self.client.get("/layout/dashboard").json()
        self.assertNotIn("ninety-nines", layout["enabled"])

        layout = self.client.post("/layout/dashboard/reorder", json={"order": ["next-level"]}).json()
        self.assertEqual(layout["enabled"][0], "next-level")

        layout = self.client.post("/layout/dashboard/resize", json={"panel_id": "next-level", "w": 7}).json()
        item = next(i for i in layout["items"] if i["i"] == "next-level")
        self.assertEqual(item["w"], 7)

        packed = self.client.post("/layout/dashboard/pack", json={"heights": {"next-level": 120}, "columns": 2}).json()
        self.assertEqual(packed["order"][0], "next-level")
        self.assertEqual(packed["positions"]["next-level"]["height"], 120)

        layout = self.client.post("/layout/dashboard/reset").json()
        self.assertIn("ninety-nines", layout["enabled"])
        self.assertEqual(self.client.get("/layout/nowhere").status_code, 404)


if __name__ == "__main__":
    unittest.main()
