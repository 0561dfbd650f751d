# -*- coding: utf-8 -*-

from __future__ import annotations

import os
import shutil
import sys
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from fastapi.testclient import TestClient

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestSessionApi(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._tmp = Path(tempfile.mkdtemp(prefix="pulselog-test-"))
        os.environ["PULSELOG_DATA_ROOT"] = str(cls._tmp / "data")
        os.environ["PULSELOG_STORE_BACKEND"] = "memory"
        os.environ["PULSELOG_TIMEZONE"] = "UTC"
        os.environ.pop("PULSELOG_AUTO_GRANT", None)

        # Ensure settings/app reflect the env vars above.
        for name in list(sys.modules.keys()):
            if name == "pulselog" or name.startswith("pulselog."):
                sys.modules.pop(name, None)

        from pulselog.api import app
        from pulselog.healthstore import InMemoryHealthStore
        from pulselog.healthstore.api import get_store
        from pulselog.session.api import get_controller
        from pulselog.session.controller import HeartRateSessionController

        cls.app = app
        cls.get_store = staticmethod(get_store)
        cls.get_controller = staticmethod(get_controller)
        cls.store_cls = InMemoryHealthStore
        cls.controller_cls = HeartRateSessionController

    @classmethod
    def tearDownClass(cls) -> None:
        for key in ("PULSELOG_DATA_ROOT", "PULSELOG_STORE_BACKEND", "PULSELOG_TIMEZONE"):
            os.environ.pop(key, None)
        shutil.rmtree(cls._tmp, ignore_errors=True)

    def setUp(self) -> None:
        self.store = self.store_cls()
        self.opened = []
        self.controller = self.controller_cls(self.store, clock=lambda: NOW)
        self.controller.gate.settings_opener = lambda: self.opened.append(True)
        self.app.dependency_overrides[self.get_store] = lambda: self.store
        self.app.dependency_overrides[self.get_controller] = lambda: self.controller
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.client.close()
        self.app.dependency_overrides.clear()

    def test_health(self) -> None:
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")

    def test_empty_state(self) -> None:
        resp = self.client.get("/api/session")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["records"], [])
        self.assertEqual(body["count"], 0)
        self.assertIsNone(body["error"])
        self.assertFalse(body["permissions_granted"])
        self.assertEqual(body["message"], "No heart rate records found")

    def test_permission_flow(self) -> None:
        resp = self.client.get("/api/session/permissions")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["granted"])
        self.assertEqual(resp.json()["required"], ["read-heart-rate", "write-heart-rate"])

        # Without an authorization UI the request comes back denied ...
        resp = self.client.post("/api/session/permissions/request")
        self.assertFalse(resp.json()["granted"])

        # ... until the grant is given through the settings surface.
        resp = self.client.post("/api/session/permissions/settings")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.opened, [True])
        self.store.auto_grant = True
        resp = self.client.post("/api/session/permissions/request")
        self.assertTrue(resp.json()["granted"])
        self.assertTrue(self.client.get("/api/session").json()["permissions_granted"])

    def test_submit_and_list(self) -> None:
        self.store.auto_grant = True
        self.client.post("/api/session/permissions/request")

        resp = self.client.post("/api/session/records", json={"heart_rate": "250", "timestamp": "2024-01-01 10:00"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertIsNone(body["error"])
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["records"][0]["beats_per_minute"], 250)
        self.assertEqual(body["records"][0]["display_time"], "2024-01-01 10:00")
        self.assertIsNone(body["message"])

        self.client.post("/api/session/records", json={"heart_rate": "90", "timestamp": "2024-01-01 11:30"})
        body = self.client.post("/api/session/load").json()
        self.assertEqual([r["beats_per_minute"] for r in body["records"]], [90, 250])

    def test_validation_errors_are_reported_in_state(self) -> None:
        self.store.auto_grant = True
        self.client.post("/api/session/permissions/request")

        body = self.client.post("/api/session/records", json={"heart_rate": "301", "timestamp": "2024-01-01 10:00"}).json()
        self.assertEqual(body["error"], "Please enter a valid heart rate (1-300 bpm)")
        self.assertEqual(self.store.insert_calls, 0)

        body = self.client.post("/api/session/records", json={"heart_rate": "60", "timestamp": "not-a-date"}).json()
        self.assertEqual(body["error"], "Invalid date/time format. Use yyyy-MM-dd HH:mm")

        body = self.client.delete("/api/session/error").json()
        self.assertIsNone(body["error"])

    def test_store_failure_is_reported_in_state(self) -> None:
        body = self.client.post("/api/session/load").json()
        self.assertEqual(body["error"], "Failed to load heart rates: Missing permission: read-heart-rate")


if __name__ == "__main__":
    unittest.main()
