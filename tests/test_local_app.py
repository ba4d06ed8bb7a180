import math
import unittest

try:
    from fastapi.testclient import TestClient
    FASTAPI_AVAILABLE = True
except Exception:
    FASTAPI_AVAILABLE = False

from local_app.sessions import SessionManager
from swar_pipeline.config import TunerConfig
if FASTAPI_AVAILABLE:
    from local_app.server import create_app


SR = 44100


def sine_frame(freq: float, n: int = 2048, amplitude: float = 0.5) -> list:
    return [amplitude * math.sin(2 * math.pi * freq * i / SR) for i in range(n)]


class SessionManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.manager = SessionManager()

    def tearDown(self) -> None:
        self.manager.shutdown()

    def test_create_starts_pipeline(self) -> None:
        record = self.manager.create(scale_root="D", swar_mode="nearest7")
        self.assertTrue(record.pipeline.is_running)
        self.assertEqual(record.pipeline.scale_root, 2)
        self.assertEqual(record.pipeline.swar_mode, "nearest7")
        self.assertIs(self.manager.get(record.session_id), record)

    def test_create_rejects_bad_root(self) -> None:
        with self.assertRaises(ValueError):
            self.manager.create(scale_root="H")
        self.assertEqual(self.manager.list(), [])

    def test_push_frame_counts(self) -> None:
        record = self.manager.create()
        out = self.manager.push_frame(record, sine_frame(440.0), SR, timestamp=0.0)
        self.assertEqual(out.degree, "Dha")
        self.manager.push_frame(record, [0.0] * 2048, SR, timestamp=0.05)
        self.assertEqual(record.frames, 2)
        self.assertEqual(record.pitched_frames, 1)
        self.assertEqual(record.last_output.degree, "Dha")

    def test_sessions_are_isolated(self) -> None:
        first = self.manager.create(scale_root="C")
        second = self.manager.create(scale_root="A")
        self.assertEqual(self.manager.push_frame(first, sine_frame(440.0), SR, 0.0).degree, "Dha")
        self.assertEqual(self.manager.push_frame(second, sine_frame(440.0), SR, 0.0).degree, "Sa")

    def test_delete_stops_pipeline(self) -> None:
        record = self.manager.create()
        self.assertTrue(self.manager.delete(record.session_id))
        self.assertFalse(record.pipeline.is_running)
        self.assertFalse(self.manager.delete(record.session_id))

    def test_default_config_is_inherited(self) -> None:
        manager = SessionManager(default_config=TunerConfig(scale_root="G", hold_ms=50.0, reset_ms=200.0))
        record = manager.create()
        self.assertEqual(record.pipeline.scale_root, 7)
        self.assertAlmostEqual(record.pipeline.config.hold_s, 0.05)
        manager.shutdown()


@unittest.skipUnless(FASTAPI_AVAILABLE, "fastapi is not installed")
class LocalAppApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.manager = SessionManager()
        self.client = TestClient(create_app(session_manager=self.manager))

    def tearDown(self) -> None:
        self.manager.shutdown()

    def _create(self, **payload) -> dict:
        response = self.client.post("/api/sessions", json=payload)
        self.assertEqual(response.status_code, 201)
        return response.json()

    def test_health_and_scales(self) -> None:
        health = self.client.get("/api/health").json()
        self.assertEqual(health["status"], "ok")
        self.assertEqual(health["sessions"], 0)

        scales = self.client.get("/api/scales").json()
        self.assertEqual(len(scales), 12)
        self.assertEqual(scales[0]["name"], "C")
        self.assertAlmostEqual(scales[9]["frequency_hz"], 440.0)

    def test_session_lifecycle(self) -> None:
        session = self._create(scale_root="C")
        self.assertEqual(session["scale_root_name"], "C")
        self.assertTrue(session["running"])
        sid = session["session_id"]

        frame = self.client.post(
            f"/api/sessions/{sid}/frames",
            json={"samples": sine_frame(440.0), "sample_rate": SR, "timestamp": 0.0},
        ).json()
        self.assertTrue(frame["has_pitch"])
        self.assertEqual(frame["degree"], "Dha")
        self.assertEqual(frame["saptak"], "Middle")
        self.assertEqual(frame["clarity_tier"], "Clear")
        self.assertEqual(len(frame["audio_levels"]), 32)

        stopped = self.client.post(f"/api/sessions/{sid}/stop").json()
        self.assertFalse(stopped["running"])
        started = self.client.post(f"/api/sessions/{sid}/start").json()
        self.assertTrue(started["running"])
        self.assertEqual(started["frames"], 1)

        self.assertEqual(self.client.delete(f"/api/sessions/{sid}").status_code, 204)
        self.assertEqual(self.client.get(f"/api/sessions/{sid}").status_code, 404)

    def test_scale_change_applies_to_next_frame(self) -> None:
        sid = self._create()["session_id"]
        response = self.client.put(f"/api/sessions/{sid}/scale", json={"scale_root": "A"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["scale_root"], 9)

        frame = self.client.post(
            f"/api/sessions/{sid}/frames",
            json={"samples": sine_frame(440.0), "sample_rate": SR, "timestamp": 0.0},
        ).json()
        self.assertEqual(frame["degree"], "Sa")

    def test_bad_scale_root_keeps_previous(self) -> None:
        sid = self._create(scale_root=2)["session_id"]
        response = self.client.put(f"/api/sessions/{sid}/scale", json={"scale_root": "Q"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.get(f"/api/sessions/{sid}").json()["scale_root"], 2)

    def test_bad_create_payload(self) -> None:
        self.assertEqual(self.client.post("/api/sessions", json={"swar_mode": "fuzzy"}).status_code, 400)

    def test_boolean_scale_root_is_rejected(self) -> None:
        response = self.client.post("/api/sessions", json={"scale_root": True})
        self.assertIn(response.status_code, (400, 422))
        self.assertEqual(self.manager.list(), [])

        sid = self._create(scale_root="D")["session_id"]
        response = self.client.put(f"/api/sessions/{sid}/scale", json={"scale_root": True})
        self.assertIn(response.status_code, (400, 422))
        self.assertEqual(self.client.get(f"/api/sessions/{sid}").json()["scale_root"], 2)

    def test_unknown_session(self) -> None:
        self.assertEqual(self.client.post("/api/sessions/nope/start").status_code, 404)
        self.assertEqual(self.client.delete("/api/sessions/nope").status_code, 404)
        response = self.client.post("/api/sessions/nope/frames", json={"samples": [], "sample_rate": SR})
        self.assertEqual(response.status_code, 404)

    def test_silent_frame_has_no_pitch(self) -> None:
        sid = self._create()["session_id"]
        frame = self.client.post(
            f"/api/sessions/{sid}/frames",
            json={"samples": [0.0] * 2048, "sample_rate": SR, "timestamp": 0.0},
        ).json()
        self.assertFalse(frame["has_pitch"])
        self.assertEqual(frame["frequency_hz"], 0.0)
        self.assertIsNone(frame["degree"])
        self.assertEqual(frame["audio_levels"], [5] * 32)


if __name__ == "__main__":
    unittest.main()
