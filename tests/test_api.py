"""
API tests: HTTP routes and the /ws/coach protocol via FastAPI TestClient.
Mock processor and mock transcription with zero delay; no network.
"""
import unittest
from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

import config
import main
import metrics.session_metrics as session_metrics
from core.asr import MOCK_TRANSCRIPT
from core.feedback import FEEDBACK_TYPES
from streaming.websocket_server import build_ws_coach_handler


def hundred_words() -> str:
    return " ".join(["word"] * 100)


class APITestCase(unittest.TestCase):
    def setUp(self):
        session_metrics.reset()
        self.patches = [
            patch.object(config, "MOCK_PROCESS_DELAY_MS", 0),
            patch.object(config, "MOCK_TRANSCRIBE_DELAY_MS", 0),
            patch.object(config, "FEEDBACK_MODE", "random"),
            patch.object(config, "TRANSCRIBE_BACKEND", "mock"),
        ]
        for p in self.patches:
            p.start()
        self.client = TestClient(main.app)

    def tearDown(self):
        for p in self.patches:
            p.stop()
        session_metrics.reset()


class TestHttpRoutes(APITestCase):
    def test_health(self):
        r = self.client.get("/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["status"], "ok")

    def test_demo_page(self):
        r = self.client.get("/demo")
        self.assertEqual(r.status_code, 200)
        self.assertIn("MirrorMe.AI", r.text)

    def test_catalog(self):
        r = self.client.get("/feedback/catalog")
        self.assertEqual(len(r.json()["feedback"]), 9)

    def test_fillers(self):
        r = self.client.post("/analyze/fillers", json={"transcript": "um so I like uh went there"})
        body = r.json()
        self.assertEqual(body["count"], 3)
        self.assertEqual(body["words"], ["um", "like", "uh"])
        self.assertEqual(body["unmatchable_terms"], ["you know"])

    def test_fillers_custom_vocabulary(self):
        r = self.client.post("/analyze/fillers", json={"transcript": "so so", "vocabulary": ["so"]})
        self.assertEqual(r.json()["count"], 2)

    def test_pace(self):
        r = self.client.post("/analyze/pace", json={"transcript": hundred_words(), "duration_seconds": 60})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["score"], 100)

    def test_pace_invalid_duration(self):
        r = self.client.post("/analyze/pace", json={"transcript": "a b", "duration_seconds": 0})
        self.assertEqual(r.status_code, 422)

    def test_analyze(self):
        r = self.client.post("/analyze", json={"transcript": hundred_words(), "duration_seconds": 60})
        self.assertEqual(r.json()["feedback_type"], "good")

    def test_process_random(self):
        r = self.client.post("/process", files={"audio": ("chunk.webm", b"\x1a\x45\xdf\xa3", "audio/webm")})
        self.assertEqual(r.status_code, 200)
        self.assertIn(r.json()["feedback_type"], FEEDBACK_TYPES)
        self.assertEqual(session_metrics.get_snapshot()["chunks_received"], 1)

    def test_process_analysis_mode(self):
        with patch.object(config, "FEEDBACK_MODE", "analysis"):
            r = self.client.post("/process", files={"audio": ("chunk.webm", b"data", "audio/webm")})
        body = r.json()
        self.assertEqual(body["transcript"], MOCK_TRANSCRIPT)
        self.assertIn("analysis", body)

    def test_process_empty_upload(self):
        r = self.client.post("/process", files={"audio": ("chunk.webm", b"", "audio/webm")})
        self.assertEqual(r.status_code, 400)

    def test_transcribe_mock(self):
        r = self.client.post("/transcribe", files={"audio": ("a.wav", b"RIFF", "audio/wav")})
        self.assertEqual(r.json()["text"], MOCK_TRANSCRIPT)

    def test_transcribe_failure_is_502(self):
        with patch.object(config, "TRANSCRIBE_BACKEND", "huggingface"), \
                patch.object(config, "HUGGING_FACE_API_KEY", ""):
            r = self.client.post("/transcribe", files={"audio": ("a.wav", b"RIFF", "audio/wav")})
        self.assertEqual(r.status_code, 502)

    def test_metrics(self):
        r = self.client.get("/metrics/session")
        self.assertIn("active_sessions", r.json())


class TestCoachWebSocket(APITestCase):
    def test_initial_state(self):
        with self.client.websocket_connect("/ws/coach") as ws:
            state = ws.receive_json()
            self.assertEqual(state["type"], "state")
            self.assertFalse(state["is_recording"])
            self.assertIsNone(state["has_permission"])
            ws.send_text("end")

    def test_demo_feedback_updates_stats_and_panel(self):
        with self.client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()
            ws.send_text("demo")
            msg = ws.receive_json()
            self.assertEqual(msg["type"], "feedback")
            self.assertEqual(msg["stats"]["total_time"], 5)
            self.assertTrue(msg["panel"]["is_active"])
            self.assertTrue(msg["panel"]["is_expanded"])
            self.assertEqual(len(msg["panel"]["messages"]), 1)
            ws.send_text("end")

    def test_record_and_stop_flushes(self):
        with self.client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()
            ws.send_text("mic_granted")
            self.assertTrue(ws.receive_json()["has_permission"])
            ws.send_text("start")
            self.assertEqual(ws.receive_json()["level"], "success")
            self.assertTrue(ws.receive_json()["is_recording"])
            ws.send_bytes(b"\x00" * 64)
            ws.send_text("stop")
            feedback = ws.receive_json()
            self.assertEqual(feedback["type"], "feedback")
            self.assertIn(feedback["message"]["type"], FEEDBACK_TYPES)
            self.assertEqual(ws.receive_json()["level"], "info")
            self.assertFalse(ws.receive_json()["is_recording"])
            ws.send_text("end")
        self.assertEqual(session_metrics.get_snapshot()["chunks_received"], 1)

    def test_mic_denied(self):
        with self.client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()
            ws.send_text("mic_denied")
            note = ws.receive_json()
            self.assertEqual(note["level"], "error")
            self.assertFalse(ws.receive_json()["has_permission"])
            ws.send_text("start")
            self.assertEqual(ws.receive_json()["level"], "error")
            self.assertFalse(ws.receive_json()["is_recording"])
            ws.send_text("end")

    def test_unknown_command(self):
        with self.client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()
            ws.send_text("dance")
            self.assertEqual(ws.receive_json()["type"], "error")
            ws.send_text("end")

    def test_start_requires_confirmed_microphone(self):
        with self.client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()
            ws.send_text("start")
            self.assertEqual(ws.receive_json()["level"], "error")
            state = ws.receive_json()
            self.assertFalse(state["is_recording"])
            self.assertFalse(state["has_permission"])
            ws.send_text("end")

    def test_toggle(self):
        with self.client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()
            ws.send_text("mic_granted")
            ws.receive_json()
            ws.send_text("toggle")
            self.assertEqual(ws.receive_json()["level"], "success")
            self.assertTrue(ws.receive_json()["is_recording"])
            ws.send_text("toggle")
            self.assertEqual(ws.receive_json()["level"], "info")
            self.assertFalse(ws.receive_json()["is_recording"])
            ws.send_text("end")

    def test_panel_commands(self):
        with self.client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()
            ws.send_text("demo")
            ws.receive_json()
            ws.send_text("expand")
            panel = ws.receive_json()
            self.assertEqual(panel["type"], "panel")
            self.assertFalse(panel["panel"]["is_expanded"])
            self.assertEqual(panel["panel"]["badge"], 1)
            ws.send_text("close_panel")
            panel = ws.receive_json()["panel"]
            self.assertFalse(panel["is_active"])
            self.assertEqual(panel["messages"], [])
            ws.send_text("end")

    def test_stats_command(self):
        with self.client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()
            ws.send_text("demo")
            ws.receive_json()
            ws.send_text("stats")
            stats = ws.receive_json()
            self.assertEqual(stats["type"], "stats")
            self.assertEqual(stats["stats"]["total_time"], 5)
            self.assertEqual(len(stats["messages"]), 1)
            ws.send_text("end")

    def test_analysis_mode_uses_recorded_duration(self):
        async def fake_transcribe(audio_bytes):
            return "hello there friend"

        chunk_seconds = config.CAPTURE_TIMESLICE_MS / 1000.0
        with patch.object(config, "FEEDBACK_MODE", "analysis"), \
                patch.object(main, "transcribe", fake_transcribe):
            with self.client.websocket_connect("/ws/coach") as ws:
                ws.receive_json()
                ws.send_text("mic_granted")
                ws.receive_json()
                ws.send_text("start")
                ws.receive_json()
                ws.receive_json()
                ws.send_bytes(b"\x00" * 64)
                ws.send_text("stop")
                feedback = ws.receive_json()
                ws.send_text("end")
        self.assertEqual(feedback["type"], "feedback")
        self.assertEqual(feedback["analysis"]["pace"]["words"], 3)
        self.assertAlmostEqual(feedback["analysis"]["pace"]["wpm"], 3 * 60 / chunk_seconds)


class TestCoachWebSocketTimer(unittest.TestCase):
    """Hand-off driven by the timer, with a short interval and no stop command."""

    def setUp(self):
        self.durations = []

        async def process(blob, duration_seconds):
            self.durations.append(duration_seconds)
            return {"feedback": "Clear articulation, nice job!", "feedback_type": "good"}

        app = FastAPI()
        app.websocket("/ws/coach")(build_ws_coach_handler(process_chunk=process, interval_seconds=0.05))
        self.client = TestClient(app)

    def test_timer_delivers_feedback(self):
        with self.client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()
            ws.send_text("mic_granted")
            ws.receive_json()
            ws.send_text("start")
            ws.receive_json()
            self.assertTrue(ws.receive_json()["is_recording"])
            ws.send_bytes(b"\x00" * 64)
            feedback = ws.receive_json()
            self.assertEqual(feedback["type"], "feedback")
            self.assertEqual(feedback["message"]["type"], "good")
            self.assertEqual(feedback["stats"]["clarity"], 5)
            ws.send_text("end")
        self.assertEqual(self.durations, [1.0])


if __name__ == "__main__":
    unittest.main()
