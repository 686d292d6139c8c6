"""
WebSocket server for /ws/coach.

- Binary frames: encoded audio chunks (1 s timeslice from MediaRecorder).
- Text frames: commands
    mic_granted / mic_denied  client permission result
    start / stop / toggle     capture control
    expand / close_panel      feedback bubble control
    demo                      push one demo feedback without audio
    stats                     request a stats snapshot
    end                       close the session
- Every PROCESS_INTERVAL_SECONDS the buffered audio is processed and a
  {"type": "feedback"} message is sent with the new message, stats and panel.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from core.feedback import pick_demo_feedback
from core.session import CoachingSession
from streaming.capture import CaptureSession, ClientMicrophone
from streaming.feedback_panel import FeedbackPanel

logger = logging.getLogger(__name__)

END_COMMANDS = ("end", "close", "quit")


def build_ws_coach_handler(
    process_chunk: Callable[[bytes, float], Awaitable[Dict[str, Any]]],
    interval_seconds: float = 5.0,
    chunk_seconds: float = 1.0,
    seconds_per_cycle: int = 5,
    visible_seconds: float = 8.0,
    idle_timeout_seconds: float = 300.0,
    get_metrics: Optional[Any] = None,
    rng: Optional[random.Random] = None,
) -> Callable:
    """
    Build the async WebSocket handler for /ws/coach.

    Args:
        process_chunk: async (audio_bytes, duration_seconds) -> {"feedback", "feedback_type"} for one cycle.
        interval_seconds: Hand-off period while recording.
        chunk_seconds: Audio length of one binary frame (client recorder timeslice).
        seconds_per_cycle: Seconds credited to session duration per feedback.
        visible_seconds: How long each feedback bubble stays visible.
        idle_timeout_seconds: Close the session after this long without any frame.
        get_metrics: Optional module with record_session_open/close, record_chunk,
            record_feedback, record_cycle_latency_ms, record_processing_failure.
        rng: Random source for demo feedback.

    Returns:
        Async function (websocket: WebSocket) -> None for use with FastAPI.
    """
    metrics = get_metrics

    async def handle_ws_coach(websocket: WebSocket) -> None:
        await websocket.accept()
        if metrics and hasattr(metrics, "record_session_open"):
            metrics.record_session_open()

        session = CoachingSession(seconds_per_cycle=seconds_per_cycle)
        panel = FeedbackPanel(visible_seconds=visible_seconds)
        microphone = ClientMicrophone()

        async def send(payload: Dict[str, Any]) -> None:
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError):
                pass

        async def send_state() -> None:
            await send({"type": "state", **capture.state()})

        async def notify(level: str, message: str) -> None:
            await send({"type": "notification", "level": level, "message": message})

        async def on_feedback(result: Dict[str, Any]) -> None:
            msg = session.add_feedback(result["feedback"], result["feedback_type"])
            panel.push(msg)
            if metrics and hasattr(metrics, "record_feedback"):
                metrics.record_feedback(msg.type)
            payload: Dict[str, Any] = {
                "type": "feedback",
                "message": msg.to_dict(),
                "stats": session.stats.to_dict(),
                "panel": panel.to_dict(),
            }
            if "analysis" in result:
                payload["analysis"] = result["analysis"]
            await send(payload)

        capture = CaptureSession(
            source=microphone,
            process_chunk=process_chunk,
            on_feedback=on_feedback,
            notify=notify,
            interval_seconds=interval_seconds,
            chunk_seconds=chunk_seconds,
            metrics=metrics,
        )

        async def handle_command(command: str) -> bool:
            """Apply one text command. Returns False when the session should end."""
            if command in END_COMMANDS:
                return False
            if command == "mic_granted":
                microphone.granted = True
                await capture.request_permission()
            elif command == "mic_denied":
                microphone.granted = False
                await capture.request_permission()
            elif command == "start":
                await capture.start()
            elif command == "stop":
                await capture.stop()
            elif command == "toggle":
                await capture.toggle()
            elif command == "expand":
                panel.toggle_expand()
                await send({"type": "panel", "panel": panel.to_dict()})
                return True
            elif command == "close_panel":
                panel.close()
                await send({"type": "panel", "panel": panel.to_dict()})
                return True
            elif command == "demo":
                await on_feedback(pick_demo_feedback(rng))
                return True
            elif command == "stats":
                await send({"type": "stats", **session.snapshot()})
                return True
            else:
                await send({"type": "error", "message": f"Unknown command: {command}"})
                return True
            await send_state()
            return True

        client_gone = False
        try:
            await send_state()
            while True:
                try:
                    data = await asyncio.wait_for(websocket.receive(), timeout=idle_timeout_seconds)
                except asyncio.TimeoutError:
                    logger.info("Coaching session idle for %.0fs, closing", idle_timeout_seconds)
                    break
                if data.get("type") == "websocket.disconnect":
                    client_gone = True
                    break
                if data.get("type") != "websocket.receive":
                    continue
                if data.get("bytes") is not None:
                    chunk = data["bytes"]
                    if capture.push_chunk(chunk) and metrics and hasattr(metrics, "record_chunk"):
                        metrics.record_chunk(len(chunk))
                    continue
                text = (data.get("text") or "").strip().lower()
                if text and not await handle_command(text):
                    break
        except WebSocketDisconnect:
            client_gone = True
        except Exception as e:
            logger.exception("Coaching session error")
            await send({"type": "error", "message": str(e)})
        finally:
            await capture.close()
            if metrics and hasattr(metrics, "record_session_close"):
                metrics.record_session_close()
            if not client_gone:
                try:
                    await websocket.close()
                except RuntimeError:
                    pass

    return handle_ws_coach
