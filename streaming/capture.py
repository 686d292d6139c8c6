"""
Capture session: one audio input, one chunk buffer, one periodic hand-off task.

Lifecycle:
- request_permission(): open the input once; remembers granted/denied
- start(): acquire input if needed, reset buffer, start the hand-off timer
- push_chunk(): buffer an encoded chunk while recording
- stop(): cancel the timer, process whatever is left, keep the input open
- close(): cancel the timer and release the input (connection/view teardown)

Each timer tick processes the buffer only when it holds audio. A failed cycle
is logged and counted; the timer keeps running.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from streaming.audio_buffer import ChunkBuffer

logger = logging.getLogger(__name__)

NOTIFY_SUCCESS = "success"
NOTIFY_INFO = "info"
NOTIFY_ERROR = "error"

MSG_LISTENING = "MirrorMe.AI is now listening"
MSG_STOPPED = "MirrorMe.AI has stopped listening"
MSG_DENIED = "Microphone access denied. Please enable microphone access to use MirrorMe.AI."


class MicrophoneUnavailableError(RuntimeError):
    """Raised by an input source when the microphone cannot be opened."""


class AudioInput:
    """Base input source. Subclasses acquire the device in open() and release it in close()."""

    is_open = False

    async def open(self) -> None:
        self.is_open = True

    async def close(self) -> None:
        self.is_open = False


class ClientMicrophone(AudioInput):
    """
    Microphone living in the browser. The client reports whether the user
    granted access; audio then arrives as pushed chunks. Until the client
    confirms access (granted is True) the input cannot be opened.
    """

    def __init__(self, granted: Optional[bool] = None):
        self.granted = granted

    async def open(self) -> None:
        if self.granted is False:
            raise MicrophoneUnavailableError("Client reported microphone permission denied")
        if self.granted is not True:
            raise MicrophoneUnavailableError("Client has not confirmed microphone access")
        self.is_open = True


class CaptureSession:
    """
    Owns the input source, chunk buffer and hand-off task for one user.

    Args:
        source: AudioInput to acquire/release.
        process_chunk: async (audio_bytes, duration_seconds) -> {"feedback": str, "feedback_type": str}.
        on_feedback: async (result) -> None, called after each successful cycle.
        notify: optional async (level, message) -> None for user-facing toasts.
        interval_seconds: Hand-off period while recording.
        chunk_seconds: Audio length of one pushed chunk (the client's recorder timeslice).
        metrics: optional module with record_cycle_latency_ms / record_processing_failure.
    """

    def __init__(
        self,
        source: AudioInput,
        process_chunk: Callable[[bytes, float], Awaitable[Dict[str, Any]]],
        on_feedback: Callable[[Dict[str, Any]], Awaitable[None]],
        notify: Optional[Callable[[str, str], Awaitable[None]]] = None,
        interval_seconds: float = 5.0,
        chunk_seconds: float = 1.0,
        buffer: Optional[ChunkBuffer] = None,
        metrics: Optional[Any] = None,
    ):
        self.source = source
        self.process_chunk = process_chunk
        self.on_feedback = on_feedback
        self.notify = notify
        self.interval_seconds = interval_seconds
        self.chunk_seconds = chunk_seconds
        self.buffer = buffer if buffer is not None else ChunkBuffer()
        self.metrics = metrics
        self.has_permission: Optional[bool] = None
        self.is_recording = False
        self.cycles_processed = 0
        self._timer_task: Optional[asyncio.Task] = None
        self._pending: List[asyncio.Task] = []

    async def _notify(self, level: str, message: str) -> None:
        if self.notify:
            await self.notify(level, message)

    async def request_permission(self) -> bool:
        try:
            await self.source.open()
        except MicrophoneUnavailableError as e:
            logger.error("Error requesting microphone permission: %s", e)
            self.has_permission = False
            await self._notify(NOTIFY_ERROR, MSG_DENIED)
            return False
        self.has_permission = True
        return True

    async def start(self) -> bool:
        """Begin recording. Returns False if the input could not be acquired."""
        if self.is_recording:
            return True
        if not self.has_permission or not self.source.is_open:
            if not await self.request_permission():
                return False
        self.buffer.clear()
        self.is_recording = True
        self._timer_task = asyncio.create_task(self._run_timer())
        await self._notify(NOTIFY_SUCCESS, MSG_LISTENING)
        return True

    def push_chunk(self, chunk: bytes) -> bool:
        """Buffer a chunk. Ignored (returns False) when not recording or empty."""
        if not self.is_recording or not chunk:
            return False
        self.buffer.append(chunk)
        return True

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            if not self.buffer.is_empty():
                self._pending[:] = [t for t in self._pending if not t.done()]
                self._pending.append(asyncio.create_task(self.process_buffer()))

    async def process_buffer(self) -> Optional[Dict[str, Any]]:
        """
        Drain the buffer and run one processing cycle. Returns the result or None.

        The blob is handed over with its audio length (chunks x chunk_seconds).
        Failures in processing or in delivering the feedback are logged and
        counted; they never propagate to the timer or to stop().
        """
        if self.buffer.is_empty():
            return None
        duration_seconds = len(self.buffer) * self.chunk_seconds
        blob = self.buffer.drain()
        t0 = time.perf_counter()
        try:
            result = await self.process_chunk(blob, duration_seconds)
            if self.metrics and hasattr(self.metrics, "record_cycle_latency_ms"):
                self.metrics.record_cycle_latency_ms((time.perf_counter() - t0) * 1000)
            self.cycles_processed += 1
            await self.on_feedback(result)
        except Exception:
            logger.exception("Error processing audio (%d bytes, %.1fs)", len(blob), duration_seconds)
            if self.metrics and hasattr(self.metrics, "record_processing_failure"):
                self.metrics.record_processing_failure()
            return None
        return result

    async def _cancel_timer(self) -> None:
        task, self._timer_task = self._timer_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def stop(self) -> bool:
        """Stop recording and flush remaining audio. Returns False if not recording."""
        if not self.is_recording:
            return False
        self.is_recording = False
        await self._cancel_timer()
        if not self.buffer.is_empty():
            await self.process_buffer()
        await self._notify(NOTIFY_INFO, MSG_STOPPED)
        return True

    async def toggle(self) -> bool:
        """Start if idle, stop if recording. Returns the new is_recording state."""
        if self.is_recording:
            await self.stop()
        else:
            await self.start()
        return self.is_recording

    async def close(self) -> None:
        """Tear down: cancel the timer, let in-flight cycles finish, release the input."""
        self.is_recording = False
        await self._cancel_timer()
        pending, self._pending = self._pending, []
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self.buffer.clear()
        if self.source.is_open:
            await self.source.close()

    def state(self) -> Dict[str, Any]:
        return {
            "is_recording": self.is_recording,
            "has_permission": self.has_permission,
            "buffered_chunks": len(self.buffer),
            "buffered_bytes": self.buffer.size_bytes(),
            "received_bytes": self.buffer.total_appended_bytes(),
            "cycles_processed": self.cycles_processed,
        }
