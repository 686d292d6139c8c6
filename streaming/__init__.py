"""
Real-time capture layer.

- audio_buffer: Per-session buffer of 1 s encoded chunks.
- capture: Input acquire/release and periodic hand-off task.
- feedback_panel: Transient feedback bubble state.
- websocket_server: WebSocket handler for /ws/coach (import separately to avoid pulling FastAPI).
"""

from streaming.audio_buffer import ChunkBuffer
from streaming.capture import AudioInput, CaptureSession, ClientMicrophone, MicrophoneUnavailableError
from streaming.feedback_panel import FeedbackPanel

__all__ = [
    "AudioInput",
    "CaptureSession",
    "ChunkBuffer",
    "ClientMicrophone",
    "FeedbackPanel",
    "MicrophoneUnavailableError",
]
