"""
Speech-to-text for coaching chunks.

Backends:
- mock: simulated delay, fixed sentence (default; no network, no model)
- huggingface: hosted Whisper via the Hugging Face inference API (requests)
- whisper: local OpenAI Whisper model, loaded lazily on first use
Blocking backends run in the default executor so the event loop keeps serving.
"""
import asyncio
import logging
import os
import tempfile
import threading
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

BACKEND_MOCK = "mock"
BACKEND_HUGGINGFACE = "huggingface"
BACKEND_WHISPER = "whisper"
BACKENDS = (BACKEND_MOCK, BACKEND_HUGGINGFACE, BACKEND_WHISPER)

DEFAULT_HF_URL = "https://api-inference.huggingface.co/models/openai/whisper-large"

MOCK_TRANSCRIPT = (
    "This is a simulated transcription of your audio. In a real implementation, "
    "this would be the actual text from your speech."
)


class TranscriptionError(RuntimeError):
    """Raised when a transcription backend fails or returns an unusable response."""


_whisper_lock = threading.Lock()
_whisper_models: Dict[str, Any] = {}


def load_whisper_model(name: str = "base") -> Any:
    """Load (once) and return a local Whisper model."""
    with _whisper_lock:
        model = _whisper_models.get(name)
        if model is None:
            import whisper
            logger.info("Loading Whisper model %s", name)
            model = whisper.load_model(name)
            _whisper_models[name] = model
        return model


async def transcribe_mock(audio_bytes: bytes, delay_ms: float = 1000.0) -> str:
    await asyncio.sleep(max(0.0, delay_ms) / 1000.0)
    return MOCK_TRANSCRIPT


def transcribe_huggingface(
    audio_bytes: bytes,
    api_key: str,
    url: str = DEFAULT_HF_URL,
    timeout: float = 60.0,
) -> str:
    """POST audio to the Hugging Face inference API and return the `text` field."""
    if not api_key:
        raise TranscriptionError("HUGGING_FACE_API_KEY is not set")
    try:
        response = requests.post(
            url,
            headers={"Authorization": f"Bearer {api_key}"},
            data=audio_bytes,
            timeout=timeout,
        )
        response.raise_for_status()
        result = response.json()
    except requests.RequestException as e:
        raise TranscriptionError(f"Hugging Face request failed: {e}") from e
    except ValueError as e:
        raise TranscriptionError(f"Hugging Face returned invalid JSON: {e}") from e
    if not isinstance(result, dict) or "text" not in result:
        raise TranscriptionError(f"Unexpected Hugging Face response: {result!r}")
    return (result.get("text") or "").strip()


def transcribe_whisper(whisper_model: Any, audio_bytes: bytes, language: str = "en") -> str:
    """Run a local Whisper model on an encoded audio blob (webm/wav/...; decoded by ffmpeg)."""
    with tempfile.NamedTemporaryFile(suffix=".webm", delete=False) as f:
        f.write(audio_bytes)
        path = f.name
    try:
        result = whisper_model.transcribe(path, language=language)
        return (result.get("text") or "").strip()
    except Exception as e:
        raise TranscriptionError(f"Whisper transcription failed: {e}") from e
    finally:
        if os.path.exists(path):
            os.unlink(path)


async def transcribe_audio(
    audio_bytes: bytes,
    backend: str = BACKEND_MOCK,
    api_key: str = "",
    url: str = DEFAULT_HF_URL,
    timeout: float = 60.0,
    whisper_model_name: str = "base",
    language: str = "en",
    mock_delay_ms: float = 1000.0,
    whisper_model: Optional[Any] = None,
) -> str:
    """
    Transcribe one audio chunk with the selected backend.

    Raises:
        TranscriptionError: backend failure, or unknown backend name.
    """
    if backend == BACKEND_MOCK:
        return await transcribe_mock(audio_bytes, delay_ms=mock_delay_ms)

    loop = asyncio.get_event_loop()
    if backend == BACKEND_HUGGINGFACE:
        return await loop.run_in_executor(
            None, lambda: transcribe_huggingface(audio_bytes, api_key, url=url, timeout=timeout)
        )
    if backend == BACKEND_WHISPER:
        def do_whisper():
            model = whisper_model if whisper_model is not None else load_whisper_model(whisper_model_name)
            return transcribe_whisper(model, audio_bytes, language=language)

        return await loop.run_in_executor(None, do_whisper)
    raise TranscriptionError(f"Unknown transcription backend: {backend!r} (expected one of {BACKENDS})")
