"""
Runtime configuration via environment variables.
Load with python-dotenv; no hardcoded API keys.
"""
import os

# Load .env if present (optional in production where env is set by orchestrator)
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


# ----- Server -----
PORT = int(os.environ.get("PORT", "8001"))
HOST = os.environ.get("HOST", "0.0.0.0")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
STATIC_DIR = os.environ.get("STATIC_DIR", os.path.join(os.path.dirname(os.path.abspath(__file__)), "static"))

# ----- Capture / hand-off -----
# Browser MediaRecorder timeslice: one chunk per second
CAPTURE_TIMESLICE_MS = int(os.environ.get("CAPTURE_TIMESLICE_MS", "1000"))
# Buffered chunks are processed every N seconds while recording
PROCESS_INTERVAL_SECONDS = float(os.environ.get("PROCESS_INTERVAL_SECONDS", "5"))
# Each processed cycle adds this many seconds to the session duration
SECONDS_PER_CYCLE = int(os.environ.get("SECONDS_PER_CYCLE", "5"))
# Idle timeout for a WebSocket coaching session
WS_IDLE_TIMEOUT_SECONDS = float(os.environ.get("WS_IDLE_TIMEOUT_SECONDS", "300"))

# ----- Feedback -----
# random: canned message per cycle (demo behavior) | analysis: transcribe + filler/pace scoring
FEEDBACK_MODE = os.environ.get("FEEDBACK_MODE", "random").lower()
# Simulated network delay of the mock processor
MOCK_PROCESS_DELAY_MS = float(os.environ.get("MOCK_PROCESS_DELAY_MS", "500"))
# How long a feedback bubble stays visible
FEEDBACK_VISIBLE_SECONDS = float(os.environ.get("FEEDBACK_VISIBLE_SECONDS", "8"))

# ----- Transcription -----
# mock | huggingface | whisper
TRANSCRIBE_BACKEND = os.environ.get("TRANSCRIBE_BACKEND", "mock").lower()
MOCK_TRANSCRIBE_DELAY_MS = float(os.environ.get("MOCK_TRANSCRIBE_DELAY_MS", "1000"))
HUGGING_FACE_API_KEY = os.environ.get("HUGGING_FACE_API_KEY", "")
HUGGING_FACE_ASR_URL = os.environ.get(
    "HUGGING_FACE_ASR_URL",
    "https://api-inference.huggingface.co/models/openai/whisper-large",
)
HUGGING_FACE_TIMEOUT_SECONDS = float(os.environ.get("HUGGING_FACE_TIMEOUT_SECONDS", "60"))
# Local Whisper size (tiny, base, small, medium, large) when TRANSCRIBE_BACKEND=whisper
WHISPER_MODEL = os.environ.get("WHISPER_MODEL", "base")
WHISPER_LANGUAGE = os.environ.get("WHISPER_LANGUAGE", "en")

# ----- Metrics -----
METRICS_ENABLED = _env_bool("METRICS_ENABLED", "true")

# ----- CORS (production: set to specific origins) -----
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")
def get_cors_origins() -> list:
    """Return list of allowed CORS origins from env."""
    if CORS_ORIGINS == "*":
        return ["*"]
    return [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]
