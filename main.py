"""
Voice coach API.
Live capture over /ws/coach: audio chunks in, feedback bubbles and session stats out.
Stateless analysis endpoints for filler words and speaking pace.
"""
import logging
import os
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

import config
import metrics.session_metrics as session_metrics
from core.asr import TranscriptionError, transcribe_audio
from core.feedback import FEEDBACK_CATALOG, feedback_from_analysis, process_audio_data, process_with_analysis
from core.fillers import FILLER_WORDS, analyze_filler_words, unreachable_fillers
from core.pace import InvalidArgumentError, classify_pace
from streaming.websocket_server import build_ws_coach_handler

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="MirrorMe.AI Voice Coach API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if os.path.isdir(config.STATIC_DIR):
    app.mount("/demo-static", StaticFiles(directory=config.STATIC_DIR), name="static")


class FillerRequest(BaseModel):
    transcript: str
    vocabulary: Optional[List[str]] = None


class PaceRequest(BaseModel):
    transcript: str
    duration_seconds: float


async def transcribe(audio_bytes: bytes) -> str:
    return await transcribe_audio(
        audio_bytes,
        backend=config.TRANSCRIBE_BACKEND,
        api_key=config.HUGGING_FACE_API_KEY,
        url=config.HUGGING_FACE_ASR_URL,
        timeout=config.HUGGING_FACE_TIMEOUT_SECONDS,
        whisper_model_name=config.WHISPER_MODEL,
        language=config.WHISPER_LANGUAGE,
        mock_delay_ms=config.MOCK_TRANSCRIBE_DELAY_MS,
    )


async def process_chunk(audio_bytes: bytes, duration_seconds: Optional[float] = None) -> Dict[str, Any]:
    """
    One hand-off cycle: random canned feedback, or real analysis when FEEDBACK_MODE=analysis.
    duration_seconds is the audio length of the blob; uploads without one count as a full interval.
    """
    if config.FEEDBACK_MODE == "analysis":
        if duration_seconds is None:
            duration_seconds = config.PROCESS_INTERVAL_SECONDS
        return await process_with_analysis(audio_bytes, duration_seconds, transcribe)
    return await process_audio_data(audio_bytes, delay_ms=config.MOCK_PROCESS_DELAY_MS)


@app.get("/demo", include_in_schema=False)
@app.get("/demo/", include_in_schema=False)
async def serve_demo():
    try:
        with open(os.path.join(config.STATIC_DIR, "index.html"), "r", encoding="utf-8") as f:
            return HTMLResponse(content=f.read())
    except OSError:
        raise HTTPException(status_code=404, detail="Demo UI not found.")


@app.get("/")
def health_check():
    return {
        "status": "ok",
        "message": "Voice coach API is running",
        "feedback_mode": config.FEEDBACK_MODE,
        "transcribe_backend": config.TRANSCRIBE_BACKEND,
    }


@app.get("/feedback/catalog")
def feedback_catalog():
    return {"feedback": FEEDBACK_CATALOG}


@app.post("/analyze/fillers")
def analyze_fillers(body: FillerRequest):
    vocabulary = body.vocabulary if body.vocabulary is not None else list(FILLER_WORDS)
    result = analyze_filler_words(body.transcript, vocabulary)
    result["unmatchable_terms"] = unreachable_fillers(vocabulary)
    return result


@app.post("/analyze/pace")
def analyze_pace(body: PaceRequest):
    try:
        return classify_pace(body.transcript, body.duration_seconds)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/analyze")
def analyze_transcript(body: PaceRequest):
    """Filler + pace analysis and the feedback message it maps to."""
    try:
        return feedback_from_analysis(body.transcript, body.duration_seconds)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/process")
async def process_audio(audio: UploadFile = File(...)):
    """Process one uploaded chunk the same way a live hand-off cycle does."""
    audio_bytes = await audio.read()
    if not audio_bytes:
        raise HTTPException(status_code=400, detail="Empty audio upload")
    session_metrics.record_chunk(len(audio_bytes))
    try:
        result = await process_chunk(audio_bytes)
    except TranscriptionError as e:
        session_metrics.record_processing_failure()
        logger.error("Process error: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=422, detail=str(e))
    session_metrics.record_feedback(result["feedback_type"])
    return result


@app.post("/transcribe")
async def transcribe_upload(audio: UploadFile = File(...)):
    audio_bytes = await audio.read()
    if not audio_bytes:
        raise HTTPException(status_code=400, detail="Empty audio upload")
    try:
        text = await transcribe(audio_bytes)
    except TranscriptionError as e:
        logger.error("Transcription error: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    return {"text": text, "backend": config.TRANSCRIBE_BACKEND}


_ws_coach_handler = build_ws_coach_handler(
    process_chunk=process_chunk,
    interval_seconds=config.PROCESS_INTERVAL_SECONDS,
    chunk_seconds=config.CAPTURE_TIMESLICE_MS / 1000.0,
    seconds_per_cycle=config.SECONDS_PER_CYCLE,
    visible_seconds=config.FEEDBACK_VISIBLE_SECONDS,
    idle_timeout_seconds=config.WS_IDLE_TIMEOUT_SECONDS,
    get_metrics=session_metrics if config.METRICS_ENABLED else None,
)
app.websocket("/ws/coach")(_ws_coach_handler)


@app.get("/metrics/session", include_in_schema=False)
def metrics_session():
    """JSON snapshot: active_sessions, cycles_processed, processing_failures, latency avg/p95."""
    return session_metrics.get_snapshot()


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT)
