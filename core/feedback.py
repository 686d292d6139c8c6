"""
Coaching feedback for one processed audio chunk.

Two producers share the same result shape {"feedback": str, "feedback_type": str}:
- process_audio_data: demo behavior, a uniformly random canned message per cycle
- feedback_from_analysis: derived from filler-word count and pace score of a transcript
"""
import asyncio
import random
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .fillers import analyze_filler_words
from .pace import PACE_OPTIMAL, PACE_TOO_FAST, classify_pace

FEEDBACK_GOOD = "good"
FEEDBACK_WARNING = "warning"
FEEDBACK_ALERT = "alert"
FEEDBACK_TYPES = (FEEDBACK_GOOD, FEEDBACK_WARNING, FEEDBACK_ALERT)

FEEDBACK_CATALOG: List[Dict[str, str]] = [
    {"text": "Great pace, keep it up! 👍", "type": FEEDBACK_GOOD},
    {"text": "Your energy sounds positive", "type": FEEDBACK_GOOD},
    {"text": "Clear articulation, nice job!", "type": FEEDBACK_GOOD},
    {"text": "Try to avoid saying 'um' too much", "type": FEEDBACK_WARNING},
    {"text": "Watch for repeated 'like' in your speech", "type": FEEDBACK_WARNING},
    {"text": "Consider pausing between key points", "type": FEEDBACK_WARNING},
    {"text": "You're speaking too fast 🚀", "type": FEEDBACK_ALERT},
    {"text": "Long pause detected, keep the flow", "type": FEEDBACK_ALERT},
    {"text": "Volume is too low, speak up", "type": FEEDBACK_ALERT},
]

# Manual "trigger random feedback" button on the demo page
DEMO_FEEDBACKS: List[Dict[str, str]] = [
    {"text": "Great pace, keep it up! 👍", "type": FEEDBACK_GOOD},
    {"text": "Try to avoid saying 'um' too much", "type": FEEDBACK_WARNING},
    {"text": "You're speaking too fast 🚀", "type": FEEDBACK_ALERT},
    {"text": "Good energy in your voice! 🔥", "type": FEEDBACK_GOOD},
    {"text": "Consider pausing for emphasis", "type": FEEDBACK_WARNING},
]


def _result(entry: Dict[str, str]) -> Dict[str, str]:
    return {"feedback": entry["text"], "feedback_type": entry["type"]}


def _catalog_entry(text: str) -> Dict[str, str]:
    for entry in FEEDBACK_CATALOG:
        if entry["text"] == text:
            return entry
    raise KeyError(text)


def pick_random_feedback(rng: Optional[random.Random] = None) -> Dict[str, str]:
    """Uniformly random catalog entry as a feedback result."""
    return _result((rng or random).choice(FEEDBACK_CATALOG))


def pick_demo_feedback(rng: Optional[random.Random] = None) -> Dict[str, str]:
    return _result((rng or random).choice(DEMO_FEEDBACKS))


async def process_audio_data(
    audio_bytes: bytes,
    delay_ms: float = 500.0,
    rng: Optional[random.Random] = None,
) -> Dict[str, str]:
    """
    Mock processing of one audio chunk: simulated network delay, then a random
    canned message. The audio itself is not inspected.
    """
    await asyncio.sleep(max(0.0, delay_ms) / 1000.0)
    return pick_random_feedback(rng)


def feedback_from_analysis(transcript: str, duration_seconds: float) -> Dict[str, Any]:
    """
    Pick a catalog message from real analysis of a transcript.

    Priority: nothing heard > too fast > too slow > fillers > good pace.
    Raises InvalidArgumentError when duration_seconds <= 0.
    """
    pace = classify_pace(transcript, duration_seconds)
    fillers = analyze_filler_words(transcript)
    analysis = {"pace": pace, "fillers": fillers}

    if pace["words"] == 0:
        entry = _catalog_entry("Volume is too low, speak up")
    elif pace["label"] == PACE_TOO_FAST:
        entry = _catalog_entry("You're speaking too fast 🚀")
    elif pace["label"] != PACE_OPTIMAL:
        entry = _catalog_entry("Long pause detected, keep the flow")
    elif fillers["count"]:
        counts: Dict[str, int] = {}
        for w in fillers["words"]:
            counts[w] = counts.get(w, 0) + 1
        top = max(counts, key=lambda w: counts[w])
        if top in ("um", "uh"):
            entry = _catalog_entry("Try to avoid saying 'um' too much")
        elif top == "like":
            entry = _catalog_entry("Watch for repeated 'like' in your speech")
        else:
            entry = _catalog_entry("Consider pausing between key points")
    else:
        entry = _catalog_entry("Great pace, keep it up! 👍")

    out: Dict[str, Any] = _result(entry)
    out["analysis"] = analysis
    return out


async def process_with_analysis(
    audio_bytes: bytes,
    duration_seconds: float,
    transcribe: Callable[[bytes], Awaitable[str]],
) -> Dict[str, Any]:
    """Transcribe a chunk, then derive feedback from the transcript."""
    transcript = await transcribe(audio_bytes)
    out = feedback_from_analysis(transcript, duration_seconds)
    out["transcript"] = transcript
    return out
