"""
Speaking pace: words per minute and a three-tier pace score.

Average conversational pace is 120–150 WPM. Anything from 100 to 170 WPM
(both inclusive) scores 100; slower or faster scores 70. The score is a step
function, not a curve.
"""
import math
from typing import Any, Dict

from .normalization import count_words

PACE_SLOW_WPM = 100.0
PACE_FAST_WPM = 170.0

PACE_SCORE_OPTIMAL = 100
PACE_SCORE_OFF = 70

PACE_TOO_SLOW = "too_slow"
PACE_TOO_FAST = "too_fast"
PACE_OPTIMAL = "optimal"


class InvalidArgumentError(ValueError):
    """Raised when an analysis input is out of its valid domain (e.g. duration <= 0)."""


def _check_duration(duration_seconds: float) -> float:
    try:
        duration = float(duration_seconds)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"duration_seconds must be a number, got {duration_seconds!r}")
    if not math.isfinite(duration) or duration <= 0:
        raise InvalidArgumentError(f"duration_seconds must be > 0, got {duration_seconds!r}")
    return duration


def words_per_minute(transcript: str, duration_seconds: float) -> float:
    """(word_count / duration_seconds) * 60. Raises InvalidArgumentError if duration <= 0."""
    duration = _check_duration(duration_seconds)
    # Multiply first so whole-minute inputs land exactly on the thresholds.
    return (count_words(transcript) * 60) / duration


def pace_label(wpm: float) -> str:
    if wpm < PACE_SLOW_WPM:
        return PACE_TOO_SLOW
    if wpm > PACE_FAST_WPM:
        return PACE_TOO_FAST
    return PACE_OPTIMAL


def analyze_speaking_pace(transcript: str, duration_seconds: float) -> int:
    """Pace score for a transcript spoken over duration_seconds: 100 if optimal, else 70."""
    wpm = words_per_minute(transcript, duration_seconds)
    if pace_label(wpm) == PACE_OPTIMAL:
        return PACE_SCORE_OPTIMAL
    return PACE_SCORE_OFF


def classify_pace(transcript: str, duration_seconds: float) -> Dict[str, Any]:
    """
    Full pace result for API responses.

    Returns:
        {"words": int, "wpm": float, "label": str, "score": int}
    """
    wpm = words_per_minute(transcript, duration_seconds)
    label = pace_label(wpm)
    return {
        "words": count_words(transcript),
        "wpm": round(wpm, 2),
        "label": label,
        "score": PACE_SCORE_OPTIMAL if label == PACE_OPTIMAL else PACE_SCORE_OFF,
    }
