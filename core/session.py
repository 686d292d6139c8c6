"""
Per-session feedback history and aggregate speaking statistics.

Stats are heuristic running values driven by feedback type, not measurements:
- filler_words: +1 per warning
- speaking_pace: +5 per alert, +2 per good (capped at 100)
- clarity: +5 per good, -2 otherwise (kept within 0–100)
- total_time: +seconds_per_cycle per feedback
"""
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .feedback import FEEDBACK_ALERT, FEEDBACK_GOOD, FEEDBACK_TYPES, FEEDBACK_WARNING

STAT_MAX = 100
STAT_MIN = 0
# Filler count at which the stats bar turns red
FILLER_WARNING_LEVEL = 5


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class FeedbackMessage:
    """One feedback bubble."""
    text: str
    type: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: int = field(default_factory=now_ms)  # epoch ms

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SessionStats:
    filler_words: int = 0
    speaking_pace: int = 0
    clarity: int = 0
    total_time: int = 0  # seconds

    def apply(self, feedback_type: str, seconds: int = 5) -> None:
        if feedback_type not in FEEDBACK_TYPES:
            raise ValueError(f"Unknown feedback type: {feedback_type!r}")
        if feedback_type == FEEDBACK_WARNING:
            self.filler_words += 1
        pace_step = {FEEDBACK_ALERT: 5, FEEDBACK_GOOD: 2}.get(feedback_type, 0)
        self.speaking_pace = min(STAT_MAX, self.speaking_pace + pace_step)
        clarity_step = 5 if feedback_type == FEEDBACK_GOOD else -2
        self.clarity = max(STAT_MIN, min(STAT_MAX, self.clarity + clarity_step))
        self.total_time += seconds

    def filler_level(self) -> int:
        """Filler count as a 0–100 bar value (10 per filler)."""
        return min(STAT_MAX, self.filler_words * 10)

    def duration_text(self) -> str:
        return format_duration(self.total_time)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["filler_level"] = self.filler_level()
        out["filler_warning"] = self.filler_words > FILLER_WARNING_LEVEL
        out["duration_text"] = self.duration_text()
        return out


def format_duration(total_seconds: int) -> str:
    """125 -> '2m 5s'."""
    total_seconds = max(0, int(total_seconds))
    return f"{total_seconds // 60}m {total_seconds % 60}s"


class CoachingSession:
    """
    Feedback history plus stats for one user session.

    Args:
        seconds_per_cycle: Seconds added to total_time per feedback.
    """

    def __init__(self, seconds_per_cycle: int = 5):
        self.seconds_per_cycle = seconds_per_cycle
        self.messages: List[FeedbackMessage] = []
        self.stats = SessionStats()

    def add_feedback(self, text: str, feedback_type: str, timestamp: Optional[int] = None) -> FeedbackMessage:
        if feedback_type not in FEEDBACK_TYPES:
            raise ValueError(f"Unknown feedback type: {feedback_type!r}")
        msg = FeedbackMessage(text=text, type=feedback_type)
        if timestamp is not None:
            msg.timestamp = timestamp
        self.messages.append(msg)
        self.stats.apply(feedback_type, seconds=self.seconds_per_cycle)
        return msg

    def snapshot(self) -> Dict[str, Any]:
        return {
            "stats": self.stats.to_dict(),
            "messages": [m.to_dict() for m in self.messages],
        }
