"""
Feedback bubble state for the live coaching view.

Each message is visible for a fixed time after it arrives. The panel starts
inactive and collapsed; the first message activates and expands it.
"""

import time
from typing import Any, Callable, Dict, List, Optional

from core.session import FeedbackMessage

DEFAULT_VISIBLE_SECONDS = 8.0


class FeedbackPanel:
    """
    Tracks which feedback messages are currently on screen.

    Visibility is computed from arrival time, so no per-message timers are
    needed: a message is visible while now < arrived_at + visible_seconds.
    """

    def __init__(
        self,
        visible_seconds: float = DEFAULT_VISIBLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.visible_seconds = visible_seconds
        self._clock = clock
        self.is_active = False
        self.is_expanded = False
        self._arrivals: Dict[str, float] = {}
        self._messages: List[FeedbackMessage] = []

    def push(self, message: FeedbackMessage) -> None:
        """Show a new message. Expired messages are forgotten first, so history stays bounded."""
        if message.id in self._arrivals:
            return
        now = self._clock()
        self.prune(now)
        self._arrivals[message.id] = now
        self._messages.append(message)
        if not self.is_active:
            self.is_active = True
            self.is_expanded = True

    def __len__(self) -> int:
        return len(self._messages)

    def visible_messages(self, now: Optional[float] = None) -> List[FeedbackMessage]:
        now = self._clock() if now is None else now
        return [m for m in self._messages if now < self._arrivals[m.id] + self.visible_seconds]

    def badge_count(self, now: Optional[float] = None) -> int:
        """Number shown on the collapsed bubble."""
        if self.is_expanded:
            return 0
        return len(self.visible_messages(now))

    def prune(self, now: Optional[float] = None) -> int:
        """Forget expired messages. Returns how many were dropped."""
        keep = self.visible_messages(now)
        dropped = len(self._messages) - len(keep)
        keep_ids = {m.id for m in keep}
        self._messages = keep
        self._arrivals = {k: v for k, v in self._arrivals.items() if k in keep_ids}
        return dropped

    def toggle_expand(self) -> bool:
        self.is_expanded = not self.is_expanded
        return self.is_expanded

    def close(self) -> None:
        self.is_active = False
        self.is_expanded = False

    def to_dict(self, now: Optional[float] = None) -> Dict[str, Any]:
        if not self.is_active:
            return {"is_active": False, "is_expanded": False, "badge": 0, "messages": []}
        visible = self.visible_messages(now)
        return {
            "is_active": True,
            "is_expanded": self.is_expanded,
            "badge": 0 if self.is_expanded else len(visible),
            "messages": [m.to_dict() for m in visible],
        }
