"""
Observability for coaching sessions.
"""

from metrics.session_metrics import (
    get_snapshot,
    record_chunk,
    record_cycle_latency_ms,
    record_feedback,
    record_processing_failure,
    record_session_close,
    record_session_open,
    reset,
)

__all__ = [
    "get_snapshot",
    "record_chunk",
    "record_cycle_latency_ms",
    "record_feedback",
    "record_processing_failure",
    "record_session_close",
    "record_session_open",
    "reset",
]
