"""
Coaching session observability metrics.

Thread-safe counters and latency samples for /ws/coach and /process.
Exposed via GET /metrics/session (JSON snapshot).
"""

import threading
from collections import deque
from typing import Any, Dict

import numpy as np

# ----- Shared state (module-level for singleton behavior) -----
_lock = threading.Lock()
_active_sessions = 0
_cycle_latency_samples: deque = deque(maxlen=1000)  # last N processing latencies (ms)
_cycles_processed = 0
_processing_failures = 0
_chunks_received = 0
_bytes_received = 0
_feedback_by_type: Dict[str, int] = {"good": 0, "warning": 0, "alert": 0}


def record_session_open() -> None:
    """Call when a coaching WebSocket connection is accepted."""
    with _lock:
        global _active_sessions
        _active_sessions += 1


def record_session_close() -> None:
    with _lock:
        global _active_sessions
        _active_sessions = max(0, _active_sessions - 1)


def record_chunk(num_bytes: int) -> None:
    """Call for every audio chunk received from a client."""
    with _lock:
        global _chunks_received, _bytes_received
        _chunks_received += 1
        _bytes_received += max(0, num_bytes)


def record_cycle_latency_ms(total_ms: float) -> None:
    """Record one successful processing cycle and its latency."""
    with _lock:
        global _cycles_processed
        _cycles_processed += 1
        _cycle_latency_samples.append(float(total_ms))


def record_processing_failure() -> None:
    with _lock:
        global _processing_failures
        _processing_failures += 1


def record_feedback(feedback_type: str) -> None:
    with _lock:
        _feedback_by_type[feedback_type] = _feedback_by_type.get(feedback_type, 0) + 1


def reset() -> None:
    """Zero all counters (tests and admin use)."""
    with _lock:
        global _active_sessions, _cycles_processed, _processing_failures, _chunks_received, _bytes_received
        _active_sessions = 0
        _cycles_processed = 0
        _processing_failures = 0
        _chunks_received = 0
        _bytes_received = 0
        _cycle_latency_samples.clear()
        for k in _feedback_by_type:
            _feedback_by_type[k] = 0


def get_snapshot() -> Dict[str, Any]:
    """
    Return a JSON-serializable snapshot of session metrics.
    Used by GET /metrics/session.
    """
    with _lock:
        samples = np.asarray(_cycle_latency_samples, dtype=float)
        snapshot = {
            "active_sessions": _active_sessions,
            "cycles_processed": _cycles_processed,
            "processing_failures": _processing_failures,
            "chunks_received": _chunks_received,
            "bytes_received": _bytes_received,
            "feedback_by_type": dict(_feedback_by_type),
        }
    if samples.size == 0:
        snapshot["avg_latency_ms"] = None
        snapshot["p95_latency_ms"] = None
    else:
        snapshot["avg_latency_ms"] = round(float(samples.mean()), 2)
        snapshot["p95_latency_ms"] = round(float(np.percentile(samples, 95)), 2)
    snapshot["latency_sample_count"] = int(samples.size)
    return snapshot
