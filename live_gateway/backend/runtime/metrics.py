"""Runtime metrics for live sessions."""

import threading
from collections import defaultdict
from typing import Any, Dict


class Metrics:
    """Thread-safe counters and aggregations for server metrics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active_sessions = 0
        self._sessions_created = 0
        self._sessions_ended = 0
        self._sessions_evicted = 0
        self._turns: Dict[str, int] = defaultdict(int)
        self._fragments: Dict[str, int] = defaultdict(int)
        self._buffer_rejections = 0
        self._model_latency_count = 0
        self._model_latency_total = 0.0
        self._model_latency_max = 0.0
        self._error_counts: Dict[str, int] = defaultdict(int)

    def increase_active_sessions(self) -> None:
        with self._lock:
            self._active_sessions += 1
            self._sessions_created += 1

    def decrease_active_sessions(self) -> None:
        with self._lock:
            if self._active_sessions > 0:
                self._active_sessions -= 1
            self._sessions_ended += 1

    def record_eviction(self) -> None:
        with self._lock:
            self._sessions_evicted += 1

    def record_turn(self, outcome: str) -> None:
        """Count a turn by outcome: processed, skipped or failed."""
        with self._lock:
            self._turns[outcome] += 1

    def record_fragment(self, kind: str) -> None:
        with self._lock:
            self._fragments[kind] += 1

    def record_buffer_rejection(self) -> None:
        with self._lock:
            self._buffer_rejections += 1

    def record_model_latency(self, latency_sec: float) -> None:
        with self._lock:
            self._model_latency_count += 1
            self._model_latency_total += latency_sec
            self._model_latency_max = max(self._model_latency_max, latency_sec)

    def record_error(self, code: str) -> None:
        with self._lock:
            self._error_counts[code] += 1

    def active_sessions(self) -> int:
        with self._lock:
            return self._active_sessions

    def render(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "active_sessions": self._active_sessions,
                "sessions_created_total": self._sessions_created,
                "sessions_ended_total": self._sessions_ended,
                "sessions_evicted_total": self._sessions_evicted,
                "turns_total": dict(self._turns),
                "fragments_total": dict(self._fragments),
                "buffer_rejections_total": self._buffer_rejections,
                "model_latency_count": self._model_latency_count,
                "model_latency_total": round(self._model_latency_total, 6),
                "model_latency_max": round(self._model_latency_max, 6),
                "errors_total": dict(self._error_counts),
            }
