"""Route tracing and latency accounting."""

from __future__ import annotations

import time
from collections import Counter

from intent_router.types import RouteTrace


class TraceStore:
    """In-memory trace storage for API-level observability.

    Pass `TraceStore.record` as the dispatcher observer; the dispatcher itself
    keeps no trace state.
    """

    def __init__(self, *, max_records: int = 1000) -> None:
        self._records: dict[str, RouteTrace] = {}
        self._max_records = max_records

    def record(self, trace: RouteTrace) -> None:
        self._records[trace.trace_id] = trace
        while len(self._records) > self._max_records:
            del self._records[next(iter(self._records))]

    def get(self, trace_id: str) -> RouteTrace:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[RouteTrace]:
        if limit <= 0:
            return []
        return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, object]:
        """Aggregate routing metrics for dashboard display."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "success_rate": 0.0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "workers": {},
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        successes = sum(1 for record in records if record.success)
        workers = Counter(record.worker or "rejected" for record in records)

        return {
            "total_requests": total,
            "success_rate": successes / total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "workers": dict(workers),
        }


class Timer:
    """Simple context timer used by the dispatcher."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
