"""Performance monitoring utilities for the labour tracking API."""
import time
import logging
import threading
import functools
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("site-labour.perf")


def timed(func: Callable) -> Callable:
    """
    Decorator that measures and logs execution time for synchronous functions
    and records it against the function name in the shared tracker.

    Usage::

        @timed
        def build_report():
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        except Exception:
            tracker.record_operation_error(func.__name__)
            raise
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            tracker.record_operation_duration(func.__name__, duration_ms)
            logger.debug(
                "function timed",
                extra={
                    "function": func.__qualname__,
                    "duration_ms": duration_ms,
                },
            )
    return wrapper


class PerformanceTracker:
    """
    Thread-safe in-memory tracker for calculation metrics.

    Tracks:
    - Total labour analyses produced
    - Average analysis duration
    - Slowest operation seen
    - Error count broken down by operation name
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._analyses_processed: int = 0
        self._total_analysis_duration_ms: float = 0.0
        self._operation_durations: Dict[str, list] = {}
        self._error_counts: Dict[str, int] = {}
        self._slowest_operation: Optional[str] = None
        self._slowest_operation_ms: float = 0.0

    def record_analysis_complete(self, duration_ms: float) -> None:
        """Call once when a full labour analysis has been built."""
        with self._lock:
            self._analyses_processed += 1
            self._total_analysis_duration_ms += duration_ms

    def record_operation_duration(self, name: str, duration_ms: float) -> None:
        with self._lock:
            self._operation_durations.setdefault(name, []).append(duration_ms)
            if duration_ms > self._slowest_operation_ms:
                self._slowest_operation_ms = duration_ms
                self._slowest_operation = name

    def record_operation_error(self, name: str) -> None:
        with self._lock:
            self._error_counts[name] = self._error_counts.get(name, 0) + 1

    def get_metrics(self) -> Dict[str, Any]:
        """
        Return a snapshot of all collected metrics.

        Returns
        -------
        dict with keys:
            analyses_processed          : int
            avg_analysis_duration_ms    : float  (0 if none processed)
            slowest_operation           : str | None
            slowest_operation_ms        : float
            error_count                 : int
            error_count_by_operation    : dict  {name: count}
            operation_avg_durations_ms  : dict  {name: avg_ms}
        """
        with self._lock:
            avg = (
                round(self._total_analysis_duration_ms / self._analyses_processed, 2)
                if self._analyses_processed > 0
                else 0.0
            )
            op_avgs = {
                name: round(sum(d) / len(d), 2) if d else 0.0
                for name, d in self._operation_durations.items()
            }
            return {
                "analyses_processed": self._analyses_processed,
                "avg_analysis_duration_ms": avg,
                "slowest_operation": self._slowest_operation,
                "slowest_operation_ms": round(self._slowest_operation_ms, 2),
                "error_count": sum(self._error_counts.values()),
                "error_count_by_operation": dict(self._error_counts),
                "operation_avg_durations_ms": op_avgs,
            }

    def reset(self) -> None:
        """Reset all counters (useful in tests)."""
        with self._lock:
            self._analyses_processed = 0
            self._total_analysis_duration_ms = 0.0
            self._operation_durations.clear()
            self._error_counts.clear()
            self._slowest_operation = None
            self._slowest_operation_ms = 0.0


# Module-level singleton; import this instance everywhere else.
tracker = PerformanceTracker()
