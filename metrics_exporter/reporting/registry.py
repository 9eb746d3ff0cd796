"""Thread-safe in-process metric registry (counters and gauges)."""

import threading
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)


class Counter:
    """Monotonic counter."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._value += n

    @property
    def value(self) -> int:
        return self._value


class MetricRegistry:
    """Named counters and gauges. snapshot() reads every metric once."""

    def __init__(self) -> None:
        self._counters: dict[str, Counter] = {}
        self._gauges: dict[str, Callable[[], float]] = {}
        self._lock = threading.Lock()

    def counter(self, name: str) -> Counter:
        """Return the counter registered under name, creating it on first use."""
        with self._lock:
            if name in self._gauges:
                raise ValueError(f"metric {name!r} is already registered as a gauge")
            return self._counters.setdefault(name, Counter())

    def gauge(self, name: str, fn: Callable[[], float]) -> None:
        """Register (or replace) a gauge read by calling fn() at report time."""
        with self._lock:
            if name in self._counters:
                raise ValueError(f"metric {name!r} is already registered as a counter")
            self._gauges[name] = fn

    def names(self) -> list[str]:
        with self._lock:
            return sorted([*self._counters, *self._gauges])

    def snapshot(self) -> dict[str, float]:
        """Current value of every metric. A gauge that raises is skipped and logged."""
        with self._lock:
            counters = dict(self._counters)
            gauges = dict(self._gauges)
        values: dict[str, float] = {name: float(c.value) for name, c in counters.items()}
        for name, fn in gauges.items():
            try:
                values[name] = float(fn())
            except Exception:
                logger.exception("gauge_read_failed", metric=name)
        return values
