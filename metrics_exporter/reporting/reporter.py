"""Background reporter: publishes registry values through a sender every interval."""

import threading
import time
from typing import Callable

import structlog

from metrics_exporter.reporting.registry import MetricRegistry
from metrics_exporter.reporting.sender import MetricsSender

logger = structlog.get_logger(__name__)


def prefixed(prefix: str, name: str) -> str:
    """Join prefix and metric name with a dot; empty prefix leaves the name as is."""
    return f"{prefix.rstrip('.')}.{name}" if prefix else name


class ScheduledReporter:
    """Daemon thread calling report_once() every interval_seconds until stop()."""

    def __init__(
        self,
        registry: MetricRegistry,
        sender: MetricsSender,
        interval_seconds: float,
        prefix: str = "",
        clock: Callable[[], float] = time.time,
    ):
        if interval_seconds <= 0:
            raise ValueError(f"reporting interval must be > 0, got {interval_seconds}")
        self.registry = registry
        self.sender = sender
        self.interval_seconds = interval_seconds
        self.prefix = prefix
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("reporter already started")
        self._thread = threading.Thread(target=self._run, name="metrics-reporter", daemon=True)
        self._thread.start()
        logger.info("reporter_started", interval_seconds=self.interval_seconds, prefix=self.prefix)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the loop, flush and close the sender."""
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self.sender.close()
        logger.info("reporter_stopped")

    def report_once(self) -> int:
        """Send one report; returns the number of metrics sent."""
        values = self.registry.snapshot()
        metrics = {prefixed(self.prefix, name): value for name, value in values.items()}
        if metrics:
            self.sender.send(metrics, int(self._clock()))
        return len(metrics)

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.report_once()
            except Exception:
                logger.exception("report_failed", target=f"{self.sender.host}:{self.sender.port}")
