"""
Abstract base for metric senders, plus the log and batching senders.

- send(metrics, timestamp) publishes one report; close() releases the sender.
- The wire protocol of a real metrics backend lives behind MetricsSender.
"""

import threading
from abc import ABC, abstractmethod
from typing import Mapping

import structlog

logger = structlog.get_logger(__name__)


class MetricsSender(ABC):
    """Publishes metric values to a backend at host:port."""

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.closed = False

    @abstractmethod
    def send(self, metrics: Mapping[str, float], timestamp: int) -> None:
        """Publish metric name -> value pairs observed at timestamp (epoch seconds)."""
        ...

    def flush(self) -> None:
        """Push anything buffered. No-op for unbuffered senders."""

    def close(self) -> None:
        self.flush()
        self.closed = True


class LogSender(MetricsSender):
    """Writes each metric as a structured log event (metric_sent)."""

    def send(self, metrics: Mapping[str, float], timestamp: int) -> None:
        for name, value in metrics.items():
            logger.info("metric_sent", target=f"{self.host}:{self.port}", metric=name, value=value, timestamp=timestamp)


class BatchingSender(MetricsSender):
    """Buffers metrics and hands them to the inner sender in chunks of batch_size."""

    def __init__(self, inner: MetricsSender, batch_size: int):
        super().__init__(inner.host, inner.port)
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.inner = inner
        self.batch_size = batch_size
        self._buffer: list[tuple[str, float, int]] = []
        self._lock = threading.Lock()

    def send(self, metrics: Mapping[str, float], timestamp: int) -> None:
        with self._lock:
            self._buffer.extend((name, value, timestamp) for name, value in metrics.items())
            while len(self._buffer) >= self.batch_size:
                chunk, self._buffer = self._buffer[: self.batch_size], self._buffer[self.batch_size :]
                self._forward(chunk)

    def flush(self) -> None:
        with self._lock:
            chunk, self._buffer = self._buffer, []
        if chunk:
            self._forward(chunk)

    def close(self) -> None:
        super().close()
        self.inner.close()

    def _forward(self, chunk: list[tuple[str, float, int]]) -> None:
        # One inner send per distinct timestamp keeps each send() a single observation.
        by_ts: dict[int, dict[str, float]] = {}
        for name, value, ts in chunk:
            by_ts.setdefault(ts, {})[name] = value
        for ts, metrics in by_ts.items():
            self.inner.send(metrics, ts)
