"""Per-key subscriber registry with synchronous, ordered dispatch."""

import threading
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)

# callback(key, new_value); new_value is None when the key was removed.
ChangeCallback = Callable[[str, str | None], None]


class ChangeNotifier:
    """Key -> subscribers in registration order. A failing callback never stops the others."""

    def __init__(self) -> None:
        self._callbacks: dict[str, list[ChangeCallback]] = {}
        self._lock = threading.Lock()

    def subscribe(self, key: str, callback: ChangeCallback) -> None:
        with self._lock:
            self._callbacks.setdefault(key, []).append(callback)

    def subscribers(self, key: str) -> list[ChangeCallback]:
        with self._lock:
            return list(self._callbacks.get(key, ()))

    def notify(self, key: str, new_value: str | None) -> int:
        """Invoke every subscriber of key on the calling thread. Returns the number that failed."""
        failed = 0
        for callback in self.subscribers(key):
            try:
                callback(key, new_value)
            except Exception:
                failed += 1
                logger.exception("config_callback_failed", key=key, callback=getattr(callback, "__qualname__", repr(callback)))
        return failed
