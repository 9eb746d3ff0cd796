"""
Reload engine: owns the current ConfigSnapshot and keeps it in sync with the backing properties file.

One reload cycle: read file -> apply environment overrides for known keys -> validate the whole
candidate -> diff against the current snapshot -> swap the snapshot reference -> notify subscribers.

- Readers call get_current_snapshot() from any thread; they always get a complete, validated snapshot.
- A rejected or unreadable candidate leaves the current snapshot in place.
- Subscribers run synchronously on the reloading thread. Blocking work in a subscriber (e.g. restarting
  a sender) delays the next scheduled cycle; a subscriber that hangs stalls reloading until it returns.
- Cycles are serialized: the periodic thread, the file watcher and manual reload() calls share one lock.
"""

import threading
import time
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import structlog

from metrics_exporter.config.env import EnvironmentOverrideResolver
from metrics_exporter.config.loader import properties_path, start_file_watcher
from metrics_exporter.config.notifier import ChangeCallback, ChangeNotifier
from metrics_exporter.config.properties import load_properties
from metrics_exporter.config.schemas import KNOWN_KEYS, EngineSettings
from metrics_exporter.config.snapshot import ConfigDiff, ConfigSnapshot, diff
from metrics_exporter.config.validator import ConfigValidator, Reject
from metrics_exporter.errors import PropertiesFormatError

logger = structlog.get_logger(__name__)


class ReloadOutcome(str, Enum):
    """Result of one reload cycle."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    REJECTED = "rejected"
    UNREADABLE = "unreadable"
    FAILED = "failed"


class ReloadEngine:
    """Hot-reloading holder of the current configuration snapshot."""

    def __init__(
        self,
        path: Path,
        resolver: EnvironmentOverrideResolver | None = None,
        validator: ConfigValidator | None = None,
        notifier: ChangeNotifier | None = None,
        *,
        initial_delay: float = 10.0,
        interval: float = 3.0,
        watch_files: bool = False,
        slow_reload_warning_seconds: float = 5.0,
    ):
        self.path = Path(path)
        self._resolver = resolver or EnvironmentOverrideResolver()
        self._validator = validator or ConfigValidator()
        self._notifier = notifier or ChangeNotifier()
        self._initial_delay = initial_delay
        self._interval = interval
        self._watch_files = watch_files
        self._slow_reload_warning_seconds = slow_reload_warning_seconds

        self._snapshot = ConfigSnapshot.empty()
        self._reload_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop = threading.Event()
        self._initialized = False
        self._thread: threading.Thread | None = None
        self._observer: Any | None = None
        self._last_rejected: dict[str, str] | None = None

    @classmethod
    def from_settings(cls, settings: EngineSettings, environ: Mapping[str, str] | None = None) -> "ReloadEngine":
        """Build an engine from EngineSettings (path, schedule, env prefix)."""
        return cls(
            properties_path(settings),
            resolver=EnvironmentOverrideResolver(settings.env_prefix, environ),
            initial_delay=settings.initial_delay_seconds,
            interval=settings.reload_interval_seconds,
            watch_files=settings.watch_files,
            slow_reload_warning_seconds=settings.slow_reload_warning_seconds,
        )

    # --- public API ---

    def initialize(self) -> None:
        """
        First synchronous load, then start the periodic reload thread (and the file watcher if enabled).

        A missing, unreadable or invalid file installs an empty snapshot; startup never fails on it.

        Raises:
            RuntimeError: initialize() was already called on this engine.
        """
        with self._state_lock:
            if self._initialized:
                raise RuntimeError("ReloadEngine is already initialized")
            self._initialized = True

        with self._reload_lock:
            self._snapshot = self._initial_snapshot()

        self._thread = threading.Thread(target=self._run_schedule, name="config-reload", daemon=True)
        self._thread.start()
        logger.info(
            "config_reload_scheduled",
            path=str(self.path),
            initial_delay_seconds=self._initial_delay,
            interval_seconds=self._interval,
        )
        if self._watch_files:
            self._observer = start_file_watcher(self.path, self._on_file_event)
            if self._observer is None:
                logger.warning("config_watcher_not_started", directory=str(self.path.parent))

    def reload(self) -> ReloadOutcome:
        """Run one reload cycle. Never raises; failures are logged and count as 'no change'."""
        with self._reload_lock:
            started = time.monotonic()
            try:
                return self._reload_cycle()
            except Exception:
                logger.exception("config_reload_failed", path=str(self.path))
                return ReloadOutcome.FAILED
            finally:
                elapsed = time.monotonic() - started
                if elapsed > self._slow_reload_warning_seconds:
                    logger.warning(
                        "reload_cycle_slow",
                        elapsed_seconds=round(elapsed, 3),
                        threshold_seconds=self._slow_reload_warning_seconds,
                    )

    def add_subscription(self, key: str, callback: ChangeCallback) -> None:
        """Register callback(key, new_value) for changes to key; new_value is None on removal."""
        self._notifier.subscribe(key, callback)

    def get_current_snapshot(self) -> ConfigSnapshot:
        """Current snapshot; may be replaced by the next reload right after the call returns."""
        return self._snapshot

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def shutdown(self, timeout: float | None = 5.0) -> None:
        """Stop scheduling further cycles and stop the file watcher. An in-flight cycle completes."""
        if self._stop.is_set():
            return
        self._stop.set()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout)
            self._observer = None
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("config_reload_stopped", path=str(self.path))

    def __enter__(self) -> "ReloadEngine":
        self.initialize()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown()

    def read_candidate(self) -> dict[str, str]:
        """
        File values with environment overrides applied to known keys (not validated).

        Raises:
            OSError: File missing or unreadable.
            PropertiesFormatError: File is malformed.
        """
        candidate = load_properties(self.path)
        overrides = self._resolver.overrides(KNOWN_KEYS)
        if overrides:
            logger.debug("config_env_overrides", keys=sorted(overrides))
        candidate.update(overrides)
        return candidate

    # --- internals ---

    def _initial_snapshot(self) -> ConfigSnapshot:
        try:
            candidate = self.read_candidate()
        except (OSError, PropertiesFormatError) as e:
            logger.error("config_initial_load_failed", path=str(self.path), error=str(e))
            return ConfigSnapshot.empty()
        result = self._validator.validate(candidate)
        if isinstance(result, Reject):
            logger.warning(
                "config_rejected",
                phase="initial",
                key=result.key,
                value=result.value,
                reason=result.reason,
                path=str(self.path),
            )
            self._last_rejected = candidate
            return ConfigSnapshot.empty()
        logger.info("config_loaded", path=str(self.path), keys=sorted(result.values))
        return ConfigSnapshot(result.values, version=1)

    def _reload_cycle(self) -> ReloadOutcome:
        current = self._snapshot
        old_values = current.as_dict()
        try:
            candidate = self.read_candidate()
        except (OSError, PropertiesFormatError) as e:
            logger.debug("config_reload_unreadable", path=str(self.path), error=str(e))
            return ReloadOutcome.UNREADABLE

        result = self._validator.validate(candidate)
        if isinstance(result, Reject):
            # Same broken file every tick: warn once, then keep quiet until it changes.
            log = logger.debug if candidate == self._last_rejected else logger.warning
            log("config_rejected", key=result.key, value=result.value, reason=result.reason, path=str(self.path))
            self._last_rejected = candidate
            return ReloadOutcome.REJECTED
        self._last_rejected = None

        changes = diff(old_values, result.values)
        if not changes:
            return ReloadOutcome.UNCHANGED

        self._snapshot = ConfigSnapshot(result.values, version=current.version + 1)
        self._log_changes(changes)
        for key, new_value in changes.notifications():
            self._notifier.notify(key, new_value)
        return ReloadOutcome.APPLIED

    def _log_changes(self, changes: ConfigDiff) -> None:
        for key, (old, new) in changes.changed.items():
            logger.debug("config_value_changed", key=key, old=old, new=new)
        for key in changes.removed:
            logger.debug("config_value_removed", key=key)
        for key, value in changes.added.items():
            logger.debug("config_value_added", key=key, value=value)
        logger.info(
            "config_reloaded",
            version=self._snapshot.version,
            changed=len(changes.changed),
            added=len(changes.added),
            removed=len(changes.removed),
        )

    def _run_schedule(self) -> None:
        """Fixed-rate loop; a late cycle pushes the schedule back instead of running back-to-back."""
        next_run = time.monotonic() + self._initial_delay
        while not self._stop.wait(max(0.0, next_run - time.monotonic())):
            self.reload()
            next_run = max(next_run + self._interval, time.monotonic())

    def _on_file_event(self, event_type: str, path: str) -> None:
        logger.debug("config_file_event", event_type=event_type, path=path)
        if not self._stop.is_set():
            self.reload()
