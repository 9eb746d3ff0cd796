"""
Metrics reporting controller: runs the reporter from the current config snapshot.

- start(): build sender + reporter from the snapshot and subscribe restart() to every known key.
- On a change to any known key: start a new reporter from the latest snapshot, then stop the old one.
  If the new settings cannot drive a reporter, the old one keeps running.
- Restart runs on the reload thread; while it blocks, the next reload waits.
"""

import threading

import structlog

from metrics_exporter.config.engine import ReloadEngine
from metrics_exporter.config.schemas import KNOWN_KEYS, ReporterSettings
from metrics_exporter.reporting.factory import SenderFactory, default_sender_factory
from metrics_exporter.reporting.registry import MetricRegistry
from metrics_exporter.reporting.reporter import ScheduledReporter

logger = structlog.get_logger(__name__)


class MetricsReportingController:
    """Consumer of ReloadEngine change callbacks; owns the reporter's lifecycle."""

    def __init__(
        self,
        engine: ReloadEngine,
        registry: MetricRegistry,
        sender_factory: SenderFactory = default_sender_factory,
    ):
        self.engine = engine
        self.registry = registry
        self.sender_factory = sender_factory
        self._reporter: ScheduledReporter | None = None
        self._settings: ReporterSettings | None = None
        self._lock = threading.RLock()
        self._subscribed = False
        self._stopped = False

    @property
    def reporter(self) -> ScheduledReporter | None:
        return self._reporter

    @property
    def settings(self) -> ReporterSettings | None:
        """Settings the running reporter was built from."""
        return self._settings

    def start(self) -> None:
        """
        Subscribe to config changes and start reporting.

        Raises:
            MissingConfigValueError: host is not configured.
            InvalidConfigValueError / ValueError: settings cannot drive a reporter.
        """
        with self._lock:
            self._stopped = False
            if not self._subscribed:
                for key in KNOWN_KEYS:
                    self.engine.add_subscription(key, self._on_key_changed)
                self._subscribed = True
            self._start_reporter()

    def restart(self) -> None:
        """
        Rebuild the reporter from the latest full snapshot; no-op when nothing it uses changed.

        The replacement is started before the running reporter is stopped, so settings that
        cannot drive a reporter leave the old one in place.
        """
        with self._lock:
            if self._stopped:
                return
            old = self._reporter
            try:
                new_settings = self.engine.get_current_snapshot().reporter_settings()
                if old is not None and old.is_running and new_settings == self._settings:
                    logger.debug("reporter_restart_skipped")
                    return
                self._start_reporter(new_settings)
            except Exception:
                logger.warning("reporter_restart_failed", kept_running=old is not None)
                raise
            if old is not None:
                old.stop()

    def stop(self) -> None:
        with self._lock:
            self._stopped = True
            self._stop_reporter()

    def _on_key_changed(self, key: str, new_value: str | None) -> None:
        logger.info("reporter_restart_requested", key=key, removed=new_value is None)
        self.restart()

    def _start_reporter(self, settings: ReporterSettings | None = None) -> None:
        settings = settings or self.engine.get_current_snapshot().reporter_settings()
        sender = self.sender_factory(settings)
        try:
            reporter = ScheduledReporter(
                self.registry,
                sender,
                interval_seconds=settings.reporting_interval,
                prefix=settings.prefix,
            )
            reporter.start()
        except Exception:
            sender.close()
            raise
        self._reporter = reporter
        self._settings = settings

    def _stop_reporter(self) -> None:
        if self._reporter is not None:
            self._reporter.stop()
        self._reporter = None
        self._settings = None
