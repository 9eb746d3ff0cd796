"""
Composition root: one ReloadEngine plus one MetricsReportingController per process.

The host calls on_start() once at startup and on_stop() at shutdown (FastAPI lifespan or the run command).
"""

from typing import Mapping

import structlog

from metrics_exporter.config.engine import ReloadEngine
from metrics_exporter.config.schemas import EngineSettings
from metrics_exporter.reporting.controller import MetricsReportingController
from metrics_exporter.reporting.factory import SenderFactory, default_sender_factory
from metrics_exporter.reporting.registry import MetricRegistry

logger = structlog.get_logger(__name__)


class ExporterPlugin:
    """Wires settings, engine, registry and controller together."""

    def __init__(
        self,
        settings: EngineSettings,
        registry: MetricRegistry | None = None,
        sender_factory: SenderFactory = default_sender_factory,
        environ: Mapping[str, str] | None = None,
    ):
        self.settings = settings
        self.registry = registry or MetricRegistry()
        self.engine = ReloadEngine.from_settings(settings, environ=environ)
        self.controller = MetricsReportingController(self.engine, self.registry, sender_factory)
        self.started = False

    def on_start(self) -> None:
        """
        Load config, start periodic reloading, start reporting.

        Raises:
            ConfigurationError: the loaded config cannot drive the reporter (e.g. host missing).
        """
        logger.info("plugin_start", config_dir=self.settings.config_dir, properties_file=self.settings.properties_file)
        self.engine.initialize()
        self.started = True
        self.controller.start()
        logger.info("plugin_ready")

    def on_stop(self) -> None:
        logger.info("plugin_stop")
        self.controller.stop()
        if self.started:
            self.engine.shutdown()
