"""Build a metrics sender from reporter settings (batched or not)."""

from typing import Callable

import structlog

from metrics_exporter.config.schemas import ReporterSettings
from metrics_exporter.reporting.sender import BatchingSender, LogSender, MetricsSender

logger = structlog.get_logger(__name__)

SenderFactory = Callable[[ReporterSettings], MetricsSender]


def default_sender_factory(settings: ReporterSettings) -> MetricsSender:
    """BatchingSender around LogSender when batchMode is on, else a plain LogSender."""
    if settings.batch_mode:
        logger.info("sender_create", mode="batched", host=settings.host, port=settings.port, batch_size=settings.batch_size)
        return BatchingSender(LogSender(settings.host, settings.port), settings.batch_size)
    logger.info("sender_create", mode="direct", host=settings.host, port=settings.port)
    return LogSender(settings.host, settings.port)
