"""Metrics reporting: registry, senders, scheduled reporter, and the config-driven controller."""

from metrics_exporter.reporting.controller import MetricsReportingController
from metrics_exporter.reporting.registry import MetricRegistry

__all__ = ["MetricRegistry", "MetricsReportingController"]
