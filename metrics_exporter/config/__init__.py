"""Configuration snapshot, validation, environment overrides, and hot reload."""

from metrics_exporter.config.engine import ReloadEngine, ReloadOutcome
from metrics_exporter.config.loader import load_engine_settings
from metrics_exporter.config.snapshot import ConfigSnapshot

__all__ = ["ConfigSnapshot", "ReloadEngine", "ReloadOutcome", "load_engine_settings"]
