"""Pydantic schemas: engine settings and the typed reporter view of a snapshot."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

HOST_KEY = "host"
PORT_KEY = "port"
BATCH_MODE_KEY = "batchMode"
BATCH_SIZE_KEY = "batchSize"
REPORTING_INTERVAL_KEY = "reportingInterval"
PREFIX_KEY = "prefix"

# Order matters: validation reports the first failing key in this order.
KNOWN_KEYS: tuple[str, ...] = (
    HOST_KEY,
    PORT_KEY,
    BATCH_MODE_KEY,
    BATCH_SIZE_KEY,
    REPORTING_INTERVAL_KEY,
    PREFIX_KEY,
)


class ReporterSettings(BaseModel):
    """Typed view of a validated snapshot, as consumed by the metrics reporter."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    host: str
    port: int = Field(2003, ge=1)
    batch_mode: bool = Field(False, alias=BATCH_MODE_KEY)
    batch_size: int = Field(100, alias=BATCH_SIZE_KEY)
    reporting_interval: int = Field(60, gt=0, alias=REPORTING_INTERVAL_KEY)
    prefix: str = ""


class EngineSettings(BaseModel):
    """Settings of the reload engine itself (loaded from exporter.yaml)."""

    model_config = ConfigDict(extra="ignore")

    config_dir: str = Field("conf", description="Directory holding the properties file; CONFIG_DIR env overrides when loading.")
    properties_file: str = Field("graphite-plugin.properties", description="Properties file name inside config_dir")
    env_prefix: str = Field("GRAPHITE_", description="Prefix of environment variables that override properties")
    initial_delay_seconds: float = Field(10.0, ge=0)
    reload_interval_seconds: float = Field(3.0, gt=0)
    # Also reload as soon as the file is modified (watchdog), on top of the periodic schedule.
    watch_files: bool = False
    slow_reload_warning_seconds: float = Field(5.0, gt=0, description="Log a warning when one reload cycle takes longer")
    log_level: str = "INFO"
    log_json: bool = False
    # Admin HTTP server (serve command)
    host: str = "127.0.0.1"
    port: int = Field(8000, ge=1, le=65535)
