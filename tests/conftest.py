"""Pytest fixtures: temporary properties files, engines with a fake environment, recording subscribers."""

from pathlib import Path

import pytest
import structlog

from metrics_exporter.config.engine import ReloadEngine
from metrics_exporter.config.env import EnvironmentOverrideResolver
from metrics_exporter.config.properties import write_properties


@pytest.fixture(autouse=True)
def _reset_structlog():
    """CLI tests configure structlog globally; restore defaults so log capture sees every level."""
    yield
    structlog.reset_defaults()


class Recorder:
    """Subscriber that records every (key, new_value) call in order."""

    def __init__(self):
        self.calls: list[tuple[str, str | None]] = []

    def __call__(self, key: str, new_value: str | None) -> None:
        self.calls.append((key, new_value))


@pytest.fixture
def props_path(tmp_path) -> Path:
    """Path of the backing properties file (not created)."""
    return tmp_path / "graphite-plugin.properties"


@pytest.fixture
def write_props(props_path):
    """Write a dict to the properties file, replacing its content."""
    def _write(values: dict[str, str]) -> Path:
        write_properties(props_path, values)
        return props_path
    return _write


@pytest.fixture
def fake_env() -> dict[str, str]:
    """Mutable environment mapping used instead of os.environ."""
    return {}


@pytest.fixture
def make_engine(props_path, fake_env):
    """Build engines on props_path with fake_env; every engine is shut down after the test."""
    engines: list[ReloadEngine] = []

    def _make(**kwargs) -> ReloadEngine:
        kwargs.setdefault("initial_delay", 3600)
        kwargs.setdefault("interval", 3600)
        engine = ReloadEngine(props_path, resolver=EnvironmentOverrideResolver("GRAPHITE_", fake_env), **kwargs)
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        engine.shutdown(timeout=1)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def exporter_config_dir(tmp_path):
    """Config dir with exporter.yaml (no scheduled reloads during tests) and a valid properties file."""
    (tmp_path / "exporter.yaml").write_text(
        "properties_file: graphite-plugin.properties\n"
        "initial_delay_seconds: 3600\n"
        "reload_interval_seconds: 3600\n"
        "env_prefix: TESTGRAPHITE_\n"
    )
    write_properties(
        tmp_path / "graphite-plugin.properties",
        {"host": "localhost", "port": "2003", "reportingInterval": "60", "prefix": "broker"},
    )
    return tmp_path
