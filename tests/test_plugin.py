"""Tests for the composition root's start/stop hooks."""

import pytest

from metrics_exporter.config.loader import load_engine_settings
from metrics_exporter.config.properties import write_properties
from metrics_exporter.errors import MissingConfigValueError
from metrics_exporter.plugin import ExporterPlugin
from metrics_exporter.reporting.sender import MetricsSender


class NullSender(MetricsSender):
    def send(self, metrics, timestamp):
        pass


def _plugin(config_dir, environ=None) -> ExporterPlugin:
    settings = load_engine_settings(str(config_dir))
    return ExporterPlugin(settings, sender_factory=lambda s: NullSender(s.host, s.port), environ=environ or {})


def test_on_start_and_on_stop(exporter_config_dir):
    plugin = _plugin(exporter_config_dir)
    plugin.on_start()
    assert plugin.engine.is_running
    assert plugin.controller.reporter.is_running
    plugin.on_stop()
    assert not plugin.engine.is_running
    assert plugin.controller.reporter is None


def test_env_prefix_from_settings(exporter_config_dir):
    plugin = _plugin(exporter_config_dir, environ={"TESTGRAPHITE_HOST": "from-env"})
    plugin.on_start()
    try:
        assert plugin.engine.get_current_snapshot().host == "from-env"
        assert plugin.controller.settings.host == "from-env"
    finally:
        plugin.on_stop()


def test_missing_host_fails_at_consumer(exporter_config_dir):
    write_properties(exporter_config_dir / "graphite-plugin.properties", {"port": "2003"})
    plugin = _plugin(exporter_config_dir)
    with pytest.raises(MissingConfigValueError):
        plugin.on_start()
    # The engine itself keeps running with the incomplete snapshot.
    assert plugin.engine.is_running
    plugin.on_stop()
    assert not plugin.engine.is_running


def test_missing_properties_file_starts_engine_but_not_reporter(tmp_path):
    plugin = _plugin(tmp_path)
    with pytest.raises(MissingConfigValueError):
        plugin.on_start()
    assert len(plugin.engine.get_current_snapshot()) == 0
    plugin.on_stop()
