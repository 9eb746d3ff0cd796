"""Tests for engine settings loader: env injection, defaults, validation, CONFIG_DIR."""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from metrics_exporter.config.loader import _substitute_env, load_engine_settings, properties_path
from metrics_exporter.config.schemas import EngineSettings


def test_substitute_env_string():
    os.environ["FOO"] = "bar"
    assert _substitute_env("hello ${FOO}") == "hello bar"
    assert _substitute_env("$FOO") == "bar"
    os.environ.pop("FOO", None)


def test_substitute_env_nested():
    os.environ["KEY"] = "secret"
    data = {"a": "${KEY}", "b": [{"c": "$KEY"}]}
    out = _substitute_env(data)
    assert out["a"] == "secret"
    assert out["b"][0]["c"] == "secret"
    os.environ.pop("KEY", None)


def test_substitute_env_unset_left_as_written(monkeypatch):
    monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)
    assert _substitute_env("${NOT_SET_ANYWHERE}") == "${NOT_SET_ANYWHERE}"


def test_load_engine_settings_defaults_without_yaml(tmp_path):
    settings = load_engine_settings(str(tmp_path))
    assert isinstance(settings, EngineSettings)
    assert settings.config_dir == str(tmp_path.resolve())
    assert settings.properties_file == "graphite-plugin.properties"
    assert settings.env_prefix == "GRAPHITE_"
    assert settings.initial_delay_seconds == 10
    assert settings.reload_interval_seconds == 3
    assert settings.watch_files is False


def test_load_engine_settings_from_yaml(tmp_path, monkeypatch):
    monkeypatch.setenv("EXPORTER_PREFIX", "HIVEMQ_GRAPHITE_")
    (tmp_path / "exporter.yaml").write_text(
        "properties_file: other.properties\n"
        "env_prefix: ${EXPORTER_PREFIX}\n"
        "reload_interval_seconds: 1.5\n"
        "watch_files: true\n"
        "unknown_setting: ignored\n"
    )
    settings = load_engine_settings(str(tmp_path))
    assert settings.properties_file == "other.properties"
    assert settings.env_prefix == "HIVEMQ_GRAPHITE_"
    assert settings.reload_interval_seconds == 1.5
    assert settings.watch_files is True
    assert properties_path(settings) == tmp_path.resolve() / "other.properties"


def test_load_engine_settings_config_dir_from_env(tmp_path, monkeypatch):
    (tmp_path / "exporter.yaml").write_text("log_level: DEBUG\n")
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    settings = load_engine_settings()
    assert settings.log_level == "DEBUG"
    assert Path(settings.config_dir) == tmp_path.resolve()


def test_load_engine_settings_invalid_value(tmp_path):
    (tmp_path / "exporter.yaml").write_text("reload_interval_seconds: 0\n")
    with pytest.raises(ValidationError):
        load_engine_settings(str(tmp_path))


def test_load_engine_settings_invalid_yaml(tmp_path):
    (tmp_path / "exporter.yaml").write_text("properties_file: [invalid")
    with pytest.raises(Exception):
        load_engine_settings(str(tmp_path))


def test_load_engine_settings_non_mapping_yaml(tmp_path):
    (tmp_path / "exporter.yaml").write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="mapping"):
        load_engine_settings(str(tmp_path))
