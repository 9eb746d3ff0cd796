"""Tests for ConfigSnapshot accessors and snapshot diffing."""

import pytest

from metrics_exporter.config.snapshot import ConfigSnapshot, diff
from metrics_exporter.errors import InvalidConfigValueError, MissingConfigValueError


def test_empty_snapshot():
    snap = ConfigSnapshot.empty()
    assert len(snap) == 0
    assert snap.version == 0
    assert snap.host is None
    assert snap.port is None


def test_snapshot_is_read_only_copy():
    source = {"host": "a"}
    snap = ConfigSnapshot(source, version=3)
    source["host"] = "b"
    assert snap["host"] == "a"
    with pytest.raises(TypeError):
        snap["host"] = "c"  # type: ignore[index]
    with pytest.raises(AttributeError):
        snap.other = 1  # type: ignore[attr-defined]


def test_typed_accessors():
    snap = ConfigSnapshot(
        {
            "host": "graphite",
            "port": "2004",
            "batchMode": "true",
            "batchSize": "25",
            "reportingInterval": "15",
            "prefix": "p",
            "custom": "kept",
        }
    )
    assert snap.host == "graphite"
    assert snap.port == 2004
    assert snap.batch_mode is True
    assert snap.batch_size == 25
    assert snap.reporting_interval == 15
    assert snap.prefix == "p"
    assert snap["custom"] == "kept"
    assert snap.as_dict()["custom"] == "kept"


def test_snapshots_compare_by_values():
    assert ConfigSnapshot({"a": "1"}, version=1) == ConfigSnapshot({"a": "1"}, version=2)
    assert ConfigSnapshot({"a": "1"}) == {"a": "1"}


def test_require_missing_raises():
    with pytest.raises(MissingConfigValueError) as exc_info:
        ConfigSnapshot({}).require("host")
    assert exc_info.value.key == "host"


def test_reporter_settings_defaults():
    settings = ConfigSnapshot({"host": "graphite"}).reporter_settings()
    assert settings.host == "graphite"
    assert settings.port == 2003
    assert settings.batch_mode is False
    assert settings.batch_size == 100
    assert settings.reporting_interval == 60
    assert settings.prefix == ""


def test_reporter_settings_requires_host():
    with pytest.raises(MissingConfigValueError):
        ConfigSnapshot({"port": "2003"}).reporter_settings()


def test_reporter_settings_rejects_unusable_value():
    with pytest.raises(InvalidConfigValueError) as exc_info:
        ConfigSnapshot({"host": "h", "port": "0"}).reporter_settings()
    assert exc_info.value.key == "port"


def test_diff_changed_added_removed():
    old = {"host": "a", "port": "1", "prefix": "x"}
    new = {"host": "b", "port": "1", "batchMode": "true"}
    d = diff(old, new)
    assert d.changed == {"host": ("a", "b")}
    assert d.added == {"batchMode": "true"}
    assert d.removed == {"prefix": "x"}
    assert bool(d)
    assert d.notifications() == [("host", "b"), ("prefix", None), ("batchMode", "true")]


def test_diff_identical_is_empty():
    d = diff({"a": "1"}, {"a": "1"})
    assert not d
    assert d.notifications() == []


def test_snapshot_metadata_is_read_only():
    snap = ConfigSnapshot({"host": "a"}, version=4, loaded_at=100.0)
    with pytest.raises(AttributeError):
        snap.version = 5  # type: ignore[misc]
    with pytest.raises(AttributeError):
        snap.loaded_at = 0.0  # type: ignore[misc]
    assert (snap.version, snap.loaded_at) == (4, 100.0)


def test_reporter_settings_rejects_non_positive_interval():
    with pytest.raises(InvalidConfigValueError) as exc_info:
        ConfigSnapshot({"host": "h", "reportingInterval": "0"}).reporter_settings()
    assert exc_info.value.key == "reportingInterval"
