"""Immutable configuration snapshot, typed accessors, and snapshot diffing."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping

from pydantic import ValidationError

from metrics_exporter.config.schemas import (
    BATCH_MODE_KEY,
    BATCH_SIZE_KEY,
    HOST_KEY,
    PORT_KEY,
    PREFIX_KEY,
    REPORTING_INTERVAL_KEY,
    ReporterSettings,
)
from metrics_exporter.errors import InvalidConfigValueError, MissingConfigValueError


class ConfigSnapshot(Mapping[str, str]):
    """
    One fully-resolved configuration state (file values plus environment overrides).

    Never mutated after construction; a reload replaces the whole object. Unknown
    keys are kept and exposed as plain strings.
    """

    __slots__ = ("_values", "_version", "_loaded_at")

    def __init__(self, values: Mapping[str, str] | None = None, version: int = 0, loaded_at: float | None = None):
        self._values = MappingProxyType(dict(values or {}))
        self._version = version
        self._loaded_at = time.time() if loaded_at is None else loaded_at

    @classmethod
    def empty(cls) -> ConfigSnapshot:
        return cls({}, version=0)

    @property
    def version(self) -> int:
        """0 for the empty snapshot; incremented by every applied reload."""
        return self._version

    @property
    def loaded_at(self) -> float:
        return self._loaded_at

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ConfigSnapshot(version={self.version}, values={dict(self._values)!r})"

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)

    def require(self, key: str) -> str:
        """Return the value for key or raise MissingConfigValueError."""
        value = self._values.get(key)
        if value is None:
            raise MissingConfigValueError(key)
        return value

    # Typed accessors. Values of known keys were validated before the snapshot was built.

    @property
    def host(self) -> str | None:
        return self._values.get(HOST_KEY)

    @property
    def port(self) -> int | None:
        v = self._values.get(PORT_KEY)
        return int(v) if v is not None else None

    @property
    def batch_mode(self) -> bool | None:
        v = self._values.get(BATCH_MODE_KEY)
        return v == "true" if v is not None else None

    @property
    def batch_size(self) -> int | None:
        v = self._values.get(BATCH_SIZE_KEY)
        return int(v) if v is not None else None

    @property
    def reporting_interval(self) -> int | None:
        v = self._values.get(REPORTING_INTERVAL_KEY)
        return int(v) if v is not None else None

    @property
    def prefix(self) -> str | None:
        return self._values.get(PREFIX_KEY)

    def reporter_settings(self) -> ReporterSettings:
        """
        Build the typed reporter view; absent optional keys fall back to defaults.

        Raises:
            MissingConfigValueError: host is not set.
            InvalidConfigValueError: a value does not fit the reporter's constraints.
        """
        self.require(HOST_KEY)
        try:
            return ReporterSettings.model_validate(dict(self._values))
        except ValidationError as e:
            err = e.errors()[0]
            key = str(err["loc"][0]) if err.get("loc") else ""
            raise InvalidConfigValueError(key, str(self._values.get(key)), err["msg"]) from e


@dataclass(frozen=True)
class ConfigDiff:
    """Per-key difference between two snapshots."""

    changed: dict[str, tuple[str, str]] = field(default_factory=dict)
    added: dict[str, str] = field(default_factory=dict)
    removed: dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.changed or self.added or self.removed)

    def notifications(self) -> list[tuple[str, str | None]]:
        """(key, new value) pairs to dispatch: changed, then removed (None), then added."""
        out: list[tuple[str, str | None]] = [(k, new) for k, (_old, new) in self.changed.items()]
        out.extend((k, None) for k in self.removed)
        out.extend(self.added.items())
        return out


def diff(old: Mapping[str, str], new: Mapping[str, str]) -> ConfigDiff:
    """Compare two key -> value mappings."""
    changed = {k: (old[k], new[k]) for k in old if k in new and old[k] != new[k]}
    added = {k: new[k] for k in new if k not in old}
    removed = {k: old[k] for k in old if k not in new}
    return ConfigDiff(changed=changed, added=added, removed=removed)
