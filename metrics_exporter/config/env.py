"""Environment-variable overrides for configuration keys."""

import os
import re
from typing import Mapping

DEFAULT_ENV_PREFIX = "GRAPHITE_"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_upper_snake(key: str) -> str:
    """``reportingInterval`` -> ``REPORTING_INTERVAL``."""
    return _CAMEL_BOUNDARY.sub("_", key).upper()


class EnvironmentOverrideResolver:
    """
    Resolve the override for a config key from the process environment.

    The variable name is the prefix followed by the key in upper snake case,
    e.g. ``batchSize`` -> ``GRAPHITE_BATCH_SIZE``. An unset variable means no
    override; an empty string is a real value.
    """

    def __init__(self, prefix: str = DEFAULT_ENV_PREFIX, environ: Mapping[str, str] | None = None):
        self.prefix = prefix
        self._environ = environ

    def variable_name(self, key: str) -> str:
        return self.prefix + to_upper_snake(key)

    def resolve(self, key: str) -> str | None:
        environ = os.environ if self._environ is None else self._environ
        return environ.get(self.variable_name(key))

    def overrides(self, keys: tuple[str, ...] | list[str]) -> dict[str, str]:
        """Return {key: value} for every key in keys that has an override set."""
        found: dict[str, str] = {}
        for key in keys:
            value = self.resolve(key)
            if value is not None:
                found[key] = value
        return found
