"""
All-or-nothing validation of a candidate configuration.

Only known keys are checked; unknown keys always pass. An absent known key is
valid (the consumer falls back to its default). The first failing key, in
KNOWN_KEYS order, rejects the whole candidate.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from metrics_exporter.config.schemas import KNOWN_KEYS

# Same shape and range Integer.parseInt accepts: optional sign, ASCII digits, 32-bit signed.
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


def _parse_int(value: str) -> int:
    if not _INT_PATTERN.fullmatch(value):
        raise ValueError("not an integer")
    number = int(value)
    if not _INT_MIN <= number <= _INT_MAX:
        raise ValueError(f"out of range [{_INT_MIN}, {_INT_MAX}]")
    return number


class _Candidate(BaseModel):
    """Field names match the property keys; values stay strings after validation."""

    model_config = ConfigDict(extra="allow")

    host: str | None = None
    port: str | None = None
    batchMode: str | None = None
    batchSize: str | None = None
    reportingInterval: str | None = None
    prefix: str | None = None

    @field_validator("port")
    @classmethod
    def _port_positive(cls, v: str) -> str:
        if _parse_int(v) < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("batchMode")
    @classmethod
    def _strict_bool(cls, v: str) -> str:
        if v not in ("true", "false"):
            raise ValueError("must be exactly 'true' or 'false'")
        return v

    @field_validator("batchSize", "reportingInterval")
    @classmethod
    def _integer(cls, v: str) -> str:
        _parse_int(v)
        return v


@dataclass(frozen=True)
class Accept:
    values: dict[str, str] = field(default_factory=dict)
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Reject:
    key: str
    value: str | None
    reason: str
    ok: bool = field(default=False, init=False)


ValidationResult = Accept | Reject


class ConfigValidator:
    """Validate a full key -> value candidate; returns Accept or Reject, never raises on bad input."""

    def validate(self, candidate: Mapping[str, str]) -> ValidationResult:
        values = dict(candidate)
        try:
            _Candidate.model_validate({k: v for k, v in values.items() if k in KNOWN_KEYS})
        except ValidationError as e:
            return self._first_rejection(e, values)
        return Accept(values)

    @staticmethod
    def _first_rejection(error: ValidationError, values: dict[str, str]) -> Reject:
        by_key: dict[str, str] = {}
        for err in error.errors():
            key = str(err["loc"][0]) if err.get("loc") else ""
            ctx_error = (err.get("ctx") or {}).get("error")
            by_key.setdefault(key, str(ctx_error) if ctx_error is not None else err["msg"])
        for key in KNOWN_KEYS:
            if key in by_key:
                return Reject(key=key, value=values.get(key), reason=by_key[key])
        key, reason = next(iter(by_key.items()))
        return Reject(key=key, value=values.get(key), reason=reason)
