"""Typed lookups of configuration values in the process environment."""

from __future__ import annotations

import math
import os
import re
from collections.abc import Mapping
from datetime import timedelta
from fractions import Fraction

__all__ = [
    "ConfigError",
    "parse_duration",
    "parse_bool",
    "get_env_string",
    "get_env_int",
    "get_env_int32",
    "get_env_float",
    "get_env_bool",
    "get_env_duration",
]


class ConfigError(ValueError):
    """An environment variable is set to a value of the wrong kind."""

    def __init__(self, key: str, value: str, expected: str, reason: str) -> None:
        super().__init__(
            f"Environment variable {key} must be {expected}, found value {value!r}: {reason}"
        )
        self.key = key
        self.value = value


_NANOS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_MAX_NANOS = (1 << 63) - 1
_DURATION_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_FLOAT_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_FLOAT_SPECIAL = re.compile(r"[+-]?(?:inf|infinity)|nan", re.IGNORECASE)

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"300ms"``, ``"-1.5h"`` or ``"2h45m"``."""
    rest = text
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    total = Fraction(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_COMPONENT.match(rest, pos)
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise ValueError(f"invalid duration {text!r}")
        if not unit:
            raise ValueError(f"missing unit in duration {text!r}")
        if unit not in _NANOS_PER_UNIT:
            raise ValueError(f"unknown unit {unit!r} in duration {text!r}")
        value = Fraction(int(whole or "0"))
        if fraction:
            value += Fraction(int(fraction), 10 ** len(fraction))
        total += value * _NANOS_PER_UNIT[unit]
        pos = match.end()

    nanos = int(total)
    if nanos > _MAX_NANOS + (1 if negative else 0):
        raise ValueError(f"invalid duration {text!r}")
    seconds, remainder = divmod(nanos, 1_000_000_000)
    result = timedelta(seconds=seconds, microseconds=remainder // 1_000)
    return -result if negative else result


def parse_bool(text: str) -> bool:
    """Parse the boolean spellings 1/0, t/f, true/false in their usual cases."""
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise ValueError(f"invalid boolean {text!r}")


def _parse_int(text: str, bits: int) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f"invalid integer {text!r}")
    value = int(text)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ValueError(f"value {text!r} out of range for {bits}-bit integer")
    return value


def _parse_float(text: str) -> float:
    if _FLOAT_SPECIAL.fullmatch(text):
        return float(text)
    if not _FLOAT_PATTERN.fullmatch(text):
        raise ValueError(f"invalid number {text!r}")
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"value {text!r} out of range")
    return value


def _lookup(key: str, environ: Mapping[str, str] | None) -> str | None:
    source = os.environ if environ is None else environ
    return source.get(key)


def get_env_string(key: str, default: str, environ: Mapping[str, str] | None = None) -> str:
    """Return the variable's value, or ``default`` when it is unset.

    A variable set to the empty string yields the empty string.
    """
    value = _lookup(key, environ)
    return default if value is None else value


def _get_typed(key, default, environ, parser, expected):
    value = _lookup(key, environ)
    if value is None:
        return default
    try:
        return parser(value)
    except ValueError as exc:
        raise ConfigError(key, value, expected, str(exc)) from exc


def get_env_int(key: str, default: int, environ: Mapping[str, str] | None = None) -> int:
    """Return the variable as a 64-bit integer, or ``default`` when unset."""
    return _get_typed(key, default, environ, lambda v: _parse_int(v, 64), "an int")


def get_env_int32(key: str, default: int, environ: Mapping[str, str] | None = None) -> int:
    """Return the variable as a 32-bit integer, or ``default`` when unset."""
    return _get_typed(key, default, environ, lambda v: _parse_int(v, 32), "of type int32")


def get_env_float(key: str, default: float, environ: Mapping[str, str] | None = None) -> float:
    """Return the variable as a float, or ``default`` when unset."""
    return _get_typed(key, default, environ, _parse_float, "a number")


def get_env_bool(key: str, default: bool, environ: Mapping[str, str] | None = None) -> bool:
    """Return the variable as a boolean, or ``default`` when unset."""
    return _get_typed(key, default, environ, parse_bool, "boolean")


def get_env_duration(
    key: str, default: timedelta, environ: Mapping[str, str] | None = None
) -> timedelta:
    """Return the variable as a duration, or ``default`` when unset."""
    return _get_typed(key, default, environ, parse_duration, "a duration")