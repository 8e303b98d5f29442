"""Typed environment variable helpers with FAMILY_STEWARD_ prefix."""

import logging
import os
import re
from datetime import timedelta
from pathlib import Path
from typing import overload

_PREFIX = "FAMILY_STEWARD_"
_MISSING = object()
_TRUTHY = {"1", "true", "yes", "on"}


@overload
def get_str(name: str) -> str: ...


@overload
def get_str(name: str, default: str) -> str: ...


def get_str(name: str, default: object = _MISSING) -> str:
    """Read FAMILY_STEWARD_{name} as a string.

    With no default, raises KeyError if the variable is unset.
    With a default, returns the default when unset.
    """
    key = f"{_PREFIX}{name}"
    if default is _MISSING:
        return os.environ[key]
    return os.environ.get(key, default)  # type: ignore[arg-type]


def get_int(name: str, default: int) -> int:
    """Read FAMILY_STEWARD_{name} as an integer."""
    raw = os.environ.get(f"{_PREFIX}{name}")
    if raw is None:
        return default
    return int(raw)


def get_bool(name: str, default: bool = False) -> bool:
    """Read FAMILY_STEWARD_{name} as a flag (true/1/yes/on, any case)."""
    raw = os.environ.get(f"{_PREFIX}{name}")
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def get_path(name: str, default: str) -> Path:
    """Read FAMILY_STEWARD_{name} as an expanded Path."""
    raw = os.environ.get(f"{_PREFIX}{name}", default)
    return Path(raw).expanduser()


def get_log_level(name: str, default: int) -> int:
    """Read FAMILY_STEWARD_{name} as a logging level name (e.g. "DEBUG")."""
    raw = os.environ.get(f"{_PREFIX}{name}")
    if raw is None:
        return default
    level = logging.getLevelNamesMapping().get(raw.strip().upper())
    if level is None:
        raise ValueError(f"Unknown log level: {raw}")
    return level


def get_timedelta(name: str, default: timedelta) -> timedelta:
    """Read FAMILY_STEWARD_{name} as a timedelta.

    Accepts either integer seconds (e.g. "90") or an ISO 8601 duration
    string (e.g. "PT30S", "PT2M", "PT1M30S").
    """
    raw = os.environ.get(f"{_PREFIX}{name}")
    if raw is None:
        return default
    if raw.startswith("P"):
        return _parse_iso8601_duration(raw)
    return timedelta(seconds=int(raw))


_ISO_DURATION = re.compile(
    r"^P"
    r"(?:(\d+)D)?"
    r"(?:T"
    r"(?:(\d+)H)?"
    r"(?:(\d+)M)?"
    r"(?:(\d+)S)?"
    r")?$"
)


def _parse_iso8601_duration(value: str) -> timedelta:
    """Parse a subset of ISO 8601 durations into a timedelta."""
    m = _ISO_DURATION.match(value)
    if not m:
        raise ValueError(f"Cannot parse ISO 8601 duration: {value}")
    days = int(m.group(1) or 0)
    hours = int(m.group(2) or 0)
    minutes = int(m.group(3) or 0)
    seconds = int(m.group(4) or 0)
    return timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds)


def analysis_enabled() -> bool:
    """Whether the external analysis program may be located and run.

    Read on every call so the flag can be flipped without a restart.
    """
    return get_bool("ANALYSIS_ENABLED", False)


DATA_DIR = get_path("DATA_DIR", "~/.family-steward")
AUDIT_PATH = DATA_DIR / "audit"
ANALYZER_DIR = get_path("ANALYZER_DIR", str(DATA_DIR / "DrCodePT-Swarm"))
ANALYSIS_TIMEOUT = get_timedelta("ANALYSIS_TIMEOUT", timedelta(seconds=60))
