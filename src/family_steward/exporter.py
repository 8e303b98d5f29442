"""Clamp a loosely-typed family snapshot into the bounded on-disk export.

This is the only way application data reaches ``input.json``; everything
downstream trusts that file, so every field here has a fixed type and a
fixed size no matter what was handed in.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from family_steward.store import SnapshotStore

log = logging.getLogger(__name__)

MAX_MEMBERS = 20
MAX_LOGS = 30
MAX_DRIFTS = 20

EXPORT_DATE_CHARS = 40
NAME_CHARS = 100
ROLE_CHARS = 50
DATE_CHARS = 10
LOG_TEXT_CHARS = 500
DRIFT_TYPE_CHARS = 50
SEVERITY_CHARS = 20
SENTENCE_CHARS = 500

RATING_MIN = 0
RATING_MAX = 10


@dataclass
class Member:
    id: int | None
    name: str
    role: str
    active: bool


@dataclass
class LogEntry:
    date: str
    energy: float | None
    mood: float | None
    connection: float | None
    topWin: str | None
    topFriction: str | None


@dataclass
class Drift:
    driftType: str
    severity: str
    sentence: str
    acknowledged: bool


@dataclass
class WeeklyStats:
    completionRate: float = 0
    avgEnergy: float = 0
    avgConnection: float = 0


@dataclass
class SanitizedSnapshot:
    exportDate: str
    members: list[Member] = field(default_factory=list)
    logs: list[LogEntry] = field(default_factory=list)
    drifts: list[Drift] = field(default_factory=list)
    weeklyStats: WeeklyStats = field(default_factory=WeeklyStats)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def sanitize(snapshot: Any) -> SanitizedSnapshot:
    """Apply the clamp and truncation rules to a raw snapshot."""
    data = snapshot if isinstance(snapshot, Mapping) else {}
    return SanitizedSnapshot(
        exportDate=_text(data.get("exportDate"), EXPORT_DATE_CHARS),
        members=[_member(m) for m in _records(data.get("members"), MAX_MEMBERS)],
        logs=[_log_entry(entry) for entry in _records(data.get("logs"), MAX_LOGS)],
        drifts=[_drift(d) for d in _records(data.get("drifts"), MAX_DRIFTS)],
        weeklyStats=_weekly_stats(data.get("weeklyStats")),
    )


def export_family_data(snapshot: Any, store: SnapshotStore) -> Path:
    """Sanitize a snapshot and write it to the store's input file."""
    sanitized = sanitize(snapshot)
    path = store.write_json(store.input_path, sanitized.to_dict())
    log.info(
        "Exported %d members, %d logs, %d drifts to %s",
        len(sanitized.members),
        len(sanitized.logs),
        len(sanitized.drifts),
        path,
    )
    return path


def _records(value: Any, limit: int) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value[:limit] if isinstance(item, Mapping)]


def _member(raw: Mapping[str, Any]) -> Member:
    member_id = raw.get("id")
    return Member(
        id=member_id if _is_int(member_id) else None,
        name=_text(raw.get("name"), NAME_CHARS),
        role=_text(raw.get("role"), ROLE_CHARS),
        active=bool(raw.get("active")),
    )


def _log_entry(raw: Mapping[str, Any]) -> LogEntry:
    return LogEntry(
        date=_text(raw.get("date"), DATE_CHARS),
        energy=_rating(raw.get("energy")),
        mood=_rating(raw.get("mood")),
        connection=_rating(raw.get("connection")),
        topWin=_optional_text(raw.get("topWin"), LOG_TEXT_CHARS),
        topFriction=_optional_text(raw.get("topFriction"), LOG_TEXT_CHARS),
    )


def _drift(raw: Mapping[str, Any]) -> Drift:
    return Drift(
        driftType=_text(raw.get("driftType"), DRIFT_TYPE_CHARS),
        severity=_text(raw.get("severity"), SEVERITY_CHARS),
        sentence=_text(raw.get("sentence"), SENTENCE_CHARS),
        acknowledged=bool(raw.get("acknowledged")),
    )


def _weekly_stats(raw: Any) -> WeeklyStats:
    if not isinstance(raw, Mapping):
        return WeeklyStats()
    completion = raw.get("completionRate")
    return WeeklyStats(
        completionRate=completion if _is_finite(completion) else 0,
        avgEnergy=_rating(raw.get("avgEnergy")) or 0,
        avgConnection=_rating(raw.get("avgConnection")) or 0,
    )


def _text(value: Any, limit: int) -> str:
    if value is None:
        return ""
    text = (value if isinstance(value, str) else str(value))[:limit]
    # Lone surrogates (half an emoji, cut upstream) cannot be written as UTF-8
    return text.encode("utf-8", "replace").decode("utf-8")


def _optional_text(value: Any, limit: int) -> str | None:
    if not value:
        return None
    return _text(value, limit)


def _rating(value: Any) -> float | None:
    """Clamp a numeric rating into [0, 10]; anything else becomes None."""
    if not _is_number(value) or math.isnan(value):
        return None
    return min(RATING_MAX, max(RATING_MIN, value))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_finite(value: Any) -> bool:
    return _is_number(value) and math.isfinite(value)
