"""Tools that read the exported family snapshot and record suggestions."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any, Literal, TypedDict

from . import ToolContext, registry

log = logging.getLogger(__name__)

NO_EXPORT = "No family data exported yet. Export data from the family dashboard first."
NO_ANALYSIS_DATA = "No family data to analyze. Export data first."

SUGGESTION_SOURCE = "claude-desktop"
MAX_SUGGESTIONS = 20
ACTIVITY_CHARS = 200
RATIONALE_CHARS = 500

Focus = Literal["energy", "connection", "goals", "all"]
Effort = Literal["low", "medium", "high"]

FOCUS_AREAS: tuple[str, ...] = ("energy", "connection", "goals", "all")
EFFORT_LEVELS: tuple[str, ...] = ("low", "medium", "high")


class SuggestionInput(TypedDict):
    activity: str
    rationale: str
    effort: Effort


@dataclass
class Suggestion:
    activity: str
    rationale: str
    effort: str

    @classmethod
    def from_raw(cls, raw: Any) -> Suggestion:
        """Coerce one host-supplied suggestion; unknown efforts become medium."""
        data = raw if isinstance(raw, dict) else {}
        effort = data.get("effort")
        return cls(
            activity=_text(data.get("activity"), ACTIVITY_CHARS),
            rationale=_text(data.get("rationale"), RATIONALE_CHARS),
            effort=effort if effort in EFFORT_LEVELS else "medium",
        )


def _text(value: Any, limit: int) -> str:
    if not value:
        return ""
    text = (value if isinstance(value, str) else str(value))[:limit]
    return text.encode("utf-8", "replace").decode("utf-8")


@registry.tool
async def read_family_export(ctx: ToolContext) -> str:
    """Read the latest family data export."""
    text = ctx.store.read_text(ctx.store.input_path)
    if text is None:
        return NO_EXPORT
    return text


@registry.tool
async def analyze_family_drifts(ctx: ToolContext, focus: Focus = "all") -> str:
    """Analyze family data for patterns requiring attention.

    focus: Focus area: energy, connection, goals, or all
    """
    text = ctx.store.read_text(ctx.store.input_path)
    if text is None:
        return NO_ANALYSIS_DATA

    data = json.loads(text)
    if focus not in FOCUS_AREAS:
        focus = "all"

    drifts = data.get("drifts") or []
    analysis = {
        "exportDate": data.get("exportDate"),
        "focus": focus,
        "memberCount": len(data.get("members") or []),
        "recentLogsCount": len(data.get("logs") or []),
        "activeDrifts": sum(1 for d in drifts if not d.get("acknowledged")),
        "weeklyStats": data.get("weeklyStats") or {},
        "analysisPrompt": (
            f"Analyze this family data with focus on {focus}. "
            "Look for patterns requiring attention."
        ),
    }
    return json.dumps(analysis, indent=2, ensure_ascii=False)


@registry.tool
async def write_suggestions(ctx: ToolContext, suggestions: list[SuggestionInput]) -> str:
    """Write activity suggestions that the family dashboard can import.

    suggestions: Activities to suggest, each with an activity, a rationale and an effort level
    """
    if not isinstance(suggestions, list):
        raise ValueError("suggestions must be an array")

    records = [Suggestion.from_raw(s) for s in suggestions[:MAX_SUGGESTIONS]]
    payload = {
        "generatedAt": datetime.now(UTC).isoformat(),
        "source": SUGGESTION_SOURCE,
        "suggestions": [asdict(r) for r in records],
    }

    path = ctx.store.suggestions_path
    async with ctx.store.guard(path):
        ctx.store.write_json(path, payload)
    log.info("Wrote %d suggestions", len(records))
    return f"Wrote {len(records)} suggestions to {path}"
