"""Shared test fixtures for the family steward bridge."""

from collections.abc import Iterator
from datetime import timedelta
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from family_steward import environment
from family_steward.bridge import AnalysisBridge
from family_steward.dispatcher import Dispatcher
from family_steward.store import SnapshotStore
from family_steward.testing import ScriptedExecutor
from family_steward.tools import ToolContext


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from the real data directory and the feature flag."""
    monkeypatch.delenv("FAMILY_STEWARD_ANALYSIS_ENABLED", raising=False)
    data_dir = tmp_path / "data"
    with (
        patch.object(environment, "DATA_DIR", data_dir),
        patch.object(environment, "AUDIT_PATH", data_dir / "audit"),
        patch.object(environment, "ANALYZER_DIR", data_dir / "DrCodePT-Swarm"),
    ):
        yield


@pytest.fixture()
def analysis_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FAMILY_STEWARD_ANALYSIS_ENABLED", "true")


@pytest.fixture()
def store(tmp_path: Path) -> SnapshotStore:
    return SnapshotStore(tmp_path / "data")


@pytest.fixture()
def program_dir(store: SnapshotStore) -> Path:
    """An installed (fake) analysis program."""
    d = store.data_dir / "DrCodePT-Swarm"
    d.mkdir(parents=True)
    (d / "analyze_family.py").write_text("raise SystemExit(0)\n")
    return d


@pytest.fixture()
def executor() -> ScriptedExecutor:
    return ScriptedExecutor()


@pytest.fixture()
def bridge(store: SnapshotStore, executor: ScriptedExecutor) -> AnalysisBridge:
    return AnalysisBridge(
        store,
        executor,
        program_dir=store.data_dir / "DrCodePT-Swarm",
        timeout=timedelta(seconds=5),
    )


@pytest.fixture()
def tool_context(store: SnapshotStore, bridge: AnalysisBridge) -> ToolContext:
    return ToolContext(store=store, bridge=bridge)


@pytest.fixture()
def dispatcher(tool_context: ToolContext, tmp_path: Path) -> Dispatcher:
    return Dispatcher(tool_context, audit_path=tmp_path / "audit")


@pytest.fixture()
def snapshot() -> dict[str, Any]:
    snapshot: dict[str, Any] = {
        "exportDate": "2026-10-18T20:00:00.000Z",
        "members": [
            {"id": 1, "name": "Bruce", "role": "parent", "active": True},
            {"id": 2, "name": "Robin", "role": "child", "active": True},
        ],
        "logs": [
            {
                "date": "2026-10-17",
                "energy": 6,
                "mood": 7,
                "connection": 8,
                "topWin": "Family dinner",
                "topFriction": "Rushed morning",
            }
        ],
        "drifts": [
            {
                "driftType": "energy",
                "severity": "medium",
                "sentence": "Energy dipped midweek.",
                "acknowledged": False,
            },
            {
                "driftType": "connection",
                "severity": "low",
                "sentence": "Fewer shared meals.",
                "acknowledged": True,
            },
        ],
        "weeklyStats": {"completionRate": 0.75, "avgEnergy": 6.5, "avgConnection": 7},
    }
    return snapshot
