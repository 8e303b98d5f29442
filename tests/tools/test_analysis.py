"""Tests for the drift analysis tool."""

import json

from family_steward.testing import ScriptedExecutor
from family_steward.tools import ToolContext, registry


async def test_disabled_by_default(exported_ctx: ToolContext, executor: ScriptedExecutor):
    result = json.loads(await registry.execute("run_drift_analysis", {}, exported_ctx))
    assert result["success"] is False
    assert result["failure"] == "not_enabled"
    assert executor.starts == []


async def test_reports_findings(
    exported_ctx: ToolContext,
    executor: ScriptedExecutor,
    analysis_enabled: None,
    program_dir: object,
):
    executor.output = {
        "drifts": [
            {
                "type": "connection",
                "severity": "low",
                "observation": "Fewer shared meals.",
                "suggestions": ["Sunday breakfast"],
            }
        ],
        "summary": "Mostly steady.",
    }

    result = json.loads(await registry.execute("run_drift_analysis", {}, exported_ctx))

    assert result == {
        "success": True,
        "drifts": [
            {
                "type": "connection",
                "severity": "low",
                "observation": "Fewer shared meals.",
                "suggestions": ["Sunday breakfast"],
            }
        ],
        "summary": "Mostly steady.",
    }
    assert len(executor.starts) == 1


async def test_reports_failures_as_results(
    exported_ctx: ToolContext,
    executor: ScriptedExecutor,
    analysis_enabled: None,
    program_dir: object,
):
    executor.returncode = 1
    executor.stderr = b"Traceback: something broke"

    result = json.loads(await registry.execute("run_drift_analysis", {}, exported_ctx))

    assert result["success"] is False
    assert result["failure"] == "exit_code"
    assert "something broke" in result["error"]
