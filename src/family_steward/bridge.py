"""Hand the exported snapshot to the external analysis program.

The program lives at a fixed path (``analyze_family.py`` inside the
analyzer directory) and talks to us only through files: it gets the input
and output paths as two positional arguments and writes its findings to
the output path.  Nothing from the snapshot or from a request is ever put
on its command line, and no shell is involved.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum
from pathlib import Path
from typing import Any

import anyio

from family_steward import environment
from family_steward.executor import CommandExecutor
from family_steward.store import SnapshotStore

log = logging.getLogger(__name__)

ANALYZER_SCRIPT = "analyze_family.py"
ANALYZER_REPO = "https://github.com/Treytucker05/DrCodePT-Swarm.git"
STDERR_EXCERPT_CHARS = 500
REAP_GRACE_SECONDS = 1.0


class AnalysisFailure(StrEnum):
    NOT_ENABLED = "not_enabled"
    NOT_INSTALLED = "not_installed"
    NO_INPUT = "no_input"
    EXIT_CODE = "exit_code"
    TIMEOUT = "timeout"
    UNPARSABLE_OUTPUT = "unparsable_output"
    PROCESS_ERROR = "process_error"


@dataclass
class DriftFinding:
    type: str
    severity: str
    observation: str
    suggestions: list[str] = field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: Any) -> DriftFinding:
        if not isinstance(raw, dict):
            raise ValueError(f"drift entries must be objects, got {type(raw).__name__}")
        suggestions = raw.get("suggestions") or []
        if not isinstance(suggestions, list):
            raise ValueError("drift suggestions must be a list")
        return cls(
            type=str(raw.get("type", "")),
            severity=str(raw.get("severity", "")),
            observation=str(raw.get("observation", "")),
            suggestions=[str(s) for s in suggestions],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity,
            "observation": self.observation,
            "suggestions": self.suggestions,
        }


@dataclass
class AnalysisResult:
    success: bool
    drifts: list[DriftFinding] = field(default_factory=list)
    summary: str = ""
    error: str | None = None
    failure: AnalysisFailure | None = None

    @classmethod
    def failed(cls, failure: AnalysisFailure, error: str) -> AnalysisResult:
        return cls(success=False, error=error, failure=failure)

    @classmethod
    def parse(cls, text: str) -> AnalysisResult:
        """Decode the program's output file.  Raises ValueError on a bad shape."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        drifts = data.get("drifts") or []
        if not isinstance(drifts, list):
            raise ValueError("drifts must be a list")
        summary = data.get("summary") or ""
        return cls(
            success=True,
            drifts=[DriftFinding.from_raw(d) for d in drifts],
            summary=summary if isinstance(summary, str) else str(summary),
        )

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {
                "success": True,
                "drifts": [d.to_dict() for d in self.drifts],
                "summary": self.summary,
            }
        return {
            "success": False,
            "error": self.error or "",
            "failure": str(self.failure) if self.failure else None,
        }


class AnalysisBridge:
    """Runs the external analysis program against the store's input file."""

    def __init__(
        self,
        store: SnapshotStore,
        executor: CommandExecutor,
        program_dir: Path,
        timeout: timedelta = timedelta(seconds=60),
    ) -> None:
        self.store = store
        self.executor = executor
        self.program_dir = program_dir
        self.timeout = timeout

    @property
    def script_path(self) -> Path:
        return self.program_dir / ANALYZER_SCRIPT

    def command(self) -> list[str]:
        return [
            sys.executable,
            str(self.script_path),
            str(self.store.input_path),
            str(self.store.output_path),
        ]

    async def run(self) -> AnalysisResult:
        if not environment.analysis_enabled():
            return AnalysisResult.failed(
                AnalysisFailure.NOT_ENABLED,
                "Analysis bridge is not enabled. "
                "Set FAMILY_STEWARD_ANALYSIS_ENABLED=true to enable.",
            )

        if not self.program_dir.is_dir():
            return AnalysisResult.failed(
                AnalysisFailure.NOT_INSTALLED,
                f"DrCodePT-Swarm not installed. Run: git clone {ANALYZER_REPO} "
                f"{self.program_dir}",
            )

        if not self.store.input_path.is_file():
            return AnalysisResult.failed(
                AnalysisFailure.NO_INPUT,
                "No input data. Export family data first.",
            )

        if not self.script_path.is_file():
            return AnalysisResult.failed(
                AnalysisFailure.NOT_INSTALLED,
                f"{ANALYZER_SCRIPT} not found in {self.program_dir}",
            )

        async with self.store.guard(self.store.output_path):
            return await self._run_program()

    async def _run_program(self) -> AnalysisResult:
        seconds = self.timeout.total_seconds()
        # Only output written by this run counts
        self.store.remove(self.store.output_path)
        try:
            running = await self.executor.start(self.command(), cwd=self.program_dir)
        except OSError as e:
            log.warning("Could not start analysis program: %s", e)
            return AnalysisResult.failed(
                AnalysisFailure.PROCESS_ERROR, f"Process error: {e}"
            )

        try:
            with anyio.fail_after(seconds):
                completed = await running.wait()
        except TimeoutError:
            log.warning("Analysis program timed out after %gs, killing it", seconds)
            running.kill()
            with anyio.move_on_after(REAP_GRACE_SECONDS):
                await running.wait_for_exit()
            return AnalysisResult.failed(
                AnalysisFailure.TIMEOUT,
                f"Analysis timed out after {seconds:g} seconds",
            )

        if completed.returncode != 0:
            stderr = completed.stderr.decode(errors="replace")[:STDERR_EXCERPT_CHARS]
            log.warning("Analysis program exited with code %d", completed.returncode)
            return AnalysisResult.failed(
                AnalysisFailure.EXIT_CODE,
                f"DrCodePT exited with code {completed.returncode}: {stderr}",
            )

        try:
            result = AnalysisResult.parse(
                self.store.output_path.read_text(encoding="utf-8")
            )
        except (OSError, ValueError) as e:
            return AnalysisResult.failed(
                AnalysisFailure.UNPARSABLE_OUTPUT, f"Failed to parse output: {e}"
            )

        log.info("Analysis finished with %d drifts", len(result.drifts))
        return result

    def read_results(self) -> AnalysisResult | None:
        """The last result on disk, or None.  Never raises."""
        try:
            text = self.store.read_text(self.store.output_path)
            if text is None:
                return None
            return AnalysisResult.parse(text)
        except (OSError, ValueError):
            log.warning("Ignoring unreadable analysis output", exc_info=True)
            return None

    def cleanup(self) -> None:
        """Remove both snapshot files; missing files are fine."""
        for path in (self.store.input_path, self.store.output_path):
            if self.store.remove(path):
                log.info("Removed %s", path)
