"""Fixtures unique to tool tests."""

from typing import Any

import pytest

from family_steward.exporter import export_family_data
from family_steward.tools import ToolContext


@pytest.fixture()
def ctx(tool_context: ToolContext) -> ToolContext:
    return tool_context


@pytest.fixture()
def exported_ctx(ctx: ToolContext, snapshot: dict[str, Any]) -> ToolContext:
    export_family_data(snapshot, ctx.store)
    return ctx
