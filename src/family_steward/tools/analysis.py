"""The tool that runs the external drift analysis program."""

import json

from . import ToolContext, registry


@registry.tool(deferred=True)
async def run_drift_analysis(ctx: ToolContext) -> str:
    """Run the external drift analysis over the exported family data.

    Only available when the analysis bridge is enabled on this machine.
    The result reports success, the drifts found and a summary, or an
    error with a failure kind.
    """
    result = await ctx.bridge.run()
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
