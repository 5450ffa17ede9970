"""update_tool -- move an installed tool to the latest version."""

from __future__ import annotations

from mcp.server.fastmcp import Context

from dotget.commands.update import update
from dotget.tools._helpers import get_context, run_command


async def update_tool(tool: str, ctx: Context) -> dict[str, object]:
    """Update an installed tool to the latest version on its feed.

    Args:
        tool: Tool name as shown by list_tools.
    """
    app = get_context(ctx)
    return await run_command(
        ctx, "update_tool", tool, update(tool, settings=app.settings, factory=app.factory)
    )
