"""remove_tool -- remove an installed tool."""

from __future__ import annotations

from mcp.server.fastmcp import Context

from dotget.commands.remove import remove
from dotget.tools._helpers import get_context, run_command


async def remove_tool(tool: str, ctx: Context) -> dict[str, object]:
    """Remove an installed tool: its shim, its record and its cached package.

    Args:
        tool: Tool name as shown by list_tools.
    """
    app = get_context(ctx)
    return await run_command(
        ctx, "remove_tool", tool, remove(tool, settings=app.settings, factory=app.factory)
    )
