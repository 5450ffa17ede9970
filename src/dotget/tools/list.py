"""list_tools -- show installed tools."""

from __future__ import annotations

from mcp.server.fastmcp import Context

from dotget.commands.list import list_installed
from dotget.tools._helpers import get_context


async def list_tools(ctx: Context) -> list[dict[str, object]]:
    """List every installed tool with its shim file name and recorded options."""
    app = get_context(ctx)
    return [
        {"name": t.name, "bin": t.bin, "options": dict(t.options)}
        for t in list_installed(app.settings)
    ]
