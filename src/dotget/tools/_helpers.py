"""Shared plumbing for the MCP tool functions."""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from mcp.server.fastmcp import Context

from dotget.errors import DotgetError

if TYPE_CHECKING:
    from dotget.server import AppContext


def get_context(ctx: Context) -> AppContext:
    """Return the AppContext built by ``app_lifespan``.

    Raises:
        TypeError: If the server was started without ``app_lifespan``.
    """
    from dotget.server import AppContext

    app = ctx.request_context.lifespan_context
    if isinstance(app, AppContext):
        return app
    raise TypeError(
        f"dotget tools need an AppContext lifespan, found {type(app).__name__} instead."
    )


async def run_command(
    ctx: Context, tool_function: str, tool: str, command: Awaitable[Any]
) -> dict[str, object]:
    """Await a command and turn its result dataclass (or failure) into a dict.

    Domain errors become ``{"success": False, "error": ...}``; anything
    else is reported to the client log and hidden behind its type name.
    """
    try:
        result = await command
    except DotgetError as exc:
        return {"success": False, "tool": tool, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in {tool_function}: {exc}")
        return {"success": False, "tool": tool, "error": f"Internal error: {type(exc).__name__}"}
    return asdict(result)
