"""MCP server exposing dotget's install/list/remove/update as tools."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from dotget.cli import new_http_client
from dotget.config.settings import Settings, load_settings
from dotget.resolvers.factory import ResolverFactory, build_factory
from dotget.tools.install import install_tool
from dotget.tools.list import list_tools
from dotget.tools.remove import remove_tool
from dotget.tools.update import update_tool


@dataclass(frozen=True, slots=True)
class AppContext:
    """Shared state across all tool invocations."""

    http_client: httpx.AsyncClient
    settings: Settings
    factory: ResolverFactory


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage shared adapter lifecycle -- the composition root."""
    settings = load_settings()
    async with new_http_client(settings) as http_client:
        yield AppContext(
            http_client=http_client,
            settings=settings,
            factory=build_factory(http_client, settings),
        )


mcp = FastMCP(
    "dotget",
    instructions=(
        "dotget installs .NET command-line tools from NuGet feeds and exposes them "
        "as shims in ~/.nuget/bin.\n\n"
        "- **install_tool** -- install 'package' or 'package@version' (or a local path).\n"
        "- **list_tools** -- show installed tools and their shim file names.\n"
        "- **update_tool** -- move an installed tool to the latest version.\n"
        "- **remove_tool** -- delete a tool's shim, record and cached package.\n\n"
        "Tell the user to add ~/.nuget/bin to PATH after the first install."
    ),
    lifespan=app_lifespan,
)

# ─── Read-only tools ──────────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(list_tools)

# ─── Destructive tools ────────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(destructiveHint=True))(install_tool)
mcp.tool(annotations=ToolAnnotations(destructiveHint=True))(update_tool)
mcp.tool(annotations=ToolAnnotations(destructiveHint=True))(remove_tool)
