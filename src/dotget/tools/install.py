"""install_tool -- install a .NET tool and write its shim."""

from __future__ import annotations

from mcp.server.fastmcp import Context

from dotget.commands.install import install
from dotget.tools._helpers import get_context, run_command


async def install_tool(
    tool: str,
    ctx: Context,
    version: str = "",
    options: dict[str, str] | None = None,
) -> dict[str, object]:
    """Install a .NET command-line tool from NuGet.

    Args:
        tool: Package id, optionally "id@version", or a path to a build
            output directory or .dll.
        version: Exact version to install. Ignored when the tool string
            already carries "@version".
        options: Extra resolver options recorded with the tool, e.g.
            {"feed": "https://my.feed/v3/index.json"}.

    Returns:
        Result with success, tool, message and the written file paths.
    """
    app = get_context(ctx)
    resolver_options = dict(options or {})
    if version:
        resolver_options["version"] = version
    return await run_command(
        ctx,
        "install_tool",
        tool,
        install(tool, resolver_options, settings=app.settings, factory=app.factory),
    )
