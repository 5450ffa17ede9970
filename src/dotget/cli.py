"""Command-line surface: install, list, remove, update, serve."""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import TypeVar

import httpx

from dotget.commands.install import install
from dotget.commands.list import list_installed
from dotget.commands.remove import remove
from dotget.commands.update import update
from dotget.config.settings import Settings, load_settings
from dotget.errors import DotgetError
from dotget.models import Options
from dotget.resolvers.factory import ResolverFactory, build_factory

logger = logging.getLogger(__name__)

T = TypeVar("T")


def new_http_client(settings: Settings) -> httpx.AsyncClient:
    """HTTP client shared by every feed call of one process."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout, connect=min(10.0, settings.timeout)),
        follow_redirects=True,
        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        transport=httpx.AsyncHTTPTransport(retries=3),
    )


async def _with_factory(
    settings: Settings, action: Callable[[ResolverFactory], Awaitable[T]]
) -> T:
    async with new_http_client(settings) as http:
        return await action(build_factory(http, settings))


def _parse_option(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    return key, value


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dotget",
        description="Install .NET command-line tools from NuGet as native shims.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_install = sub.add_parser("install", help="Install a tool (package[@version] or a path).")
    p_install.add_argument("tool")
    p_install.add_argument("--version", dest="pkg_version", help="Exact package version.")
    p_install.add_argument("--feed", help="NuGet v3 service index URL to install from.")
    p_install.add_argument(
        "--option",
        "-o",
        action="append",
        type=_parse_option,
        default=[],
        metavar="KEY=VALUE",
        help="Extra resolver option, recorded with the tool. Repeatable.",
    )

    sub.add_parser("list", help="List installed tools.")

    p_remove = sub.add_parser("remove", help="Remove an installed tool.")
    p_remove.add_argument("tool")

    p_update = sub.add_parser("update", help="Update a tool to the latest version.")
    p_update.add_argument("tool")

    sub.add_parser("serve", help="Run the MCP server over stdio.")
    return parser.parse_args(argv)


def _install_options(args: argparse.Namespace) -> Options:
    options: Options = {}
    if args.pkg_version:
        options["version"] = args.pkg_version
    if args.feed:
        options["feed"] = args.feed
    for key, value in args.option:
        options[key] = value
    return options


def run_cli(argv: list[str] | None = None) -> int:
    """CLI runner. Returns the process exit code."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        from dotget.server import mcp

        mcp.run(transport="stdio")
        return 0

    try:
        settings = load_settings()
        match args.command:
            case "install":
                options = _install_options(args)
                if options.get("feed"):
                    settings = replace(settings, feed_url=options["feed"])
                result = asyncio.run(
                    _with_factory(
                        settings,
                        lambda f: install(args.tool, options, settings=settings, factory=f),
                    )
                )
            case "list":
                tools = list_installed(settings)
                for tool in tools:
                    print(tool)
                return 0
            case "remove":
                result = asyncio.run(
                    _with_factory(
                        settings, lambda f: remove(args.tool, settings=settings, factory=f)
                    )
                )
            case "update":
                result = asyncio.run(
                    _with_factory(
                        settings, lambda f: update(args.tool, settings=settings, factory=f)
                    )
                )
            case _:
                raise DotgetError(f"Unknown command {args.command}")
    except DotgetError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}")
        return 1

    print(result.message)
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(run_cli())
