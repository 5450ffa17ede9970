"""remove command -- delete a tool's cached package, shim and record."""

from __future__ import annotations

import logging
from pathlib import Path

from dotget.commands.filesystem import check_tool_name, tool_lock
from dotget.commands.list import read_installed
from dotget.commands.shims import read_shim_target
from dotget.config.settings import Settings
from dotget.errors import MetadataFormatError, NoResolverError
from dotget.models import Options, RemoveResult
from dotget.resolvers.factory import ResolverFactory

logger = logging.getLogger(__name__)


async def remove(tool: str, *, settings: Settings, factory: ResolverFactory) -> RemoveResult:
    """Remove an installed tool. Best-effort: never raises for cleanup failures.

    The backend is chosen again from the shim's artifact path, so removal
    does not depend on re-parsing the original source string. Shim and
    record are deleted under the tool lock; the cached package is removed
    afterwards, once the tool no longer points at it.

    Raises:
        InvalidToolNameError: If *tool* is not a plain file name.
    """
    check_tool_name(tool)
    options: Options = {}
    with tool_lock(settings, tool):
        try:
            installed = read_installed(settings, tool)
        except MetadataFormatError as exc:
            logger.warning("Metadata for %s is malformed: %s", tool, exc)
            installed = None

        metadata_path = settings.etc_dir / tool
        if installed is None and not metadata_path.is_file():
            return RemoveResult(
                success=False,
                tool=tool,
                message=f"{tool} is not installed. Use 'dotget list' to see installed tools.",
            )

        bin_path = settings.bin_dir / installed.bin if installed else None
        artifact = read_shim_target(bin_path) if bin_path else None
        if installed:
            options = installed.options
        shim_removed = _unlink(bin_path) if bin_path else False
        metadata_removed = _unlink(metadata_path)

    cache_removed = False
    if not metadata_removed:
        logger.warning("Record for %s was not removed; keeping its cached package", tool)
    elif artifact:
        cache_removed = await _remove_cached(tool, artifact, options, factory)
    else:
        logger.warning("Could not determine the artifact launched by %s", tool)

    success = metadata_removed
    message = (
        f"{tool} successfully removed!"
        if success
        else f"Failed to remove {tool}; see log for details."
    )
    if success and not cache_removed:
        message += " Cached package content was left in place."
    return RemoveResult(
        success=success,
        tool=tool,
        message=message,
        cache_removed=cache_removed,
        shim_removed=shim_removed,
        metadata_removed=metadata_removed,
    )


async def _remove_cached(
    tool: str, artifact: str, options: dict[str, str], factory: ResolverFactory
) -> bool:
    resolver = factory.resolver_for_path(artifact, options)
    if resolver is None:
        try:
            resolver = factory.get_resolver(tool, options)
        except NoResolverError:
            logger.warning("No resolver produced %s; leaving it in place", artifact)
            return False
    try:
        source = resolver.get_full_source(artifact)
    except ValueError as exc:
        logger.warning("Cannot map %s back to a source: %s", artifact, exc)
        return False
    return await resolver.remove(source)


def _unlink(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("Failed to delete %s (%s): %s", path, type(exc).__name__, exc)
        return False
    return True
