"""update command -- move an installed tool to the latest version."""

from __future__ import annotations

import logging
from dotget.commands.filesystem import check_tool_name, tool_lock
from dotget.commands.install import write_tool_files
from dotget.commands.list import read_installed
from dotget.commands.shims import read_shim_target, shim_filename
from dotget.config.settings import Settings
from dotget.errors import ResolutionError
from dotget.models import InstalledTool, Options, ResolutionType, UpdateResult
from dotget.resolvers.base import Resolver
from dotget.resolvers.factory import ResolverFactory

logger = logging.getLogger(__name__)


async def update(tool: str, *, settings: Settings, factory: ResolverFactory) -> UpdateResult:
    """Re-resolve *tool* ignoring any version pin and rewrite its files.

    A recorded ``version`` option is updated to the new version. The
    previous cached version is removed when it changed. Resolution runs
    outside the tool lock; the record is read again under the lock so a
    concurrent update or remove is not overwritten blindly.

    Raises:
        InvalidToolNameError: If *tool* is not a plain file name.
        MetadataFormatError: If the tool's record is malformed.
        NoResolverError: If no backend claims the recorded source.
        InstallError: On filesystem failures.
    """
    check_tool_name(tool)
    installed = read_installed(settings, tool)
    if installed is None:
        return _not_installed(tool)

    old_resolver, previous = _recorded_source(installed, settings, factory)
    source = old_resolver.get_source(previous) if old_resolver else tool
    options = dict(installed.options)

    resolver = factory.get_resolver(source, options)
    try:
        artifact = await resolver.resolve(source, ResolutionType.LOOKUP)
    except ResolutionError as exc:
        logger.warning("Update of %s failed (%s): %s", tool, exc.reason, exc)
        return UpdateResult(
            success=False,
            tool=tool,
            message=f"Failed to update {tool}! {exc}",
            previous_source=old_resolver.get_full_source(previous) if old_resolver else "",
        )
    current_source = resolver.get_full_source(artifact)

    with tool_lock(settings, tool):
        installed = read_installed(settings, tool)
        if installed is None:
            return _not_installed(tool)
        old_resolver, previous = _recorded_source(installed, settings, factory)
        previous_source = old_resolver.get_full_source(previous) if old_resolver else ""
        _rewrite(tool, installed, artifact, current_source, settings)

    if previous_source and previous_source != current_source and old_resolver is not None:
        await old_resolver.remove(previous_source)

    if previous_source == current_source:
        message = f"{tool} is already up to date ({current_source})."
    else:
        message = f"{tool} updated to {current_source}."
    return UpdateResult(
        success=True,
        tool=tool,
        message=message,
        previous_source=previous_source,
        current_source=current_source,
        artifact_path=artifact,
    )


def _recorded_source(
    installed: InstalledTool, settings: Settings, factory: ResolverFactory
) -> tuple[Resolver | None, str]:
    """Backend and artifact path behind an installed tool's shim."""
    previous = read_shim_target(settings.bin_dir / installed.bin)
    if not previous:
        return None, ""
    return factory.resolver_for_path(previous, installed.options), previous


def _rewrite(
    tool: str, installed: InstalledTool, artifact: str, current_source: str, settings: Settings
) -> None:
    """Write the new shim and record; drop the old shim if its name changed."""
    options: Options = dict(installed.options)
    if "version" in options and "@" in current_source:
        options["version"] = current_source.rpartition("@")[2]
    old_bin_path = settings.bin_dir / installed.bin
    new_bin_path = settings.bin_dir / shim_filename(artifact, settings.is_windows)
    write_tool_files(tool, artifact, options, settings)
    if old_bin_path != new_bin_path:
        old_bin_path.unlink(missing_ok=True)


def _not_installed(tool: str) -> UpdateResult:
    return UpdateResult(
        success=False,
        tool=tool,
        message=f"{tool} is not installed. Use 'dotget install {tool}' first.",
    )
