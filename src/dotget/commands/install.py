"""install command -- resolve a tool and write its shim + metadata record."""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path, PurePath

from dotget.commands.filesystem import (
    atomic_write_text,
    check_tool_name,
    ensure_layout,
    tool_lock,
)
from dotget.commands.metadata import format_record, validate_options
from dotget.commands.shims import shim_contents, shim_filename
from dotget.config.settings import Settings
from dotget.errors import InstallError, ResolutionError
from dotget.models import InstallResult, Options, ResolutionType
from dotget.resolvers.base import parse_source
from dotget.resolvers.factory import ResolverFactory

logger = logging.getLogger(__name__)


def build_resolver_options(source: str, options: Options | None) -> Options:
    """Copy CLI options; a ``@version`` in a package source sets ``version``."""
    resolver_options: Options = dict(options or {})
    if not _is_path_source(source):
        _, version = parse_source(source)
        if version:
            resolver_options["version"] = version
    return resolver_options


def tool_name(source: str) -> str:
    """Name under which *source* is recorded in ``etc/``."""
    if _is_path_source(source):
        return PurePath(source.rstrip("/\\").replace("\\", "/")).stem
    return parse_source(source)[0]


async def install(
    source: str,
    options: Options | None = None,
    *,
    settings: Settings,
    factory: ResolverFactory,
) -> InstallResult:
    """Install *source* and expose it as a shim.

    Either both the shim and the metadata record are written, or neither
    (resolution failures never touch the install root).

    Raises:
        InvalidToolNameError: If the derived tool name is not a plain file name.
        NoResolverError: If no backend claims *source*.
        InstallError: On invalid options or filesystem failures.
    """
    name = tool_name(source)
    if not name:
        raise InstallError(f"Cannot derive a tool name from '{source}'.")
    check_tool_name(name)

    resolver_options = build_resolver_options(source, options)
    validate_options(resolver_options)

    resolver = factory.get_resolver(source, resolver_options)
    try:
        artifact = await resolver.resolve(source, ResolutionType.INSTALL)
    except ResolutionError as exc:
        logger.warning("Resolution of %s failed (%s): %s", source, exc.reason, exc)
        return InstallResult(
            success=False,
            tool=name,
            message=f"Failed to install {source}! {exc}",
        )

    with tool_lock(settings, name):
        bin_path, metadata_path = write_tool_files(name, artifact, resolver_options, settings)

    logger.info("Installed %s as %s", name, bin_path)
    return InstallResult(
        success=True,
        tool=name,
        message=f"{name} successfully installed!",
        artifact_path=artifact,
        bin_path=str(bin_path),
        metadata_path=str(metadata_path),
    )


def write_tool_files(
    name: str, artifact: str, options: Options, settings: Settings
) -> tuple[Path, Path]:
    """Write shim then record; a failed record write rolls back a new shim.

    Callers hold the tool lock.
    """
    ensure_layout(settings)
    bin_name = shim_filename(artifact, settings.is_windows)
    bin_path = settings.bin_dir / bin_name
    metadata_path = settings.etc_dir / name

    existed = bin_path.exists()
    atomic_write_text(
        bin_path,
        shim_contents(artifact, settings.runtime, settings.is_windows),
        executable=not settings.is_windows,
    )
    try:
        atomic_write_text(metadata_path, format_record(bin_name, options))
    except InstallError:
        if not existed:
            with contextlib.suppress(OSError):
                bin_path.unlink()
        raise
    return bin_path, metadata_path


def _is_path_source(source: str) -> bool:
    return "/" in source or "\\" in source or source.startswith(".")
