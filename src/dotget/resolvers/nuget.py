"""Resolver for ``package`` / ``package@version`` sources backed by a NuGet feed."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePath

from dotget.config.settings import Settings
from dotget.errors import RegistryError, ResolutionError, ResolutionFailure
from dotget.models import Options, PackageMetadata, ResolutionType
from dotget.registry.base import PackageRegistryPort
from dotget.resolvers.base import parse_source, pick_artifact
from dotget.resolvers.frameworks import select_framework
from dotget.resolvers.versions import find_exact, pick_latest

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NuGetPackageResolver:
    """Resolves bare package names to assemblies in the local package cache."""

    settings: Settings
    registry: PackageRegistryPort
    options: Options = field(default_factory=dict)

    @property
    def packages_root(self) -> Path:
        return self.settings.packages_root

    def can_resolve(self, source: str) -> bool:
        if not source or source.startswith("."):
            return False
        return "/" not in source and "\\" not in source

    async def resolve(self, source: str, resolution_type: ResolutionType) -> str:
        package, version = parse_source(source)
        if not version:
            version = self.options.get("version", "")
        pinned = bool(version) and resolution_type == ResolutionType.INSTALL

        try:
            metadata = await self._select(package, version if pinned else "")
            framework = select_framework(metadata.dependency_groups, self.settings.framework)
            if framework is None:
                raise ResolutionError(
                    f"{package} {metadata.version} does not support the "
                    f"{self.settings.framework} framework.",
                    ResolutionFailure.INCOMPATIBLE_TARGET,
                    tool=source,
                )
            restored = await self.registry.restore(
                metadata.id, metadata.version, self.packages_root
            )
        except RegistryError as exc:
            raise ResolutionError(
                f"Could not resolve {source}: {exc}", ResolutionFailure.RESTORE_FAILED, tool=source
            ) from exc
        if not restored:
            raise ResolutionError(
                f"Restoring {metadata.id} {metadata.version} failed.",
                ResolutionFailure.RESTORE_FAILED,
                tool=source,
            )

        directory = self.package_directory(metadata.id, metadata.version) / "lib"
        artifact = pick_artifact(directory / framework.short_folder_name, metadata.id)
        if artifact is None:
            raise ResolutionError(
                f"No assembly found in {metadata.id} {metadata.version} "
                f"for {framework.short_folder_name}.",
                ResolutionFailure.NO_ARTIFACT,
                tool=source,
            )

        logger.info("Resolved %s to %s", source, artifact)
        return str(artifact.absolute())

    def did_resolve(self, path: str) -> bool:
        return PurePath(path).is_relative_to(self.packages_root)

    def get_source(self, path: str) -> str:
        return self._split_path(path)[0]

    def get_full_source(self, path: str) -> str:
        parts = self._split_path(path)
        return f"{parts[0]}@{parts[1]}"

    async def remove(self, source: str) -> bool:
        package, version = parse_source(source)
        if not package:
            logger.warning("Refusing to remove cache for empty source")
            return False
        directory = self.packages_root / package.lower()
        if version:
            directory = directory / version.lower()
        try:
            shutil.rmtree(directory)
        except FileNotFoundError:
            logger.warning("Nothing cached for %s at %s", source, directory)
            return False
        except PermissionError as exc:
            logger.warning("Permission denied removing %s: %s", directory, exc)
            return False
        except OSError as exc:
            logger.warning("Failed to remove %s (%s): %s", directory, type(exc).__name__, exc)
            return False
        logger.info("Removed cached package %s", directory)
        return True

    def package_directory(self, package_id: str, version: str) -> Path:
        return self.packages_root / package_id.lower() / version.lower()

    # ── Helpers ──────────────────────────────────────────────────

    async def _select(self, package: str, version: str) -> PackageMetadata:
        """Pick the exact *version*, or the latest when *version* is empty."""
        entries = await self.registry.search_metadata(
            package, include_prerelease=True, include_unlisted=True
        )
        if not entries:
            raise ResolutionError(
                f"Could not find package {package}", ResolutionFailure.NOT_FOUND, tool=package
            )

        versions = [entry.version for entry in entries]
        chosen = find_exact(version, versions) if version else pick_latest(versions)
        if chosen is None:
            raise ResolutionError(
                f"Could not find package {package} with version {version}",
                ResolutionFailure.VERSION_NOT_FOUND,
                tool=package,
            )
        # Last entry for a version wins, matching feed order for duplicates.
        return [entry for entry in entries if entry.version == chosen][-1]

    def _split_path(self, path: str) -> tuple[str, ...]:
        parts = PurePath(path).relative_to(self.packages_root).parts
        if len(parts) < 2:
            raise ValueError(f"{path} is not a package artifact path under {self.packages_root}")
        return parts
