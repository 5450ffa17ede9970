"""Resolver for sources that point at a build output on the local filesystem."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePath

from dotget.config.settings import Settings
from dotget.errors import ResolutionError, ResolutionFailure
from dotget.models import Options, ResolutionType
from dotget.resolvers.base import ARTIFACT_SUFFIX, pick_artifact

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LocalPathResolver:
    """Claims anything path-shaped: ``./out``, ``bin/Release/tool.dll``, ``C:\\tools``.

    The artifact stays where it is, so there is nothing to cache or remove.
    """

    settings: Settings
    options: Options = field(default_factory=dict)

    def can_resolve(self, source: str) -> bool:
        return bool(source) and ("/" in source or "\\" in source or source.startswith("."))

    async def resolve(self, source: str, resolution_type: ResolutionType) -> str:
        path = Path(source).expanduser()
        if path.is_file():
            if path.suffix.lower() != ARTIFACT_SUFFIX:
                raise ResolutionError(
                    f"{source} is not a {ARTIFACT_SUFFIX} assembly.",
                    ResolutionFailure.INCOMPATIBLE_TARGET,
                    tool=source,
                )
            artifact = path
        elif path.is_dir():
            artifact = pick_artifact(path, path.resolve().name)
            if artifact is None:
                raise ResolutionError(
                    f"No assembly found in {source}.", ResolutionFailure.NO_ARTIFACT, tool=source
                )
        else:
            raise ResolutionError(
                f"{source} does not exist.", ResolutionFailure.NOT_FOUND, tool=source
            )

        logger.info("Resolved %s to %s", source, artifact)
        return str(artifact.resolve())

    def did_resolve(self, path: str) -> bool:
        pure = PurePath(path)
        return pure.is_absolute() and not pure.is_relative_to(self.settings.packages_root)

    def get_source(self, path: str) -> str:
        return path

    def get_full_source(self, path: str) -> str:
        return path

    async def remove(self, source: str) -> bool:
        logger.debug("%s is not cached by dotget; nothing to remove", source)
        return True
