"""Resolver protocol -- one implementation per family of source strings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from dotget.models import ResolutionType

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".dll"


class Resolver(Protocol):
    """Turns a source string into a local artifact and back.

    Implementations partition the space of source strings: for any source,
    at most one registered resolver returns True from ``can_resolve``.
    """

    def can_resolve(self, source: str) -> bool:
        """Cheap, side-effect-free claim check."""
        ...

    async def resolve(self, source: str, resolution_type: ResolutionType) -> str:
        """Fetch/restore *source* and return the absolute artifact path.

        Raises:
            ResolutionError: On any failure, with the failure reason set.
        """
        ...

    def did_resolve(self, path: str) -> bool:
        """Whether *path* was produced by this resolver. Path shape only, no I/O."""
        ...

    def get_source(self, path: str) -> str:
        """Short source string (no version) for a resolved artifact path."""
        ...

    def get_full_source(self, path: str) -> str:
        """Version-qualified source string for a resolved artifact path."""
        ...

    async def remove(self, source: str) -> bool:
        """Best-effort removal of cached content. Never raises."""
        ...


def parse_source(source: str) -> tuple[str, str]:
    """Split ``name@version`` into ``(name, version)``; version may be empty."""
    name, _, version = source.partition("@")
    return name.strip(), version.strip()


def pick_artifact(directory: Path, preferred_stem: str = "") -> Path | None:
    """Choose the primary binary in *directory*.

    A file whose stem matches *preferred_stem* (case-insensitive) wins,
    otherwise the alphabetically first candidate. Several candidates are
    logged as a warning. Returns None when the directory has none.
    """
    if not directory.is_dir():
        return None

    candidates = sorted(
        (p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ARTIFACT_SUFFIX),
        key=lambda p: p.name.lower(),
    )
    if not candidates:
        return None

    for candidate in candidates:
        if preferred_stem and candidate.stem.lower() == preferred_stem.lower():
            return candidate

    if len(candidates) > 1:
        logger.warning(
            "Found %d candidate binaries in %s; using %s",
            len(candidates),
            directory,
            candidates[0].name,
        )
    return candidates[0]
