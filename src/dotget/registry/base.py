"""Port: package registry service."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from dotget.models import PackageMetadata


class PackageRegistryPort(Protocol):
    """Port for querying a package feed and restoring package content."""

    async def search_metadata(
        self,
        package_id: str,
        *,
        include_prerelease: bool = True,
        include_unlisted: bool = True,
    ) -> list[PackageMetadata]:
        """Return every known version of *package_id*, in feed order."""
        ...

    async def restore(self, package_id: str, version: str, cache_root: Path) -> bool:
        """Populate ``cache_root/<id lower>/<version lower>/`` with package content."""
        ...
