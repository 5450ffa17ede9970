"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from dotget.config.settings import Settings
from dotget.models import DependencyGroup, PackageMetadata
from dotget.resolvers.factory import ResolverFactory


class FakeRegistry:
    """In-memory feed: versions per package, files written on restore."""

    def __init__(self) -> None:
        self.packages: dict[str, list[PackageMetadata]] = {}
        self.files: dict[tuple[str, str], dict[str, str]] = {}
        self.restore_ok = True
        self.restored: list[tuple[str, str]] = []
        self.searched: list[str] = []

    def add(
        self,
        package_id: str,
        version: str,
        *,
        frameworks: tuple[str, ...] = (".NETCoreApp2.0",),
        files: dict[str, str] | None = None,
    ) -> None:
        """Register a version. *files* maps paths relative to the package dir."""
        self.packages.setdefault(package_id.lower(), []).append(
            PackageMetadata(
                id=package_id,
                version=version,
                dependency_groups=[DependencyGroup(target_framework=fw) for fw in frameworks],
            )
        )
        if files is None:
            files = {f"lib/netcoreapp2.0/{package_id}.dll": "assembly"}
        self.files[(package_id.lower(), version.lower())] = files

    async def search_metadata(
        self,
        package_id: str,
        *,
        include_prerelease: bool = True,
        include_unlisted: bool = True,
    ) -> list[PackageMetadata]:
        self.searched.append(package_id)
        return list(self.packages.get(package_id.lower(), []))

    async def restore(self, package_id: str, version: str, cache_root: Path) -> bool:
        self.restored.append((package_id, version))
        if not self.restore_ok:
            return False
        target = Path(cache_root) / package_id.lower() / version.lower()
        for relative, content in self.files.get((package_id.lower(), version.lower()), {}).items():
            path = target / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return True


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(install_root=tmp_path / ".nuget", feed_url="https://feed.test/v3/index.json")


@pytest.fixture
def windows_settings(tmp_path: Path) -> Settings:
    return Settings(
        install_root=tmp_path / ".nuget",
        feed_url="https://feed.test/v3/index.json",
        is_windows=True,
    )


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def factory(settings: Settings, registry: FakeRegistry) -> ResolverFactory:
    return ResolverFactory(settings, registry)
