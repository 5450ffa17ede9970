"""Tests for the NuGet package resolver (resolvers/nuget.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

from dotget.errors import RegistryError, RegistryTimeoutError, ResolutionError, ResolutionFailure
from dotget.models import ResolutionType
from dotget.resolvers.nuget import NuGetPackageResolver


def _resolver(settings, registry, **options) -> NuGetPackageResolver:
    return NuGetPackageResolver(settings, registry, dict(options))


# ═══════════════════════════════════════════════════════════════════
# Claim rule
# ═══════════════════════════════════════════════════════════════════


class TestCanResolve:
    @pytest.mark.parametrize("source", ["foo", "Foo.Bar", "foo@1.2.3", "dotnet-ef@8.0.0-rc.1"])
    def test_claims_package_names(self, settings, registry, source):
        assert _resolver(settings, registry).can_resolve(source) is True

    @pytest.mark.parametrize(
        "source", ["", "./foo", ".hidden", "bin/foo.dll", r"C:\tools\foo.dll", "a/b@1.0"]
    )
    def test_rejects_paths(self, settings, registry, source):
        assert _resolver(settings, registry).can_resolve(source) is False


# ═══════════════════════════════════════════════════════════════════
# resolve
# ═══════════════════════════════════════════════════════════════════


class TestResolve:
    async def test_exact_version_on_install(self, settings, registry):
        registry.add("foo", "1.0.0")
        registry.add("foo", "2.0.0")

        path = await _resolver(settings, registry).resolve("foo@1.0.0", ResolutionType.INSTALL)

        expected = settings.packages_root / "foo" / "1.0.0" / "lib" / "netcoreapp2.0" / "foo.dll"
        assert path == str(expected.absolute())
        assert registry.restored == [("foo", "1.0.0")]

    async def test_version_option_used_when_source_has_none(self, settings, registry):
        registry.add("foo", "1.0.0")
        registry.add("foo", "2.0.0")

        resolver = _resolver(settings, registry, version="1.0.0")
        path = await resolver.resolve("foo", ResolutionType.INSTALL)

        assert Path(path).parts[-4] == "1.0.0"

    async def test_latest_without_version(self, settings, registry):
        registry.add("foo", "1.10.0")
        registry.add("foo", "1.9.0")
        registry.add("foo", "1.0.0")

        path = await _resolver(settings, registry).resolve("foo", ResolutionType.INSTALL)

        assert Path(path).parts[-4] == "1.10.0"

    async def test_latest_includes_newer_prerelease(self, settings, registry):
        registry.add("foo", "1.0.0")
        registry.add("foo", "2.0.0-beta.1")

        path = await _resolver(settings, registry).resolve("foo", ResolutionType.INSTALL)

        assert Path(path).parts[-4] == "2.0.0-beta.1"

    async def test_lookup_ignores_pinned_version(self, settings, registry):
        registry.add("foo", "1.0.0")
        registry.add("foo", "2.0.0")

        path = await _resolver(settings, registry).resolve("foo@1.0.0", ResolutionType.LOOKUP)

        assert Path(path).parts[-4] == "2.0.0"

    async def test_unknown_package(self, settings, registry):
        with pytest.raises(ResolutionError) as exc_info:
            await _resolver(settings, registry).resolve("nope", ResolutionType.INSTALL)
        assert exc_info.value.reason == ResolutionFailure.NOT_FOUND

    async def test_unknown_version(self, settings, registry):
        registry.add("foo", "1.0.0")
        with pytest.raises(ResolutionError) as exc_info:
            await _resolver(settings, registry).resolve("foo@9.9.9", ResolutionType.INSTALL)
        assert exc_info.value.reason == ResolutionFailure.VERSION_NOT_FOUND
        assert "9.9.9" in str(exc_info.value)
        assert registry.restored == []

    async def test_incompatible_framework(self, settings, registry):
        registry.add("lib", "1.0.0", frameworks=(".NETStandard2.0", ".NETFramework4.6.1"))

        with pytest.raises(ResolutionError) as exc_info:
            await _resolver(settings, registry).resolve("lib", ResolutionType.INSTALL)

        assert exc_info.value.reason == ResolutionFailure.INCOMPATIBLE_TARGET
        assert registry.restored == []
        assert not settings.packages_root.exists()

    async def test_restore_failure(self, settings, registry):
        registry.add("foo", "1.0.0")
        registry.restore_ok = False
        with pytest.raises(ResolutionError) as exc_info:
            await _resolver(settings, registry).resolve("foo", ResolutionType.INSTALL)
        assert exc_info.value.reason == ResolutionFailure.RESTORE_FAILED

    async def test_registry_error_becomes_resolution_error(self, settings, registry):
        async def broken(*_args, **_kwargs):
            raise RegistryError("feed down")

        registry.search_metadata = broken
        with pytest.raises(ResolutionError) as exc_info:
            await _resolver(settings, registry).resolve("foo", ResolutionType.INSTALL)
        assert exc_info.value.reason == ResolutionFailure.RESTORE_FAILED
        assert "feed down" in str(exc_info.value)

    async def test_timeout_surfaces_distinctly(self, settings, registry):
        async def slow(*_args, **_kwargs):
            raise RegistryTimeoutError("timed out")

        registry.search_metadata = slow
        with pytest.raises(RegistryTimeoutError) as exc_info:
            await _resolver(settings, registry).resolve("foo", ResolutionType.INSTALL)
        assert exc_info.value.reason == ResolutionFailure.REGISTRY_TIMEOUT

    async def test_no_assembly(self, settings, registry):
        registry.add("foo", "1.0.0", files={"lib/netcoreapp2.0/readme.txt": "hi"})
        with pytest.raises(ResolutionError) as exc_info:
            await _resolver(settings, registry).resolve("foo", ResolutionType.INSTALL)
        assert exc_info.value.reason == ResolutionFailure.NO_ARTIFACT

    async def test_highest_core_framework_folder(self, settings, registry):
        registry.add(
            "foo",
            "1.0.0",
            frameworks=(".NETCoreApp3.1", "net8.0", ".NETStandard2.0"),
            files={
                "lib/netcoreapp3.1/foo.dll": "old",
                "lib/net8.0/foo.dll": "new",
            },
        )
        path = await _resolver(settings, registry).resolve("foo", ResolutionType.INSTALL)
        assert Path(path).parent.name == "net8.0"

    async def test_prefers_assembly_named_after_package(self, settings, registry):
        registry.add(
            "Tool",
            "1.0.0",
            files={
                "lib/netcoreapp2.0/Aaa.Helpers.dll": "",
                "lib/netcoreapp2.0/Tool.dll": "",
            },
        )
        path = await _resolver(settings, registry).resolve("Tool", ResolutionType.INSTALL)
        assert Path(path).name == "Tool.dll"

    async def test_several_assemblies_pick_alphabetical_first(self, settings, registry, caplog):
        registry.add(
            "foo",
            "1.0.0",
            files={"lib/netcoreapp2.0/b.dll": "", "lib/netcoreapp2.0/a.dll": ""},
        )
        path = await _resolver(settings, registry).resolve("foo", ResolutionType.INSTALL)
        assert Path(path).name == "a.dll"
        assert "candidate binaries" in caplog.text


# ═══════════════════════════════════════════════════════════════════
# Reverse lookup
# ═══════════════════════════════════════════════════════════════════


class TestReverseLookup:
    async def test_sources_invert_resolved_path(self, settings, registry):
        registry.add("foo", "2.0.0")
        resolver = _resolver(settings, registry)
        path = await resolver.resolve("foo@2.0.0", ResolutionType.INSTALL)

        assert resolver.did_resolve(path) is True
        assert resolver.get_source(path) == "foo"
        assert resolver.get_full_source(path) == "foo@2.0.0"

    def test_did_resolve_false_outside_cache(self, settings, registry, tmp_path):
        resolver = _resolver(settings, registry)
        assert resolver.did_resolve(str(tmp_path / "elsewhere" / "foo.dll")) is False

    def test_get_source_outside_cache_raises(self, settings, registry, tmp_path):
        with pytest.raises(ValueError):
            _resolver(settings, registry).get_source(str(tmp_path / "foo.dll"))


# ═══════════════════════════════════════════════════════════════════
# remove
# ═══════════════════════════════════════════════════════════════════


class TestRemove:
    async def test_removes_version_directory(self, settings, registry):
        registry.add("foo", "1.0.0")
        registry.add("foo", "2.0.0")
        resolver = _resolver(settings, registry)
        await resolver.resolve("foo@1.0.0", ResolutionType.INSTALL)
        await resolver.resolve("foo@2.0.0", ResolutionType.INSTALL)

        assert await resolver.remove("foo@1.0.0") is True

        assert not (settings.packages_root / "foo" / "1.0.0").exists()
        assert (settings.packages_root / "foo" / "2.0.0").exists()

    async def test_missing_directory_returns_false(self, settings, registry):
        assert await _resolver(settings, registry).remove("foo@1.0.0") is False

    async def test_never_raises(self, settings, registry, monkeypatch):
        def boom(_path):
            raise PermissionError("denied")

        monkeypatch.setattr("dotget.resolvers.nuget.shutil.rmtree", boom)
        assert await _resolver(settings, registry).remove("foo@1.0.0") is False
