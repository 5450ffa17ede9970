"""Domain models for dotget. All frozen dataclasses -- no mutation after creation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

# Free-form resolver configuration. dict keeps insertion order; last write wins.
Options = dict[str, str]

# ─── Enumerations ─────────────────────────────────────────────


class ResolutionType(StrEnum):
    INSTALL = "install"  # honor an explicit version pin
    LOOKUP = "lookup"  # latest available


# ─── Registry Models ──────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DependencyGroup:
    """A target-framework dependency group declared by a package version."""

    target_framework: str
    dependencies: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class PackageMetadata:
    """One version of a package as reported by the feed."""

    id: str
    version: str
    dependency_groups: list[DependencyGroup] = field(default_factory=list)
    listed: bool = True


@dataclass(frozen=True, slots=True)
class TargetFramework:
    """A parsed target framework moniker, e.g. ``.NETCoreApp`` 3.1."""

    identifier: str
    version: tuple[int, ...] = ()
    platform: str = ""

    @property
    def short_folder_name(self) -> str:
        major_minor = ".".join(str(part) for part in (self.version + (0, 0))[:2])
        match self.identifier:
            case ".NETCoreApp":
                prefix = "net" if self.version and self.version[0] >= 5 else "netcoreapp"
            case ".NETStandard":
                prefix = "netstandard"
            case ".NETFramework":
                digits = "".join(str(part) for part in self.version) or "0"
                return f"net{digits}"
            case _:
                prefix = self.identifier.lstrip(".").lower()
        name = f"{prefix}{major_minor}"
        if self.platform:
            name += f"-{self.platform}"
        return name


# ─── Command Results ──────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class InstalledTool:
    """A tool as recorded in the metadata directory."""

    name: str
    bin: str
    options: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.name} => {self.bin}"


@dataclass(frozen=True, slots=True)
class InstallResult:
    success: bool
    tool: str
    message: str
    artifact_path: str = ""
    bin_path: str = ""
    metadata_path: str = ""


@dataclass(frozen=True, slots=True)
class RemoveResult:
    success: bool
    tool: str
    message: str
    cache_removed: bool = False
    shim_removed: bool = False
    metadata_removed: bool = False


@dataclass(frozen=True, slots=True)
class UpdateResult:
    success: bool
    tool: str
    message: str
    previous_source: str = ""
    current_source: str = ""
    artifact_path: str = ""
