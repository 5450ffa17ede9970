"""Parse NuGet target framework monikers and pick the runnable one."""

from __future__ import annotations

import re

from dotget.models import DependencyGroup, TargetFramework

_CORE_APP = ".NETCoreApp"

# ".NETCoreApp2.0", ".NETCoreApp,Version=v3.1", ".NETStandard2.0"
_LONG_FORM = re.compile(
    r"^\.(?P<name>NETCoreApp|NETStandard|NETFramework)(?:,Version=v)?(?P<version>[\d.]*)$",
    re.IGNORECASE,
)
# "netcoreapp2.1", "netstandard2.0", "net8.0", "net6.0-windows", "net461"
_SHORT_FORM = re.compile(
    r"^(?P<name>netcoreapp|netstandard|net)(?P<version>[\d.]+)(?:-(?P<platform>[a-z0-9.]+))?$",
    re.IGNORECASE,
)

_LONG_NAMES = {
    "netcoreapp": _CORE_APP,
    "netstandard": ".NETStandard",
    "netframework": ".NETFramework",
}


def parse_framework(moniker: str) -> TargetFramework:
    """Parse a framework moniker as found in feed dependency groups.

    Unknown monikers are returned verbatim as the identifier so callers can
    still report them.
    """
    text = moniker.strip()

    m = _LONG_FORM.match(text)
    if m:
        return TargetFramework(
            identifier=_LONG_NAMES[m.group("name").lower()],
            version=_parse_version(m.group("version")),
        )

    m = _SHORT_FORM.match(text)
    if m:
        name = m.group("name").lower()
        raw_version = m.group("version")
        platform = (m.group("platform") or "").lower()
        if name == "net":
            if "." not in raw_version:
                # net461 / net48: .NET Framework compact form.
                return TargetFramework(
                    identifier=".NETFramework",
                    version=tuple(int(digit) for digit in raw_version),
                    platform=platform,
                )
            version = _parse_version(raw_version)
            identifier = _CORE_APP if version and version[0] >= 5 else ".NETFramework"
            return TargetFramework(identifier=identifier, version=version, platform=platform)
        return TargetFramework(
            identifier=_LONG_NAMES[name],
            version=_parse_version(raw_version),
            platform=platform,
        )

    return TargetFramework(identifier=text)


def is_compatible(framework: TargetFramework, family: str = _CORE_APP) -> bool:
    return framework.identifier.lower() == family.lower()


def select_framework(
    groups: list[DependencyGroup],
    family: str = _CORE_APP,
) -> TargetFramework | None:
    """Return the highest framework of *family* declared by *groups*.

    Platform-specific frameworks (``net6.0-windows``) rank below the plain
    moniker of the same version.
    """
    candidates = [parse_framework(g.target_framework) for g in groups]
    compatible = [fw for fw in candidates if is_compatible(fw, family)]
    if not compatible:
        return None
    return max(compatible, key=lambda fw: (fw.version, not fw.platform))


def _parse_version(raw: str) -> tuple[int, ...]:
    parts = [part for part in raw.split(".") if part]
    return tuple(int(part) for part in parts)
