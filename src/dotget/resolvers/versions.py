"""Version selection over the version strings a feed returns."""

from __future__ import annotations

import semantic_version


def _parse(version: str) -> semantic_version.Version | None:
    """Parse a NuGet version. Four-part versions are coerced to three."""
    try:
        return semantic_version.Version(version)
    except ValueError:
        pass
    try:
        return semantic_version.Version.coerce(version)
    except ValueError:
        return None


def pick_latest(candidates: list[str]) -> str | None:
    """Pick the highest version the feed offers, prereleases included.

    Ties between versions that coerce to the same value go to the one the
    feed listed last. Returns the original string, not the normalized one.
    When nothing parses, the feed's last entry wins.
    """
    if not candidates:
        return None

    ranked: list[tuple[semantic_version.Version, int, str]] = []
    for index, raw in enumerate(candidates):
        parsed = _parse(raw)
        if parsed is not None:
            ranked.append((parsed, index, raw))

    if not ranked:
        return candidates[-1]

    return max(ranked, key=lambda entry: (entry[0].precedence_key, entry[1]))[2]


def find_exact(version: str, candidates: list[str]) -> str | None:
    """Find *version* among *candidates*, ignoring case and build metadata."""
    wanted = _normalize(version)
    for raw in candidates:
        if _normalize(raw) == wanted:
            return raw
    return None


def _normalize(version: str) -> str:
    return version.strip().split("+", 1)[0].lower()
