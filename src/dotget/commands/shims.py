"""Platform-specific launcher files that run an artifact with the .NET runtime."""

from __future__ import annotations

import re
from pathlib import Path, PurePath, PureWindowsPath

from dotget.errors import InstallError

# Both variants quote the artifact path: <runtime> "<path>" ...
_TARGET_PATTERN = re.compile(
    r'^(?:@|exec )?\S+ "(?P<path>[^"]+)" (?:"\$@"|%\*)\s*$',
    re.MULTILINE,
)

# Characters the launcher would expand or that would end the quoted path.
_POSIX_UNSAFE = frozenset('"$`\\\r\n')
_WINDOWS_UNSAFE = frozenset('"%!\r\n')


def shim_filename(artifact_path: str, is_windows: bool) -> str:
    """Derive the shim file name from the artifact: its stem, plus .cmd on Windows."""
    pure = PureWindowsPath(artifact_path) if is_windows else PurePath(artifact_path)
    return f"{pure.stem}.cmd" if is_windows else pure.stem


def shim_contents(artifact_path: str, runtime: str, is_windows: bool) -> str:
    """Build the launcher text. Arguments are forwarded verbatim.

    Raises:
        InstallError: If *artifact_path* holds a character the launcher
            would expand (``$`` or backticks in bash, ``%`` or ``!`` in cmd).
    """
    unsafe = _WINDOWS_UNSAFE if is_windows else _POSIX_UNSAFE
    found = sorted(unsafe.intersection(artifact_path))
    if found:
        raise InstallError(
            f"Cannot write a launcher for {artifact_path!r}: the path contains {found!r}."
        )
    if is_windows:
        return f'@echo off\r\n@{runtime} "{artifact_path}" %*\r\n'
    return f'#!/usr/bin/env bash\nexec {runtime} "{artifact_path}" "$@"\n'


def read_shim_target(path: Path) -> str | None:
    """Return the artifact path a shim launches, or None if it is not one of ours."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return None
    m = _TARGET_PATTERN.search(text)
    return m.group("path") if m else None
