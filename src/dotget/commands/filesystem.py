"""Install-root layout, atomic writes and per-tool advisory locks.

Invariants:
  1. Writes are atomic: write to unique temp file, then os.replace().
  2. Mutations of one tool are serialized by an in-process lock and an OS
     file lock on ``locks/<tool>.lock``. Neither is held across an await;
     callers resolve first and lock only the synchronous file updates.
  3. Tool names are plain file names; anything that could escape
     ``etc/``, ``bin/`` or ``locks/`` is rejected before a path is built.
"""

from __future__ import annotations

import contextlib
import os
import stat
import sys
import tempfile
import threading
from collections.abc import Iterator
from pathlib import Path, PurePosixPath, PureWindowsPath

from dotget.config.settings import Settings
from dotget.errors import InstallError, InvalidToolNameError

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

_READ_BITS = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH
_EXECUTABLE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH

_local_locks: dict[Path, threading.Lock] = {}
_local_locks_guard = threading.Lock()


def check_tool_name(tool: str) -> str:
    """Return *tool* unchanged if it is safe to use as a file name.

    Raises:
        InvalidToolNameError: For empty names, dot-files, path separators,
            ``..`` components or control characters.
    """
    if (
        not tool
        or tool.startswith(".")
        or "/" in tool
        or "\\" in tool
        or ".." in tool
        or any(ord(ch) < 32 for ch in tool)
        or PurePosixPath(tool).name != tool
        or PureWindowsPath(tool).name != tool
    ):
        raise InvalidToolNameError(f"'{tool}' is not a valid tool name.")
    return tool


def ensure_layout(settings: Settings) -> None:
    """Create ``etc/``, ``bin/`` and ``locks/`` under the install root if absent."""
    for directory in (settings.etc_dir, settings.bin_dir, settings.lock_dir):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InstallError(f"Cannot create {directory}: {exc}") from exc


@contextlib.contextmanager
def tool_lock(settings: Settings, tool: str) -> Iterator[None]:
    """Hold the advisory lock for *tool* for the duration of the block.

    The block must not await: the lock blocks the calling thread.
    """
    lock_path = settings.lock_dir / f"{check_tool_name(tool)}.lock"
    settings.lock_dir.mkdir(parents=True, exist_ok=True)

    with _local_locks_guard:
        local = _local_locks.setdefault(lock_path, threading.Lock())

    with local, open(lock_path, "a+b") as lock_fd:
        _lock_file(lock_fd)
        try:
            yield
        finally:
            _unlock_file(lock_fd)


def atomic_write_text(path: Path, text: str, *, executable: bool = False) -> None:
    """Write *text* atomically as UTF-8 bytes (no newline translation).

    With *executable*, the execute bits are set on POSIX before the rename
    so the file never appears non-executable.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: str | None = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            suffix=".tmp",
            prefix=f".{path.name}_",
        )
        os.write(fd, text.encode("utf-8"))
        os.close(fd)
        fd = None
        if executable and sys.platform != "win32":
            mode = os.stat(tmp_path).st_mode
            os.chmod(tmp_path, mode | _READ_BITS | _EXECUTABLE_BITS)
        os.replace(tmp_path, str(path))
        tmp_path = None
    except PermissionError as exc:
        raise InstallError(f"Permission denied writing to {path}: {exc}") from exc
    except OSError as exc:
        raise InstallError(f"Failed to write {path}: {exc}") from exc
    finally:
        if fd is not None:
            os.close(fd)
        if tmp_path is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)


def _lock_file(lock_fd) -> None:
    if sys.platform == "win32":
        lock_fd.seek(0)
        msvcrt.locking(lock_fd.fileno(), msvcrt.LK_LOCK, 1)
    else:
        fcntl.flock(lock_fd, fcntl.LOCK_EX)


def _unlock_file(lock_fd) -> None:
    if sys.platform == "win32":
        lock_fd.seek(0)
        msvcrt.locking(lock_fd.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(lock_fd, fcntl.LOCK_UN)
