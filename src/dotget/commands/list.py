"""list command -- read the metadata directory."""

from __future__ import annotations

import logging

from dotget.commands.filesystem import check_tool_name
from dotget.commands.metadata import BIN_KEY, parse_record
from dotget.config.settings import Settings
from dotget.errors import InvalidToolNameError, MetadataFormatError
from dotget.models import InstalledTool

logger = logging.getLogger(__name__)


def list_installed(settings: Settings) -> list[InstalledTool]:
    """Return every installed tool, sorted by name.

    Malformed records are skipped with a warning so one corrupt file does
    not hide the others. Dotfiles (in-flight temp files) are ignored.
    """
    etc_dir = settings.etc_dir
    if not etc_dir.is_dir():
        return []

    tools: list[InstalledTool] = []
    for path in sorted(etc_dir.iterdir(), key=lambda p: p.name):
        if not path.is_file() or path.name.startswith("."):
            continue
        try:
            tools.append(_to_tool(path.name, path.read_text(encoding="utf-8")))
        except MetadataFormatError as exc:
            logger.warning("Skipping %s: %s", path, exc)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable metadata %s: %s", path, exc)
    return tools


def read_installed(settings: Settings, name: str) -> InstalledTool | None:
    """Read one tool's record. None when not installed.

    Raises:
        InvalidToolNameError: If *name* is not a plain file name.
        MetadataFormatError: If the record exists but is malformed.
    """
    path = settings.etc_dir / check_tool_name(name)
    if not path.is_file():
        return None
    return _to_tool(name, path.read_text(encoding="utf-8"))


def _to_tool(name: str, text: str) -> InstalledTool:
    record = parse_record(text, name=name)
    try:
        check_tool_name(record[BIN_KEY])
    except InvalidToolNameError as exc:
        raise MetadataFormatError(f"Record for {name} names an unsafe shim: {exc}") from exc
    options = {k: v for k, v in record.items() if k != BIN_KEY}
    return InstalledTool(name=name, bin=record[BIN_KEY], options=options)
