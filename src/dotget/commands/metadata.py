"""Metadata records: one ``<key>=:=<value>`` line per entry, ``bin`` first.

The tool name is the record's file name, not a field inside it.
"""

from __future__ import annotations

from collections.abc import Mapping

from dotget.errors import InstallError, MetadataFormatError

SEPARATOR = "=:="
BIN_KEY = "bin"


def format_record(bin_name: str, options: Mapping[str, str]) -> str:
    """Serialize a record. Output is deterministic for the same inputs."""
    lines = [f"{BIN_KEY}{SEPARATOR}{bin_name}"]
    lines.extend(f"{key}{SEPARATOR}{value}" for key, value in options.items() if key != BIN_KEY)
    return "\n".join(lines) + "\n"


def parse_record(text: str, *, name: str = "") -> dict[str, str]:
    """Parse a record into an ordered mapping.

    Raises:
        MetadataFormatError: On a line without the separator, an empty key,
            or a record lacking ``bin``.
    """
    label = f" in '{name}'" if name else ""
    record: dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        key, sep, value = line.partition(SEPARATOR)
        if not sep or not key:
            raise MetadataFormatError(f"Malformed metadata line {lineno}{label}: {line!r}")
        record[key] = value

    if not record.get(BIN_KEY):
        raise MetadataFormatError(f"Metadata record{label} has no '{BIN_KEY}' entry.")
    return record


def validate_options(options: Mapping[str, str]) -> None:
    """Reject options that cannot round-trip through the record format."""
    for key, value in options.items():
        for part, what in ((key, "key"), (value, "value")):
            if SEPARATOR in part or "\n" in part or "\r" in part:
                raise InstallError(
                    f"Option {what} {part!r} may not contain '{SEPARATOR}' or line breaks."
                )
        if not key:
            raise InstallError("Option keys may not be empty.")
        if key == BIN_KEY:
            raise InstallError(f"'{BIN_KEY}' is reserved and cannot be used as an option.")
