"""dotget: install .NET command-line tools from NuGet as native shims."""

from __future__ import annotations

from importlib import metadata

DISTRIBUTION = "dotget"
UNKNOWN_VERSION = "0.0.0+local"


def installed_version() -> str:
    """Version of the installed distribution; UNKNOWN_VERSION in a bare checkout."""
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return UNKNOWN_VERSION


__version__ = installed_version()


def main() -> None:
    """Console entry point: run the CLI and exit with its status."""
    from dotget.cli import run_cli

    raise SystemExit(run_cli())
