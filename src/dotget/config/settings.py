"""Process-wide settings, built once at start-up and passed to every command.

Sources, lowest to highest precedence:
  1. Built-in defaults.
  2. Optional YAML file (``<install_root>/dotget.yaml`` or ``$DOTGET_CONFIG``).
  3. Environment variables (``DOTGET_FEED``, ``DOTGET_TIMEOUT``).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import yaml

from dotget.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_FEED = "https://api.nuget.org/v3/index.json"
DEFAULT_NAMESPACE = "nuget"
DEFAULT_RUNTIME = "dotnet"
DEFAULT_FRAMEWORK = ".NETCoreApp"
DEFAULT_TIMEOUT = 30.0

_CONFIG_FILENAME = "dotget.yaml"
_CONFIG_KEYS = frozenset({"feed", "timeout", "runtime", "framework"})


@dataclass(frozen=True, slots=True)
class Settings:
    """Install root and feed configuration shared by commands and resolvers."""

    install_root: Path
    feed_url: str = DEFAULT_FEED
    timeout: float = DEFAULT_TIMEOUT
    runtime: str = DEFAULT_RUNTIME
    framework: str = DEFAULT_FRAMEWORK
    is_windows: bool = False

    @property
    def etc_dir(self) -> Path:
        return self.install_root / "etc"

    @property
    def bin_dir(self) -> Path:
        return self.install_root / "bin"

    @property
    def packages_root(self) -> Path:
        return self.install_root / "packages"

    @property
    def lock_dir(self) -> Path:
        return self.install_root / "locks"


def home_directory(environ: Mapping[str, str], is_windows: bool) -> Path:
    """Return the user's home from ``USERPROFILE`` (Windows) or ``HOME``.

    Raises:
        ConfigurationError: If the variable is unset or empty.
    """
    var = "USERPROFILE" if is_windows else "HOME"
    value = environ.get(var, "")
    if not value:
        raise ConfigurationError(
            f"Environment variable {var} is not set; cannot locate the install root."
        )
    return Path(value)


def load_settings(
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> Settings:
    """Build Settings from the environment and the optional YAML config file."""
    env = os.environ if environ is None else environ
    is_windows = (platform or sys.platform) == "win32"

    if env.get("DOTGET_ROOT"):
        install_root = Path(env["DOTGET_ROOT"])
    else:
        install_root = home_directory(env, is_windows) / f".{DEFAULT_NAMESPACE}"

    config_path = Path(env["DOTGET_CONFIG"]) if env.get("DOTGET_CONFIG") else None
    file_values = _read_config_file(config_path or install_root / _CONFIG_FILENAME,
                                    required=config_path is not None)

    feed_url = env.get("DOTGET_FEED") or str(file_values.get("feed", DEFAULT_FEED))
    timeout_raw = env.get("DOTGET_TIMEOUT") or file_values.get("timeout", DEFAULT_TIMEOUT)
    try:
        timeout = float(timeout_raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid timeout value: {timeout_raw!r}") from None
    if timeout <= 0:
        raise ConfigurationError(f"Timeout must be positive, got {timeout}")

    return Settings(
        install_root=install_root,
        feed_url=feed_url,
        timeout=timeout,
        runtime=str(file_values.get("runtime", DEFAULT_RUNTIME)),
        framework=str(file_values.get("framework", DEFAULT_FRAMEWORK)),
        is_windows=is_windows,
    )


def _read_config_file(path: Path, *, required: bool) -> dict[str, object]:
    """Read the YAML config file. A missing optional file yields ``{}``."""
    if not path.is_file():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level.")

    unknown = sorted(set(raw) - _CONFIG_KEYS)
    if unknown:
        logger.warning("Ignoring unknown keys in %s: %s", path, ", ".join(map(str, unknown)))
    return {key: value for key, value in raw.items() if key in _CONFIG_KEYS}
