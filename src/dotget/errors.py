"""Exception hierarchy for dotget.

All exceptions inherit from DotgetError (single catch point).
Messages are written for the person at the terminal -- clear, actionable,
no stack traces.
"""

from __future__ import annotations

from enum import StrEnum


class ResolutionFailure(StrEnum):
    NOT_FOUND = "not_found"
    VERSION_NOT_FOUND = "version_not_found"
    INCOMPATIBLE_TARGET = "incompatible_target"
    RESTORE_FAILED = "restore_failed"
    NO_ARTIFACT = "no_artifact"
    REGISTRY_TIMEOUT = "registry_timeout"


class DotgetError(Exception):
    """Base exception for all dotget errors."""


class ConfigurationError(DotgetError):
    """Environment or config file is unusable (e.g. no home directory)."""


class RegistryError(DotgetError):
    """Error communicating with the package feed."""


class ResolutionError(DotgetError):
    """A resolver could not turn a source string into a local artifact."""

    def __init__(self, message: str, reason: ResolutionFailure, tool: str = "") -> None:
        super().__init__(message)
        self.reason = reason
        self.tool = tool


class RegistryTimeoutError(ResolutionError):
    """A feed call exceeded the configured timeout."""

    def __init__(self, message: str, tool: str = "") -> None:
        super().__init__(message, ResolutionFailure.REGISTRY_TIMEOUT, tool)


class NoResolverError(DotgetError):
    """No resolver backend claims the given source string."""


class MetadataFormatError(DotgetError):
    """A metadata record does not parse into key/value lines."""


class InstallError(DotgetError):
    """Writing the shim or metadata record failed."""


class InvalidToolNameError(DotgetError):
    """A tool name cannot be used as a file name under the install root."""
