"""
Error taxonomy for the runtime version manager.

Every error raised on purpose by this package derives from ``RuntimeManagerError``
so callers can report them uniformly. None of them are retried automatically.
"""
from __future__ import annotations

from typing import Optional


class RuntimeManagerError(Exception):
    """Base class for all expected failures."""


class InvalidVersionError(RuntimeManagerError, ValueError):
    """A string could not be parsed as a semantic version."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid version: {value!r}")


class InvalidRequirementError(RuntimeManagerError, ValueError):
    """A string could not be parsed as a version requirement."""

    def __init__(self, value: str, reason: Optional[str] = None):
        self.value = value
        message = f"Invalid version requirement: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class CatalogUnavailable(RuntimeManagerError):
    """The remote listing endpoint failed or returned an undecodable payload."""


class InvalidBuildArtifact(RuntimeManagerError):
    """A listed build object does not follow the expected path layout."""

    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f"Invalid build artifact {name!r}: {reason}")


class VersionNotFound(RuntimeManagerError):
    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Version not found: {version}")


class NoSatisfyingVersion(RuntimeManagerError):
    def __init__(self, requirement: object):
        self.requirement = requirement
        super().__init__(f"No version found satisfying {requirement}")


class NoDefaultSet(RuntimeManagerError):
    def __init__(self):
        super().__init__(
            "No default runtime version set and no version requirement in the project manifest"
        )


class NoVersionsForTrain(RuntimeManagerError):
    def __init__(self, train: object):
        self.train = train
        super().__init__(f"No versions found for release train {train}")


class NoBuildForOs(RuntimeManagerError):
    def __init__(self, version: object, os_name: object):
        self.version = version
        self.os = os_name
        super().__init__(f"No build of version {version} for {os_name}")


class DownloadFailed(RuntimeManagerError):
    def __init__(self, url: str, reason: object):
        self.url = url
        super().__init__(f"Failed to download {url}: {reason}")


class ExtractionFailed(RuntimeManagerError):
    def __init__(self, destination: object, reason: object):
        self.destination = destination
        super().__init__(f"Failed to extract runtime into {destination}: {reason}")


class ConfigError(RuntimeManagerError, ValueError):
    """An environment override holds a value that cannot be used."""


class SettingsError(RuntimeManagerError):
    """The persisted settings file exists but cannot be read."""


class ManifestError(RuntimeManagerError):
    """The project manifest exists but is not valid TOML."""
