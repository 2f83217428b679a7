from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from semantic_version import Version

from runtime_manager.domain.versioning import ReleaseTrain, classify, parse_version


class Os(str, Enum):
    """
    Target platforms, valued by the OS token embedded in build object paths.
    """

    MACOS = "macos-latest"
    WINDOWS = "windows-latest"
    LINUX = "ubuntu-22.04"

    @classmethod
    def current(cls) -> "Os":
        if sys.platform == "darwin":
            return cls.MACOS
        if sys.platform.startswith("win"):
            return cls.WINDOWS
        return cls.LINUX

    @classmethod
    def from_token(cls, token: str) -> Optional["Os"]:
        try:
            return cls(token)
        except ValueError:
            return None

    @property
    def executable_name(self) -> str:
        return "ambient.exe" if self is Os.WINDOWS else "ambient"

    def __str__(self) -> str:
        return self.value


def _coerce_version(value: Any) -> Any:
    if isinstance(value, str):
        return parse_version(value)
    return value


class Build(BaseModel):
    """One downloadable artifact of a version for one OS."""

    os: Os
    url: str


class RuntimeVersion(BaseModel):
    """
    A version together with its per-OS builds.

    Versions coming from the settings or from the local runtimes directory have
    no builds; they are looked up in the catalog if an install is required.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    version: Version
    builds: List[Build] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def parse_version_field(cls, value: Any) -> Any:
        return _coerce_version(value)

    @field_serializer("version")
    def serialize_version_field(self, version: Version) -> str:
        return str(version)

    @classmethod
    def without_builds(cls, version: Version) -> "RuntimeVersion":
        return cls(version=version, builds=[])

    @property
    def train(self) -> ReleaseTrain:
        return classify(self.version)

    @property
    def is_nightly(self) -> bool:
        return self.train is ReleaseTrain.NIGHTLY

    def build_for(self, os: Os) -> Optional[Build]:
        for build in self.builds:
            if build.os is os:
                return build
        return None


class VersionsFilter(BaseModel):
    include_private: bool = Field(default=False, description="Keep internal pre-release versions.")
    include_nightly: bool = Field(default=False, description="Keep nightly versions.")

    @classmethod
    def everything(cls) -> "VersionsFilter":
        return cls(include_private=True, include_nightly=True)

    def allows(self, train: ReleaseTrain) -> bool:
        if train is ReleaseTrain.INTERNAL:
            return self.include_private
        if train is ReleaseTrain.NIGHTLY:
            return self.include_nightly
        return True


class InstalledRuntime(BaseModel):
    """A version found in the local runtimes directory."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    version: Version
    directory: Path
    executable: Path

    @property
    def is_complete(self) -> bool:
        return self.executable.is_file()


class Settings(BaseModel):
    """
    Persisted user settings.
    Persisted at: <CONFIG_DIR>/settings.json
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    default_runtime: Optional[Version] = Field(
        default=None,
        description="Version used when the project does not pin one.",
    )

    @field_validator("default_runtime", mode="before")
    @classmethod
    def parse_default_field(cls, value: Any) -> Any:
        return _coerce_version(value)

    @field_serializer("default_runtime")
    def serialize_default_field(self, version: Optional[Version]) -> Optional[str]:
        return str(version) if version is not None else None


class BucketObject(BaseModel):
    """One object of the artifact bucket listing."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    media_link: str = Field(alias="mediaLink")


class BucketListing(BaseModel):
    """One page of the artifact bucket listing."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    items: List[BucketObject] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(default=None, alias="nextPageToken")
