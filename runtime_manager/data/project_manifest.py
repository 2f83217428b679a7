"""
Read the runtime version requirement from a project's ``ambient.toml``.

Only ``[package].ambient_version`` is read, so that manifests written for any
runtime version can be consumed.
"""
from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Optional

from runtime_manager.core.errors import InvalidRequirementError, ManifestError
from runtime_manager.domain.versioning import VersionRequirement

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "ambient.toml"


class ProjectManifest:
    def __init__(self, path: Path, version_requirement: Optional[VersionRequirement] = None):
        self.path = path
        self.version_requirement = version_requirement

    @classmethod
    def from_file(cls, path: Path) -> "ProjectManifest":
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ManifestError(f"Failed to read {path}: {e}") from e

        package = data.get("package")
        raw = package.get("ambient_version") if isinstance(package, dict) else None
        if raw is None:
            return cls(path)
        if not isinstance(raw, str):
            logger.warning(f"Ignoring ambient_version in {path}: expected a string")
            return cls(path)

        try:
            requirement = VersionRequirement.parse(raw)
        except InvalidRequirementError as e:
            logger.warning(f"Ignoring ambient_version in {path}: {e}")
            return cls(path)
        return cls(path, requirement)

    @classmethod
    def find(cls, directory: Path) -> Optional["ProjectManifest"]:
        path = directory / MANIFEST_FILENAME
        if not path.is_file():
            return None
        return cls.from_file(path)
