"""
Index of runtimes installed under the local runtimes directory.

The directory listing is the index: one subdirectory per installed version,
named by the version's canonical string.
"""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from semantic_version import Version

from runtime_manager.domain.models import InstalledRuntime, Os
from runtime_manager.domain.versioning import try_parse_version

logger = logging.getLogger(__name__)


class InstalledRuntimeStore:
    def __init__(self, runtimes_dir: Path, os: Optional[Os] = None):
        self.runtimes_dir = runtimes_dir
        self.os = os or Os.current()

    def version_dir(self, version: Version) -> Path:
        return self.runtimes_dir / str(version)

    def executable_path(self, version: Version) -> Path:
        return self.version_dir(version) / self.os.executable_name

    def list_installed(self) -> List[InstalledRuntime]:
        """Return installed runtimes in directory discovery order."""
        if not self.runtimes_dir.exists():
            return []

        runtimes: List[InstalledRuntime] = []
        for entry in self.runtimes_dir.iterdir():
            if not entry.is_dir():
                continue
            version = try_parse_version(entry.name)
            if version is None:
                logger.warning(f"Ignoring {entry}: directory name is not a version")
                continue
            runtimes.append(
                InstalledRuntime(
                    version=version,
                    directory=entry,
                    executable=entry / self.os.executable_name,
                )
            )
        return runtimes

    def uninstall_all(self) -> None:
        if self.runtimes_dir.exists():
            shutil.rmtree(self.runtimes_dir)
        self.runtimes_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Removed all runtimes from {self.runtimes_dir}")
