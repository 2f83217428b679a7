"""
Download and extract runtime builds into the local runtimes directory.

A version counts as installed once its executable exists. Nothing is cleaned up
when extraction fails half-way, so the directory alone proves nothing.
"""
from __future__ import annotations

import logging
import os
import stat
import zipfile
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Optional

import aiofiles
import httpx

from runtime_manager.core.errors import DownloadFailed, ExtractionFailed, NoBuildForOs
from runtime_manager.domain.models import Os, RuntimeVersion
from runtime_manager.services.catalog import VersionCatalog
from runtime_manager.storage.runtime_store import InstalledRuntimeStore

logger = logging.getLogger(__name__)


class RuntimeInstaller:
    """Makes a RuntimeVersion's build for the current OS available on disk."""

    def __init__(
        self,
        store: InstalledRuntimeStore,
        catalog: VersionCatalog,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = 60.0,
    ):
        self.store = store
        self.catalog = catalog
        self._transport = transport
        self.timeout = timeout

    @property
    def os(self) -> Os:
        return self.store.os

    def executable_path(self, runtime_version: RuntimeVersion) -> Path:
        return self.store.executable_path(runtime_version.version)

    def is_installed(self, runtime_version: RuntimeVersion) -> bool:
        return self.executable_path(runtime_version).is_file()

    async def ensure_installed(self, runtime_version: RuntimeVersion) -> Path:
        """
        Install ``runtime_version`` unless its executable is already present.

        Returns:
            Path to the runtime executable
        """
        exe_path = self.executable_path(runtime_version)
        if exe_path.is_file():
            logger.debug(f"Runtime {runtime_version.version} already installed at {exe_path}")
            return exe_path

        if not runtime_version.builds:
            runtime_version = await self.catalog.get_single_version(str(runtime_version.version))

        build = runtime_version.build_for(self.os)
        if build is None:
            raise NoBuildForOs(runtime_version.version, self.os)

        dest_dir = self.store.version_dir(runtime_version.version)
        archive_path = self.store.runtimes_dir / f"{runtime_version.version}.zip.part"

        logger.info(f"Installing runtime {runtime_version.version} from {build.url}")
        try:
            await self._download(build.url, archive_path)
            self._extract(archive_path, dest_dir)
        finally:
            if archive_path.exists():
                archive_path.unlink()

        if not exe_path.is_file():
            raise ExtractionFailed(dest_dir, f"archive does not contain {self.os.executable_name}")
        if self.os is not Os.WINDOWS:
            _make_executable(exe_path)

        logger.info(f"Runtime {runtime_version.version} installed at {dest_dir}")
        return exe_path

    async def _download(self, url: str, target_path: Path) -> None:
        logger.debug(f"Downloading {url} to {target_path}")
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            async with httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=True,
                timeout=self.timeout,
            ) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    async with aiofiles.open(target_path, "wb") as f:
                        async for chunk in response.aiter_bytes():
                            await f.write(chunk)
        except (httpx.HTTPError, OSError) as e:
            raise DownloadFailed(url, e) from e

    def _extract(self, archive_path: Path, dest_dir: Path) -> None:
        logger.debug(f"Extracting {archive_path} into {dest_dir}")
        try:
            with zipfile.ZipFile(archive_path, "r") as zip_ref:
                dest_dir.mkdir(parents=True, exist_ok=True)
                root = dest_dir.resolve()
                for info in zip_ref.infolist():
                    if _escapes_root(info.filename):
                        raise ExtractionFailed(dest_dir, f"entry {info.filename!r} escapes the runtime directory")
                    extracted = Path(zip_ref.extract(info, root))
                    if root not in extracted.resolve().parents:
                        raise ExtractionFailed(dest_dir, f"entry {info.filename!r} was written outside the runtime directory")
                    mode = (info.external_attr >> 16) & 0o777
                    if mode and not info.is_dir():
                        os.chmod(extracted, mode)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError) as e:
            raise ExtractionFailed(dest_dir, e) from e


def _escapes_root(name: str) -> bool:
    """Entries that ZipFile.extract would silently rewrite are refused instead."""
    path = PurePosixPath(name.replace("\\", "/"))
    return path.is_absolute() or bool(PureWindowsPath(name).drive) or ".." in path.parts


def _make_executable(path: Path) -> None:
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
