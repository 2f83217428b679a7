"""
Facade wiring the catalog, resolver, installer and settings together.

Each public coroutine backs one ``runtime`` subcommand of the CLI.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import httpx

from runtime_manager.core.config import ManagerConfig
from runtime_manager.data.project_manifest import ProjectManifest
from runtime_manager.domain.models import InstalledRuntime, RuntimeVersion, Settings, VersionsFilter
from runtime_manager.domain.versioning import ReleaseTrain, classify
from runtime_manager.services.catalog import VersionCatalog
from runtime_manager.services.installer import RuntimeInstaller
from runtime_manager.services.resolver import RuntimeResolver
from runtime_manager.storage.runtime_store import InstalledRuntimeStore
from runtime_manager.storage.settings_store import JsonSettingsStore, SettingsStore

logger = logging.getLogger(__name__)


class RuntimeManager:
    def __init__(
        self,
        config: ManagerConfig,
        settings_store: SettingsStore,
        catalog: VersionCatalog,
        store: InstalledRuntimeStore,
        installer: RuntimeInstaller,
        resolver: RuntimeResolver,
    ):
        self.config = config
        self.settings_store = settings_store
        self.catalog = catalog
        self.store = store
        self.installer = installer
        self.resolver = resolver
        self.settings: Settings = settings_store.load()

    @classmethod
    def from_config(
        cls,
        config: ManagerConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "RuntimeManager":
        catalog = VersionCatalog(config, transport=transport)
        store = InstalledRuntimeStore(config.runtimes_dir)
        return cls(
            config=config,
            settings_store=JsonSettingsStore(config.settings_path),
            catalog=catalog,
            store=store,
            installer=RuntimeInstaller(store, catalog, transport=transport, timeout=config.http_timeout),
            resolver=RuntimeResolver(catalog, store),
        )

    async def list_versions(self, include_private: bool = True, include_nightly: bool = True) -> List[RuntimeVersion]:
        return await self.catalog.list_versions(
            "",
            VersionsFilter(include_private=include_private, include_nightly=include_nightly),
        )

    def list_installed(self) -> List[InstalledRuntime]:
        return self.store.list_installed()

    async def install(self, version: str) -> Path:
        runtime_version = await self.catalog.get_single_version(version)
        return await self.installer.ensure_installed(runtime_version)

    async def set_default(self, version: str) -> RuntimeVersion:
        runtime_version = await self.catalog.get_single_version(version)
        await self.installer.ensure_installed(runtime_version)
        self._save_default(runtime_version)
        return runtime_version

    async def update_default(self, train: Optional[ReleaseTrain] = None) -> RuntimeVersion:
        """
        Move the default to the latest version of ``train``.

        ``train`` defaults to the train of the current default, or stable when no
        default is set. Only the stable train falls back to nightlies.
        """
        if train is None:
            current = self.settings.default_runtime
            train = classify(current) if current is not None else ReleaseTrain.STABLE

        runtime_version = await self.resolver.resolve_latest_for_train(
            train,
            fallback_to_nightly_if_empty=train is ReleaseTrain.STABLE,
        )
        await self.installer.ensure_installed(runtime_version)
        self._save_default(runtime_version)
        return runtime_version

    async def current(self, project_dir: Path) -> RuntimeVersion:
        manifest = ProjectManifest.find(project_dir)
        requirement = manifest.version_requirement if manifest else None
        return await self.resolver.resolve_current(requirement, self.settings)

    async def executable_for(self, project_dir: Path) -> Path:
        """Resolve the runtime for ``project_dir`` and make sure it is installed."""
        runtime_version = await self.current(project_dir)
        return await self.installer.ensure_installed(runtime_version)

    def settings_path(self) -> Path:
        return self.config.settings_path

    def uninstall_all(self) -> None:
        self.store.uninstall_all()

    def _save_default(self, runtime_version: RuntimeVersion) -> None:
        self.settings.default_runtime = runtime_version.version
        self.settings_store.save(self.settings)
        logger.info(f"Default runtime version is now {runtime_version.version}")
