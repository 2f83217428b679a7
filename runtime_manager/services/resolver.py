"""
Resolve version requirements to a concrete runtime version.
"""
from __future__ import annotations

import logging
from typing import Optional

from runtime_manager.core.errors import NoDefaultSet, NoSatisfyingVersion, NoVersionsForTrain
from runtime_manager.domain.models import RuntimeVersion, Settings, VersionsFilter
from runtime_manager.domain.versioning import ReleaseTrain, VersionRequirement, matches_exact
from runtime_manager.services.catalog import VersionCatalog
from runtime_manager.storage.runtime_store import InstalledRuntimeStore

logger = logging.getLogger(__name__)


class RuntimeResolver:
    """
    Picks the runtime version to use, consulting sources in a fixed order:

    1. the configured default version
    2. the locally installed versions, in directory discovery order
    3. the remote catalog, lowest satisfying version first
    """

    def __init__(self, catalog: VersionCatalog, store: InstalledRuntimeStore):
        self.catalog = catalog
        self.store = store

    async def resolve(self, requirement: VersionRequirement, settings: Settings) -> RuntimeVersion:
        logger.info(f"Looking for version satisfying {requirement}")

        default_version = settings.default_runtime
        if default_version is not None:
            logger.info(f"Checking default version: {default_version}")
            if matches_exact(requirement, default_version):
                logger.info("Default version matches, returning.")
                return RuntimeVersion.without_builds(default_version)

        logger.info("Checking installed versions")
        for installed in self.store.list_installed():
            if matches_exact(requirement, installed.version):
                logger.info(f"Installed version {installed.version} matches, returning.")
                return RuntimeVersion.without_builds(installed.version)

        logger.info("Checking all versions")
        for candidate in await self.catalog.list_versions("", VersionsFilter.everything()):
            if matches_exact(requirement, candidate.version):
                logger.info(f"Remote version {candidate.version} matches, returning.")
                return candidate

        raise NoSatisfyingVersion(requirement)

    async def resolve_current(
        self,
        project_requirement: Optional[VersionRequirement],
        settings: Settings,
    ) -> RuntimeVersion:
        """Project requirement first, then the configured default."""
        if project_requirement is not None:
            return await self.resolve(project_requirement, settings)
        if settings.default_runtime is not None:
            return RuntimeVersion.without_builds(settings.default_runtime)
        raise NoDefaultSet()

    async def resolve_latest_for_train(
        self,
        train: ReleaseTrain,
        fallback_to_nightly_if_empty: bool = False,
    ) -> RuntimeVersion:
        versions = await self.catalog.list_versions(
            "",
            VersionsFilter(
                include_private=train is ReleaseTrain.INTERNAL,
                include_nightly=train is ReleaseTrain.NIGHTLY or fallback_to_nightly_if_empty,
            ),
        )

        in_train = [v for v in versions if v.train is train]
        if in_train:
            return in_train[-1]

        if fallback_to_nightly_if_empty:
            nightlies = [v for v in versions if v.train is ReleaseTrain.NIGHTLY]
            if nightlies:
                logger.info(f"No {train} versions found, falling back to nightly {nightlies[-1].version}")
                return nightlies[-1]

        raise NoVersionsForTrain(train)
