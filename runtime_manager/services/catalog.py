"""
List runtime builds published to the remote artifact bucket.

Object names follow ``<namespace>/<version>/<os-token>/<artifact>``; objects
whose second segment is not a version are not builds and are skipped.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError
from semantic_version import Version

from runtime_manager.core.config import ManagerConfig
from runtime_manager.core.errors import (
    CatalogUnavailable,
    InvalidBuildArtifact,
    VersionNotFound,
)
from runtime_manager.domain.models import (
    BucketListing,
    BucketObject,
    Build,
    Os,
    RuntimeVersion,
    VersionsFilter,
)
from runtime_manager.domain.versioning import parse_version, try_parse_version

logger = logging.getLogger(__name__)

VERSION_SEGMENT = 1
OS_SEGMENT = 2


def version_from_path(name: str) -> Optional[Version]:
    segments = name.split("/")
    if len(segments) <= VERSION_SEGMENT:
        return None
    return try_parse_version(segments[VERSION_SEGMENT])


def build_from_object(item: BucketObject) -> Build:
    segments = item.name.split("/")
    if len(segments) <= OS_SEGMENT or not segments[OS_SEGMENT]:
        raise InvalidBuildArtifact(item.name, "missing OS segment")
    os = Os.from_token(segments[OS_SEGMENT])
    if os is None:
        raise InvalidBuildArtifact(item.name, f"unknown OS {segments[OS_SEGMENT]!r}")
    return Build(os=os, url=item.media_link)


def group_builds(items: List[BucketObject]) -> List[RuntimeVersion]:
    """
    Group listed objects into versions, keyed by exact version equality.

    ``1.2.3`` and ``1.2.3-nightly-2023-09-01`` are two different groups even
    though the first is a string prefix of the second.
    """
    grouped: Dict[Version, List[BucketObject]] = {}
    for item in items:
        version = version_from_path(item.name)
        if version is None:
            logger.debug(f"Skipping non-build object {item.name}")
            continue
        grouped.setdefault(version, []).append(item)

    return [
        RuntimeVersion(version=version, builds=[build_from_object(item) for item in objects])
        for version, objects in grouped.items()
    ]


def apply_filter(versions: List[RuntimeVersion], versions_filter: VersionsFilter) -> List[RuntimeVersion]:
    return [v for v in versions if versions_filter.allows(v.train)]


class VersionCatalog:
    """Reads the remote artifact bucket listing."""

    def __init__(
        self,
        config: ManagerConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            follow_redirects=True,
            timeout=self.config.http_timeout,
        )

    async def _fetch_objects(self, prefix: str) -> List[BucketObject]:
        params = {
            "prefix": f"{self.config.builds_namespace}/{prefix}",
            "alt": "json",
        }
        items: List[BucketObject] = []
        logger.debug(f"Listing {self.config.catalog_url} with prefix {params['prefix']!r}")

        try:
            async with self._client() as client:
                while True:
                    response = await client.get(self.config.catalog_url, params=params)
                    response.raise_for_status()
                    page = BucketListing.model_validate(response.json())
                    items.extend(page.items)
                    if not page.next_page_token:
                        break
                    params["pageToken"] = page.next_page_token
        except httpx.HTTPError as e:
            raise CatalogUnavailable(f"Failed to list runtime builds: {e}") from e
        except (ValueError, ValidationError) as e:
            raise CatalogUnavailable(f"Invalid runtime build listing: {e}") from e

        return items

    async def list_versions(
        self,
        prefix: str = "",
        versions_filter: Optional[VersionsFilter] = None,
    ) -> List[RuntimeVersion]:
        """
        Return the catalog versions visible through ``versions_filter``.

        The result is sorted by semantic version, so the latest version is last.
        """
        versions_filter = versions_filter or VersionsFilter()
        items = await self._fetch_objects(prefix)
        versions = apply_filter(group_builds(items), versions_filter)
        versions.sort(key=lambda v: v.version)
        logger.info(f"Found {len(versions)} runtime versions")
        return versions

    async def get_single_version(self, version: str) -> RuntimeVersion:
        wanted = parse_version(version)
        versions = await self.list_versions(f"{wanted}/", VersionsFilter.everything())
        for candidate in versions:
            if candidate.version == wanted:
                return candidate
        raise VersionNotFound(str(wanted))

