"""
Shared fixtures: a fake artifact bucket served through ``httpx.MockTransport``.
"""

import io
import json
import zipfile
from typing import Dict, List, Optional

import httpx
import pytest

from runtime_manager.core.config import ManagerConfig
from runtime_manager.domain.models import Os
from runtime_manager.services.catalog import VersionCatalog
from runtime_manager.services.installer import RuntimeInstaller
from runtime_manager.services.resolver import RuntimeResolver
from runtime_manager.storage.runtime_store import InstalledRuntimeStore

CATALOG_URL = "https://catalog.test/storage/v1/b/artifacts/o"
DOWNLOAD_HOST = "https://downloads.test"
NAMESPACE = "ambient-builds"


def make_zip(files: Dict[str, bytes], modes: Optional[Dict[str, int]] = None) -> bytes:
    """Build a zip archive in memory; ``modes`` sets unix permission bits per entry."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            info = zipfile.ZipInfo(name)
            mode = (modes or {}).get(name)
            if mode is not None:
                info.external_attr = mode << 16
            archive.writestr(info, content)
    return buffer.getvalue()


def runtime_zip(os: Os = Os.LINUX, extra: Optional[Dict[str, bytes]] = None) -> bytes:
    files = {os.executable_name: b"#!/bin/sh\necho runtime\n", "assets/readme.txt": b"hello"}
    files.update(extra or {})
    return make_zip(files)


class FakeBucket:
    """In-memory stand-in for the bucket listing and download endpoints."""

    def __init__(self, page_size: int = 0):
        self.objects: List[str] = []
        self.payloads: Dict[str, bytes] = {}
        self.requests: List[httpx.Request] = []
        self.page_size = page_size
        self.listing_status = 200
        self.listing_body: Optional[bytes] = None

    def add_build(self, version: str, os: Os = Os.LINUX, payload: Optional[bytes] = None) -> str:
        name = f"{NAMESPACE}/{version}/{os.value}/ambient.zip"
        self.objects.append(name)
        self.payloads[name] = payload if payload is not None else runtime_zip(os)
        return name

    def add_object(self, name: str) -> None:
        self.objects.append(name)

    def add_version(self, version: str) -> None:
        for os in Os:
            self.add_build(version, os)

    @property
    def listing_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(CATALOG_URL)]

    @property
    def download_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(DOWNLOAD_HOST)]

    def _listing(self, request: httpx.Request) -> httpx.Response:
        if self.listing_status != 200:
            return httpx.Response(self.listing_status, text="unavailable")
        if self.listing_body is not None:
            return httpx.Response(200, content=self.listing_body)

        prefix = request.url.params.get("prefix", "")
        names = [n for n in self.objects if n.startswith(prefix)]
        start = int(request.url.params.get("pageToken", "0"))
        end = start + self.page_size if self.page_size else len(names)

        body = {
            "kind": "storage#objects",
            "items": [
                {"name": name, "mediaLink": f"{DOWNLOAD_HOST}/{name}", "size": "1"}
                for name in names[start:end]
            ],
        }
        if end < len(names):
            body["nextPageToken"] = str(end)
        if not body["items"]:
            del body["items"]
        return httpx.Response(200, content=json.dumps(body).encode("utf-8"))

    def _download(self, request: httpx.Request) -> httpx.Response:
        name = request.url.path.lstrip("/")
        if name not in self.payloads:
            return httpx.Response(404)
        return httpx.Response(200, content=self.payloads[name])

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url).startswith(CATALOG_URL):
            return self._listing(request)
        return self._download(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def bucket():
    return FakeBucket()


@pytest.fixture
def config(tmp_path):
    return ManagerConfig(
        data_dir=tmp_path / "data",
        config_dir=tmp_path / "config",
        catalog_url=CATALOG_URL,
        builds_namespace=NAMESPACE,
        http_timeout=5.0,
    )


@pytest.fixture
def catalog(config, bucket):
    return VersionCatalog(config, transport=bucket.transport)


@pytest.fixture
def store(config):
    return InstalledRuntimeStore(config.runtimes_dir, os=Os.LINUX)


@pytest.fixture
def installer(store, catalog, bucket):
    return RuntimeInstaller(store, catalog, transport=bucket.transport, timeout=5.0)


@pytest.fixture
def resolver(catalog, store):
    return RuntimeResolver(catalog, store)


@pytest.fixture
def install_dir(store):
    """Create a fake installed runtime directory for a version string."""

    def _install(version: str, with_executable: bool = True):
        directory = store.runtimes_dir / version
        directory.mkdir(parents=True, exist_ok=True)
        if with_executable:
            (directory / store.os.executable_name).write_bytes(b"#!/bin/sh\n")
        return directory

    return _install
