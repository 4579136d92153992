from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any

import pytest

from mcsl.tools.http import MockHttpClient


def _sha1(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


@dataclass(frozen=True)
class FakeCatalog:
    """URLs and payloads of a small two-release catalog."""

    manifest_url: str = "https://catalog.example/version_manifest.json"
    release_meta_url: str = "https://catalog.example/v/1.20.1.json"
    snapshot_meta_url: str = "https://catalog.example/v/23w31a.json"
    old_meta_url: str = "https://catalog.example/v/1.19.4.json"
    release_jar_url: str = "https://artifacts.example/1.20.1/server.jar"
    snapshot_jar_url: str = "https://artifacts.example/23w31a/server.jar"
    release_jar: bytes = b"server jar 1.20.1"
    snapshot_jar: bytes = b"server jar 23w31a"

    @property
    def release_sha1(self) -> str:
        return _sha1(self.release_jar)

    @property
    def snapshot_sha1(self) -> str:
        return _sha1(self.snapshot_jar)

    def manifest(self) -> dict[str, Any]:
        return {
            "latest": {"release": "1.20.1", "snapshot": "23w31a"},
            "versions": [
                {"id": "23w31a", "type": "snapshot", "url": self.snapshot_meta_url},
                {"id": "1.20.1", "type": "release", "url": self.release_meta_url},
                {"id": "1.19.4", "type": "release", "url": self.old_meta_url},
            ],
        }

    def release_document(self, jar_url: str, digest: str) -> dict[str, Any]:
        return {"id": "x", "downloads": {"server": {"sha1": digest, "size": 1, "url": jar_url}}}

    def install(self, http: MockHttpClient) -> MockHttpClient:
        http.set_json(self.manifest_url, self.manifest())
        http.set_json(
            self.release_meta_url, self.release_document(self.release_jar_url, self.release_sha1)
        )
        http.set_json(
            self.snapshot_meta_url, self.release_document(self.snapshot_jar_url, self.snapshot_sha1)
        )
        http.set_download(self.release_jar_url, self.release_jar)
        http.set_download(self.snapshot_jar_url, self.snapshot_jar)
        return http


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def http(catalog: FakeCatalog) -> MockHttpClient:
    return catalog.install(MockHttpClient())
