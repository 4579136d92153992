"""Catalog client: version manifest and per-release metadata.

The catalog is two kinds of JSON documents:

- the manifest, listing every release and the latest aliases::

    {"latest": {"release": "1.20.1", "snapshot": "23w31a"},
     "versions": [{"id": "1.20.1", "url": "https://.../1.20.1.json"}, ...]}

- one document per release, pointing at the server jar::

    {"downloads": {"server": {"sha1": "...", "url": "https://.../server.jar"}}}

Only the fields above are read; everything else is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from mcsl.core.result import Err, Ok, Result
from mcsl.core.structured import as_str_dict, get_list, get_str, get_table
from mcsl.tools.http import DecodeError, HttpError

if TYPE_CHECKING:
    from mcsl.tools.http import HttpClient

__all__ = [
    "CatalogClient",
    "CatalogError",
    "Manifest",
    "ReleaseEntry",
    "ReleaseMetadata",
]

type CatalogError = HttpError | DecodeError


@dataclass(frozen=True, slots=True)
class ReleaseEntry:
    """One ``versions[]`` item of the manifest."""

    id: str
    metadata_url: str


@dataclass(frozen=True, slots=True)
class Manifest:
    """Decoded version manifest.

    Attributes:
        latest_release: id the ``release`` alias points to
        latest_snapshot: id the ``snapshot`` alias points to
        releases: entries in catalog order
    """

    latest_release: str
    latest_snapshot: str
    releases: tuple[ReleaseEntry, ...]


@dataclass(frozen=True, slots=True)
class ReleaseMetadata:
    """Server artifact location and expected SHA-1 (lowercase hex)."""

    artifact_url: str
    expected_hash: str


def parse_manifest(url: str, data: dict[str, Any]) -> Result[Manifest, DecodeError]:
    latest = get_table(data, "latest")
    if latest is None:
        return Err(DecodeError(url=url, message="missing 'latest' object"))

    latest_release = get_str(latest, "release")
    latest_snapshot = get_str(latest, "snapshot")
    if latest_release is None or latest_snapshot is None:
        return Err(DecodeError(url=url, message="missing 'latest.release' or 'latest.snapshot'"))

    versions = get_list(data, "versions")
    if versions is None:
        return Err(DecodeError(url=url, message="missing 'versions' list"))

    releases: list[ReleaseEntry] = []
    for index, item in enumerate(versions):
        entry = as_str_dict(item)
        release_id = get_str(entry, "id") if entry is not None else None
        metadata_url = get_str(entry, "url") if entry is not None else None
        if release_id is None or metadata_url is None:
            return Err(DecodeError(url=url, message=f"versions[{index}] needs 'id' and 'url'"))
        releases.append(ReleaseEntry(id=release_id, metadata_url=metadata_url))

    return Ok(
        Manifest(
            latest_release=latest_release,
            latest_snapshot=latest_snapshot,
            releases=tuple(releases),
        )
    )


def parse_release_metadata(url: str, data: dict[str, Any]) -> Result[ReleaseMetadata, DecodeError]:
    downloads = get_table(data, "downloads")
    server = get_table(downloads, "server") if downloads is not None else None
    if server is None:
        return Err(DecodeError(url=url, message="missing 'downloads.server' object"))

    sha1 = get_str(server, "sha1")
    artifact_url = get_str(server, "url")
    if sha1 is None or artifact_url is None:
        return Err(DecodeError(url=url, message="missing 'downloads.server.sha1' or '.url'"))

    return Ok(ReleaseMetadata(artifact_url=artifact_url, expected_hash=sha1.lower()))


class CatalogClient:
    """Fetches and decodes catalog documents.

    Each call performs exactly one GET; retrying is left to the caller.
    """

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    def fetch_json(self, url: str) -> Result[dict[str, Any], CatalogError]:
        return self._http.get_json(url)

    def fetch_manifest(self, url: str) -> Result[Manifest, CatalogError]:
        data = self.fetch_json(url)
        if isinstance(data, Err):
            return data
        return parse_manifest(url, data.value)

    def fetch_release_metadata(self, url: str) -> Result[ReleaseMetadata, CatalogError]:
        data = self.fetch_json(url)
        if isinstance(data, Err):
            return data
        return parse_release_metadata(url, data.value)
