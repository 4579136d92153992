"""Version selector resolution against the catalog manifest."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from mcsl.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from mcsl.services.catalog import (
        CatalogClient,
        CatalogError,
        Manifest,
        ReleaseEntry,
        ReleaseMetadata,
    )

__all__ = [
    "InvalidVersion",
    "ResolvedRelease",
    "ArtifactResolver",
    "find_release",
    "resolve_release_id",
    "RELEASE_ALIAS",
    "SNAPSHOT_ALIAS",
]

RELEASE_ALIAS = "release"
SNAPSHOT_ALIAS = "snapshot"


@dataclass(frozen=True, slots=True)
class InvalidVersion:
    """Selector matched no release in the manifest.

    Attributes:
        selector: the selector as the operator typed it
        candidate: the id that was looked up (alias already substituted)
    """

    selector: str
    candidate: str

    def __str__(self) -> str:
        if self.selector != self.candidate:
            return f"invalid version: {self.selector} ({self.candidate} not in catalog)"
        return f"invalid version: {self.selector}"


@dataclass(frozen=True, slots=True)
class ResolvedRelease:
    release_id: str
    metadata: ReleaseMetadata


def find_release(selector: str, manifest: Manifest) -> Result[ReleaseEntry, InvalidVersion]:
    """Find the manifest entry a selector designates.

    ``release`` and ``snapshot`` are replaced by the manifest's latest ids
    before matching, so they never match a release literally named that way.
    """
    if selector == RELEASE_ALIAS:
        candidate = manifest.latest_release
    elif selector == SNAPSHOT_ALIAS:
        candidate = manifest.latest_snapshot
    else:
        candidate = selector

    for entry in manifest.releases:
        if entry.id == candidate:
            return Ok(entry)
    return Err(InvalidVersion(selector=selector, candidate=candidate))


def resolve_release_id(selector: str, manifest: Manifest) -> Result[str, InvalidVersion]:
    """Map a selector to a release id listed in the manifest."""
    found = find_release(selector, manifest)
    if isinstance(found, Err):
        return found
    return Ok(found.value.id)


class ArtifactResolver:
    """Turns a selector into a concrete release and its artifact metadata."""

    def __init__(self, catalog: CatalogClient) -> None:
        self._catalog = catalog

    def resolve(
        self, selector: str, manifest: Manifest
    ) -> Result[ResolvedRelease, InvalidVersion | CatalogError]:
        """Resolve ``selector`` and fetch the matching release document.

        No metadata is fetched when the selector is unknown. Catalog errors
        from the metadata fetch are returned unchanged.
        """
        found = find_release(selector, manifest)
        if isinstance(found, Err):
            return found

        entry = found.value
        metadata = self._catalog.fetch_release_metadata(entry.metadata_url)
        if isinstance(metadata, Err):
            return metadata

        return Ok(ResolvedRelease(release_id=entry.id, metadata=metadata.value))
