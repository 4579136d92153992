"""Tests for mcsl.services.resolver."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from mcsl.core.result import Err, Ok
from mcsl.services.catalog import CatalogClient, Manifest, ReleaseEntry, ReleaseMetadata
from mcsl.services.resolver import (
    ArtifactResolver,
    InvalidVersion,
    ResolvedRelease,
    find_release,
    resolve_release_id,
)
from mcsl.tools.http import HttpError, MockHttpClient

if TYPE_CHECKING:
    from conftest import FakeCatalog


def _manifest(*ids: str, release: str = "1.20.1", snapshot: str = "23w31a") -> Manifest:
    return Manifest(
        latest_release=release,
        latest_snapshot=snapshot,
        releases=tuple(ReleaseEntry(id=i, metadata_url=f"https://m/{i}.json") for i in ids),
    )


class TestResolveReleaseId:
    @pytest.mark.parametrize(
        ("selector", "expected"),
        [("release", "1.20.1"), ("snapshot", "23w31a"), ("1.19.4", "1.19.4")],
    )
    def test_aliases_and_literals(self, selector: str, expected: str) -> None:
        manifest = _manifest("23w31a", "1.20.1", "1.19.4")

        assert resolve_release_id(selector, manifest) == Ok(expected)

    def test_alias_never_matches_literal_id(self) -> None:
        # A release literally named "release" must not satisfy the alias.
        manifest = _manifest("release", "snapshot", release="9.9", snapshot="9.9-pre")

        assert resolve_release_id("release", manifest) == Err(
            InvalidVersion(selector="release", candidate="9.9")
        )
        assert resolve_release_id("snapshot", manifest) == Err(
            InvalidVersion(selector="snapshot", candidate="9.9-pre")
        )

    def test_unknown_selector(self) -> None:
        result = resolve_release_id("1.16.5", _manifest("1.20.1"))

        assert result == Err(InvalidVersion(selector="1.16.5", candidate="1.16.5"))

    def test_first_match_wins(self) -> None:
        manifest = Manifest(
            latest_release="a",
            latest_snapshot="a",
            releases=(
                ReleaseEntry(id="a", metadata_url="https://m/first.json"),
                ReleaseEntry(id="a", metadata_url="https://m/second.json"),
            ),
        )

        result = find_release("a", manifest)

        assert isinstance(result, Ok)
        assert result.value.metadata_url == "https://m/first.json"

    def test_invalid_version_str(self) -> None:
        assert str(InvalidVersion("1.16.5", "1.16.5")) == "invalid version: 1.16.5"
        assert "not in catalog" in str(InvalidVersion("release", "2.0"))


class TestArtifactResolver:
    def _manifest(self, http: MockHttpClient, catalog: FakeCatalog) -> Manifest:
        result = CatalogClient(http).fetch_manifest(catalog.manifest_url)
        assert isinstance(result, Ok)
        http.calls.clear()
        return result.value

    def test_release_alias_fetches_latest_release_metadata(
        self, http: MockHttpClient, catalog: FakeCatalog
    ) -> None:
        manifest = self._manifest(http, catalog)

        result = ArtifactResolver(CatalogClient(http)).resolve("release", manifest)

        assert result == Ok(
            ResolvedRelease(
                release_id="1.20.1",
                metadata=ReleaseMetadata(
                    artifact_url=catalog.release_jar_url,
                    expected_hash=catalog.release_sha1,
                ),
            )
        )
        assert http.calls == [("get_json", catalog.release_meta_url)]

    def test_snapshot_alias(self, http: MockHttpClient, catalog: FakeCatalog) -> None:
        manifest = self._manifest(http, catalog)

        result = ArtifactResolver(CatalogClient(http)).resolve("snapshot", manifest)

        assert isinstance(result, Ok)
        assert result.value.release_id == "23w31a"
        assert result.value.metadata.artifact_url == catalog.snapshot_jar_url

    def test_unknown_selector_makes_no_request(
        self, http: MockHttpClient, catalog: FakeCatalog
    ) -> None:
        manifest = self._manifest(http, catalog)

        result = ArtifactResolver(CatalogClient(http)).resolve("1.16.5", manifest)

        assert result == Err(InvalidVersion(selector="1.16.5", candidate="1.16.5"))
        assert http.calls == []

    def test_metadata_error_surfaces_unchanged(
        self, http: MockHttpClient, catalog: FakeCatalog
    ) -> None:
        manifest = self._manifest(http, catalog)
        error = HttpError(url=catalog.release_meta_url, status=500, message="Internal Server Error")
        http.set_json(catalog.release_meta_url, error)

        result = ArtifactResolver(CatalogClient(http)).resolve("1.20.1", manifest)

        assert result == Err(error)
