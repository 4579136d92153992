"""Launcher services.

Catalog access, selector resolution, verified fetch and process supervision,
composed by ``Launcher``.
"""

from mcsl.services.catalog import CatalogClient, Manifest, ReleaseEntry, ReleaseMetadata
from mcsl.services.fetcher import ArtifactFetcher, ArtifactState, EnsureReport, FetchError
from mcsl.services.launcher import Launcher, LaunchRequest
from mcsl.services.resolver import ArtifactResolver, InvalidVersion, ResolvedRelease
from mcsl.services.supervisor import ProcessSupervisor, RunOutcome, SupervisorError

__all__ = [
    # catalog
    "CatalogClient",
    "Manifest",
    "ReleaseEntry",
    "ReleaseMetadata",
    # resolver
    "ArtifactResolver",
    "InvalidVersion",
    "ResolvedRelease",
    # fetcher
    "ArtifactFetcher",
    "ArtifactState",
    "EnsureReport",
    "FetchError",
    # supervisor
    "ProcessSupervisor",
    "RunOutcome",
    "SupervisorError",
    # launcher
    "Launcher",
    "LaunchRequest",
]
