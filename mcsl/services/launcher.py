"""Resolve, fetch and run: the launcher's control flow.

    catalog manifest -> selector resolution -> release metadata
        -> ensure verified jar -> run server with bridged stdio

With ``do_version_check`` off the first three steps are skipped and the jar
at ``filename`` is launched as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from mcsl.core.result import Err, Ok, Result
from mcsl.output.console import Style
from mcsl.services.catalog import CatalogClient, CatalogError
from mcsl.services.fetcher import ArtifactFetcher, EnsureReport, FetchError
from mcsl.services.resolver import ArtifactResolver, InvalidVersion
from mcsl.services.supervisor import (
    ProcessSupervisor,
    RunOutcome,
    SupervisorError,
    server_trailing_args,
)

if TYPE_CHECKING:
    from mcsl.output.console import ConsoleProtocol
    from mcsl.tools.http import HttpClient

__all__ = ["LaunchError", "LaunchRequest", "Launcher", "PreparedArtifact"]

type LaunchError = CatalogError | InvalidVersion | FetchError | SupervisorError


@dataclass(frozen=True, slots=True)
class LaunchRequest:
    """Everything one run needs, after config and flags are merged.

    Attributes:
        filename: local path of the server jar
        selector: "release", "snapshot" or a release id
        manifest_url: catalog manifest location
        java: java command used to run the jar
        jvm_args: arguments from config, placed before ``args``
        args: pass-through arguments from the command line
        do_version_check: resolve and verify before launching
    """

    filename: Path
    selector: str
    manifest_url: str
    java: str
    jvm_args: tuple[str, ...] = ()
    args: tuple[str, ...] = ()
    do_version_check: bool = True


@dataclass(frozen=True, slots=True)
class PreparedArtifact:
    release_id: str
    report: EnsureReport


class Launcher:
    def __init__(
        self,
        *,
        http: HttpClient,
        console: ConsoleProtocol,
        stdin: BinaryIO,
        stdout: BinaryIO,
        cwd: Path | None = None,
    ) -> None:
        self._console = console
        self._stdin = stdin
        self._stdout = stdout
        self._cwd = cwd
        self._catalog = CatalogClient(http)
        self._resolver = ArtifactResolver(self._catalog)
        self._fetcher = ArtifactFetcher(http, console)

    def prepare(self, request: LaunchRequest) -> Result[PreparedArtifact, LaunchError]:
        """Resolve the selector and make the jar present-verified."""
        self._console.print(f"fetch manifest {request.manifest_url}", Style.DIM)
        manifest = self._catalog.fetch_manifest(request.manifest_url)
        if isinstance(manifest, Err):
            return manifest

        resolved = self._resolver.resolve(request.selector, manifest.value)
        if isinstance(resolved, Err):
            return resolved
        release = resolved.value
        self._console.info(f"{request.selector} -> {release.release_id}")

        ensured = self._fetcher.ensure(
            request.filename,
            release.metadata.artifact_url,
            release.metadata.expected_hash,
        )
        if isinstance(ensured, Err):
            return ensured
        if ensured.value.reused:
            report = ensured.value
            self._console.print(f"{request.filename} is up to date ({report.digest})", Style.DIM)

        return Ok(PreparedArtifact(release_id=release.release_id, report=ensured.value))

    def run(self, request: LaunchRequest) -> Result[RunOutcome, LaunchError]:
        """Prepare (unless disabled) and run the server until it exits."""
        if request.do_version_check:
            prepared = self.prepare(request)
            if isinstance(prepared, Err):
                return prepared
        else:
            self._console.print("version check disabled", Style.DIM)

        supervisor = ProcessSupervisor(
            stdin=self._stdin,
            stdout=self._stdout,
            console=self._console,
            trailing_args=server_trailing_args(request.filename),
            cwd=self._cwd,
        )
        return supervisor.run(request.java, [*request.jvm_args, *request.args])
