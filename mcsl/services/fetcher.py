"""Integrity-verified artifact fetch.

The local jar moves through three states:

    absent --download--> present-unverified --sha1 ok--> present-verified
                         present-unverified --sha1 bad--> download (once)

A present file is always hashed before anything is downloaded, so a run
against an intact jar makes no network transfer. A mismatch triggers exactly
one fresh download; a second mismatch is fatal and the file is left as the
last download wrote it.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from mcsl.core.result import Err, Ok, Result
from mcsl.output.console import Style
from mcsl.tools.http import HttpError

if TYPE_CHECKING:
    from mcsl.output.console import ConsoleProtocol
    from mcsl.tools.http import HttpClient

__all__ = [
    "ArtifactFetcher",
    "ArtifactState",
    "EnsureReport",
    "FetchError",
    "sha1_file",
    "digests_match",
]

_READ_CHUNK = 1024 * 1024


class ArtifactState(Enum):
    ABSENT = "absent"
    UNVERIFIED = "present-unverified"
    VERIFIED = "present-verified"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class FetchError:
    """Error from ensuring the local artifact."""

    kind: Literal["download", "verify", "file_io"]
    message: str
    path: Path
    hint: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class EnsureReport:
    """Outcome of a successful ``ensure``.

    Attributes:
        path: the verified artifact
        initial_state: ABSENT or UNVERIFIED, as found on disk
        downloads: number of transfers made (0 or 1)
        digest: SHA-1 of the verified file
    """

    path: Path
    initial_state: ArtifactState
    downloads: int
    digest: str

    @property
    def reused(self) -> bool:
        return self.downloads == 0


def sha1_file(path: Path) -> str:
    """Hex SHA-1 of the whole file. Raises OSError if it cannot be read."""
    digest = hashlib.sha1()
    with path.open("rb") as f:
        while True:
            chunk = f.read(_READ_CHUNK)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()


def digests_match(actual: str, expected: str) -> bool:
    return actual.strip().lower() == expected.strip().lower()


class _ProgressLine:
    """Download progress callback printing a line at each quarter."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console
        self._reported = 0

    def __call__(self, downloaded: int, total: int) -> None:
        if total <= 0:
            return
        quarter = min(downloaded * 4 // total, 4)
        if quarter > self._reported:
            self._reported = quarter
            self._console.print(
                f"  {quarter * 25}% ({downloaded // 1024} of {total // 1024} KiB)", Style.DIM
            )


class ArtifactFetcher:
    """Makes sure a local file matches the catalog's expected hash."""

    def __init__(self, http: HttpClient, console: ConsoleProtocol) -> None:
        self._http = http
        self._console = console

    def ensure(
        self, path: Path, artifact_url: str, expected_hash: str
    ) -> Result[EnsureReport, FetchError]:
        """Verify ``path`` in place, downloading when absent or mismatched.

        Returns:
            Ok(EnsureReport) once the file is present-verified, or
            Err(FetchError) with kind ``download``, ``verify`` or ``file_io``.
        """
        if path.is_dir():
            return Err(
                FetchError(
                    kind="file_io",
                    message=f"artifact path is a directory: {path}",
                    path=path,
                    hint="Pass a file name with --filename",
                )
            )

        if path.exists():
            initial = ArtifactState.UNVERIFIED
            checked = self._digest(path)
            if isinstance(checked, Err):
                return checked
            if digests_match(checked.value, expected_hash):
                return Ok(
                    EnsureReport(path=path, initial_state=initial, downloads=0, digest=checked.value)
                )
            self._console.warning(f"checksum mismatch for {path}, downloading again")
        else:
            initial = ArtifactState.ABSENT

        downloaded = self._download(artifact_url, path)
        if isinstance(downloaded, Err):
            return downloaded

        checked = self._digest(path)
        if isinstance(checked, Err):
            return checked
        actual = checked.value
        if not digests_match(actual, expected_hash):
            return Err(
                FetchError(
                    kind="verify",
                    message=f"sha1 checksum doesn't validate for {path}",
                    path=path,
                    hint=f"expected {expected_hash.lower()}, got {actual}",
                )
            )

        self._console.success(f"{path} ({actual})")
        return Ok(EnsureReport(path=path, initial_state=initial, downloads=1, digest=actual))

    def _digest(self, path: Path) -> Result[str, FetchError]:
        try:
            return Ok(sha1_file(path))
        except OSError as e:
            return Err(
                FetchError(
                    kind="file_io",
                    message=f"cannot read {path}: {e.strerror or e}",
                    path=path,
                )
            )

    def _download(self, url: str, path: Path) -> Result[None, FetchError]:
        self._console.print(f"download {url}", Style.DIM)
        result = self._http.download(url, path, progress=_ProgressLine(self._console))
        if isinstance(result, Ok):
            return Ok(None)

        e = result.error
        if isinstance(e, HttpError):
            return Err(
                FetchError(
                    kind="download",
                    message=f"download failed: {e}",
                    path=path,
                    hint=url,
                )
            )
        return Err(FetchError(kind="file_io", message=f"cannot write artifact: {e}", path=path))
