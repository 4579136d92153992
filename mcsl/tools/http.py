"""HTTP client abstraction for catalog and artifact downloads.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing

Three error types keep failure causes apart:
- HttpError: transport failure or non-2xx status
- DecodeError: the body is not a JSON object
- LocalFileError: the download destination cannot be created or written
"""

from __future__ import annotations

import http.client
import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, Protocol, cast, runtime_checkable

from mcsl import __version__
from mcsl.core.result import Err, Ok, Result
from mcsl.core.structured import as_str_dict

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
    "DecodeError",
    "LocalFileError",
]

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class DecodeError:
    """Response body could not be decoded into the expected shape."""

    url: str
    message: str

    def __str__(self) -> str:
        return f"invalid response: {self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class LocalFileError:
    """Download destination could not be created or written."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} ({self.path})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    This abstraction allows injecting mock clients for testing,
    avoiding real network calls in unit tests.
    """

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError | DecodeError]:
        """Fetch URL and parse the body as a JSON object.

        Args:
            url: URL to fetch

        Returns:
            Ok with parsed JSON dict, or Err with HttpError/DecodeError
        """
        ...

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, HttpError | LocalFileError]:
        """Download URL to file, truncating any existing content.

        Args:
            url: URL to download
            dest: Destination path
            progress: Optional callback(downloaded, total) for progress

        Returns:
            Ok with dest path, or Err with HttpError/LocalFileError
        """
        ...


def _decode_json_object(url: str, body: bytes) -> Result[dict[str, Any], DecodeError]:
    try:
        data_obj: object = json.loads(body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(DecodeError(url=url, message=f"JSON parse error: {e}"))
    data = as_str_dict(data_obj)
    if data is None:
        return Err(DecodeError(url=url, message="Expected JSON object"))
    # Values are dynamic; preserve as Any for callers.
    return Ok(cast(dict[str, Any], data))


def _open_dest(dest: Path) -> Result[BinaryIO, LocalFileError]:
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        return Ok(dest.open("wb"))
    except OSError as e:
        return Err(LocalFileError(path=dest, message=f"cannot open for writing: {e.strerror or e}"))


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - JSON parsing
    - Chunked download with progress callback
    - Timeout handling
    """

    def __init__(self, timeout: float = 30.0, user_agent: str = f"mcsl/{__version__}") -> None:
        """Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def _open(self, url: str) -> Any:
        req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        return urllib.request.urlopen(req, timeout=self.timeout, context=self._ssl_context)

    def _request(self, url: str) -> Result[bytes, HttpError]:
        try:
            with self._open(url) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except http.client.HTTPException as e:
            return Err(HttpError(url=url, status=0, message=str(e) or type(e).__name__))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError | DecodeError]:
        result = self._request(url)
        if isinstance(result, Err):
            return result
        return _decode_json_object(url, result.value)

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, HttpError | LocalFileError]:
        """Download URL to file with optional progress callback.

        The destination is truncated before the request is sent. If the
        transfer fails midway the partial file stays on disk; callers must
        verify its content before trusting it.
        """
        opened = _open_dest(dest)
        if isinstance(opened, Err):
            return opened

        with opened.value as f:
            try:
                with self._open(url) as response:
                    total = int(response.headers.get("Content-Length", 0) or 0)
                    downloaded = 0
                    while True:
                        chunk = response.read(_CHUNK_SIZE)
                        if not chunk:
                            break
                        try:
                            f.write(chunk)
                        except OSError as e:
                            return Err(
                                LocalFileError(path=dest, message=f"write failed: {e.strerror or e}")
                            )
                        downloaded += len(chunk)
                        if progress:
                            progress(downloaded, total)
                    if total and downloaded < total:
                        return Err(
                            HttpError(
                                url=url,
                                status=0,
                                message=f"incomplete response: {downloaded} of {total} bytes",
                            )
                        )
            except urllib.error.HTTPError as e:
                return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
            except urllib.error.URLError as e:
                return Err(HttpError(url=url, status=0, message=str(e.reason)))
            except TimeoutError:
                return Err(HttpError(url=url, status=0, message="Download timed out"))
            except http.client.HTTPException as e:
                return Err(HttpError(url=url, status=0, message=str(e) or type(e).__name__))
            except (ValueError, OSError) as e:
                return Err(HttpError(url=url, status=0, message=str(e)))

        return Ok(dest)


class MockHttpClient:
    """Mock HTTP client for testing.

    Allows setting predefined responses for specific URLs and records every
    call in ``calls`` as ``(method, url)`` tuples.

    Usage:
        client = MockHttpClient()
        client.set_json("https://example.com/manifest.json", {"latest": {...}})
        client.set_download("https://example.com/server.jar", b"jar bytes")
    """

    def __init__(self) -> None:
        self._json_responses: dict[str, dict[str, Any] | HttpError | DecodeError] = {}
        self._download_responses: dict[str, bytes | HttpError] = {}
        self._partial: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []

    def set_json(self, url: str, response: dict[str, Any] | HttpError | DecodeError) -> None:
        """Set JSON response for URL."""
        self._json_responses[url] = response

    def set_download(
        self,
        url: str,
        response: bytes | HttpError,
        *,
        partial: bytes | None = None,
    ) -> None:
        """Set download content for URL.

        With an HttpError response, ``partial`` bytes are written to the
        destination before the error is returned (an interrupted transfer).
        """
        self._download_responses[url] = response
        if partial is None:
            self._partial.pop(url, None)
        else:
            self._partial[url] = partial

    def count(self, method: str) -> int:
        """Number of recorded calls of one method."""
        return sum(1 for m, _ in self.calls if m == method)

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError | DecodeError]:
        self.calls.append(("get_json", url))

        if url not in self._json_responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = self._json_responses[url]
        if isinstance(response, (HttpError, DecodeError)):
            return Err(response)
        return Ok(response)

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, HttpError | LocalFileError]:
        """Mock download - writes predefined content to dest."""
        self.calls.append(("download", url))

        if url not in self._download_responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        opened = _open_dest(dest)
        if isinstance(opened, Err):
            return opened

        response = self._download_responses[url]
        with opened.value as f:
            if isinstance(response, HttpError):
                f.write(self._partial.get(url, b""))
                return Err(response)
            f.write(response)

        if progress:
            progress(len(response), len(response))

        return Ok(dest)
