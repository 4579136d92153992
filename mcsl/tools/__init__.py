"""Infrastructure adapters (HTTP)."""

from mcsl.tools.http import (
    DecodeError,
    HttpClient,
    HttpError,
    LocalFileError,
    MockHttpClient,
    RealHttpClient,
)

__all__ = [
    "DecodeError",
    "HttpClient",
    "HttpError",
    "LocalFileError",
    "MockHttpClient",
    "RealHttpClient",
]
