"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcsl.core.config import ConfigError
from mcsl.core.errors import ErrorCode
from mcsl.output.console import Style
from mcsl.services.fetcher import FetchError
from mcsl.services.resolver import InvalidVersion
from mcsl.services.supervisor import SupervisorError
from mcsl.tools.http import DecodeError, HttpError

if TYPE_CHECKING:
    from mcsl.output.console import ConsoleProtocol
    from mcsl.services.launcher import LaunchError

__all__ = ["print_launch_error", "launch_error_exit_code"]


def print_launch_error(error: LaunchError | ConfigError, console: ConsoleProtocol) -> None:
    """Print a launch error to console with appropriate formatting."""
    match error:
        case HttpError():
            console.error(f"catalog unreachable: {error}")
        case DecodeError():
            console.error(str(error))
        case InvalidVersion(selector=selector, candidate=candidate):
            console.error(f"invalid version: {selector}")
            if candidate != selector:
                console.print(f"'{selector}' points to {candidate}, which is not listed", Style.DIM)
            console.print("hint: use 'release', 'snapshot' or a listed version id", Style.DIM)
        case FetchError(hint=hint) | SupervisorError(hint=hint):
            console.error(error.message)
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case ConfigError(message=message, path=path):
            console.error(message)
            if path is not None:
                console.print(f"config: {path}", Style.DIM)


def launch_error_exit_code(error: LaunchError | ConfigError) -> int:
    """Get exit code for a launch error."""
    match error:
        case HttpError() | DecodeError():
            return int(ErrorCode.NETWORK_ERROR)
        case InvalidVersion() | ConfigError():
            return int(ErrorCode.USER_ERROR)
        case FetchError(kind="download"):
            return int(ErrorCode.NETWORK_ERROR)
        case FetchError(kind="verify"):
            return int(ErrorCode.INTEGRITY_ERROR)
        case FetchError(kind="file_io"):
            return int(ErrorCode.IO_ERROR)
        case SupervisorError():
            return int(ErrorCode.ENV_ERROR)
    # Fallback for exhaustiveness
    return int(ErrorCode.USER_ERROR)
