"""Error codes for CLI exit status.

The launcher exits with one of these codes when it fails before the server
starts. Once the server is running, the launcher exits with the server's own
status instead.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for launcher failures.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (unknown version, bad config)
    - 2: Environment error (java missing, cannot spawn)
    - 4: Network error (catalog unreachable, bad payload, download failed)
    - 5: I/O error (artifact file cannot be created, read or written)
    - 6: Integrity error (checksum mismatch after re-download)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4
    IO_ERROR = 5
    INTEGRITY_ERROR = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")
