"""Child process supervision with stdin/stdout bridging.

The server owns the operator's terminal while it runs: everything typed on
the launcher's stdin is forwarded to the server, and everything the server
prints is copied to the launcher's stdout. Each direction is a ``StreamBridge``
running on its own daemon thread while the calling thread blocks in
``Popen.wait()``.

Bridge failures (a broken pipe once the server is gone, a closed terminal)
are reported on the console and end that bridge only. The run's outcome is
decided by the child's exit status alone. Ctrl-C is left to the server, which
shares the terminal's process group; the launcher waits for it to stop.
"""

from __future__ import annotations

import contextlib
import subprocess
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Literal

from mcsl.core.result import Err, Ok, Result
from mcsl.output.console import Style

if TYPE_CHECKING:
    from mcsl.output.console import ConsoleProtocol

__all__ = [
    "BridgeReport",
    "ProcessSupervisor",
    "RunOutcome",
    "StreamBridge",
    "SupervisorError",
    "server_trailing_args",
    "shell_exit_code",
]

_CHUNK_SIZE = 8192

# An interactive terminal may never reach EOF; don't hold the exit for it.
_STDIN_JOIN_TIMEOUT = 0.5


def server_trailing_args(artifact: Path) -> tuple[str, ...]:
    """Flags appended after user arguments to run the jar headless."""
    return ("-server", "-jar", str(artifact), "nogui")


def shell_exit_code(returncode: int) -> int:
    """Map a Popen returncode to a shell exit status (signal n -> 128 + n)."""
    if returncode < 0:
        return 128 - returncode
    return returncode


@dataclass(frozen=True, slots=True)
class SupervisorError:
    """Error from launching or waiting on the child."""

    kind: Literal["spawn_failed", "wait_failed"]
    message: str
    command: tuple[str, ...] = ()
    hint: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class BridgeReport:
    """What one bridge did before it stopped.

    Attributes:
        name: "stdin" or "stdout"
        bytes_copied: total bytes forwarded
        finished: False if the bridge was still blocked on its source
        error: the failure that ended the copy, if any
    """

    name: str
    bytes_copied: int
    finished: bool
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """Exit status of the child plus the state of both bridges."""

    returncode: int
    stdin: BridgeReport
    stdout: BridgeReport

    @property
    def exit_code(self) -> int:
        return shell_exit_code(self.returncode)


def _read_chunk(source: BinaryIO) -> bytes:
    # read1 returns as soon as some bytes are available (line-typed input).
    read1 = getattr(source, "read1", None)
    if read1 is not None:
        return read1(_CHUNK_SIZE) or b""
    return source.read(_CHUNK_SIZE) or b""


class StreamBridge:
    """Copies one byte stream into another on a background thread.

    The copy ends at end-of-stream or on the first read/write error. With
    ``close_sink`` the sink is closed afterwards, which is how the child
    learns that its stdin reached EOF.
    """

    def __init__(
        self,
        name: str,
        source: BinaryIO,
        sink: BinaryIO,
        console: ConsoleProtocol,
        *,
        close_sink: bool = False,
    ) -> None:
        self._name = name
        self._source = source
        self._sink = sink
        self._console = console
        self._close_sink = close_sink
        self._copied = 0
        self._error: str | None = None
        self._thread = threading.Thread(target=self._run, name=f"mcsl-{name}-bridge", daemon=True)

    @property
    def name(self) -> str:
        return self._name

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the copy to end. Returns True if it has ended."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def report(self) -> BridgeReport:
        return BridgeReport(
            name=self._name,
            bytes_copied=self._copied,
            finished=not self._thread.is_alive(),
            error=self._error,
        )

    def _run(self) -> None:
        try:
            while True:
                chunk = _read_chunk(self._source)
                if not chunk:
                    break
                self._sink.write(chunk)
                self._sink.flush()
                self._copied += len(chunk)
        except (OSError, ValueError) as e:
            self._error = str(e) or type(e).__name__
            self._console.warning(f"{self._name} bridge stopped: {self._error}")
        finally:
            if self._close_sink:
                with contextlib.suppress(OSError):
                    self._sink.close()


class ProcessSupervisor:
    """Runs one child process with the given streams delegated to it.

    Args:
        stdin: stream forwarded to the child's stdin
        stdout: stream receiving the child's stdout
        console: diagnostics sink (never the same stream as ``stdout``)
        trailing_args: fixed arguments appended after the caller's arguments
        cwd: working directory for the child (inherit when None)
    """

    def __init__(
        self,
        *,
        stdin: BinaryIO,
        stdout: BinaryIO,
        console: ConsoleProtocol,
        trailing_args: Sequence[str] = (),
        cwd: Path | None = None,
    ) -> None:
        self._stdin = stdin
        self._stdout = stdout
        self._console = console
        self._trailing_args = tuple(trailing_args)
        self._cwd = cwd

    def command(self, executable: str | Path, args: Sequence[str]) -> list[str]:
        return [str(executable), *args, *self._trailing_args]

    def run(self, executable: str | Path, args: Sequence[str]) -> Result[RunOutcome, SupervisorError]:
        """Start the child, bridge both streams, and block until it exits.

        Returns:
            Ok(RunOutcome) with the child's returncode, or
            Err(SupervisorError) if it could not be started or waited on.
        """
        cmd = self.command(executable, args)
        self._console.print(" ".join(cmd), Style.DIM)

        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                cwd=str(self._cwd) if self._cwd is not None else None,
            )
        except FileNotFoundError as e:
            return Err(
                SupervisorError(
                    kind="spawn_failed",
                    message=f"executable not found: {e.filename or cmd[0]}",
                    command=tuple(cmd),
                    hint="Install a Java runtime, set JAVA_HOME, or pass --java",
                )
            )
        except OSError as e:
            return Err(
                SupervisorError(
                    kind="spawn_failed",
                    message=f"failed to start {cmd[0]}: {e.strerror or e}",
                    command=tuple(cmd),
                )
            )

        assert proc.stdin is not None and proc.stdout is not None
        stdin_bridge = StreamBridge("stdin", self._stdin, proc.stdin, self._console, close_sink=True)
        stdout_bridge = StreamBridge("stdout", proc.stdout, self._stdout, self._console)
        stdin_bridge.start()
        stdout_bridge.start()

        waited = self._wait(proc)
        if isinstance(waited, Err):
            _stop(proc)
            return Err(
                SupervisorError(
                    kind="wait_failed",
                    message=f"failed waiting for {cmd[0]}: {waited.error}",
                    command=tuple(cmd),
                )
            )

        # The child is gone; its stdout reaches EOF once buffered output drains.
        stdout_bridge.join()
        with contextlib.suppress(OSError):
            proc.stdout.close()
        stdin_bridge.join(_STDIN_JOIN_TIMEOUT)

        return Ok(
            RunOutcome(
                returncode=waited.value,
                stdin=stdin_bridge.report(),
                stdout=stdout_bridge.report(),
            )
        )

    def _wait(self, proc: subprocess.Popen[bytes]) -> Result[int, str]:
        """Block until the child exits.

        Ctrl-C reaches the whole foreground process group, so the server
        already got the same SIGINT; keep waiting for it to shut down. A
        second interrupt terminates it.
        """
        interrupted = False
        while True:
            try:
                return Ok(proc.wait())
            except KeyboardInterrupt:
                if interrupted:
                    self._console.warning("interrupted again, terminating server")
                    with contextlib.suppress(OSError):
                        proc.terminate()
                else:
                    self._console.warning("interrupted, waiting for server to stop")
                interrupted = True
            except OSError as e:
                return Err(str(e.strerror or e))


def _stop(proc: subprocess.Popen[bytes]) -> None:
    """Kill the child and close its pipes so it cannot outlive the launcher."""
    if proc.poll() is None:
        with contextlib.suppress(OSError):
            proc.kill()
        with contextlib.suppress(OSError, subprocess.TimeoutExpired):
            proc.wait(timeout=2)
    for stream in (proc.stdin, proc.stdout):
        if stream is not None:
            with contextlib.suppress(OSError):
                stream.close()
