"""Tests for mcsl.services.supervisor.

The child is the running Python interpreter, so these tests need no Java.
"""

from __future__ import annotations

import io
import signal
import subprocess
import sys
from pathlib import Path

import pytest

from mcsl.core.result import Err, Ok
from mcsl.output.console import MockConsole
from mcsl.services.supervisor import (
    BridgeReport,
    ProcessSupervisor,
    StreamBridge,
    server_trailing_args,
    shell_exit_code,
)


class _BrokenSink(io.BytesIO):
    def write(self, data: object) -> int:
        raise BrokenPipeError(32, "Broken pipe")


class _FailingSource(io.BytesIO):
    def read1(self, size: int = -1) -> bytes:
        raise OSError(5, "Input/output error")


_RealPopen = subprocess.Popen


class _FlakyWaitPopen(_RealPopen):
    """Popen whose blocking wait() raises the queued exceptions first."""

    failures: list[BaseException] = []
    started: list[_FlakyWaitPopen] = []

    def __init__(self, *args: object, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)  # type: ignore[arg-type]
        self._pending = list(type(self).failures)
        type(self).started.append(self)

    def wait(self, timeout: float | None = None) -> int:
        if timeout is None and self._pending:
            raise self._pending.pop(0)
        return super().wait(timeout)


@pytest.fixture
def flaky_wait(monkeypatch: pytest.MonkeyPatch) -> type[_FlakyWaitPopen]:
    monkeypatch.setattr(_FlakyWaitPopen, "failures", [])
    monkeypatch.setattr(_FlakyWaitPopen, "started", [])
    monkeypatch.setattr(subprocess, "Popen", _FlakyWaitPopen)
    return _FlakyWaitPopen


def _supervisor(
    stdin: bytes = b"",
    *,
    trailing: tuple[str, ...] = (),
    cwd: Path | None = None,
) -> tuple[ProcessSupervisor, io.BytesIO, MockConsole]:
    out = io.BytesIO()
    console = MockConsole()
    supervisor = ProcessSupervisor(
        stdin=io.BytesIO(stdin),
        stdout=out,
        console=console,
        trailing_args=trailing,
        cwd=cwd,
    )
    return supervisor, out, console


class TestHelpers:
    def test_server_trailing_args(self) -> None:
        assert server_trailing_args(Path("server.jar")) == ("-server", "-jar", "server.jar", "nogui")

    @pytest.mark.parametrize(("returncode", "expected"), [(0, 0), (1, 1), (-9, 137), (-15, 143)])
    def test_shell_exit_code(self, returncode: int, expected: int) -> None:
        assert shell_exit_code(returncode) == expected


class TestStreamBridge:
    def test_copies_until_eof_and_closes_sink(self) -> None:
        sink = io.BytesIO()
        bridge = StreamBridge("stdin", io.BytesIO(b"x" * 20_000), sink, MockConsole(), close_sink=True)

        bridge.start()

        assert bridge.join(timeout=5)
        assert bridge.report() == BridgeReport(name="stdin", bytes_copied=20_000, finished=True)
        assert sink.closed

    def test_read_error_is_reported_not_raised(self) -> None:
        console = MockConsole()
        bridge = StreamBridge("stdin", _FailingSource(), io.BytesIO(), console)

        bridge.start()
        bridge.join(timeout=5)

        report = bridge.report()
        assert not report.ok
        assert "Input/output error" in (report.error or "")
        assert console.find("stdin bridge stopped")

    def test_write_error_is_reported_not_raised(self) -> None:
        console = MockConsole()
        bridge = StreamBridge("stdout", io.BytesIO(b"data"), _BrokenSink(), console)

        bridge.start()
        bridge.join(timeout=5)

        assert bridge.report().error is not None
        assert console.has_warning()


class TestProcessSupervisor:
    def test_bridges_stdin_and_stdout(self) -> None:
        script = (
            "import sys\n"
            "for line in sys.stdin:\n"
            "    print('> ' + line.strip(), flush=True)\n"
        )
        supervisor, out, console = _supervisor(b"list\nstop\n")

        result = supervisor.run(sys.executable, ["-c", script])

        assert isinstance(result, Ok)
        assert result.value.returncode == 0
        assert out.getvalue().splitlines() == [b"> list", b"> stop"]
        assert result.value.stdin.bytes_copied == len(b"list\nstop\n")
        assert not console.has_warning()

    def test_child_sees_eof_when_source_ends(self) -> None:
        script = "import sys; data = sys.stdin.buffer.read(); sys.stdout.write(str(len(data)))"
        supervisor, out, _ = _supervisor(b"y" * 100_000)

        result = supervisor.run(sys.executable, ["-c", script])

        assert isinstance(result, Ok)
        assert out.getvalue() == b"100000"

    def test_exit_status_is_returned_with_clean_bridges(self) -> None:
        supervisor, _, console = _supervisor()

        result = supervisor.run(sys.executable, ["-c", "import sys; sys.exit(1)"])

        assert isinstance(result, Ok)
        outcome = result.value
        assert outcome.returncode == 1
        assert outcome.exit_code == 1
        assert outcome.stdin.finished and outcome.stdin.ok
        assert outcome.stdout.finished and outcome.stdout.ok
        assert not console.has_warning()

    def test_trailing_args_follow_caller_args(self) -> None:
        supervisor, out, _ = _supervisor(trailing=server_trailing_args(Path("server.jar")))

        result = supervisor.run(sys.executable, ["-c", "import sys; print(sys.argv[1:])"])

        assert isinstance(result, Ok)
        assert out.getvalue().strip() == b"['-server', '-jar', 'server.jar', 'nogui']"

    def test_command_is_logged(self) -> None:
        supervisor, _, console = _supervisor(trailing=("nogui",))

        supervisor.run(sys.executable, ["-c", "pass"])

        assert console.find(f"{sys.executable} -c pass nogui")

    def test_runs_in_cwd(self, tmp_path: Path) -> None:
        supervisor, out, _ = _supervisor(cwd=tmp_path)

        supervisor.run(sys.executable, ["-c", "import os; print(os.getcwd())"])

        assert Path(out.getvalue().decode().strip()).resolve() == tmp_path.resolve()

    def test_missing_executable_is_a_spawn_failure(self, tmp_path: Path) -> None:
        stdin = io.BytesIO(b"never read")
        console = MockConsole()
        supervisor = ProcessSupervisor(stdin=stdin, stdout=io.BytesIO(), console=console)

        result = supervisor.run(tmp_path / "no-java-here", ["-version"])

        assert isinstance(result, Err)
        assert result.error.kind == "spawn_failed"
        assert result.error.hint is not None
        assert stdin.tell() == 0

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
    def test_non_executable_file_is_a_spawn_failure(self, tmp_path: Path) -> None:
        fake = tmp_path / "java"
        fake.write_text("#!/bin/sh\n")
        fake.chmod(0o644)
        supervisor, _, _ = _supervisor()

        result = supervisor.run(fake, [])

        assert isinstance(result, Err)
        assert result.error.kind == "spawn_failed"

    def test_stdout_sink_failure_does_not_stop_child(self) -> None:
        console = MockConsole()
        supervisor = ProcessSupervisor(
            stdin=io.BytesIO(), stdout=_BrokenSink(), console=console
        )

        result = supervisor.run(sys.executable, ["-c", "print('hello'); raise SystemExit(3)"])

        assert isinstance(result, Ok)
        assert result.value.returncode == 3
        assert result.value.stdout.error is not None
        assert console.has_warning()


class TestWaitInterruptions:
    def test_ctrl_c_waits_for_server_and_keeps_its_status(
        self, flaky_wait: type[_FlakyWaitPopen]
    ) -> None:
        """The server got the same SIGINT; its own exit status is reported."""
        flaky_wait.failures = [KeyboardInterrupt()]
        supervisor, out, console = _supervisor()

        result = supervisor.run(
            sys.executable, ["-c", "import time; time.sleep(0.2); print('saved'); raise SystemExit(7)"]
        )

        assert isinstance(result, Ok)
        assert result.value.returncode == 7
        assert out.getvalue().decode().strip() == "saved"
        assert console.find("interrupted, waiting for server to stop")

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal exit status")
    def test_second_ctrl_c_terminates_server(self, flaky_wait: type[_FlakyWaitPopen]) -> None:
        flaky_wait.failures = [KeyboardInterrupt(), KeyboardInterrupt()]
        supervisor, _, console = _supervisor()

        result = supervisor.run(sys.executable, ["-c", "import time; time.sleep(30)"])

        assert isinstance(result, Ok)
        assert result.value.returncode == -signal.SIGTERM
        assert result.value.exit_code == 128 + signal.SIGTERM
        assert console.find("terminating server")

    def test_wait_failure_kills_child_and_closes_pipes(
        self, flaky_wait: type[_FlakyWaitPopen]
    ) -> None:
        flaky_wait.failures = [ChildProcessError(10, "No child processes")]
        supervisor, _, _ = _supervisor()

        result = supervisor.run(sys.executable, ["-c", "import time; time.sleep(30)"])

        assert isinstance(result, Err)
        assert result.error.kind == "wait_failed"
        assert "No child processes" in result.error.message
        (proc,) = flaky_wait.started
        assert proc.poll() is not None
        assert proc.stdin is not None and proc.stdin.closed
        assert proc.stdout is not None and proc.stdout.closed
