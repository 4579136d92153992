from __future__ import annotations

import io
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, cast

import typer

from mcsl.core.config import Config, resolve_config
from mcsl.core.result import Err
from mcsl.output.console import ConsoleProtocol, RichConsole
from mcsl.output.errors import launch_error_exit_code, print_launch_error
from mcsl.tools.http import HttpClient, RealHttpClient


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol
    http: HttpClient
    stdin: BinaryIO
    stdout: BinaryIO


def build_context(config_path: Path | None = None) -> CLIContext:
    console = RichConsole()

    config_result = resolve_config(config_path)
    if isinstance(config_result, Err):
        print_launch_error(config_result.error, console)
        raise typer.Exit(code=launch_error_exit_code(config_result.error))

    config = config_result.value
    return CLIContext(
        config=config,
        console=console,
        http=RealHttpClient(timeout=config.catalog.timeout),
        stdin=_raw_stdin(),
        stdout=sys.stdout.buffer,
    )


def _raw_stdin() -> BinaryIO:
    """Unbuffered view of fd 0.

    The stdin bridge may still be blocked in a read when the interpreter
    exits. A raw read holds no buffer lock, so shutdown cannot deadlock on
    ``sys.stdin.buffer``.
    """
    try:
        return cast(BinaryIO, open(sys.stdin.fileno(), "rb", buffering=0, closefd=False))
    except (AttributeError, OSError, ValueError):
        return sys.stdin.buffer if sys.stdin is not None else io.BytesIO()
