"""Java runtime discovery.

Lookup order:
1. An explicit path or command name (``--java`` / ``server.java``)
2. ``$JAVA_HOME/bin/java`` when that file exists
3. ``java`` on the system PATH

A runtime that turns out to be missing is reported when the server is
spawned, not here.
"""

from __future__ import annotations

import os
import shutil
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

__all__ = ["JavaRuntime", "find_java", "java_executable_name"]


@dataclass(frozen=True, slots=True)
class JavaRuntime:
    """Resolved java command.

    Attributes:
        command: path or bare command name to execute
        source: "explicit", "java_home", "path" or "fallback"
    """

    command: str
    source: str


def java_executable_name() -> str:
    return "java.exe" if sys.platform == "win32" else "java"


def find_java(
    explicit: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> JavaRuntime:
    env = os.environ if environ is None else environ

    if explicit:
        return JavaRuntime(command=os.path.expanduser(explicit), source="explicit")

    java_home = env.get("JAVA_HOME", "").strip()
    if java_home:
        candidate = Path(java_home).expanduser() / "bin" / java_executable_name()
        if candidate.is_file():
            return JavaRuntime(command=str(candidate), source="java_home")

    on_path = shutil.which("java")
    if on_path:
        return JavaRuntime(command=on_path, source="path")

    # Let the spawn report the missing runtime.
    return JavaRuntime(command="java", source="fallback")
