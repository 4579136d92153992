"""Typed configuration loading and access.

This module provides dataclasses for the optional ``mcsl.toml`` file:

    [catalog]
    manifest_url = "https://launchermeta.mojang.com/mc/game/version_manifest.json"
    timeout = 30.0

    [artifact]
    filename = "server.jar"
    version = "release"

    [server]
    java = "/usr/lib/jvm/java-21/bin/java"
    jvm_args = ["-Xms1G", "-Xmx4G"]

Command-line flags take precedence over every value here.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_float, get_str, get_str_list, get_table

__all__ = [
    "Config",
    "CatalogConfig",
    "ArtifactConfig",
    "ServerConfig",
    "ConfigError",
    "load_config",
    "resolve_config",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_MANIFEST_URL",
    "DEFAULT_FILENAME",
    "DEFAULT_VERSION",
    "DEFAULT_TIMEOUT",
]

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------

DEFAULT_MANIFEST_URL = "https://launchermeta.mojang.com/mc/game/version_manifest.json"
DEFAULT_FILENAME = "server.jar"
DEFAULT_VERSION = "release"
DEFAULT_TIMEOUT = 30.0

CONFIG_ENV_VAR = "MCSL_CONFIG"
DEFAULT_CONFIG_NAME = "mcsl.toml"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    """Where the version manifest lives and how long to wait for it."""

    manifest_url: str = DEFAULT_MANIFEST_URL
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True, slots=True)
class ArtifactConfig:
    """Local server jar path and the version selector it should match."""

    filename: str = DEFAULT_FILENAME
    version: str = DEFAULT_VERSION


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """How the server jar is launched.

    ``java`` is None when the runtime should be discovered (JAVA_HOME, PATH).
    ``jvm_args`` go before the fixed ``-server -jar <file> nogui`` tail.
    """

    java: str | None = None
    jvm_args: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    artifact: ArtifactConfig = field(default_factory=ArtifactConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Missing keys take their defaults. A key that is present with the
        wrong type raises TypeError.
        """
        catalog = _section(data, "catalog")
        artifact = _section(data, "artifact")
        server = _section(data, "server")

        manifest_url = _typed(catalog, "catalog", "manifest_url", get_str, "a non-empty string")
        timeout = _typed(catalog, "catalog", "timeout", get_float, "a positive number")
        filename = _typed(artifact, "artifact", "filename", get_str, "a non-empty string")
        version = _typed(artifact, "artifact", "version", get_str, "a non-empty string")
        java = _typed(server, "server", "java", get_str, "a non-empty string")
        jvm_args = _typed(server, "server", "jvm_args", get_str_list, "a list of strings")

        return cls(
            catalog=CatalogConfig(
                manifest_url=manifest_url or DEFAULT_MANIFEST_URL,
                timeout=timeout or DEFAULT_TIMEOUT,
            ),
            artifact=ArtifactConfig(
                filename=filename or DEFAULT_FILENAME,
                version=version or DEFAULT_VERSION,
            ),
            server=ServerConfig(java=java, jvm_args=tuple(jvm_args or ())),
        )


def _section(data: Mapping[str, object], name: str) -> StrDict:
    if name not in data:
        return {}
    table = get_table(data, name)
    if table is None:
        raise TypeError(f"[{name}] must be a table")
    return table


def _typed[T](
    table: StrDict,
    section: str,
    key: str,
    getter: Callable[[Mapping[str, object], str], T | None],
    expected: str,
) -> T | None:
    if key not in table:
        return None
    value = getter(table, key)
    if value is None:
        raise TypeError(f"{section}.{key} must be {expected}")
    return value


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except IsADirectoryError:
        return Err(ConfigError(f"Config path is a directory: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the TOML file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def resolve_config(
    explicit: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> Result[Config, ConfigError]:
    """Locate and load the config file.

    Lookup order: ``explicit`` path, then ``$MCSL_CONFIG``, then
    ``mcsl.toml`` in ``cwd``. A path named by the caller or the environment
    must exist; the default file is optional and falls back to defaults.
    """
    env = os.environ if environ is None else environ

    if explicit is not None:
        return load_config(explicit.expanduser())

    from_env = env.get(CONFIG_ENV_VAR, "").strip()
    if from_env:
        return load_config(Path(from_env).expanduser())

    default_path = (cwd or Path.cwd()) / DEFAULT_CONFIG_NAME
    if not default_path.is_file():
        return Ok(Config())
    return load_config(default_path)
