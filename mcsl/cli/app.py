from __future__ import annotations

from pathlib import Path

import typer

from mcsl import __version__
from mcsl.cli.context import build_context
from mcsl.core.result import Err, Ok
from mcsl.output.errors import launch_error_exit_code, print_launch_error
from mcsl.platform.java import find_java
from mcsl.services.launcher import Launcher, LaunchRequest


app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)


def _about(value: bool) -> None:
    if value:
        typer.echo(f"mcsl {__version__}")
        raise typer.Exit(code=0)


@app.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
def launch(
    args: list[str] | None = typer.Argument(
        None,
        help="Arguments passed to java ahead of '-server -jar <file> nogui'",
    ),
    filename: str | None = typer.Option(
        None,
        "--filename",
        help="Filename to use for the server. [default: server.jar]",
    ),
    version: str | None = typer.Option(
        None,
        "--version",
        help="Minecraft version: 'release', 'snapshot' or a version id. [default: release]",
    ),
    do_version_check: bool = typer.Option(
        True,
        "--do-version-check/--no-do-version-check",
        help="Resolve the version and verify the jar before launching.",
    ),
    java: str | None = typer.Option(None, "--java", help="Java executable to run the server"),
    manifest_url: str | None = typer.Option(
        None,
        "--manifest-url",
        help="Version manifest URL",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: $MCSL_CONFIG or ./mcsl.toml)",
    ),
    about: bool = typer.Option(
        False,
        "--about",
        callback=_about,
        is_eager=True,
        help="Show the launcher version and exit.",
    ),
) -> None:
    """Download, verify and run a Minecraft server with this terminal attached."""
    c = build_context(config)
    cfg = c.config

    request = LaunchRequest(
        filename=Path(filename or cfg.artifact.filename),
        selector=version or cfg.artifact.version,
        manifest_url=manifest_url or cfg.catalog.manifest_url,
        java=find_java(java or cfg.server.java).command,
        jvm_args=cfg.server.jvm_args,
        args=tuple(args or ()),
        do_version_check=do_version_check,
    )

    launcher = Launcher(http=c.http, console=c.console, stdin=c.stdin, stdout=c.stdout)
    match launcher.run(request):
        case Err(e):
            print_launch_error(e, c.console)
            raise typer.Exit(code=launch_error_exit_code(e))
        case Ok(outcome):
            raise typer.Exit(code=outcome.exit_code)


def main() -> None:
    app()
