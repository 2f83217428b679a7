"""
Command-line entry point: ``runtime-manager runtime <command>``.

Argument parsing only; every command delegates to ``RuntimeManager``.
"""
from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import typer

from runtime_manager.core.dependencies import get_manager
from runtime_manager.core.errors import RuntimeManagerError
from runtime_manager.domain.versioning import ReleaseTrain

LOG_LEVEL_ENV_VAR = "RUNTIME_MANAGER_LOG"

app = typer.Typer(help="Install and manage runtime versions.", no_args_is_help=True)
runtime_app = typer.Typer(help="Install and manage runtime versions.", no_args_is_help=True)
app.add_typer(runtime_app, name="runtime")


def configure_logging(verbose: bool) -> None:
    level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO" if verbose else "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _manager():
    try:
        return get_manager()
    except RuntimeManagerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _run(coro):
    try:
        return asyncio.run(coro)
    except RuntimeManagerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log resolution and install steps."),
) -> None:
    configure_logging(verbose)


@runtime_app.command("list")
def list_versions(
    private: bool = typer.Option(True, "--private/--no-private", help="Include internal builds."),
    nightly: bool = typer.Option(True, "--nightly/--no-nightly", help="Include nightly builds."),
) -> None:
    """List versions available for download."""
    versions = _run(_manager().list_versions(include_private=private, include_nightly=nightly))
    for runtime_version in versions:
        typer.echo(str(runtime_version.version))


@runtime_app.command("list-installed")
def list_installed() -> None:
    """List versions installed locally."""
    for installed in _manager().list_installed():
        typer.echo(str(installed.version))


@runtime_app.command("install")
def install(version: str = typer.Argument(..., help="Exact version to install.")) -> None:
    path = _run(_manager().install(version))
    typer.echo(str(path))


@runtime_app.command("set-default")
def set_default(version: str = typer.Argument(..., help="Exact version to install and use by default.")) -> None:
    runtime_version = _run(_manager().set_default(version))
    typer.echo(f"The default runtime version is now {runtime_version.version}")


@runtime_app.command("update-default")
def update_default(
    train: Optional[ReleaseTrain] = typer.Option(
        None, "--train", case_sensitive=False, help="Release train to update within."
    ),
) -> None:
    """Install the latest version of a release train and make it the default."""
    runtime_version = _run(_manager().update_default(train))
    typer.echo(f"The default runtime version is now {runtime_version.version}")


@runtime_app.command("current")
def current() -> None:
    """Show the runtime version that will be used by default in this directory."""
    runtime_version = _run(_manager().current(Path.cwd()))
    typer.echo(str(runtime_version.version))


@runtime_app.command("which")
def which() -> None:
    """Install the runtime for this directory if needed and print its executable."""
    path = _run(_manager().executable_for(Path.cwd()))
    typer.echo(str(path))


@runtime_app.command("show-settings-path")
def show_settings_path() -> None:
    """Show where the settings file is located."""
    typer.echo(str(_manager().settings_path()))


@runtime_app.command("uninstall-all")
def uninstall_all() -> None:
    """Remove all installed runtime versions."""
    _manager().uninstall_all()


def main() -> None:
    try:
        app()
    except RuntimeManagerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
