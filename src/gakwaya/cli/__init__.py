"""CLI package for gakwaya.

This package contains the CLI commands and supporting modules:
- this module: root group, authentication commands
- apps: application management and the deploy wizard
- containers: Docker container operations (through the backend)
- utils: console, context object, error handling
"""

from __future__ import annotations

import sys
from dataclasses import replace

# Configure UTF-8 encoding for Windows console output
# Must happen before any output, including Rich Console initialization
if sys.platform == "win32":
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    if hasattr(sys.stderr, "reconfigure"):
        sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import click

from .. import __version__
from ..config import load_config
from ..errors import ApiResponseError
from ..logging import configure_logging
from ..session import TokenStore
from .apps import apps
from .containers import docker
from .utils import CliContext, console, handle_errors, pass_cli

__all__ = ["cli"]


@click.group()
@click.option("--debug", "-d", is_flag=True, help="Verbose logging to stderr")
@click.option("--api-url", help="Backend API base URL (overrides config)")
@click.version_option(version=__version__, prog_name="gakwaya")
@click.pass_context
def cli(ctx: click.Context, debug: bool, api_url: str | None) -> None:
    """gakwaya - manage Gakwaya panel applications and containers."""
    configure_logging(debug)

    config = load_config()
    if api_url:
        config = replace(config, api_url=api_url)
    ctx.obj = CliContext(config=config, store=TokenStore())


@cli.command()
@click.argument("username")
@click.password_option(confirmation_prompt=False)
@pass_cli
def login(obj: CliContext, username: str, password: str) -> None:
    """Log in and store the access token."""
    with handle_errors():
        data = obj.client().login(username, password)
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise ApiResponseError("Login response did not contain a token")
        obj.store.save(token)
    console.print(f"[green]Logged in as {username}[/green]", highlight=False)


@cli.command()
@click.argument("username")
@click.password_option()
@pass_cli
def register(obj: CliContext, username: str, password: str) -> None:
    """Create a new panel user."""
    with handle_errors():
        data = obj.client().register(username, password)
        token = data.get("token") if isinstance(data, dict) else None
        if token:
            obj.store.save(token)
    console.print(f"[green]Registered {username}[/green]", highlight=False)


@cli.command()
@pass_cli
def logout(obj: CliContext) -> None:
    """Forget the stored access token."""
    if obj.store.clear():
        console.print("[green]Logged out[/green]")
    else:
        console.print("[dim]Not logged in[/dim]")


@cli.command()
@pass_cli
def whoami(obj: CliContext) -> None:
    """Show the user the stored token belongs to."""
    with handle_errors():
        data = obj.client().me()
    console.print_json(data=data)


cli.add_command(apps)
cli.add_command(docker)


if __name__ == "__main__":  # pragma: no cover
    cli()
