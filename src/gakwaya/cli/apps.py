"""Application commands: listing, editing, env and the deploy wizard."""

from __future__ import annotations

import sys
from typing import Any

import click
from rich.table import Table

from .. import envtext
from ..api import application_env
from ..deploy import (
    Created,
    DeployedFromGit,
    DeployMethod,
    DeployRequest,
    PartialFailure,
    build_git_deploy_payload,
    coerce_port,
    deploy,
    validate,
)
from ..errors import ValidationError
from .utils import CliContext, console, handle_errors, pass_cli, show_message

# Record fields `apps update` sends back, in the backend's shape
_RECORD_FIELDS = (
    "name",
    "image",
    "git_url",
    "branch",
    "dockerfile_path",
    "volumes",
    "build_args",
    "domain",
    "port",
    "env",
)


@click.group()
def apps() -> None:
    """Manage applications."""


@apps.command("list")
@pass_cli
def list_apps(obj: CliContext) -> None:
    """List all applications."""
    with handle_errors():
        records = obj.client().list_applications()

    if not records:
        console.print("[dim]No applications yet - create one with 'gakwaya apps create'[/dim]")
        return

    table = Table(title="Applications")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Image")
    table.add_column("Status")
    table.add_column("Domain", style="dim")
    table.add_column("Port", justify="right")

    for record in records:
        table.add_row(
            str(record.get("id", "")),
            record.get("name") or "",
            record.get("image") or "",
            record.get("status") or "",
            record.get("domain") or "",
            str(record.get("port") or ""),
        )
    console.print(table)


@apps.command()
@click.argument("app_id")
@pass_cli
def show(obj: CliContext, app_id: str) -> None:
    """Show one application with its environment."""
    with handle_errors():
        record = obj.client().get_application(app_id)

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key in ("id", "name", "image", "status", "container_id", "domain", "port",
                "git_url", "branch", "dockerfile_path", "created_at"):
        value = record.get(key)
        if value not in (None, ""):
            table.add_row(key, str(value))
    volumes = record.get("volumes") or []
    if volumes:
        table.add_row("volumes", ", ".join(volumes))
    build_args = record.get("build_args") or {}
    if build_args:
        table.add_row("build_args", envtext.serialize(build_args))
    console.print(table)

    env_text = envtext.serialize(application_env(record))
    console.print("\n[bold]Environment:[/bold]")
    console.print(env_text or "[dim](empty)[/dim]", highlight=False, markup=not env_text)


def _print_result(result: Created | DeployedFromGit | PartialFailure) -> None:
    if isinstance(result, Created):
        console.print(
            f"[green]Application created (id {result.application_id})[/green]", highlight=False
        )
    elif isinstance(result, DeployedFromGit):
        console.print(
            f"[green]Application {result.application_id} created, "
            f"building from Git as {result.image}[/green]",
            highlight=False,
        )
    else:
        console.print(
            f"[red]Application {result.application_id} was created but the Git deploy "
            f"failed: {result.error}[/red]",
            highlight=False,
        )
        console.print(
            f"[dim]Retry with 'gakwaya apps deploy-git {result.application_id}' "
            f"or remove it with 'gakwaya apps delete {result.application_id}'[/dim]",
            highlight=False,
        )
        sys.exit(1)


@apps.command()
@click.argument("name")
@click.option("--image", "-i", help="Docker image (e.g. nginx:latest)")
@click.option("--git-url", "-g", help="Git repository to build from")
@click.option("--branch", "-b", help="Git branch")
@click.option("--dockerfile", help="Path to the Dockerfile inside the repository")
@click.option("--build-arg", multiple=True, metavar="KEY=VALUE", help="Build argument")
@click.option("--volume", "-v", multiple=True, metavar="HOST:CONTAINER", help="Volume mount")
@click.option("--domain", help="Domain routed to the application")
@click.option("--host-port", help="Host port (empty: backend decides)")
@click.option("--container-port", help="Container port (empty: backend decides)")
@click.option("--env", "-e", multiple=True, metavar="KEY=VALUE", help="Environment variable")
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Read environment variables from a .env file",
)
@pass_cli
def create(
    obj: CliContext,
    name: str,
    image: str | None,
    git_url: str | None,
    branch: str | None,
    dockerfile: str | None,
    build_arg: tuple[str, ...],
    volume: tuple[str, ...],
    domain: str | None,
    host_port: str | None,
    container_port: str | None,
    env: tuple[str, ...],
    env_file: str | None,
) -> None:
    """Create an application from a Docker image or a Git repository.

    With --image the application is created from that image. With --git-url
    it is created and then built from the repository; an image tag is
    generated from NAME unless --image is also given.
    """
    with handle_errors():
        request = DeployRequest.from_cli(
            name=name,
            image=image,
            git_url=git_url,
            branch=branch,
            dockerfile=dockerfile,
            build_arg=build_arg,
            volume=volume,
            domain=domain,
            host_port=host_port,
            container_port=container_port,
            env=env,
            env_file=env_file,
        )
        # Validate before building a client so bad input never needs a login
        validate(request)
        result = deploy(obj.client(), request)
    _print_result(result)


@apps.command()
@click.argument("app_id")
@click.option("--name", help="New name")
@click.option("--image", help="New Docker image")
@click.option("--git-url", help="New Git repository")
@click.option("--branch", help="New Git branch")
@click.option("--dockerfile", help="New Dockerfile path")
@click.option("--domain", help="New domain")
@click.option("--port", help="New port (empty string clears it)")
@pass_cli
def update(
    obj: CliContext,
    app_id: str,
    name: str | None,
    image: str | None,
    git_url: str | None,
    branch: str | None,
    dockerfile: str | None,
    domain: str | None,
    port: str | None,
) -> None:
    """Change fields of an application; unspecified fields are kept."""
    changes: dict[str, Any] = {
        "name": name,
        "image": image,
        "git_url": git_url,
        "branch": branch,
        "dockerfile_path": dockerfile,
        "domain": domain,
    }
    with handle_errors():
        client = obj.client()
        record = client.get_application(app_id)
        payload = {key: record.get(key) for key in _RECORD_FIELDS if key in record}
        if "env" in payload:
            payload["env"] = application_env(record)
        payload.update({key: value for key, value in changes.items() if value is not None})
        if port is not None:
            coerced = coerce_port(port)
            if coerced is None:
                payload.pop("port", None)
            else:
                payload["port"] = coerced
        data = client.update_application(app_id, payload)
    show_message(data, f"Application {app_id} updated")


@apps.command()
@click.argument("app_id")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@pass_cli
def delete(obj: CliContext, app_id: str, force: bool) -> None:
    """Delete an application record."""
    if not force and not click.confirm(f"Delete application {app_id}?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return
    with handle_errors():
        data = obj.client().delete_application(app_id)
    show_message(data, f"Application {app_id} deleted")


@apps.command("deploy")
@click.argument("app_id")
@pass_cli
def deploy_app(obj: CliContext, app_id: str) -> None:
    """Start a container from the application's image."""
    with handle_errors():
        data = obj.client().deploy_application(app_id)
    container_id = data.get("container_id") if isinstance(data, dict) else None
    if container_id:
        show_message(data, f"Deployment started (container {container_id[:12]})")
    else:
        show_message(data, "Deployment started.")


@apps.command("deploy-git")
@click.argument("app_id")
@pass_cli
def deploy_git(obj: CliContext, app_id: str) -> None:
    """Build and run an existing application from its Git source."""
    with handle_errors():
        client = obj.client()
        record = client.get_application(app_id)
        request = DeployRequest(
            method=DeployMethod.GIT,
            name=record.get("name") or "",
            git_url=record.get("git_url") or "",
            branch=record.get("branch") or "",
            dockerfile_path=record.get("dockerfile_path") or "",
            volumes=tuple(record.get("volumes") or ()),
            build_args=dict(record.get("build_args") or {}),
        )
        validate(request)
        data = client.deploy_from_git(app_id, build_git_deploy_payload(request))
    image_tag = data.get("image_tag") if isinstance(data, dict) else None
    if image_tag:
        show_message(data, f"Deployment from Git started ({image_tag})")
    else:
        show_message(data, "Deployment from Git started.")


@apps.command("logs")
@click.argument("app_id")
@pass_cli
def app_logs(obj: CliContext, app_id: str) -> None:
    """Print the logs of an application's container."""
    with handle_errors():
        client = obj.client()
        container_id = client.get_application(app_id).get("container_id")
        if not container_id:
            raise ValidationError(
                f"Application {app_id} has no container yet; deploy it with "
                f"'gakwaya apps deploy {app_id}'"
            )
        text = client.container_logs(container_id)
    click.echo(text, nl=not text.endswith("\n"))


@apps.command("env")
@click.argument("app_id")
@pass_cli
def show_env(obj: CliContext, app_id: str) -> None:
    """Print an application's environment in .env format."""
    with handle_errors():
        record = obj.client().get_application(app_id)
    text = envtext.serialize(application_env(record))
    if text:
        click.echo(text)


@apps.command("set-env")
@click.argument("app_id")
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Replace the environment with the contents of a .env file",
)
@click.option("--env", "-e", multiple=True, metavar="KEY=VALUE", help="Set a variable")
@click.option("--unset", "-u", multiple=True, metavar="KEY", help="Remove a variable")
@pass_cli
def set_env(
    obj: CliContext,
    app_id: str,
    env_file: str | None,
    env: tuple[str, ...],
    unset: tuple[str, ...],
) -> None:
    """Edit an application's environment variables.

    Without --env-file the current variables are kept and --env/--unset
    are applied on top.
    """
    with handle_errors():
        client = obj.client()
        if env_file:
            new_env = envtext.read_file(env_file)
        else:
            new_env = application_env(client.get_application(app_id))
        new_env.update(envtext.parse_pairs(env))
        for key in unset:
            new_env.pop(key, None)
        data = client.update_application_env(app_id, new_env)
    show_message(data, f"Environment of application {app_id} updated ({len(new_env)} variables)")
