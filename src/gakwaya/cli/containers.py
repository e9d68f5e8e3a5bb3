"""Docker commands, executed by the backend on the panel host.

Handles container listing, lifecycle actions, logs and pruning.
"""

from __future__ import annotations

import click
from rich.table import Table

from ..containers import parse_containers
from ..errors import ValidationError
from .utils import CliContext, console, handle_errors, pass_cli, show_message

_STATE_STYLES = {
    "running": "green",
    "exited": "red",
    "restarting": "yellow",
}


@click.group()
def docker() -> None:
    """Manage Docker containers on the panel host."""


@docker.command()
@pass_cli
def containers(obj: CliContext) -> None:
    """List all containers (running and stopped)."""
    with handle_errors():
        rows = parse_containers(obj.client().list_containers())

    if not rows:
        console.print("[dim]No Docker containers found.[/dim]")
        return

    table = Table(title="Docker Containers")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Image")
    table.add_column("State")
    table.add_column("Status", style="dim")

    for row in rows:
        style = _STATE_STYLES.get(row.state, "dim")
        table.add_row(
            row.short_id,
            row.display_name,
            row.image,
            f"[{style}]{row.state}[/{style}]",
            row.status,
        )
    console.print(table)


@docker.command()
@click.argument("container_id")
@pass_cli
def stop(obj: CliContext, container_id: str) -> None:
    """Stop a container."""
    with handle_errors():
        data = obj.client().stop_container(container_id)
    show_message(data, f"Stopped {container_id}")


@docker.command()
@click.argument("container_id")
@pass_cli
def restart(obj: CliContext, container_id: str) -> None:
    """Restart a container."""
    with handle_errors():
        data = obj.client().restart_container(container_id)
    show_message(data, f"Restarted {container_id}")


@docker.command("rm")
@click.argument("container_id")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@pass_cli
def remove(obj: CliContext, container_id: str, force: bool) -> None:
    """Remove a container."""
    if not force and not click.confirm(f"Remove container {container_id}?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return
    with handle_errors():
        data = obj.client().remove_container(container_id)
    show_message(data, f"Removed {container_id}")


@docker.command()
@click.argument("container_id")
@pass_cli
def logs(obj: CliContext, container_id: str) -> None:
    """Print a container's logs."""
    with handle_errors():
        text = obj.client().container_logs(container_id)
    click.echo(text, nl=not text.endswith("\n"))


@docker.command()
@click.argument("container_id")
@pass_cli
def inspect(obj: CliContext, container_id: str) -> None:
    """Show low-level container information as JSON."""
    with handle_errors():
        data = obj.client().inspect_container(container_id)
    console.print_json(data=data)


@docker.command()
@click.argument("container_id")
@pass_cli
def stats(obj: CliContext, container_id: str) -> None:
    """Show a one-shot resource usage snapshot."""
    with handle_errors():
        data = obj.client().container_stats(container_id)
    console.print_json(data=data)


@docker.command()
@click.option("--container", "container_id", help="Container ID")
@click.option("--image", help="Image reference (e.g. nginx:latest)")
@pass_cli
def ports(obj: CliContext, container_id: str | None, image: str | None) -> None:
    """List ports exposed by a container or an image."""
    with handle_errors():
        if bool(container_id) == bool(image):
            raise ValidationError("Use exactly one of --container or --image")
        exposed = obj.client().exposed_ports(container_id=container_id, image=image)
    if not exposed:
        console.print("[dim]No exposed ports[/dim]")
        return
    for port in exposed:
        click.echo(port)


@docker.command()
@click.option("--all", "-a", "prune_all", is_flag=True, help="Remove all unused images instead")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@pass_cli
def prune(obj: CliContext, prune_all: bool, force: bool) -> None:
    """Remove unused Docker data.

    By default removes stopped containers, unused volumes and networks,
    and dangling images. With --all, removes every image no container uses.
    """
    if prune_all:
        console.print("[yellow]This removes ALL images not used by a container.[/yellow]")
    if not force and not click.confirm("Continue with prune?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return

    with handle_errors():
        client = obj.client()
        data = client.prune_all() if prune_all else client.prune()
    details = data.get("details") if isinstance(data, dict) else None
    console.print(f"[green]✓ {details or 'Prune complete'}[/green]", highlight=False)
    if data and not details:
        console.print_json(data=data)


@docker.command()
@pass_cli
def info(obj: CliContext) -> None:
    """Show Docker daemon information."""
    with handle_errors():
        data = obj.client().docker_info()
    console.print_json(data=data)
