"""CLI utilities for gakwaya.

Console setup, the per-invocation context object and error reporting.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import click
from rich.console import Console

from ..api import ApiClient
from ..config import Config
from ..errors import GakwayaError
from ..session import TokenStore, load_session

console = Console(legacy_windows=False)


@dataclass
class CliContext:
    """State shared by all commands of one invocation (click ctx.obj)."""

    config: Config
    store: TokenStore = field(default_factory=TokenStore)

    def client(self) -> ApiClient:
        """Build an API client for the configured backend and stored token."""
        session = load_session(self.config, self.store)
        return ApiClient(session, timeout=self.config.timeout)


pass_cli = click.make_pass_decorator(CliContext)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print gakwaya errors in red and exit 1."""
    try:
        yield
    except GakwayaError as e:
        console.print(f"[red]Error: {e}[/red]", highlight=False)
        sys.exit(1)


def show_message(data: Any, default: str) -> None:
    """Print the backend's message field, or a default confirmation."""
    message = data.get("message") if isinstance(data, dict) else None
    console.print(f"[green]{message or default}[/green]", highlight=False)
