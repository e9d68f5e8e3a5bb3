"""Container list normalisation.

The backend lists containers as ``{"id", "image", "names", "status"}``
objects, either as a bare list or wrapped in ``{"containers": [...]}``.
This module turns them into ContainerSummary rows for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SHORT_ID_LENGTH = 12


@dataclass(frozen=True)
class ContainerSummary:
    """One row of the container list."""

    id: str
    image: str = ""
    names: tuple[str, ...] = field(default_factory=tuple)
    status: str = ""
    state: str = "unknown"
    command: str = ""
    created: int = 0

    @property
    def short_id(self) -> str:
        return self.id[:SHORT_ID_LENGTH]

    @property
    def display_name(self) -> str:
        """First container name without Docker's leading slash."""
        for name in self.names:
            if name:
                return name.lstrip("/")
        return self.short_id


def container_state(status: Any) -> str:
    """Map Docker's human status ("Up 3 hours", "Exited (0) ...") to a state."""
    if not isinstance(status, str):
        return "unknown"
    lowered = status.lower()
    if "up" in lowered:
        return "running"
    if "exited" in lowered:
        return "exited"
    if "restarting" in lowered:
        return "restarting"
    return "unknown"


def _summary(raw: dict[str, Any]) -> ContainerSummary:
    status = raw.get("status") or ""
    names = raw.get("names") or ()
    return ContainerSummary(
        id=str(raw.get("id") or ""),
        image=str(raw.get("image") or ""),
        names=tuple(str(n) for n in names),
        status=str(status),
        state=container_state(status),
        command=str(raw.get("command") or ""),
        created=int(raw.get("created") or 0),
    )


def parse_containers(data: Any) -> list[ContainerSummary]:
    """Normalise a container list response; unknown shapes give []."""
    if isinstance(data, dict):
        data = data.get("containers")
    if not isinstance(data, list):
        return []
    return [_summary(item) for item in data if isinstance(item, dict)]
