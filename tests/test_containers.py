"""Tests for containers module."""

from __future__ import annotations

import pytest

from gakwaya.containers import ContainerSummary, container_state, parse_containers


class TestContainerState:
    """Tests for container_state function."""

    @pytest.mark.parametrize(
        ("status", "state"),
        [
            ("Up 3 hours", "running"),
            ("Exited (0) 2 minutes ago", "exited"),
            ("Restarting (1) 5 seconds ago", "restarting"),
            ("Created", "unknown"),
            ("", "unknown"),
            (None, "unknown"),
        ],
    )
    def test_mapping(self, status: object, state: str) -> None:
        assert container_state(status) == state


class TestParseContainers:
    """Tests for parse_containers function."""

    RAW = {
        "id": "0123456789abcdef0123",
        "image": "nginx:latest",
        "names": ["/web"],
        "status": "Up 1 minute",
    }

    def test_bare_list(self) -> None:
        """A plain list of containers is accepted."""
        rows = parse_containers([self.RAW])
        assert rows == [
            ContainerSummary(
                id="0123456789abcdef0123",
                image="nginx:latest",
                names=("/web",),
                status="Up 1 minute",
                state="running",
            )
        ]

    def test_wrapped_list(self) -> None:
        """A {"containers": [...]} envelope is accepted."""
        assert len(parse_containers({"containers": [self.RAW]})) == 1

    @pytest.mark.parametrize("data", [None, {}, {"containers": "x"}, "text", [1, "a"]])
    def test_unknown_shapes(self, data: object) -> None:
        assert parse_containers(data) == []

    def test_display_name(self) -> None:
        """Display name drops the leading slash, or falls back to short id."""
        row = parse_containers([self.RAW])[0]
        assert row.display_name == "web"
        assert row.short_id == "0123456789ab"
        assert ContainerSummary(id="0123456789abcdef").display_name == "0123456789ab"
