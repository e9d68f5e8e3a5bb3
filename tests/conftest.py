"""Pytest configuration and fixtures for gakwaya tests.

Ensures the gakwaya package is importable during tests without requiring
installation, and keeps every test away from the real home directory.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add src directory to path for development testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temp dir so config and token files stay local."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("GAKWAYA_API_URL", raising=False)
    monkeypatch.delenv("GAKWAYA_DEBUG", raising=False)
    return home
