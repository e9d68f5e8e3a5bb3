"""Conversion between environment mappings and editable .env-style text.

Parsing tries an ordered list of strategies. Each strategy is total: it
returns a mapping when it applies and None when it does not, and never
raises. The first strategy that returns a mapping wins.

Order policy: structured (JSON object) decoding runs before line parsing so
that a backend storing env as a JSON string inside a text field is accepted
as-is. A consequence is that text which happens to be a JSON object (for
example a lone ``{}``) is read as that object rather than as .env lines.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from .errors import ValidationError
from .logging import get_logger

logger = get_logger(__name__)

EnvironmentMap = dict[str, str]
ParseStrategy = Callable[[str], "dict[str, Any] | None"]

_LINE_SPLIT = re.compile(r"\r?\n")


def serialize(env: Mapping[str, Any] | None) -> str:
    """Render a mapping as KEY=VALUE lines in iteration order."""
    if not env:
        return ""
    return "\n".join(f"{key}={value}" for key, value in env.items())


def decode_structured(text: str) -> dict[str, Any] | None:
    """Decode text holding a JSON object; None for anything else."""
    try:
        decoded = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if isinstance(decoded, dict):
        return decoded
    return None


def parse_lines(text: str) -> EnvironmentMap:
    """Parse .env-style lines.

    Blank lines and lines starting with ``#`` are skipped. Each remaining
    line is split on its first ``=``; lines without one, or with an empty
    key, are dropped. Later keys overwrite earlier ones.
    """
    env: EnvironmentMap = {}
    for raw in _LINE_SPLIT.split(text):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        idx = line.find("=")
        if idx <= 0:
            logger.debug("Dropping env line without key: %r", line)
            continue
        env[line[:idx].strip()] = line[idx + 1 :].strip()
    return env


# Tried in order, first non-None result wins
PARSE_STRATEGIES: tuple[ParseStrategy, ...] = (decode_structured, parse_lines)


def parse(
    text: str | Mapping[str, Any] | None,
    strategies: Iterable[ParseStrategy] = PARSE_STRATEGIES,
) -> dict[str, Any]:
    """Parse env text (or an already structured mapping) into a dict.

    Never raises; returns an empty dict when nothing applies.
    """
    if text is None:
        return {}
    if isinstance(text, Mapping):
        return dict(text)
    if not isinstance(text, str):
        logger.debug("Unsupported env value type %s", type(text).__name__)
        return {}

    for strategy in strategies:
        result = strategy(text)
        if result is not None:
            return dict(result)
    return {}


def parse_pairs(pairs: Iterable[str]) -> EnvironmentMap:
    """Parse repeated KEY=VALUE option values (line rules only)."""
    return parse_lines("\n".join(pairs))


def read_file(path: str | Path) -> dict[str, Any]:
    """Read and parse a .env file.

    Raises:
        ValidationError: If the file cannot be read or is not UTF-8 text.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError(f"Env file '{path}' is not valid UTF-8 text ({e.reason})") from e
    except OSError as e:
        raise ValidationError(f"Cannot read env file '{path}': {e.strerror or e}") from e
    return parse(text)
