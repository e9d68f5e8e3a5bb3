"""Diagnostic logging for gakwaya.

User-facing output goes through the rich console in ``gakwaya.cli.utils``.
Loggers here carry diagnostics only: request method/URL and status,
synthesized image tags, dropped env lines. Tokens are never logged.

Library modules just call ``get_logger(__name__)``. Nothing is attached
to the ``gakwaya`` logger until ``configure_logging`` runs, which the
``gakwaya`` command does once per invocation; until then Python's
last-resort handler still shows warnings.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from .constants import ENV_DEBUG

NAMESPACE = "gakwaya"

# Name of the handler configure_logging owns, so reconfiguring replaces it
HANDLER_NAME = "gakwaya-stderr"

_TRUTHY = ("1", "true", "yes")


def debug_requested(flag: bool = False) -> bool:
    """True when --debug was passed or GAKWAYA_DEBUG is 1/true/yes."""
    return flag or os.environ.get(ENV_DEBUG, "").strip().lower() in _TRUTHY


def get_logger(name: str) -> logging.Logger:
    """Logger under the gakwaya namespace (``api`` -> ``gakwaya.api``)."""
    if name != NAMESPACE and not name.startswith(NAMESPACE + "."):
        name = f"{NAMESPACE}.{name}"
    return logging.getLogger(name)


def configure_logging(debug: bool = False) -> logging.Logger:
    """Attach a stderr handler to the gakwaya logger and set its level.

    WARNING by default, DEBUG when ``debug_requested(debug)``. Calling it
    again replaces the handler instead of stacking another one.
    """
    level = logging.DEBUG if debug_requested(debug) else logging.WARNING
    logger = logging.getLogger(NAMESPACE)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        level=level,
        show_time=level == logging.DEBUG,
        show_path=level == logging.DEBUG,
        markup=False,
    )
    handler.set_name(HANDLER_NAME)
    logger.addHandler(handler)
    return logger
