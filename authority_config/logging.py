"""Logging utilities for the authority configuration package.

The adapters log rejected document nodes at DEBUG; the CLI logs the loaded
configuration summary at INFO and configuration failures at ERROR.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from fastmcp.utilities.logging import configure_logging as _fastmcp_configure_logging

_PACKAGE_LOGGER_NAME = "authority_config"
_CONFIGURED = False


def _qualify(name: str | None) -> str:
    if not name:
        return _PACKAGE_LOGGER_NAME
    if name.startswith(_PACKAGE_LOGGER_NAME):
        return name
    return f"{_PACKAGE_LOGGER_NAME}.{name}"


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] | int = "INFO",
    **rich_kwargs: Any,
) -> logging.Logger:
    """Route package logs through the FastMCP rich handler on stderr.

    Stdout stays reserved for command output such as the normalized
    configuration document printed by the CLI.
    """

    global _CONFIGURED

    logger = logging.getLogger(_PACKAGE_LOGGER_NAME)
    _fastmcp_configure_logging(level=level, logger=logger, **rich_kwargs)

    _CONFIGURED = True
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger scoped to the package namespace."""

    if not _CONFIGURED:
        configure_logging()

    qualified = _qualify(name)
    return logging.getLogger(qualified)
