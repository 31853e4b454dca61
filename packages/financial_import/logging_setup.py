"""Logging for the ``financial_import`` package.

Library modules log through ``get_logger("financial_import.<module>")`` and
stay silent until an entrypoint calls ``configure_logging()`` once.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "financial_import"
_LEVEL_ENV_VAR = "FINANCIAL_IMPORT_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelNamesMapping().get(name)
        return numeric if numeric is not None else logging.INFO
    env_val = os.getenv(_LEVEL_ENV_VAR)
    return _parse_level(env_val) if env_val else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach one ``StreamHandler`` to the package logger; later calls are no-ops.

    ``level`` falls back to ``FINANCIAL_IMPORT_LOG_LEVEL``, then ``INFO``.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
