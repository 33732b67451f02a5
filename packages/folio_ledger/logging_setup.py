"""Process-wide logging setup for ``folio_ledger``.

Library modules obtain loggers through :func:`get_logger` using dotted names
under ``folio_ledger`` and never install handlers of their own. Output is
switched on by the entrypoint (the CLI root callback, or a host application)
calling :func:`configure_logging` once; until then the package logger carries
only a ``NullHandler`` and stays silent.

The level comes from the ``level`` argument, else ``FOLIO_LEDGER_LOG_LEVEL``,
else ``INFO``. :func:`reset_logging` undoes the configuration so test suites
can start every test from the unconfigured state.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "folio_ledger"
_LEVEL_ENV_VAR = "FOLIO_LEDGER_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _level_from_text(text: str) -> int | None:
    name = text.strip().upper()
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else None


def _resolve_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        parsed = _level_from_text(level)
        if parsed is not None:
            return parsed
    # An unusable explicit level falls through to the environment, then INFO.
    env_level = _level_from_text(os.getenv(_LEVEL_ENV_VAR) or "")
    return env_level if env_level is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send ``folio_ledger`` log records to ``stream``; later calls are no-ops.

    Parameters
    ----------
    level:
        ``int`` level or level name such as ``"DEBUG"``. ``None`` defers to
        ``FOLIO_LEDGER_LOG_LEVEL``.
    fmt:
        ``logging.Formatter`` format string; defaults to timestamp, logger
        name, level and message.
    stream:
        Destination of the single ``StreamHandler``.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = _resolve_level(level)
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in [h for h in pkg_logger.handlers if isinstance(h, logging.NullHandler)]:
        pkg_logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(resolved)
    # Records stop here; the host's root handlers would print them twice.
    pkg_logger.propagate = False

    _CONFIGURED = True


def reset_logging() -> None:
    """Drop every handler from the package logger and mark it unconfigured."""

    global _CONFIGURED
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True
    _CONFIGURED = False


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, keeping the package silent until configured."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "reset_logging", "get_logger"]
