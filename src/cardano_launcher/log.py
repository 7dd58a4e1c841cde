"""
Logger capability set used by the supervisor core.

The core never builds a logging sink. Callers hand in anything exposing
``debug``/``info``/``error(message, payload=None)``; ``StdlibLogger`` adapts a
standard library logger to that shape.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol


class LogFunc(Protocol):
    def __call__(self, message: str, payload: Optional[Any] = None) -> None: ...


class Logger(Protocol):
    """Three severity-tagged log functions."""

    debug: LogFunc
    info: LogFunc
    error: LogFunc


class StdlibLogger:
    """Forward capability-set calls to a ``logging.Logger``."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("cardano_launcher")

    def debug(self, message: str, payload: Optional[Any] = None) -> None:
        self._log(logging.DEBUG, message, payload)

    def info(self, message: str, payload: Optional[Any] = None) -> None:
        self._log(logging.INFO, message, payload)

    def error(self, message: str, payload: Optional[Any] = None) -> None:
        self._log(logging.ERROR, message, payload)

    def _log(self, level: int, message: str, payload: Optional[Any]) -> None:
        if payload is None:
            self._logger.log(level, "%s", message)
        else:
            self._logger.log(level, "%s %s", message, payload)


class PrefixedLogger:
    """Prepend a component name to every message of a wrapped logger."""

    def __init__(self, logger: Logger, name: str) -> None:
        self._logger = logger
        self.name = name

    def debug(self, message: str, payload: Optional[Any] = None) -> None:
        self._logger.debug(f"{self.name}: {message}", payload)

    def info(self, message: str, payload: Optional[Any] = None) -> None:
        self._logger.info(f"{self.name}: {message}", payload)

    def error(self, message: str, payload: Optional[Any] = None) -> None:
        self._logger.error(f"{self.name}: {message}", payload)


def prepend_name(logger: Logger, name: str) -> Logger:
    """Return a logger that tags messages with ``name``."""
    return PrefixedLogger(logger, name)


_LOG_SINK_ERRORS = (OSError, ValueError, TypeError, RuntimeError, AttributeError)
_MODULE_LOGGER = logging.getLogger(__name__)


def safe_log(log_func: LogFunc, message: str, payload: Optional[Any] = None) -> None:
    """Call a capability-set log function; a failing sink never reaches the caller."""
    try:
        log_func(message, payload)
    except _LOG_SINK_ERRORS as exc:  # policy_guard: allow-silent-handler
        _MODULE_LOGGER.debug("Log sink failed for %r: %s", message, exc)


__all__ = ["LogFunc", "Logger", "PrefixedLogger", "StdlibLogger", "prepend_name", "safe_log"]
