"""
Logging Sinks
Four-level logger interface used across the package.

The default sink is NoOpLogger. ConsoleLogger forwards to the standard
``logging`` module under the ``limitless_auth`` logger name.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


LEVELS = ("debug", "info", "warning", "error")

_STDLIB_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def normalize_level(level: str) -> str:
    """Accept ``warn`` as an alias and validate the level name."""
    value = (level or "info").strip().lower()
    if value == "warn":
        value = "warning"
    if value not in LEVELS:
        raise ValueError(f"Unknown log level: {level!r} (expected one of {', '.join(LEVELS)})")
    return value


class AuthLogger(ABC):
    """Logger capability with the four levels fixed."""

    @abstractmethod
    def debug(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def info(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def warning(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def error(
        self,
        message: str,
        error: Optional[BaseException] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        raise NotImplementedError


class NoOpLogger(AuthLogger):
    """Discards everything."""

    def debug(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        pass

    def info(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        pass

    def warning(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        pass

    def error(
        self,
        message: str,
        error: Optional[BaseException] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass


class ConsoleLogger(AuthLogger):
    """
    Logger backed by the standard ``logging`` module.

    Levels:
        debug   - every request and protocol step
        info    - lifecycle events (authenticated, verified, logged out)
        warning - recoverable anomalies (retries, logout divergence)
        error   - failures only

    Error entries carry the exception message only, never the traceback.
    """

    PREFIX = "[Limitless SDK]"

    def __init__(self, level: str = "info", logger: Optional[logging.Logger] = None):
        self.level = normalize_level(level)
        self._logger = logger or logging.getLogger("limitless_auth")

    def _should_log(self, level: str) -> bool:
        return LEVELS.index(level) >= LEVELS.index(self.level)

    def _emit(self, level: str, message: str, meta: Optional[Dict[str, Any]]) -> None:
        if not self._should_log(level):
            return
        if meta:
            self._logger.log(_STDLIB_LEVELS[level], "%s %s %s", self.PREFIX, message, meta)
        else:
            self._logger.log(_STDLIB_LEVELS[level], "%s %s", self.PREFIX, message)

    def debug(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        self._emit("debug", message, meta)

    def info(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        self._emit("info", message, meta)

    def warning(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        self._emit("warning", message, meta)

    def error(
        self,
        message: str,
        error: Optional[BaseException] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        if error is not None:
            message = f"{message} - {error}"
        self._emit("error", message, meta)


def mask_token(token: Optional[str], visible: int = 6) -> str:
    """Shorten a secret for log output."""
    if not token:
        return "<none>"
    if len(token) <= visible:
        return "*" * len(token)
    return f"{token[:visible]}..."
