"""Error taxonomy for the change monitor.

Remote failures (``NetworkError``, ``DecodeError``) are fatal to a run and
propagate to the caller. Local state failures are raised inside the state
store only; the read path turns them into ``corrupt`` load results and the
write path logs them, so neither escapes a run.

Public API:
- exception classes below
- classify_error(exc) -> ErrorInfo
"""

from __future__ import annotations

from dataclasses import dataclass


class MonitorError(RuntimeError):
    """Base class for every error raised by specwatch."""


class NetworkError(MonitorError):
    """Transport-level failure reaching a remote document."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class DecodeError(MonitorError):
    """A document expected to be JSON could not be decoded."""

    def __init__(self, message: str, *, url: str | None = None):
        super().__init__(message)
        self.url = url


class LocalStateReadError(MonitorError):
    """A persisted state file exists but could not be read or understood."""


class LocalStateWriteError(MonitorError):
    """The changelog cache could not be written."""


class ConfigError(MonitorError):
    pass


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False


_CATEGORIES: tuple[tuple[type[BaseException], str, bool], ...] = (
    (NetworkError, "network", True),
    (DecodeError, "decode", False),
    (LocalStateReadError, "state.read", False),
    (LocalStateWriteError, "state.write", False),
    (ConfigError, "config", False),
)


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception for logging.

    Known specwatch errors map by type; anything else falls back to a keyword
    check for timeouts and dropped connections, then to ``generic``.
    """
    msg = str(exc) if exc else ""
    for exc_type, category, transient in _CATEGORIES:
        if isinstance(exc, exc_type):
            return ErrorInfo(category, msg, exc.__class__.__name__, transient=transient)
    low = msg.lower()
    if any(
        k in low for k in ("timeout", "timed out", "connection reset", "temporarily unavailable")
    ):
        return ErrorInfo("network", msg, exc.__class__.__name__, transient=True)
    return ErrorInfo("generic", msg, exc.__class__.__name__)


__all__ = [
    "ConfigError",
    "DecodeError",
    "ErrorInfo",
    "LocalStateReadError",
    "LocalStateWriteError",
    "MonitorError",
    "NetworkError",
    "classify_error",
]
