"""Error kinds raised by the export helpers.

Callers branch on :attr:`ExportError.kind` (or the subclass) rather than on
message text.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFIG = "config"
    AUTH = "auth"
    LOOKUP = "lookup"
    IO = "io"


class ExportError(Exception):
    """Base class for every failure the exporters raise; subclasses set ``kind``."""

    kind: ErrorKind


class ConfigError(ExportError):
    """Pre-flight problem: bad output directory, unreadable input, no identifier."""

    kind = ErrorKind.CONFIG


class AuthError(ExportError):
    """No usable Graph session, or the session lacks the required scopes."""

    kind = ErrorKind.AUTH

    def __init__(self, message: str, *, scopes: list[str] | tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.scopes = list(scopes)


class MessageLookupError(ExportError):
    """The mailbox holds no message for the requested identifier."""

    kind = ErrorKind.LOOKUP

    def __init__(self, message: str, *, internet_message_id: str | None = None) -> None:
        super().__init__(message)
        self.internet_message_id = internet_message_id


class ExportIOError(ExportError):
    """Writing an export target failed."""

    kind = ErrorKind.IO
