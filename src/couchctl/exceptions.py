"""Custom exceptions for couchctl.

Every exception carries a process exit status, following sysexits(3) for
local failures and a fixed mapping for HTTP status codes returned by the
server. Messages say what went wrong; ``context`` carries the details.
"""

from __future__ import annotations

from typing import Any

# Exit statuses
EXIT_USAGE = 2
EXIT_UNKNOWN = 3
EXIT_INTERNAL_SERVER_ERROR = 4
EXIT_DATA = 65
EXIT_NO_INPUT = 66
EXIT_UNAVAILABLE = 69
EXIT_CANT_CREATE = 73
EXIT_IO = 74
EXIT_PROTOCOL = 76


class CouchctlError(Exception):
    """Base exception for all couchctl errors."""

    exit_code = EXIT_UNKNOWN

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "exit_code": self.exit_code,
            "context": self.context,
        }


class UsageError(CouchctlError):
    """Bad command line, DSN, option, or configuration file."""

    exit_code = EXIT_USAGE


class DataError(CouchctlError):
    """Input data is malformed, such as invalid JSON or YAML."""

    exit_code = EXIT_DATA


class NoInputError(CouchctlError):
    """An input file does not exist or cannot be read."""

    exit_code = EXIT_NO_INPUT


class CantCreateError(CouchctlError):
    """An output file or directory cannot be created."""

    exit_code = EXIT_CANT_CREATE


class LocalIOError(CouchctlError):
    """Reading from or writing to a local file failed."""

    exit_code = EXIT_IO


class UnavailableError(CouchctlError):
    """The server could not be reached."""

    exit_code = EXIT_UNAVAILABLE


class ProtocolError(CouchctlError):
    """The server answered with something that is not valid JSON."""

    exit_code = EXIT_PROTOCOL


def exit_code_from_status(status: int) -> int:
    """Map an HTTP status to an exit status.

    500 maps to 4, 4xx to ``status - 390`` (404 -> 14), anything else to 3.
    """
    if status == 500:
        return EXIT_INTERNAL_SERVER_ERROR
    if 400 <= status < 500:
        return status - 390
    return EXIT_UNKNOWN


class HTTPStatusError(CouchctlError):
    """The server answered with an error status."""

    def __init__(self, status: int, error: str = "", reason: str = "") -> None:
        message = f"{status} {error}".strip()
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, {"status": status, "error": error, "reason": reason})
        self.status = status
        self.error = error
        self.reason = reason

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return exit_code_from_status(self.status)

    @property
    def transient(self) -> bool:
        """Server-side failures are worth retrying."""
        return self.status >= 500


def is_transient(error: BaseException) -> bool:
    """Return True if a failed network call may succeed when retried."""
    if isinstance(error, UnavailableError):
        return True
    return isinstance(error, HTTPStatusError) and error.transient
