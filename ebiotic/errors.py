"""Exception hierarchy shared by every service."""

from typing import Optional

# Raw payload fragments attached to errors are truncated to this length.
FRAGMENT_LIMIT = 200


def _truncate(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    if len(text) > FRAGMENT_LIMIT:
        return text[:FRAGMENT_LIMIT] + "..."
    return text


class EbioticError(Exception):
    """Base class for all errors raised by this package."""


class NetworkError(EbioticError):
    """Transport failure or an HTTP error status from a remote service."""

    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ResponseParseError(EbioticError):
    """A response did not have the structure the parser requires."""

    def __init__(self, message: str, fragment: Optional[str] = None):
        super().__init__(message)
        self.fragment = _truncate(fragment)


class SequenceFormatError(ResponseParseError):
    """A sequence payload could not be read as FASTA."""


class RequestValidationError(EbioticError, ValueError):
    """Caller input rejected before any request was sent."""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


class UnsupportedFormatError(RequestValidationError):
    """The requested return format is not offered by the database."""

    def __init__(self, format: str, database: str):
        super().__init__(
            f"Return format {format} not available for database {database}",
            field="format",
        )
        self.format = format
        self.database = database


class EmptyOrOversizedQueryError(RequestValidationError):
    """A query is empty or exceeds what the remote service accepts."""


class EmptyQueryError(EmptyOrOversizedQueryError):
    """A required query, command list or id list is empty."""


class TooManyCommandsError(EmptyOrOversizedQueryError):
    """More chained search commands than the service allows."""

    def __init__(self, count: int, limit: int):
        super().__init__(
            f"Query has {count} commands, at most {limit} may be chained",
            field="commands",
        )
        self.count = count
        self.limit = limit


class CommandOrderError(RequestValidationError):
    """A free-text command appears before the end of a command chain."""

    def __init__(self, command: str, position: int):
        super().__init__(
            f"Command {command!r} at position {position} must be the last command",
            field="commands",
        )
        self.command = command
        self.position = position


class RemoteJobFailedError(EbioticError):
    """The remote service reported that a job failed."""

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status


class MissingJobIdentifierError(EbioticError):
    """A submission response did not contain a job identifier."""

    def __init__(self, message: str, fragment: Optional[str] = None):
        super().__init__(message)
        self.fragment = _truncate(fragment)


class NoResultsError(EbioticError):
    """A well-formed response reported that nothing was found."""


class JobCancelledError(EbioticError):
    """Polling was aborted by a cancellation signal."""


class JobTimeoutError(JobCancelledError):
    """Polling was aborted because its deadline passed."""
