"""Error kinds raised while building a process report."""

from enum import Enum


class ErrorKind(Enum):
    """Closed set of report failure categories."""

    PERMISSION_DENIED = "permission_denied"  # Whole enumeration refused
    UNSUPPORTED_PLATFORM = "unsupported_platform"  # No usable process source
    PARSE_ERROR = "parse_error"  # One line or field, recovered locally
    COLLECTION_FAILED = "collection_failed"  # Nothing usable was collected


class ReportError(Exception):
    """Raised when a report cannot be produced (or a field cannot be parsed).

    The kind decides how callers treat it: PARSE_ERROR is absorbed into
    sentinel values where it happens, every other kind aborts the run.
    """

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    @property
    def fatal(self) -> bool:
        """True unless the error is local to a single line or field."""
        return self.kind is not ErrorKind.PARSE_ERROR

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.args[0]}"
