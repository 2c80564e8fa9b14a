"""Error taxonomy shared by the lifecycle core, the server and the CLI."""

from datetime import timedelta
from typing import Optional


class FileLinkException(Exception):
    """
    Base exception class for all FileLink errors.
    """
    pass


class NotFoundError(FileLinkException):
    """
    Raised when a file ID is unknown or its record has expired.
    """
    pass


class RateLimitedError(FileLinkException):
    """
    Raised when an upload is attempted before the session's window allows it.
    """

    def __init__(self, message: str, retry_after: Optional[timedelta] = None):
        super().__init__(message)
        self.retry_after = retry_after


class DuplicateIdError(FileLinkException):
    """
    Raised when saving a record whose ID is already held by a live record.
    """
    pass


class PersistenceCorruptError(FileLinkException):
    """
    Raised internally when persisted local state cannot be parsed.
    """
    pass


class UpstreamFailureError(FileLinkException):
    """
    Raised when the storage collaborator is unreachable or returns a failure.
    """
    pass
