"""
Custom exceptions for resumable upload operations.

Every failure surfaced to a caller is a DriveUploadError subclass.
"""
from typing import Optional, Any


class DriveUploadError(Exception):
    """Base exception for all upload errors."""

    def __init__(self, message: str, file_id: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            file_id: ID of the uploaded file, if the transfer already completed
        """
        self.message = message
        self.file_id = file_id
        super().__init__(message)


class ConfigurationError(DriveUploadError):
    """Exception raised for invalid or missing input, before any I/O."""
    pass


class TransportError(DriveUploadError):
    """Exception raised when the network exchange itself fails."""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        file_id: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            cause: Underlying network exception
            file_id: ID of the uploaded file (if known)
        """
        self.cause = cause
        super().__init__(message, file_id)


class ProtocolError(DriveUploadError):
    """Exception raised for unexpected status codes, bodies or headers."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_content: Any = None,
        file_id: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            status_code: HTTP status code of the offending response
            response_content: Body or header value that could not be handled
            file_id: ID of the uploaded file (if known)
        """
        self.status_code = status_code
        self.response_content = response_content
        super().__init__(message, file_id)


class IntegrityError(DriveUploadError):
    """Exception raised when size or hash verification fails."""

    def __init__(
        self,
        message: str,
        expected: Any = None,
        actual: Any = None,
        file_id: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            expected: Locally known value
            actual: Value reported by the server
            file_id: ID of the uploaded file
        """
        self.expected = expected
        self.actual = actual
        super().__init__(message, file_id)


class SourceError(DriveUploadError):
    """Exception raised when the chunk source cannot supply the requested bytes."""
    pass
