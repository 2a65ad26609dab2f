"""
Data models for upload module.

Uses dataclasses for type-safe data structures.
"""
import re
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Callable, Any, Dict

from ...exceptions import ConfigurationError, DriveUploadError


# Chunk sizes must be a multiple of 256 KiB
CHUNK_SIZE_GRANULARITY = 256 * 1024
DEFAULT_CHUNK_SIZE = CHUNK_SIZE_GRANULARITY

MD5_PATTERN = re.compile(r'^[0-9a-f]{32}$')


class HashMode(Enum):
    """How the content hash of an upload is obtained."""
    COMPUTED = 'computed'
    PROVIDED = 'provided'
    SKIPPED = 'skipped'


@dataclass(frozen=True)
class ChunkInfo:
    """
    A chunk transfer window.

    Attributes:
        start: Start offset in bytes
        end: End offset in bytes (exclusive)
    """
    start: int
    end: int

    @property
    def size(self) -> int:
        """Returns chunk size."""
        return self.end - self.start

    @property
    def range_spec(self) -> str:
        """Returns the inclusive byte range, e.g. '0-4095'."""
        return f"{self.start}-{self.end - 1}"


@dataclass
class UploadSession:
    """
    Server-granted upload session.

    Owned by a single coordinator. ``position`` is the number of bytes the
    server has committed and only changes at chunk attempt boundaries.

    Attributes:
        upload_url: Session URL returned by the service
        total_size: Declared size of the upload in bytes
        chunk_size: Bytes sent per chunk attempt
        position: Bytes committed by the server
    """
    upload_url: str
    total_size: int
    chunk_size: int
    position: int = 0

    @property
    def remaining(self) -> int:
        """Returns bytes not yet committed."""
        return self.total_size - self.position

    def advance_to(self, offset: int) -> None:
        """Move the cursor to the offset reported by the server."""
        if offset < 0 or offset > self.total_size:
            raise ValueError(
                f"Offset {offset} outside upload of {self.total_size} bytes"
            )
        self.position = offset

    def complete(self) -> None:
        """Mark every byte as committed."""
        self.position = self.total_size


@dataclass(frozen=True)
class PutOutcome:
    """
    Classified result of one PUT exchange.

    ``file_id`` is only set on a completion response and ``resume_offset``
    only on a continuation response. ``error`` explains an outcome that did
    not end normally.
    """
    ended_normally: bool
    file_id: Optional[str] = None
    resume_offset: Optional[int] = None
    status: Optional[int] = None
    error: Optional[DriveUploadError] = None

    def __post_init__(self):
        if self.file_id is not None and self.resume_offset is not None:
            raise ValueError("PutOutcome cannot carry both file_id and resume_offset")
        if not self.ended_normally and (self.file_id or self.resume_offset is not None):
            raise ValueError("Failed PutOutcome cannot carry a result")

    @classmethod
    def completed(cls, file_id: str, status: int) -> 'PutOutcome':
        return cls(ended_normally=True, file_id=file_id, status=status)

    @classmethod
    def resumable(cls, offset: int, status: int) -> 'PutOutcome':
        return cls(ended_normally=True, resume_offset=offset, status=status)

    @classmethod
    def failed(
        cls,
        error: DriveUploadError,
        status: Optional[int] = None
    ) -> 'PutOutcome':
        return cls(ended_normally=False, status=status, error=error)


@dataclass(frozen=True)
class RemoteFileInfo:
    """
    Authoritative file details reported by the service.

    Attributes:
        size: Stored size in bytes
        md5: Hex MD5 checksum
        mime_type: MIME type assigned by the service
    """
    size: int
    md5: str
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class UploadResult:
    """
    Result of a successful upload.

    Attributes:
        file_id: ID of the created file
        size: Size of uploaded file
        md5: Hex MD5 of the content (None if skipped and not verified)
        mime_type: MIME type reported by the service (if verified)
    """
    file_id: str
    size: int
    md5: Optional[str] = None
    mime_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain dict."""
        return {
            'id': self.file_id,
            'size': self.size,
            'md5': self.md5,
            'mimeType': self.mime_type,
        }


@dataclass
class UploadProgress:
    """
    Upload progress information.

    Attributes:
        total_bytes: Declared upload size
        uploaded_bytes: Bytes sent or committed so far
    """
    total_bytes: int
    uploaded_bytes: int = 0

    @property
    def percentage(self) -> float:
        """Returns upload progress as percentage."""
        if self.total_bytes == 0:
            return 100.0
        return (self.uploaded_bytes / self.total_bytes) * 100

    @property
    def is_complete(self) -> bool:
        """Returns True if every byte has been sent."""
        return self.uploaded_bytes >= self.total_bytes


@dataclass
class UploadConfig:
    """
    Configuration for one upload.

    Either ``upload_url`` or the initiation parameters (``filename`` or
    ``file_path``, plus optional ``folder_id`` and ``mime_type``) locate the
    session. Either ``file_path`` or ``chunk_source`` supplies the bytes.

    Attributes:
        upload_url: Existing resumable session URL
        file_path: Path to file to upload
        chunk_source: Alternative byte source (see ChunkSource protocol)
        filename: Name to create the file with (defaults to file_path name)
        size: Size in bytes (required with chunk_source)
        folder_id: Parent folder ID
        mime_type: MIME type (deduced by the service if omitted)
        md5: Precomputed hex MD5 of the content
        skip_md5: Neither compute nor check a local MD5
        chunk_size: Bytes per chunk, a multiple of chunk_granularity
        chunk_granularity: Protocol chunk size granularity
        verify: Check the uploaded file against the service's metadata
        metadata_fetcher: Custom metadata fetcher used when verify is True
        progress_callback: Called with UploadProgress as bytes are sent
        data_callback: Called with each newly sent buffer, once per byte
        logger: Logger for upload events
        probe_retry: Retry strategy applied to failed continuation probes
    """
    upload_url: Optional[str] = None
    file_path: Optional[Path] = None
    chunk_source: Optional[Any] = None
    filename: Optional[str] = None
    size: Optional[int] = None
    folder_id: Optional[str] = None
    mime_type: Optional[str] = None
    md5: Optional[str] = None
    skip_md5: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_granularity: int = CHUNK_SIZE_GRANULARITY
    verify: bool = True
    metadata_fetcher: Optional[Any] = None
    progress_callback: Optional[Callable[[UploadProgress], None]] = None
    data_callback: Optional[Callable[[bytes], None]] = None
    logger: Optional[logging.Logger] = None
    probe_retry: Optional[Any] = None

    def __post_init__(self):
        """Validate and normalize config."""
        if isinstance(self.file_path, str):
            self.file_path = Path(self.file_path)

        if self.file_path is None and self.chunk_source is None:
            raise ConfigurationError("`file_path` or `chunk_source` must be provided")
        if self.file_path is not None and self.chunk_source is not None:
            raise ConfigurationError("`file_path` and `chunk_source` are mutually exclusive")

        if self.size is not None:
            if isinstance(self.size, bool) or not isinstance(self.size, int) or self.size < 0:
                raise ConfigurationError("`size` must be a non-negative integer if provided")
        elif self.file_path is None:
            raise ConfigurationError("`size` must be provided if using a chunk source")

        if not self.upload_url and not self.filename and self.file_path is None:
            raise ConfigurationError("`upload_url`, `file_path` or `filename` must be provided")

        if self.chunk_granularity <= 0:
            raise ConfigurationError("`chunk_granularity` must be positive")
        if (
            isinstance(self.chunk_size, bool)
            or not isinstance(self.chunk_size, int)
            or self.chunk_size <= 0
            or self.chunk_size % self.chunk_granularity
        ):
            raise ConfigurationError(
                f"`chunk_size` must be a multiple of {self.chunk_granularity} bytes"
            )

        if self.md5 is not None:
            if self.skip_md5:
                raise ConfigurationError("`md5` cannot be combined with `skip_md5`")
            self.md5 = self.md5.lower()
            if not MD5_PATTERN.match(self.md5):
                raise ConfigurationError("`md5` must be a 32 character hex string")

        for name in ('progress_callback', 'data_callback'):
            value = getattr(self, name)
            if value is not None and not callable(value):
                raise ConfigurationError(f"`{name}` must be callable if provided")

    @property
    def hash_mode(self) -> HashMode:
        """Returns how the content hash is obtained."""
        if self.md5 is not None:
            return HashMode.PROVIDED
        if self.skip_md5:
            return HashMode.SKIPPED
        return HashMode.COMPUTED
