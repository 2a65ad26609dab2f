"""
Protocol definitions for upload module.

Defines the interfaces of the collaborators the upload engine depends on,
so each can be swapped or mocked.
"""
from typing import Protocol, AsyncIterator, Optional, runtime_checkable

from .models import ChunkInfo, PutOutcome, RemoteFileInfo


@runtime_checkable
class ChunkSource(Protocol):
    """
    Protocol for byte sources.

    May be invoked again for a window overlapping bytes already produced
    (after a resume).
    """

    def open_chunk(self, start: int, length: int) -> AsyncIterator[bytes]:
        """
        Open a byte stream for an exact window.

        Args:
            start: Start offset in bytes
            length: Number of bytes to produce

        Returns:
            Async iterator of buffers totalling ``length`` bytes.
            Must support ``aclose()``.

        Raises:
            SourceError: If the underlying source cannot be read
        """
        ...


class ChunkingStrategy(Protocol):
    """Protocol for computing chunk windows."""

    def next_chunk(self, position: int, total_size: int) -> ChunkInfo:
        """
        Calculate the next chunk window.

        Args:
            position: Bytes already committed
            total_size: Declared upload size

        Returns:
            Window starting at ``position``
        """
        ...


class ChunkUploaderProtocol(Protocol):
    """Protocol for chunk PUT operations."""

    async def put(
        self,
        body: Optional[AsyncIterator[bytes]],
        length: int,
        range_spec: str
    ) -> PutOutcome:
        """
        Send one PUT to the session URL.

        Args:
            body: Chunk byte stream, or None for a probe
            length: Number of bytes in body
            range_spec: Byte range e.g. '0-1023', or '*' for a probe

        Returns:
            Classified outcome. Never raises on transport or protocol failure.
        """
        ...


class Authenticator(Protocol):
    """Protocol for bearer credential providers."""

    async def get_token(self) -> str:
        """Returns a valid OAuth2 access token."""
        ...


class SessionInitiator(Protocol):
    """Protocol for obtaining resumable session URLs."""

    async def initiate(
        self,
        filename: str,
        size: int,
        folder_id: Optional[str] = None,
        mime_type: Optional[str] = None
    ) -> str:
        """
        Start a resumable upload session.

        Args:
            filename: Name to create the file with
            size: Declared upload size in bytes
            folder_id: Optional parent folder ID
            mime_type: Optional MIME type

        Returns:
            Session URL
        """
        ...


class MetadataFetcher(Protocol):
    """Protocol for fetching authoritative details of an uploaded file."""

    async def fetch(self, file_id: str) -> RemoteFileInfo:
        """
        Get size, MD5 and MIME type of a file.

        Args:
            file_id: ID of the file

        Returns:
            Remote file details
        """
        ...


class LoggerProtocol(Protocol):
    """Protocol for logger objects."""

    def debug(self, msg: str, *args, **kwargs) -> None: ...
    def info(self, msg: str, *args, **kwargs) -> None: ...
    def warning(self, msg: str, *args, **kwargs) -> None: ...
    def error(self, msg: str, *args, **kwargs) -> None: ...
