"""
Outbound chunk stream.

Pulls buffers from a chunk source, routes them through the integrity
tracker and hands them to the HTTP client as the request body.
"""
import asyncio
from typing import Optional, AsyncIterator, Callable

from ..models import ChunkInfo
from .integrity_service import IntegrityTracker
from ...exceptions import SourceError, TransportError


class ChunkStream:
    """
    Request body for one chunk attempt.

    ``drained`` resolves once the stream has settled: to None when every
    byte of the window was handed out, or to the exception that stopped it.
    It never resolves to an exception itself, so it can be awaited alongside
    the PUT without unretrieved-exception noise.

    Reads from the source and ``aclose()`` are serialized, so the source is
    never closed while a read is in flight in the HTTP client's writer task.
    """

    def __init__(
        self,
        source: AsyncIterator[bytes],
        chunk: ChunkInfo,
        tracker: IntegrityTracker,
        on_progress: Optional[Callable[[int], None]] = None
    ):
        """
        Initialize stream.

        Args:
            source: Byte stream opened for exactly this chunk's window
            chunk: Window being transferred
            tracker: Integrity tracker shared by all attempts
            on_progress: Called with the upload offset after each buffer
        """
        self._source = source
        self._chunk = chunk
        self._tracker = tracker
        self._on_progress = on_progress
        self._position = chunk.start
        self._lock = asyncio.Lock()
        self._closed = False
        self._drained: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def drained(self) -> asyncio.Future:
        return self._drained

    @property
    def position(self) -> int:
        """Returns the offset of the next byte to hand out."""
        return self._position

    def __aiter__(self) -> 'ChunkStream':
        return self

    async def __anext__(self) -> bytes:
        if self._closed or self._drained.done():
            raise StopAsyncIteration

        try:
            async with self._lock:
                buffer = await self._read()
            return self._pass_through(buffer)
        except asyncio.CancelledError:
            self._settle(TransportError("Chunk stream cancelled"))
            raise
        except Exception as e:
            self._settle(e)
            raise

    async def _read(self) -> bytes:
        """Read the next non-empty buffer from the source."""
        while True:
            try:
                buffer = await self._source.__anext__()
            except StopAsyncIteration:
                raise SourceError(
                    f"Chunk source ended at offset {self._position}, "
                    f"expected {self._chunk.end}"
                ) from None
            except SourceError:
                raise
            except Exception as e:
                raise SourceError(
                    f"Chunk source failed at offset {self._position}: {e}"
                ) from e
            if buffer:
                return buffer

    def _pass_through(self, buffer: bytes) -> bytes:
        buffer_end = self._position + len(buffer)
        if buffer_end > self._chunk.end:
            raise SourceError(
                f"Chunk source produced more than {self._chunk.size} bytes "
                f"at offset {self._chunk.start}"
            )

        self._tracker.update(self._position, buffer)
        self._position = buffer_end
        if self._on_progress:
            self._on_progress(self._position)

        if self._position == self._chunk.end:
            self._settle(None)
        return buffer

    def _settle(self, error: Optional[BaseException]) -> None:
        if not self._drained.done():
            self._drained.set_result(error)

    def abandon(self) -> None:
        """Mark the stream as abandoned by the HTTP exchange."""
        self._settle(TransportError(
            f"Request ended before chunk stream drained at offset {self._position}"
        ))

    async def aclose(self) -> None:
        """Close the stream and wait for the source to close."""
        self._closed = True
        self.abandon()
        async with self._lock:
            aclose = getattr(self._source, 'aclose', None)
            if aclose is not None:
                await aclose()
