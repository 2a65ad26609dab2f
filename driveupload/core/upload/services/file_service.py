"""
Chunk sources and the local file check made before a session is opened.

A chunk source hands out one async byte stream per chunk window; the
coordinator drains it into the PUT body.
"""
import inspect
import os
from pathlib import Path
from typing import Tuple, Union, Callable, AsyncIterator, Any
import logging
import aiofiles

from ...exceptions import ConfigurationError, SourceError

DEFAULT_READ_SIZE = 64 * 1024


class FileValidator:
    """Resolves an upload path to a readable regular file and its size."""

    def validate(self, file_path: Union[str, Path]) -> Tuple[Path, int]:
        """
        Returns (path, size in bytes).

        Raises:
            ConfigurationError: If the path cannot be uploaded
        """
        path = Path(file_path)
        try:
            stat = path.stat()
        except FileNotFoundError:
            raise ConfigurationError(f"No such file to upload: {path}")
        except OSError as e:
            raise ConfigurationError(f"Cannot stat {path}: {e}") from e

        if not path.is_file():
            raise ConfigurationError(f"Upload source is not a regular file: {path}")
        if not os.access(path, os.R_OK):
            raise ConfigurationError(f"Upload source is not readable: {path}")

        return path, stat.st_size


class FileChunkSource:
    """
    Chunk source reading windows of a local file.

    Uses aiofiles for non-blocking I/O. Every window gets its own file
    handle, which is closed when the stream is exhausted or closed.
    """

    def __init__(self, file_path: Union[str, Path], read_size: int = DEFAULT_READ_SIZE):
        """
        Initialize file source.

        Args:
            file_path: Path to the file
            read_size: Bytes per buffer
        """
        self._path = Path(file_path)
        self._read_size = read_size
        self._logger = logging.getLogger('driveupload.upload.file')

    @property
    def path(self) -> Path:
        return self._path

    async def open_chunk(self, start: int, length: int) -> AsyncIterator[bytes]:
        """
        Stream bytes [start, start + length) of the file.

        Stops early at end of file; the caller detects the shortfall.

        Raises:
            SourceError: If the file cannot be opened or read
        """
        self._logger.debug(f"Opening {self._path} at {start} ({length} bytes)")
        try:
            async with aiofiles.open(self._path, 'rb') as f:
                await f.seek(start)
                remaining = length
                while remaining > 0:
                    data = await f.read(min(self._read_size, remaining))
                    if not data:
                        break
                    remaining -= len(data)
                    yield data
        except OSError as e:
            self._logger.error(f"Failed to read {self._path} at {start}: {e}")
            raise SourceError(f"Failed to read {self._path}: {e}") from e


class BytesChunkSource:
    """Chunk source serving windows of an in-memory buffer."""

    def __init__(self, data: bytes, read_size: int = DEFAULT_READ_SIZE):
        self._data = memoryview(bytes(data))
        self._read_size = read_size

    @property
    def size(self) -> int:
        return len(self._data)

    async def open_chunk(self, start: int, length: int) -> AsyncIterator[bytes]:
        end = min(start + length, len(self._data))
        for offset in range(start, end, self._read_size):
            yield self._data[offset:min(offset + self._read_size, end)].tobytes()


class CallableChunkSource:
    """
    Chunk source wrapping a stream factory function.

    The factory is called with ``(start, length)`` and may return bytes,
    a sync iterable of bytes, an async iterable of bytes, or an awaitable
    resolving to any of those.

    Example:
        >>> source = CallableChunkSource(lambda start, length: data[start:start + length])
    """

    def __init__(self, factory: Callable[[int, int], Any]):
        if not callable(factory):
            raise TypeError("Stream factory must be callable")
        self._factory = factory

    async def open_chunk(self, start: int, length: int) -> AsyncIterator[bytes]:
        try:
            stream = self._factory(start, length)
            if inspect.isawaitable(stream):
                stream = await stream
        except SourceError:
            raise
        except Exception as e:
            raise SourceError(f"Stream factory failed at offset {start}: {e}") from e

        if isinstance(stream, (bytes, bytearray, memoryview)):
            yield bytes(stream)
            return

        if hasattr(stream, '__aiter__'):
            try:
                async for data in stream:
                    yield bytes(data)
            finally:
                aclose = getattr(stream, 'aclose', None)
                if aclose is not None:
                    await aclose()
            return

        try:
            for data in stream:
                yield bytes(data)
        finally:
            close = getattr(stream, 'close', None)
            if close is not None:
                close()
