"""
Chunking strategies for resumable uploads.

The protocol transfers strictly sequential windows, so a strategy only has
to say how large the next window starting at the committed position is.
"""
from abc import ABC, abstractmethod

from ..models import ChunkInfo, CHUNK_SIZE_GRANULARITY, DEFAULT_CHUNK_SIZE


class BaseChunkingStrategy(ABC):
    """Abstract base class for chunking strategies."""

    @abstractmethod
    def next_chunk(self, position: int, total_size: int) -> ChunkInfo:
        """Calculate the window starting at position."""
        pass


class FixedSizeChunkingStrategy(BaseChunkingStrategy):
    """
    Fixed-size chunking strategy.

    Every window is ``chunk_size`` bytes except the last one, which is
    whatever remains.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize with chunk size.

        Args:
            chunk_size: Size of each chunk in bytes
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size

    def next_chunk(self, position: int, total_size: int) -> ChunkInfo:
        """
        Calculate the next window.

        Args:
            position: Bytes already committed
            total_size: Declared upload size

        Returns:
            ChunkInfo for [position, position + min(chunk_size, remaining))
        """
        if position < 0 or position > total_size:
            raise ValueError(f"Position {position} outside 0-{total_size}")
        end = min(position + self.chunk_size, total_size)
        return ChunkInfo(start=position, end=end)


class ResumableChunkingStrategy(FixedSizeChunkingStrategy):
    """
    Fixed-size chunking restricted to the resumable protocol's granularity.

    Every chunk but the last must be a multiple of 256 KiB.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        granularity: int = CHUNK_SIZE_GRANULARITY
    ):
        if granularity <= 0 or chunk_size % granularity:
            raise ValueError(f"Chunk size must be a multiple of {granularity} bytes")
        super().__init__(chunk_size)
        self.granularity = granularity
