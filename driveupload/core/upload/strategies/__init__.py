"""Upload strategies module."""
from .chunking import (
    BaseChunkingStrategy,
    FixedSizeChunkingStrategy,
    ResumableChunkingStrategy,
)

__all__ = [
    'BaseChunkingStrategy',
    'FixedSizeChunkingStrategy',
    'ResumableChunkingStrategy',
]
