"""Upload services module."""
from .file_service import FileValidator, FileChunkSource, BytesChunkSource, CallableChunkSource
from .chunk_service import ChunkUploader
from .integrity_service import IntegrityTracker
from .stream_service import ChunkStream

__all__ = [
    'FileValidator',
    'FileChunkSource',
    'BytesChunkSource',
    'CallableChunkSource',
    'ChunkUploader',
    'IntegrityTracker',
    'ChunkStream',
]
