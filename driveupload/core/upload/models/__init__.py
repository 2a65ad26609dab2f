"""Upload models."""
from .upload_models import (
    UploadResult,
    UploadConfig,
    UploadSession,
    UploadProgress,
    ChunkInfo,
    PutOutcome,
    RemoteFileInfo,
    HashMode,
    CHUNK_SIZE_GRANULARITY,
    DEFAULT_CHUNK_SIZE,
)

__all__ = [
    'UploadResult',
    'UploadConfig',
    'UploadSession',
    'UploadProgress',
    'ChunkInfo',
    'PutOutcome',
    'RemoteFileInfo',
    'HashMode',
    'CHUNK_SIZE_GRANULARITY',
    'DEFAULT_CHUNK_SIZE',
]
