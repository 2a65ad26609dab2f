"""
Upload module for resumable chunked uploads.

The coordinator drives the chunk/resume state machine; sources, transport,
chunking and verification are pluggable.
"""
from .facade import UploadFacade
from .coordinator import UploadCoordinator
from .models import (
    UploadResult,
    UploadConfig,
    UploadSession,
    UploadProgress,
    ChunkInfo,
    PutOutcome,
    RemoteFileInfo,
    HashMode,
)
from .protocols import (
    ChunkSource,
    ChunkingStrategy,
    ChunkUploaderProtocol,
    Authenticator,
    SessionInitiator,
    MetadataFetcher,
)
from .services import (
    ChunkUploader,
    IntegrityTracker,
    FileChunkSource,
    BytesChunkSource,
    CallableChunkSource,
)

__all__ = [
    # Main classes
    'UploadFacade',
    'UploadCoordinator',
    'ChunkUploader',
    'IntegrityTracker',

    # Sources
    'FileChunkSource',
    'BytesChunkSource',
    'CallableChunkSource',

    # Models
    'UploadResult',
    'UploadConfig',
    'UploadSession',
    'UploadProgress',
    'ChunkInfo',
    'PutOutcome',
    'RemoteFileInfo',
    'HashMode',

    # Protocols
    'ChunkSource',
    'ChunkingStrategy',
    'ChunkUploaderProtocol',
    'Authenticator',
    'SessionInitiator',
    'MetadataFetcher',
]
