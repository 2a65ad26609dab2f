"""
DriveUpload - Async resumable uploads to Google Drive.

Usage:
    >>> from driveupload import DriveClient
    >>>
    >>> async with DriveClient(token="ya29...") as drive:
    ...     result = await drive.upload("movie.mov", folder_id="1eim7J...")
    ...     print(result.file_id, result.size, result.md5)
"""
import logging
from .client import DriveClient
from .core.logging import set_package_level

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    NoRetryStrategy,
    ExponentialBackoffStrategy,
    StaticTokenAuth,
    ServiceAccountAuth,
)

# Upload engine
from .core.upload import (
    UploadConfig,
    UploadResult,
    UploadProgress,
    RemoteFileInfo,
    HashMode,
    FileChunkSource,
    BytesChunkSource,
    CallableChunkSource,
)

# Errors
from .core.exceptions import (
    DriveUploadError,
    ConfigurationError,
    TransportError,
    ProtocolError,
    IntegrityError,
    SourceError,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for driveupload modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    set_package_level(level)


def authenticate(email: str, private_key: str, as_email: str = None) -> ServiceAccountAuth:
    """
    Build service account credentials, optionally impersonating a user.

    Args:
        email: Service account email
        private_key: PEM encoded private key
        as_email: User to act on behalf of (domain-wide delegation)
    """
    return ServiceAccountAuth(email, private_key, subject=as_email)


async def upload(auth=None, token: str = None, config: APIConfig = None, **kwargs) -> UploadResult:
    """
    Upload with a short-lived client.

    Accepts the keyword arguments of DriveClient.upload.
    """
    async with DriveClient(auth=auth, token=token, config=config) as drive:
        return await drive.upload(**kwargs)


__all__ = [
    'DriveClient',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'NoRetryStrategy',
    'ExponentialBackoffStrategy',
    'StaticTokenAuth',
    'ServiceAccountAuth',
    'UploadConfig',
    'UploadResult',
    'UploadProgress',
    'RemoteFileInfo',
    'HashMode',
    'FileChunkSource',
    'BytesChunkSource',
    'CallableChunkSource',
    'DriveUploadError',
    'ConfigurationError',
    'TransportError',
    'ProtocolError',
    'IntegrityError',
    'SourceError',
    'authenticate',
    'upload',
    'setup_logging',
]
