"""Drive API module: configuration, authentication and collaborators of the upload engine."""
from .config import APIConfig, ProxyConfig, SSLConfig, TimeoutConfig, RetryConfig
from .retry import RetryStrategy, NoRetryStrategy, ExponentialBackoffStrategy
from .auth import StaticTokenAuth, ServiceAccountAuth, DRIVE_SCOPES
from .session_initiator import DriveSessionInitiator
from .metadata import DriveMetadataFetcher

__all__ = [
    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',

    # Retry
    'RetryStrategy',
    'NoRetryStrategy',
    'ExponentialBackoffStrategy',

    # Authentication
    'StaticTokenAuth',
    'ServiceAccountAuth',
    'DRIVE_SCOPES',

    # Collaborators
    'DriveSessionInitiator',
    'DriveMetadataFetcher',
]
