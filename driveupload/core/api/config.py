"""
Connection settings for the Drive APIs.

Endpoints, TLS, proxy, timeouts and the backoff used by an opt-in probe
retry strategy.
"""
import re
import ssl
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Union

import aiohttp
from yarl import URL

DRIVE_UPLOAD_ENDPOINT = 'https://www.googleapis.com/upload/drive/v3/files?uploadType=resumable'
DRIVE_FILES_ENDPOINT = 'https://www.googleapis.com/drive/v3/files'
OAUTH_TOKEN_ENDPOINT = 'https://oauth2.googleapis.com/token'

# Session URLs handed out by the service must look like this
UPLOAD_URL_PATTERN = (
    r'^https://www\.googleapis\.com/upload/drive/v3/files'
    r'\?uploadType=resumable&upload_id=.+$'
)


@dataclass
class ProxyConfig:
    """HTTP(S) proxy, optionally with credentials."""
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Returns the proxy URL with credentials embedded."""
        if not self.url:
            return None
        proxy = URL(self.url)
        if self.username and self.password:
            proxy = proxy.with_user(self.username).with_password(self.password)
        return str(proxy)


@dataclass
class SSLConfig:
    """TLS verification settings."""
    verify: bool = True
    ca_file: Optional[str] = None

    def create_ssl_context(self) -> Union[ssl.SSLContext, bool]:
        """Returns an SSL context, or False to skip verification."""
        if not self.verify:
            return False
        return ssl.create_default_context(cafile=self.ca_file)


@dataclass
class TimeoutConfig:
    """
    Timeouts in seconds.

    ``total`` is unset by default; only connection setup is bounded.
    """
    total: Optional[float] = None
    connect: Optional[float] = 30.0
    sock_read: Optional[float] = None

    def to_aiohttp_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read
        )


@dataclass
class RetryConfig:
    """Backoff parameters for ExponentialBackoffStrategy."""
    max_retries: int = 4
    base_delay: float = 0.25
    max_delay: float = 16.0

    def calculate_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-based)."""
        return min(self.base_delay * 2 ** attempt, self.max_delay)


@dataclass
class APIConfig:
    """
    Drive API client configuration.

    Example:
        >>> config = APIConfig.with_proxy("http://proxy:3128")
        >>> async with DriveClient(token=token, config=config) as drive:
        ...     await drive.upload("movie.mov")
    """
    upload_api_url: str = DRIVE_UPLOAD_ENDPOINT
    files_api_url: str = DRIVE_FILES_ENDPOINT
    token_url: str = OAUTH_TOKEN_ENDPOINT
    upload_url_pattern: str = UPLOAD_URL_PATTERN

    user_agent: str = 'driveupload/1.0.0'
    extra_headers: Dict[str, str] = field(default_factory=dict)

    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    # Concurrent connections per client
    connection_limit: int = 10

    @classmethod
    def default(cls) -> 'APIConfig':
        return cls()

    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'APIConfig':
        """Create configuration routing requests through a proxy."""
        return cls(proxy=ProxyConfig(url=proxy_url), **kwargs)

    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Create configuration with TLS verification disabled."""
        return cls(ssl=SSLConfig(verify=False), **kwargs)

    def is_valid_upload_url(self, url: str) -> bool:
        """Check a session URL against upload_url_pattern."""
        return re.match(self.upload_url_pattern, url) is not None

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.connection_limit,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        return {
            'headers': {'User-Agent': self.user_agent, **self.extra_headers},
            'timeout': self.timeout.to_aiohttp_timeout(),
        }

    def get_request_kwargs(self) -> Dict[str, Any]:
        """Get per-request kwargs for aiohttp (proxy)."""
        proxy = self.proxy.to_aiohttp_proxy() if self.proxy else None
        return {'proxy': proxy} if proxy else {}
