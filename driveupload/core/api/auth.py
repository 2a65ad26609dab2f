"""
Authentication services.

Provide OAuth2 bearer tokens for the Drive APIs.
"""
import json
import time
import base64
import asyncio
import logging
from typing import Optional, Sequence

import aiohttp
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding as rsa_padding

from .config import APIConfig
from ..exceptions import ConfigurationError, ProtocolError, TransportError

DRIVE_SCOPES = ('https://www.googleapis.com/auth/drive',)


def b64url_encode(data: bytes) -> str:
    """Encodes bytes to Base64 URL-safe without padding."""
    return base64.urlsafe_b64encode(data).decode().rstrip('=')


class StaticTokenAuth:
    """Authenticator returning a token obtained elsewhere."""

    def __init__(self, token: str):
        if not token or not isinstance(token, str):
            raise ConfigurationError("`token` must be a non-empty string")
        self._token = token

    async def get_token(self) -> str:
        return self._token


class ServiceAccountAuth:
    """
    Service account authenticator.

    Signs an RS256 JWT assertion with the account's private key and trades
    it for an access token. Tokens are cached until shortly before expiry.

    Example:
        >>> auth = ServiceAccountAuth(email, private_key, subject='me@example.com')
        >>> token = await auth.get_token()
    """

    GRANT_TYPE = 'urn:ietf:params:oauth:grant-type:jwt-bearer'
    TOKEN_LIFETIME = 3600
    EXPIRY_MARGIN = 60

    def __init__(
        self,
        email: str,
        private_key: str,
        subject: Optional[str] = None,
        scopes: Sequence[str] = DRIVE_SCOPES,
        session: Optional[aiohttp.ClientSession] = None,
        config: Optional[APIConfig] = None
    ):
        """
        Initialize service account authenticator.

        Args:
            email: Service account email
            private_key: PEM encoded private key
            subject: Email of the user to act as (domain-wide delegation)
            scopes: OAuth2 scopes to request
            session: Optional shared HTTP session
            config: API configuration
        """
        if not email or not isinstance(email, str):
            raise ConfigurationError("`email` must be a non-empty string")
        if not private_key or not isinstance(private_key, str):
            raise ConfigurationError("`private_key` must be a non-empty string")
        try:
            self._key = serialization.load_pem_private_key(
                private_key.encode(), password=None
            )
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid private key: {e}") from e

        self._email = email
        self._subject = subject
        self._scopes = tuple(scopes)
        self._session = session
        self._config = config or APIConfig.default()
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()
        self._logger = logging.getLogger('driveupload.api.auth')

    @classmethod
    def from_file(cls, path: str, subject: Optional[str] = None, **kwargs) -> 'ServiceAccountAuth':
        """Create from a downloaded service account JSON key file."""
        try:
            with open(path, encoding='utf-8') as f:
                info = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read service account file {path}: {e}") from e
        if not isinstance(info, dict) or 'client_email' not in info or 'private_key' not in info:
            raise ConfigurationError(f"Not a service account key file: {path}")
        return cls(info['client_email'], info['private_key'], subject=subject, **kwargs)

    def build_assertion(self, now: Optional[int] = None) -> str:
        """Build the signed JWT assertion."""
        now = int(time.time()) if now is None else now
        header = {'alg': 'RS256', 'typ': 'JWT'}
        claims = {
            'iss': self._email,
            'scope': ' '.join(self._scopes),
            'aud': self._config.token_url,
            'iat': now,
            'exp': now + self.TOKEN_LIFETIME,
        }
        if self._subject:
            claims['sub'] = self._subject

        signing_input = '.'.join(
            b64url_encode(json.dumps(part, separators=(',', ':')).encode())
            for part in (header, claims)
        )
        signature = self._key.sign(
            signing_input.encode(),
            rsa_padding.PKCS1v15(),
            hashes.SHA256()
        )
        return f"{signing_input}.{b64url_encode(signature)}"

    async def get_token(self) -> str:
        """Returns a cached or freshly exchanged access token."""
        async with self._lock:
            if self._token and time.time() < self._expires_at - self.EXPIRY_MARGIN:
                return self._token
            self._token, lifetime = await self._exchange()
            self._expires_at = time.time() + lifetime
            return self._token

    async def _exchange(self):
        self._logger.debug(f"Authenticating as {self._email}")
        form = {'grant_type': self.GRANT_TYPE, 'assertion': self.build_assertion()}

        owns_session = self._session is None
        session = self._session or aiohttp.ClientSession(**self._config.get_session_kwargs())
        try:
            async with session.post(
                self._config.token_url,
                data=form,
                **self._config.get_request_kwargs()
            ) as resp:
                status = resp.status
                content = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Failed to authenticate: {e}", cause=e) from e
        finally:
            if owns_session:
                await session.close()

        if status != 200:
            raise ProtocolError(
                f"Authentication failed with status code {status}",
                status_code=status,
                response_content=content
            )
        try:
            data = json.loads(content)
            token = data['access_token']
            lifetime = int(data.get('expires_in', self.TOKEN_LIFETIME))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ProtocolError(
                "Invalid response from token endpoint",
                status_code=status,
                response_content=content
            ) from e

        self._logger.debug(f"Authenticated as {self._email}")
        return token, lifetime
