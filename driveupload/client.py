"""
Drive upload client.

Owns the HTTP session and credentials and exposes the upload operations.
"""
from pathlib import Path
from typing import Optional, Union, Callable, Any

import aiohttp

from .core.api import (
    APIConfig,
    StaticTokenAuth,
    ServiceAccountAuth,
    DriveSessionInitiator,
    DriveMetadataFetcher,
)
from .core.upload import UploadFacade, UploadConfig, UploadResult, UploadProgress, RemoteFileInfo
from .core.upload.protocols import Authenticator
from .core.exceptions import ConfigurationError
from .core.logging import get_logger

logger = get_logger('driveupload.client')


class DriveClient:
    """
    Async client for resumable uploads to Google Drive.

    Usage:
        >>> async with DriveClient(token="ya29...") as drive:
        ...     result = await drive.upload("movie.mov", folder_id="1eim7J...")
        ...     print(result.file_id, result.md5)

        >>> auth = ServiceAccountAuth.from_file("key.json", subject="me@example.com")
        >>> async with DriveClient(auth=auth) as drive:
        ...     url = await drive.get_upload_url("movie.mov", size=1048576)
    """

    def __init__(
        self,
        auth: Optional[Authenticator] = None,
        token: Optional[str] = None,
        config: Optional[APIConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize client.

        Args:
            auth: Authenticator providing bearer tokens
            token: Access token (shortcut for StaticTokenAuth)
            config: API configuration
            session: Optional externally managed HTTP session
        """
        if auth is not None and token is not None:
            raise ConfigurationError("`auth` and `token` are mutually exclusive")
        if token is not None:
            auth = StaticTokenAuth(token)

        self._auth = auth
        self._config = config or APIConfig.default()
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_service_account(
        cls,
        email: str,
        private_key: str,
        subject: Optional[str] = None,
        config: Optional[APIConfig] = None
    ) -> 'DriveClient':
        """Create a client authenticating as a service account."""
        config = config or APIConfig.default()
        return cls(auth=ServiceAccountAuth(email, private_key, subject=subject, config=config), config=config)

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def auth(self) -> Optional[Authenticator]:
        return self._auth

    async def __aenter__(self) -> 'DriveClient':
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
            self._session = aiohttp.ClientSession(
                connector=connector,
                **self._config.get_session_kwargs()
            )
            self._owns_session = True
        return self._session

    async def close(self):
        """Close client and release resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _require_auth(self, purpose: str) -> Authenticator:
        if self._auth is None:
            raise ConfigurationError(f"`auth` must be provided {purpose}")
        return self._auth

    async def get_upload_url(
        self,
        filename: str,
        size: int,
        folder_id: Optional[str] = None,
        mime_type: Optional[str] = None
    ) -> str:
        """
        Create a resumable upload session.

        Args:
            filename: Name to create the file with
            size: Size in bytes
            folder_id: Optional parent folder ID
            mime_type: Optional MIME type

        Returns:
            Session URL
        """
        if not filename or not isinstance(filename, str):
            raise ConfigurationError("`filename` must be a non-empty string")
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise ConfigurationError("`size` must be a non-negative integer")
        auth = self._require_auth("to get an upload URL")
        session = await self._ensure_session()
        return await DriveSessionInitiator(session, auth, self._config).initiate(
            filename, size, folder_id, mime_type
        )

    async def get_final(self, file_id: str) -> RemoteFileInfo:
        """
        Get size, MD5 and MIME type of an uploaded file.

        Args:
            file_id: ID of the file

        Returns:
            RemoteFileInfo
        """
        if not file_id or not isinstance(file_id, str):
            raise ConfigurationError("`file_id` must be a non-empty string")
        auth = self._require_auth("to get file info")
        session = await self._ensure_session()
        return await DriveMetadataFetcher(session, auth, self._config).fetch(file_id)

    async def upload(
        self,
        file_path: Optional[Union[str, Path]] = None,
        *,
        chunk_source: Any = None,
        upload_url: Optional[str] = None,
        filename: Optional[str] = None,
        size: Optional[int] = None,
        folder_id: Optional[str] = None,
        mime_type: Optional[str] = None,
        md5: Optional[str] = None,
        skip_md5: bool = False,
        chunk_size: Optional[int] = None,
        verify: bool = True,
        progress_callback: Optional[Callable[[UploadProgress], None]] = None,
        data_callback: Optional[Callable[[bytes], None]] = None,
        **options
    ) -> UploadResult:
        """
        Upload a file or byte source.

        Args:
            file_path: Path to file to upload
            chunk_source: Alternative byte source or stream factory
            upload_url: Existing session URL (skips session creation)
            filename: Name to create the file with
            size: Size in bytes (required with chunk_source)
            folder_id: Parent folder ID
            mime_type: MIME type
            md5: Precomputed hex MD5
            skip_md5: Do not compute a local MD5
            chunk_size: Bytes per chunk (multiple of 256 KiB)
            verify: Check size and MD5 against the service afterwards
            progress_callback: Called with UploadProgress
            data_callback: Called with every newly sent buffer
            **options: Remaining UploadConfig fields (logger, probe_retry, ...)

        Returns:
            UploadResult
        """
        if chunk_size is not None:
            options['chunk_size'] = chunk_size
        config = UploadConfig(
            upload_url=upload_url,
            file_path=file_path,
            chunk_source=chunk_source,
            filename=filename,
            size=size,
            folder_id=folder_id,
            mime_type=mime_type,
            md5=md5,
            skip_md5=skip_md5,
            verify=verify,
            progress_callback=progress_callback,
            data_callback=data_callback,
            **options
        )
        return await self.upload_with_config(config)

    async def upload_with_config(self, config: UploadConfig) -> UploadResult:
        """
        Upload using explicit configuration.

        Args:
            config: Upload configuration

        Returns:
            UploadResult
        """
        if not config.upload_url:
            self._require_auth("unless `upload_url` provided")
        if config.verify and config.metadata_fetcher is None:
            self._require_auth("unless a custom metadata fetcher is given or `verify` is False")

        session = await self._ensure_session()
        initiator = DriveSessionInitiator(session, self._auth, self._config) if self._auth else None
        fetcher = DriveMetadataFetcher(session, self._auth, self._config) if self._auth else None

        facade = UploadFacade(
            http_session=session,
            session_initiator=initiator,
            metadata_fetcher=fetcher,
            api_config=self._config
        )
        logger.debug(f"Starting upload: {config.file_path or config.filename or config.upload_url}")
        return await facade.upload(config)
