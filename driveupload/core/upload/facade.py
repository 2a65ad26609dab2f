"""
Upload facade.

Provides a simplified interface for resumable uploads.
Follows Facade Pattern - hides the wiring of the upload subsystem.
"""
from typing import Optional
import logging

import aiohttp

from .coordinator import UploadCoordinator
from .models import UploadConfig, UploadResult, UploadSession
from .protocols import ChunkSource, SessionInitiator, MetadataFetcher
from .services import (
    FileValidator,
    FileChunkSource,
    CallableChunkSource,
    ChunkUploader,
    IntegrityTracker,
)
from .strategies import ResumableChunkingStrategy
from ..api.config import APIConfig
from ..exceptions import ConfigurationError


class UploadFacade:
    """
    Simplified interface for resumable uploads.

    Resolves everything an UploadConfig leaves implicit (size, byte source,
    session URL, verification) and runs an UploadCoordinator.

    Example:
        >>> facade = UploadFacade(http_session, initiator, fetcher)
        >>> result = await facade.upload(UploadConfig(file_path="movie.mov"))
        >>> print(result.file_id, result.md5)
    """

    def __init__(
        self,
        http_session: Optional[aiohttp.ClientSession] = None,
        session_initiator: Optional[SessionInitiator] = None,
        metadata_fetcher: Optional[MetadataFetcher] = None,
        api_config: Optional[APIConfig] = None,
        log_level: Optional[int] = None
    ):
        """
        Initialize upload facade.

        Args:
            http_session: Shared HTTP session for chunk PUTs
            session_initiator: Obtains session URLs (needed without upload_url)
            metadata_fetcher: Default remote verification
            api_config: API configuration
            log_level: Logging level for upload loggers
        """
        self._http_session = http_session
        self._initiator = session_initiator
        self._metadata_fetcher = metadata_fetcher
        self._api_config = api_config or APIConfig.default()
        self._validator = FileValidator()
        self._logger = logging.getLogger('driveupload.upload')
        if log_level is not None:
            self._logger.setLevel(log_level)

    async def upload(self, config: UploadConfig) -> UploadResult:
        """
        Upload using explicit configuration.

        Args:
            config: Upload configuration

        Returns:
            UploadResult with file ID, size, MD5 and MIME type

        Raises:
            ConfigurationError: If the config cannot be satisfied (before any I/O)
            DriveUploadError: Subclasses for transfer and verification failures
        """
        log = config.logger or self._logger

        # Validate everything before touching the network
        if not config.upload_url and self._initiator is None:
            raise ConfigurationError(
                "`upload_url` must be provided unless a session initiator is configured"
            )
        fetcher = None
        if config.verify:
            fetcher = config.metadata_fetcher or self._metadata_fetcher
            if fetcher is None:
                raise ConfigurationError(
                    "A metadata fetcher must be configured unless `verify` is False"
                )
        chunking = ResumableChunkingStrategy(config.chunk_size, config.chunk_granularity)

        size = config.size
        source = config.chunk_source
        if config.file_path is not None:
            path, file_size = self._validator.validate(config.file_path)
            if size is None:
                log.debug(f"Stat-ed file {path}: {file_size} bytes")
                size = file_size
            source = FileChunkSource(path)
        elif not isinstance(source, ChunkSource):
            if not callable(source):
                raise ConfigurationError(
                    "`chunk_source` must implement open_chunk() or be a stream factory"
                )
            source = CallableChunkSource(source)

        upload_url = config.upload_url
        if not upload_url:
            filename = config.filename or config.file_path.name
            upload_url = await self._initiator.initiate(
                filename, size, config.folder_id, config.mime_type
            )

        session = UploadSession(
            upload_url=upload_url,
            total_size=size,
            chunk_size=config.chunk_size
        )
        tracker = IntegrityTracker(
            config.hash_mode,
            provided_md5=config.md5,
            observer=config.data_callback
        )
        uploader = ChunkUploader(
            upload_url,
            size,
            session=self._http_session,
            timeout=self._api_config.timeout.to_aiohttp_timeout(),
            logger=config.logger,
            request_kwargs=self._api_config.get_request_kwargs()
        )
        coordinator = UploadCoordinator(
            session=session,
            source=source,
            uploader=uploader,
            tracker=tracker,
            chunking_strategy=chunking,
            metadata_fetcher=fetcher,
            retry_strategy=config.probe_retry,
            progress_callback=config.progress_callback,
            logger=config.logger
        )

        try:
            return await coordinator.run()
        finally:
            await uploader.close()
