"""
Chunk upload service.

Sends chunk PUTs and continuation probes to a resumable session URL and
classifies the responses.
"""
import re
import json
import time
import asyncio
import logging
from typing import Optional, AsyncIterator, Mapping, Dict, Any

import aiohttp

from ..models import PutOutcome
from ...exceptions import TransportError, ProtocolError


class ChunkUploader:
    """
    Handles PUT requests to a resumable upload session.

    Reuses one HTTP session for all chunks.

    Responsibilities:
    - Send chunk bodies and zero-length probes
    - Classify responses into PutOutcome
    - Never raise on transport or protocol failure
    """

    COMPLETE_STATUSES = (200, 201)
    RESUME_INCOMPLETE = 308
    RANGE_PATTERN = re.compile(r'^bytes=0-(\d+)$')

    def __init__(
        self,
        upload_url: str,
        total_size: int,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: Optional[logging.Logger] = None,
        request_kwargs: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize chunk uploader.

        Args:
            upload_url: Resumable session URL
            total_size: Declared upload size in bytes
            session: Optional shared session (RECOMMENDED)
            timeout: Request timeout (default: none)
            logger: Logger instance
            request_kwargs: Extra aiohttp request kwargs (e.g. proxy)
        """
        self._upload_url = upload_url
        self._total_size = total_size
        self._session = session
        self._owns_session = False
        self._timeout = timeout or aiohttp.ClientTimeout(total=None)
        self._request_kwargs = request_kwargs or {}
        self._logger = logger or logging.getLogger('driveupload.upload.chunk')

    @property
    def upload_url(self) -> str:
        """Returns the upload URL."""
        return self._upload_url

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self):
        """Close session if we own it."""
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None
            self._owns_session = False

    def content_range(self, range_spec: str) -> str:
        """Build Content-Range header value, e.g. 'bytes 0-1023/4096'."""
        return f"bytes {range_spec}/{self._total_size}"

    async def put(
        self,
        body: Optional[AsyncIterator[bytes]],
        length: int,
        range_spec: str
    ) -> PutOutcome:
        """
        Make one PUT to the session URL.

        Args:
            body: Chunk byte stream, or None for a probe
            length: Size of chunk data in bytes
            range_spec: Byte range e.g. '0-1023', or '*' for a probe

        Returns:
            PutOutcome. Always returns, never raises (except on cancellation).
        """
        headers = {
            'Content-Length': str(length),
            'Content-Range': self.content_range(range_spec),
        }
        self._logger.debug(f"Putting {length} bytes, range {headers['Content-Range']}")

        put_start = time.time()
        try:
            session = await self._get_session()
            async with session.put(
                self._upload_url,
                data=body,
                headers=headers,
                allow_redirects=False,
                timeout=self._timeout,
                **self._request_kwargs
            ) as response:
                status = response.status
                content = await response.read()
                outcome = self._classify(status, response.headers, content)
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            put_time = time.time() - put_start
            self._logger.warning(f"Put error after {put_time:.2f}s: {e!r}")
            return PutOutcome.failed(TransportError(f"PUT to upload URL failed: {e}", cause=e))

        put_time = time.time() - put_start
        self._logger.debug(
            f"Put result after {put_time:.2f}s: status {outcome.status}, "
            f"ended normally: {outcome.ended_normally}"
        )
        return outcome

    def _classify(
        self,
        status: int,
        headers: Mapping[str, str],
        content: bytes
    ) -> PutOutcome:
        """
        Classify a response.

        Args:
            status: HTTP status code
            headers: Response headers (case-insensitive mapping)
            content: Raw response body

        Returns:
            PutOutcome
        """
        if status == self.RESUME_INCOMPLETE:
            return self._classify_resume(status, headers.get('Range'))

        if status in self.COMPLETE_STATUSES:
            return self._classify_complete(status, content)

        self._logger.warning(f"Put failed with status code {status}")
        return PutOutcome.failed(
            ProtocolError(
                f"Unexpected status code {status} from upload URL",
                status_code=status,
                response_content=content
            ),
            status=status
        )

    def _classify_resume(self, status: int, range_header: Optional[str]) -> PutOutcome:
        """More chunks needed - get where up to from Range header."""
        if not range_header:
            offset = 0
        else:
            match = self.RANGE_PATTERN.match(range_header)
            if not match:
                self._logger.warning(f"Put could not parse range header: {range_header!r}")
                return PutOutcome.failed(
                    ProtocolError(
                        f"Invalid Range header {range_header!r}",
                        status_code=status,
                        response_content=range_header
                    ),
                    status=status
                )
            offset = int(match.group(1)) + 1

        if offset > self._total_size:
            self._logger.warning(f"Put reported offset {offset} beyond size {self._total_size}")
            return PutOutcome.failed(
                ProtocolError(
                    f"Server committed {offset} bytes of a {self._total_size} byte upload",
                    status_code=status,
                    response_content=range_header
                ),
                status=status
            )

        self._logger.debug(f"Put needs resume from {offset}")
        return PutOutcome.resumable(offset, status)

    def _classify_complete(self, status: int, content: bytes) -> PutOutcome:
        """Upload is complete - extract file ID."""
        try:
            data = json.loads(content)
        except (ValueError, UnicodeDecodeError) as e:
            self._logger.warning(f"Put could not parse body on completion: {e}")
            return PutOutcome.failed(
                ProtocolError(
                    "Unparseable response body on completion",
                    status_code=status,
                    response_content=content
                ),
                status=status
            )

        file_id = data.get('id') if isinstance(data, dict) else None
        if not file_id or not isinstance(file_id, str):
            self._logger.warning("Put could not find file ID on completion")
            return PutOutcome.failed(
                ProtocolError(
                    "No file ID in response body on completion",
                    status_code=status,
                    response_content=content
                ),
                status=status
            )

        self._logger.debug(f"Put complete: status {status}, file ID {file_id}")
        return PutOutcome.completed(file_id, status)
