"""
Remote file metadata.

Fetches the authoritative size, MD5 and MIME type of an uploaded file.
"""
import re
import json
import asyncio
from typing import Optional
from urllib.parse import quote

import aiohttp

from .config import APIConfig
from ..exceptions import ProtocolError, TransportError
from ..logging import get_logger
from ..upload.models import RemoteFileInfo

SIZE_PATTERN = re.compile(r'^\d+$')
MD5_PATTERN = re.compile(r'^[\da-f]{32}$')


class DriveMetadataFetcher:
    """Gets file details from the Drive files API."""

    FIELDS = 'size,md5Checksum,mimeType'

    def __init__(
        self,
        session: aiohttp.ClientSession,
        auth,
        config: Optional[APIConfig] = None
    ):
        """
        Initialize metadata fetcher.

        Args:
            session: HTTP session
            auth: Authenticator providing bearer tokens
            config: API configuration
        """
        self._session = session
        self._auth = auth
        self._config = config or APIConfig.default()
        self._logger = get_logger('driveupload.api.metadata')

    async def fetch(self, file_id: str) -> RemoteFileInfo:
        """
        Get size, MD5 and MIME type of a file.

        Args:
            file_id: ID of the file

        Returns:
            RemoteFileInfo

        Raises:
            TransportError: If the request fails
            ProtocolError: If the response is not a valid file description
        """
        token = await self._auth.get_token()
        url = f"{self._config.files_api_url}/{quote(file_id, safe='')}"

        self._logger.debug(f"Getting file info from API: {file_id}")
        try:
            async with self._session.get(
                url,
                params={'fields': self.FIELDS},
                headers={'Authorization': f"Bearer {token}"},
                **self._config.get_request_kwargs()
            ) as resp:
                status = resp.status
                content = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Failed to get file info from API: {e}", cause=e) from e

        if status != 200:
            raise ProtocolError(
                f"Getting file attributes failed with status code {status}",
                status_code=status,
                response_content=content
            )

        info = self.parse(content)
        self._logger.debug(f"Got file info from API: {file_id} {info}")
        return info

    @staticmethod
    def parse(content: bytes) -> RemoteFileInfo:
        """
        Parse and validate a files.get response body.

        Raises:
            ProtocolError: If a field is missing or malformed
        """
        try:
            data = json.loads(content)
        except (ValueError, UnicodeDecodeError) as e:
            raise ProtocolError("Invalid response getting file attributes", response_content=content) from e

        if not isinstance(data, dict):
            raise ProtocolError("Invalid response getting file attributes", response_content=content)

        size = data.get('size')
        md5 = data.get('md5Checksum')
        mime_type = data.get('mimeType')
        if (
            not isinstance(size, str) or not SIZE_PATTERN.match(size)
            or not isinstance(md5, str) or not MD5_PATTERN.match(md5)
            or not isinstance(mime_type, str) or not mime_type
        ):
            raise ProtocolError("Invalid response getting file attributes", response_content=content)

        return RemoteFileInfo(size=int(size), md5=md5, mime_type=mime_type)
