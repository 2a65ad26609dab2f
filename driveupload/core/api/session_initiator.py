"""
Resumable session initiation.

Obtains a session URL for a new upload from the Drive upload API.
"""
import json
import asyncio
from typing import Optional, Dict, Any

import aiohttp

from .config import APIConfig
from ..exceptions import ProtocolError, TransportError
from ..logging import get_logger


class DriveSessionInitiator:
    """
    Starts resumable upload sessions.

    Example:
        >>> initiator = DriveSessionInitiator(session, auth)
        >>> url = await initiator.initiate("movie.mov", 1048576, folder_id="abc")
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        auth,
        config: Optional[APIConfig] = None
    ):
        """
        Initialize session initiator.

        Args:
            session: HTTP session
            auth: Authenticator providing bearer tokens
            config: API configuration
        """
        self._session = session
        self._auth = auth
        self._config = config or APIConfig.default()
        self._logger = get_logger('driveupload.api.session')

    async def initiate(
        self,
        filename: str,
        size: int,
        folder_id: Optional[str] = None,
        mime_type: Optional[str] = None
    ) -> str:
        """
        Start a resumable upload session.

        Args:
            filename: Name to create the file with
            size: Declared upload size in bytes
            folder_id: Optional parent folder ID
            mime_type: Optional MIME type

        Returns:
            Session URL

        Raises:
            TransportError: If the request fails
            ProtocolError: If the service refuses or returns no valid URL
        """
        token = await self._auth.get_token()

        body: Dict[str, Any] = {'name': filename}
        if folder_id:
            body['parents'] = [folder_id]

        headers = {
            'Authorization': f"Bearer {token}",
            'Content-Type': 'application/json; charset=UTF-8',
            'X-Upload-Content-Length': str(size),
        }
        if mime_type:
            headers['X-Upload-Content-Type'] = mime_type

        self._logger.debug(
            f"Getting upload URL: {filename} ({size} bytes, folder {folder_id}, {mime_type})"
        )
        try:
            async with self._session.post(
                self._config.upload_api_url,
                data=json.dumps(body),
                headers=headers,
                allow_redirects=False,
                **self._config.get_request_kwargs()
            ) as resp:
                status = resp.status
                upload_url = resp.headers.get('Location')
                content = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Failed to get upload URL: {e}", cause=e) from e

        if status != 200:
            raise ProtocolError(
                f"Bad status code {status} returned when getting upload URL",
                status_code=status,
                response_content=content
            )

        if not upload_url:
            raise ProtocolError("No upload URL returned", status_code=status)

        if not self._config.is_valid_upload_url(upload_url):
            raise ProtocolError(
                f"Received invalid upload URL '{upload_url}'",
                status_code=status,
                response_content=upload_url
            )

        self._logger.debug(f"Got upload URL for {filename}: {upload_url}")
        return upload_url
