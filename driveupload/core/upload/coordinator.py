"""
Upload coordinator.

Drives a resumable upload session chunk by chunk: transfers each window,
probes the server after ambiguous failures, and verifies the result.
Depends on abstractions for the byte source, the PUT transport and the
metadata lookup.
"""
import asyncio
import logging
from typing import Optional, Callable, Tuple

from .protocols import ChunkSource, ChunkUploaderProtocol, MetadataFetcher, ChunkingStrategy
from .models import UploadSession, UploadResult, UploadProgress, PutOutcome, ChunkInfo, HashMode
from .strategies import FixedSizeChunkingStrategy
from .services import IntegrityTracker, ChunkStream
from ..api.retry import RetryStrategy, NoRetryStrategy
from ..exceptions import (
    DriveUploadError,
    IntegrityError,
    ProtocolError,
    TransportError,
)
from ..logging import get_logger

module_logger = get_logger('driveupload.upload.coordinator')


class UploadCoordinator:
    """
    Coordinates one resumable upload session.

    The session cursor and the integrity tracker are owned by this object
    and only change between chunk attempts, so one coordinator must drive
    one session from a single task.

    Each chunk attempt runs the outbound byte stream and the PUT exchange
    concurrently and joins them; the attempt's outcome is only read once
    both have settled. After any failure the server is asked for its
    committed offset instead of resending blindly.
    """

    PROBE_RANGE = '*'

    def __init__(
        self,
        session: UploadSession,
        source: ChunkSource,
        uploader: ChunkUploaderProtocol,
        tracker: Optional[IntegrityTracker] = None,
        chunking_strategy: Optional[ChunkingStrategy] = None,
        metadata_fetcher: Optional[MetadataFetcher] = None,
        retry_strategy: Optional[RetryStrategy] = None,
        progress_callback: Optional[Callable[[UploadProgress], None]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize upload coordinator.

        Args:
            session: Upload session (cursor owned by this coordinator)
            source: Chunk source for the upload's bytes
            uploader: Sends chunk PUTs and probes
            tracker: Integrity tracker (default: computed MD5)
            chunking_strategy: Chunk window strategy (default: session chunk size)
            metadata_fetcher: Remote verification (None to trust local hash)
            retry_strategy: Applied to failed probes (default: fail fast)
            progress_callback: Optional callback for progress updates
            logger: Logger instance
        """
        self._session = session
        self._source = source
        self._uploader = uploader
        self._tracker = tracker or IntegrityTracker(HashMode.COMPUTED)
        self._chunking = chunking_strategy or FixedSizeChunkingStrategy(session.chunk_size)
        self._metadata_fetcher = metadata_fetcher
        self._retry = retry_strategy or NoRetryStrategy()
        self._progress_callback = progress_callback
        self._logger = logger or module_logger

    @property
    def session(self) -> UploadSession:
        return self._session

    @property
    def tracker(self) -> IntegrityTracker:
        return self._tracker

    async def run(self) -> UploadResult:
        """
        Upload every chunk, then verify.

        Returns:
            UploadResult with file ID, size, MD5 and MIME type

        Raises:
            TransportError: If a continuation probe fails
            ProtocolError: If a continuation probe gets an unusable response
            SourceError: If the chunk source fails
            IntegrityError: If verification fails (file_id attached)
        """
        size = self._session.total_size
        self._logger.info(f"Uploading file ({size} bytes) to {self._session.upload_url}")

        file_id = None
        while file_id is None:
            file_id = await self._transfer_next_chunk()

        self._logger.info(f"Uploaded file: {file_id}")

        result = await self.finalize(file_id)

        self._logger.info(
            f"Completed upload: {result.file_id} ({result.size} bytes, "
            f"md5 {result.md5}, {result.mime_type})"
        )
        return result

    async def _transfer_next_chunk(self) -> Optional[str]:
        """
        Run one chunk attempt.

        Returns:
            File ID if the server reported completion, else None
        """
        session = self._session

        if session.remaining == 0:
            # Server holds every byte but has not handed out an ID yet
            self._logger.debug("All bytes committed, asking for completion")
            outcome = await self._probe()
            self._report_progress(session.position)
            if outcome.file_id is None and session.remaining == 0:
                self._logger.error("Server committed every byte but did not report completion")
                raise ProtocolError(
                    "Server committed every byte but did not report completion",
                    status_code=outcome.status
                )
            return outcome.file_id

        chunk = self._chunking.next_chunk(session.position, session.total_size)
        self._logger.debug(f"Uploading chunk {chunk.range_spec} ({chunk.size} bytes)")

        source = self._source.open_chunk(chunk.start, chunk.size)
        stream = ChunkStream(source, chunk, self._tracker, self._report_progress)
        put_task = asyncio.ensure_future(
            self._uploader.put(stream, chunk.size, chunk.range_spec)
        )

        try:
            outcome, error = await self._join(stream, put_task)
        finally:
            if not put_task.done():
                put_task.cancel()
                await asyncio.gather(put_task, return_exceptions=True)
            await stream.aclose()

        if error is not None and not isinstance(error, (TransportError, ProtocolError)):
            # Source and callback failures are not the server's to resolve
            self._logger.error(f"Chunk {chunk.range_spec} aborted: {error}")
            raise error

        file_id = None
        if error is None and outcome is not None and outcome.ended_normally:
            file_id = self._apply(outcome, chunk)
        else:
            reason = error or (outcome.error if outcome else None)
            self._logger.warning(f"Error uploading chunk {chunk.range_spec}: {reason}")
            file_id = (await self._probe()).file_id

        self._report_progress(session.position)
        return file_id

    async def _join(
        self,
        stream: ChunkStream,
        put_task: asyncio.Future
    ) -> Tuple[Optional[PutOutcome], Optional[BaseException]]:
        """
        Wait until both the outbound stream and the PUT have settled.

        A failed stream cancels the in-flight PUT; a PUT that settles while
        the stream is still open abandons the stream.

        Returns:
            Tuple of (PUT outcome or None if cancelled, first error or None)
        """
        drained = stream.drained
        await asyncio.wait({put_task, drained}, return_when=asyncio.FIRST_COMPLETED)

        if drained.done() and drained.result() is not None and not put_task.done():
            put_task.cancel()
        if not put_task.done():
            await asyncio.wait({put_task})
        if not drained.done():
            stream.abandon()

        error = drained.result()

        outcome = None
        if not put_task.cancelled():
            put_error = put_task.exception()
            if put_error is None:
                outcome = put_task.result()
            elif error is None:
                error = put_error if isinstance(put_error, DriveUploadError) else TransportError(
                    f"PUT failed: {put_error}", cause=put_error
                )

        return outcome, error

    def _apply(self, outcome: PutOutcome, chunk: Optional[ChunkInfo] = None) -> Optional[str]:
        """Apply a normally ended outcome to the session cursor."""
        if outcome.file_id is not None:
            self._session.complete()
            return outcome.file_id

        offset = outcome.resume_offset
        if offset < self._session.position:
            self._logger.warning(
                f"Server committed offset {offset} is behind position {self._session.position}"
            )
        elif chunk is not None and offset > chunk.end:
            self._logger.warning(
                f"Server committed offset {offset} is beyond chunk end {chunk.end}"
            )
        self._session.advance_to(offset)
        self._logger.debug(f"Resuming from {offset}")
        return None

    async def _probe(self) -> PutOutcome:
        """
        Ask the server for its committed offset with a zero-length PUT.

        Raises:
            TransportError: If the probe fails and the retry strategy declines
            ProtocolError: If the probe response is unusable and the retry
                strategy declines
        """
        retry_count = 0
        while True:
            self._logger.debug("Checking position")
            outcome = await self._uploader.put(None, 0, self.PROBE_RANGE)
            if outcome.ended_normally:
                break

            if not self._retry.should_retry(outcome.error, retry_count):
                self._logger.error(f"Did not succeed in checking continuation point: {outcome.error}")
                if outcome.error is not None:
                    raise outcome.error
                raise ProtocolError(
                    "Did not succeed in checking continuation point",
                    status_code=outcome.status
                )

            self._logger.info(f"Retrying continuation probe (attempt {retry_count + 1})")
            await self._retry.wait_async(retry_count)
            retry_count += 1

        self._apply(outcome)
        return outcome

    def _report_progress(self, uploaded_bytes: int) -> None:
        if self._progress_callback:
            self._progress_callback(UploadProgress(
                total_bytes=self._session.total_size,
                uploaded_bytes=uploaded_bytes
            ))

    async def finalize(self, file_id: str) -> UploadResult:
        """
        Reconcile the content hash and verify the uploaded file.

        Any error raised here carries ``file_id``: the transfer succeeded
        even though verification did not.

        Args:
            file_id: ID returned by the completing PUT

        Returns:
            UploadResult

        Raises:
            IntegrityError: On incomplete hashing, size or MD5 mismatch
        """
        try:
            return await self._verify(file_id)
        except DriveUploadError as e:
            e.file_id = file_id
            raise
        except Exception as e:
            raise DriveUploadError(f"Failed to verify uploaded file: {e}", file_id=file_id) from e

    async def _verify(self, file_id: str) -> UploadResult:
        size = self._session.total_size
        md5 = self._tracker.hexdigest()

        if not self._tracker.is_complete(size):
            raise IntegrityError(
                "Failed to hash all uploaded data",
                expected=size,
                actual=self._tracker.bytes_hashed
            )

        if self._metadata_fetcher is None:
            return UploadResult(file_id=file_id, size=size, md5=md5)

        self._logger.debug(f"Getting file info for {file_id}")
        remote = await self._metadata_fetcher.fetch(file_id)

        if remote.size != size:
            raise IntegrityError(
                f"File transfer size mismatch: Expected {size}, actual {remote.size}",
                expected=size,
                actual=remote.size
            )

        if md5 is None:
            md5 = remote.md5
        elif remote.md5 != md5:
            raise IntegrityError(
                f"File transfer MD5 mismatch: Expected {md5}, actual {remote.md5}",
                expected=md5,
                actual=remote.md5
            )

        return UploadResult(file_id=file_id, size=size, md5=md5, mime_type=remote.mime_type)
