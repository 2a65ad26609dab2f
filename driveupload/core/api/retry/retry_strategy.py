"""Retry strategies for continuation probes, using Strategy Pattern."""
import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from ..config import RetryConfig
from ...exceptions import DriveUploadError, ProtocolError, TransportError

# Probe statuses worth asking again
TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})


class RetryStrategy(ABC):
    """Decides whether a failed probe is repeated."""

    @abstractmethod
    def should_retry(self, error: Optional[DriveUploadError], retry_count: int) -> bool:
        """Determines if a failed probe should be retried."""
        pass

    @abstractmethod
    async def wait_async(self, retry_count: int):
        """Waits before retry."""
        pass


class NoRetryStrategy(RetryStrategy):
    """Fail fast: a failed probe is never retried."""

    def should_retry(self, error: Optional[DriveUploadError], retry_count: int) -> bool:
        return False

    async def wait_async(self, retry_count: int):
        pass


class ExponentialBackoffStrategy(RetryStrategy):
    """
    Retries transient probe failures with exponential backoff.

    Transport failures and 429/5xx responses are transient; any other
    protocol error fails immediately.
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        self._config = config or RetryConfig()

    def is_transient(self, error: Optional[DriveUploadError]) -> bool:
        if isinstance(error, TransportError):
            return True
        if isinstance(error, ProtocolError):
            return error.status_code in TRANSIENT_STATUSES
        return False

    def should_retry(self, error: Optional[DriveUploadError], retry_count: int) -> bool:
        return retry_count < self._config.max_retries and self.is_transient(error)

    async def wait_async(self, retry_count: int):
        await asyncio.sleep(self._config.calculate_delay(retry_count))
