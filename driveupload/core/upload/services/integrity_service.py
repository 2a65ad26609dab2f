"""
Integrity tracking service.

Maintains a running MD5 of uploaded content that stays correct when byte
ranges are replayed after a resume.
"""
import hashlib
from typing import Optional, Callable

from ..models import HashMode


class IntegrityTracker:
    """
    Resume-safe streaming hash of uploaded bytes.

    Buffers are fed in transmission order, tagged with their offset in the
    whole upload. Each byte offset is hashed exactly once: a buffer that
    overlaps already hashed territory only contributes its new suffix, and a
    buffer lying entirely before the cursor is ignored.

    Example:
        >>> tracker = IntegrityTracker(HashMode.COMPUTED)
        >>> tracker.update(0, b"hello ")
        >>> tracker.update(3, b"lo world")  # replay from offset 3
        >>> tracker.bytes_hashed
        11
    """

    def __init__(
        self,
        mode: HashMode = HashMode.COMPUTED,
        provided_md5: Optional[str] = None,
        observer: Optional[Callable[[bytes], None]] = None
    ):
        """
        Initialize tracker.

        Args:
            mode: Hash mode
            provided_md5: Caller supplied digest (PROVIDED mode only)
            observer: Called with every newly seen buffer
        """
        if mode is HashMode.PROVIDED and not provided_md5:
            raise ValueError("PROVIDED mode requires a digest")
        self._mode = mode
        self._provided_md5 = provided_md5
        self._observer = observer
        self._hash = hashlib.md5() if mode is HashMode.COMPUTED else None
        self._bytes_hashed = 0
        self._digest: Optional[str] = None

    @property
    def mode(self) -> HashMode:
        return self._mode

    @property
    def bytes_hashed(self) -> int:
        """Returns the offset up to which bytes have been seen."""
        return self._bytes_hashed

    @property
    def is_tracking(self) -> bool:
        """Returns True if bytes need to pass through the tracker."""
        return self._hash is not None or self._observer is not None

    def update(self, offset: int, buffer: bytes) -> int:
        """
        Feed a buffer starting at ``offset``.

        Args:
            offset: Offset of the first byte of buffer in the upload
            buffer: Bytes as transmitted

        Returns:
            Number of bytes newly hashed
        """
        if not self.is_tracking:
            return 0
        if self._digest is not None:
            raise RuntimeError("Cannot update a finalized hash")

        buffer_end = offset + len(buffer)
        if buffer_end <= self._bytes_hashed:
            return 0

        if offset > self._bytes_hashed:
            # Bytes before offset were never seen; hashing cannot complete
            return 0

        if offset == self._bytes_hashed:
            fresh = buffer
        else:
            fresh = memoryview(buffer)[self._bytes_hashed - offset:].tobytes()

        if self._hash is not None:
            self._hash.update(fresh)
        if self._observer is not None:
            self._observer(fresh)

        self._bytes_hashed = buffer_end
        return len(fresh)

    def hexdigest(self) -> Optional[str]:
        """
        Returns the content MD5 as hex.

        COMPUTED mode finalizes on the first call; later calls return the
        same digest. PROVIDED returns the caller's digest, SKIPPED None.
        """
        if self._mode is HashMode.PROVIDED:
            return self._provided_md5
        if self._mode is HashMode.SKIPPED:
            return None
        if self._digest is None:
            self._digest = self._hash.hexdigest()
        return self._digest

    def is_complete(self, total_size: int) -> bool:
        """Returns True if every byte up to total_size was seen (or none needed)."""
        if not self.is_tracking:
            return True
        return self._bytes_hashed == total_size
