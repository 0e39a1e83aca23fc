"""Holding area for uploads that failed their synchronous attempts."""

from collections import deque
from dataclasses import dataclass, field

from photobooth.domain.errors import PermanentFailure
from photobooth.domain.uploads import RetryItem


@dataclass
class UploadRetryQueue:
    """FIFO of failed uploads processed by the retry sweep."""

    max_attempts: int = 3
    _items: deque[RetryItem] = field(default_factory=deque)

    def __len__(self) -> int:
        return len(self._items)

    def push(self, item: RetryItem) -> None:
        """Queue a failed upload."""
        self._items.append(item)

    def drain(self) -> list[RetryItem]:
        """Take every queued item, leaving the queue empty."""
        items = list(self._items)
        self._items.clear()
        return items

    def requeue(self, item: RetryItem) -> None:
        """Count a failed retry and queue the item again, or give up on it."""
        item.attempts += 1
        if item.attempts >= self.max_attempts:
            raise PermanentFailure(
                f"Upload of photo {item.photo_id} for session {item.session_id} "
                f"dropped after {item.attempts} retries",
                sessionId=item.session_id,
                photoId=item.photo_id,
            )
        self._items.append(item)
