"""
AudioFrameBuffer — thread-safe sample queue between capture and analysis.

The PortAudio callback appends blocks of samples from its own thread
while the analysis loop removes fixed-size windows from the front.  All
access goes through a single lock that is held only for the duration of
a push or a drain, so the capture thread never waits on pitch estimation
or key injection.

Samples are stored as a deque of ``float32`` chunks rather than one
sample per entry.  Draining a window concatenates whole chunks from the
front and splits the last one, which keeps the critical section short
even when the backlog grows.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Iterable, Optional, Union

import numpy as np

logger = logging.getLogger(__name__)

SampleBlock = Union[np.ndarray, Iterable[float]]


class AudioFrameBuffer:
    """Ordered, lock-protected queue of mono audio samples.

    Exactly one producer appends with :meth:`push` and exactly one
    consumer removes contiguous prefixes with :meth:`drain_front`.
    Samples are never reordered.  They are only discarded by draining or,
    when ``max_backlog`` is set, by the drop-oldest policy applied on
    push.

    Args:
        max_backlog: Optional upper bound on queued samples.  When a push
            would exceed it the oldest samples are dropped and a warning
            is logged.  ``None`` (the default) leaves growth unbounded.
    """

    def __init__(self, max_backlog: Optional[int] = None) -> None:
        if max_backlog is not None and max_backlog <= 0:
            raise ValueError("max_backlog must be positive")
        self.max_backlog = max_backlog
        self._chunks: deque[np.ndarray] = deque()
        self._size = 0
        self._lock = threading.Lock()
        self.dropped = 0

    def __len__(self) -> int:
        with self._lock:
            return self._size

    def push(self, samples: SampleBlock) -> None:
        """Append ``samples`` to the tail of the queue."""
        block = np.array(samples, dtype=np.float32).reshape(-1)
        if block.size == 0:
            return
        dropped = 0
        with self._lock:
            self._chunks.append(block)
            self._size += block.size
            if self.max_backlog is not None and self._size > self.max_backlog:
                dropped = self._size - self.max_backlog
                self._discard_front(dropped)
                self.dropped += dropped
        if dropped:
            logger.warning(
                "Analysis is falling behind: dropped %d oldest samples "
                "(backlog cap %d)",
                dropped,
                self.max_backlog,
            )

    def drain_front(self, n: int) -> np.ndarray:
        """Remove and return the first ``n`` samples.

        Raises:
            ValueError: If fewer than ``n`` samples are queued.
        """
        with self._lock:
            if n > self._size:
                raise ValueError(
                    f"cannot drain {n} samples, only {self._size} queued"
                )
            parts: list[np.ndarray] = []
            needed = n
            while needed > 0:
                head = self._chunks[0]
                if head.size <= needed:
                    parts.append(self._chunks.popleft())
                    needed -= head.size
                else:
                    parts.append(head[:needed])
                    self._chunks[0] = head[needed:]
                    needed = 0
            self._size -= n
        window = np.concatenate(parts) if parts else np.empty(0, dtype=np.float32)
        window.setflags(write=False)
        return window

    def clear(self) -> None:
        """Discard every queued sample."""
        with self._lock:
            self._chunks.clear()
            self._size = 0

    # — internal —
    def _discard_front(self, count: int) -> None:
        """Drop ``count`` samples from the front.  Caller holds the lock."""
        while count > 0:
            head = self._chunks[0]
            if head.size <= count:
                self._chunks.popleft()
                count -= head.size
                self._size -= head.size
            else:
                self._chunks[0] = head[count:]
                self._size -= count
                count = 0


__all__ = ["AudioFrameBuffer"]
