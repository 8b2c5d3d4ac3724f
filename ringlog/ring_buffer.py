"""Single-producer/single-consumer ring buffer of fixed-size binary records."""

from __future__ import annotations

import mmap
import threading


class RingBuffer:
    """A byte ring buffer holding records of a fixed size.

    The backing store is rounded up to a whole number of pages.
    Reads and writes behave as though the store were mapped twice, back
    to back. A record may therefore straddle the end of the store and
    still be copied as one contiguous piece. Positions run from 0 to
    twice the store size. The reader pulls both positions back by one
    store length once it has passed the end of the first copy.
    """

    def __init__(self, capacity: int, entry_size: int, page_size: int = mmap.PAGESIZE) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if entry_size <= 0:
            raise ValueError("entry_size must be positive")
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        pages = (capacity + page_size - 1) // page_size
        self.buffer_size = pages * page_size
        self.entry_size = entry_size
        self._buffer = bytearray(self.buffer_size)
        self._head = 0  # read position
        self._tail = 0  # write position
        self._lock = threading.Lock()

    def _copy_in(self, position: int, data: bytes) -> None:
        start = position % self.buffer_size
        first = min(len(data), self.buffer_size - start)
        self._buffer[start:start + first] = data[:first]
        rest = len(data) - first
        if rest:
            self._buffer[:rest] = data[first:]

    def _copy_out(self, position: int, length: int) -> bytes:
        start = position % self.buffer_size
        first = min(length, self.buffer_size - start)
        chunk = bytes(self._buffer[start:start + first])
        rest = length - first
        if rest:
            chunk += bytes(self._buffer[:rest])
        return chunk

    def write(self, entry: bytes) -> bool:
        """Append one record; return False if there is no room for it now."""
        if len(entry) != self.entry_size:
            raise ValueError(
                f"entry must be exactly {self.entry_size} bytes, got {len(entry)}"
            )
        with self._lock:
            tail, head = self._tail, self._head
            # The reader has not yet moved the positions back.
            if tail + self.entry_size > self.buffer_size * 2:
                return False
            if tail < head:
                return False
            available = self.buffer_size - (tail - head)
            if available < self.entry_size:
                return False
            self._copy_in(tail, bytes(entry))
            self._tail = tail + self.entry_size
            return True

    def _advance_head(self, head: int) -> None:
        if head > self.buffer_size:
            head -= self.buffer_size
            self._tail -= self.buffer_size
        self._head = head

    def read(self) -> bytes | None:
        """Remove and return the oldest record, or None if there is none."""
        with self._lock:
            head = self._head
            if self._tail - head < self.entry_size:
                return None
            data = self._copy_out(head, self.entry_size)
            self._advance_head(head + self.entry_size)
            return data

    def read_batch(self, max_count: int) -> list[bytes]:
        """Remove and return up to max_count of the oldest records."""
        if max_count < 0:
            raise ValueError("max_count must not be negative")
        with self._lock:
            head = self._head
            available = (self._tail - head) // self.entry_size
            count = min(max_count, available)
            if count == 0:
                return []
            raw = self._copy_out(head, count * self.entry_size)
            self._advance_head(head + count * self.entry_size)
        size = self.entry_size
        return [raw[offset:offset + size] for offset in range(0, len(raw), size)]

    def __len__(self) -> int:
        with self._lock:
            return (self._tail - self._head) // self.entry_size