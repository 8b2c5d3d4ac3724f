"""A logger that stores packed records in per-thread ring buffers."""

from __future__ import annotations

import enum
import struct
import sys
import threading
import time
from dataclasses import dataclass
from typing import ClassVar, TextIO

from ringlog.ring_buffer import RingBuffer

RING_BUFFER_SIZE = 8192
FILE_FIELD_SIZE = 64
MESSAGE_FIELD_SIZE = 256


class LogLevel(enum.IntEnum):
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3

    def __str__(self) -> str:
        return self.name


def _fit(text: str, size: int) -> bytes:
    """Encode text so that it fits a NUL-terminated field of the given size."""
    encoded = text.encode("utf-8")[: size - 1]
    return encoded.decode("utf-8", errors="ignore").encode("utf-8")


def _field(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


@dataclass(frozen=True)
class PackedEntry:
    """One log record with a fixed-size, unpadded binary layout."""

    level: LogLevel
    line: int
    timestamp: int
    file: str
    message: str

    FORMAT: ClassVar[struct.Struct] = struct.Struct(
        f"<BHI{FILE_FIELD_SIZE}s{MESSAGE_FIELD_SIZE}s"
    )
    SIZE: ClassVar[int] = FORMAT.size

    def pack(self) -> bytes:
        """Encode the record. Long file names and messages are truncated."""
        if not 0 <= self.line <= 0xFFFF:
            raise ValueError(f"line {self.line} out of range")
        if not 0 <= self.timestamp <= 0xFFFFFFFF:
            raise ValueError(f"timestamp {self.timestamp} out of range")
        return self.FORMAT.pack(
            int(LogLevel(self.level)),
            self.line,
            self.timestamp,
            _fit(self.file, FILE_FIELD_SIZE),
            _fit(self.message, MESSAGE_FIELD_SIZE),
        )

    @classmethod
    def unpack(cls, data: bytes) -> "PackedEntry":
        if len(data) != cls.SIZE:
            raise ValueError(f"expected {cls.SIZE} bytes, got {len(data)}")
        level, line, timestamp, file, message = cls.FORMAT.unpack(data)
        return cls(LogLevel(level), line, timestamp, _field(file), _field(message))

    def format(self) -> str:
        return f"{self.timestamp} [{self.level}] {self.file}:{self.line} {self.message}"


class Logger:
    """Collects log records into a ring buffer owned by the calling thread."""

    _instance: ClassVar[Logger | None] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._out: TextIO | None = None  # None means the current sys.stdout
        self._local = threading.local()

    @classmethod
    def get_instance(cls) -> "Logger":
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    def set_out_stream(self, stream: TextIO) -> None:
        with self._lock:
            self._out = stream

    def ring_buffer(self) -> RingBuffer:
        """Return the calling thread's ring buffer, creating it on first use."""
        buffer = getattr(self._local, "buffer", None)
        if buffer is None:
            buffer = RingBuffer(RING_BUFFER_SIZE, PackedEntry.SIZE)
            self._local.buffer = buffer
        return buffer

    def log(self, level: LogLevel, file: str, line: int, msg: object) -> bool:
        """Store a record; return False when the thread's buffer is full."""
        entry = PackedEntry(
            level=LogLevel(level),
            line=line,
            timestamp=int(time.time()) & 0xFFFFFFFF,
            file=file,
            message=str(msg),
        )
        return self.ring_buffer().write(entry.pack())

    def flush(self) -> int:
        """Write the calling thread's pending records out; return their count."""
        buffer = self.ring_buffer()
        written = 0
        with self._lock:
            out = self._out if self._out is not None else sys.stdout
            while batch := buffer.read_batch(64):
                for raw in batch:
                    out.write(PackedEntry.unpack(raw).format() + "\n")
                written += len(batch)
            out.flush()
        return written