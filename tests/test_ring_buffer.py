import struct
import threading
import time
from dataclasses import dataclass

import pytest

from ringlog.ring_buffer import RingBuffer

_DUMMY = struct.Struct("<Q64s")


@dataclass(frozen=True)
class Dummy:
    number: int
    msg: str

    def pack(self) -> bytes:
        return _DUMMY.pack(self.number, self.msg.encode())

    @classmethod
    def unpack(cls, data: bytes) -> "Dummy":
        number, raw = _DUMMY.unpack(data)
        return cls(number, raw.split(b"\0", 1)[0].decode())


def test_write_read_basic():
    buffer = RingBuffer(32768, _DUMMY.size, 4096)
    data = Dummy(1, "data1")
    assert buffer.write(data.pack())
    out = buffer.read()
    assert out is not None
    assert Dummy.unpack(out) == data
    assert buffer.read() is None


def _run_spsc(
    buffer: RingBuffer, batch: int | None, count: int
) -> tuple[list[Dummy], list[Dummy]]:
    source = [Dummy(i, f"Item {i}") for i in range(count)]
    result: list[Dummy] = []
    producer_done = threading.Event()

    def producer():
        for item in source:
            packed = item.pack()
            while not buffer.write(packed):
                time.sleep(0)
        producer_done.set()

    def take():
        if batch is None:
            one = buffer.read()
            return [] if one is None else [one]
        return buffer.read_batch(batch)

    def consumer():
        while len(result) < count:
            got = take()
            if got:
                result.extend(Dummy.unpack(raw) for raw in got)
            elif producer_done.is_set():
                got = take()
                if not got:
                    break
                result.extend(Dummy.unpack(raw) for raw in got)
            else:
                time.sleep(0)

    threads = [threading.Thread(target=producer), threading.Thread(target=consumer)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return source, result


def test_single_producer_single_consumer():
    buffer = RingBuffer(20000, _DUMMY.size, 4096)
    source, result = _run_spsc(buffer, None, 30000)
    assert len(result) == len(source)
    assert result == source
    assert buffer.read() is None


def test_single_producer_single_consumer_batch():
    buffer = RingBuffer(20000, _DUMMY.size, 4096)
    source, result = _run_spsc(buffer, 128, 30000)
    assert len(result) == len(source)
    assert result == source
    assert buffer.read_batch(128) == []


def test_capacity_rounded_to_pages():
    buffer = RingBuffer(1, 100, 4096)
    assert buffer.buffer_size == 4096
    written = 0
    while buffer.write(bytes([written % 256]) * 100):
        written += 1
    assert written == 4096 // 100
    assert len(buffer) == written


def test_wraps_around_preserving_order():
    buffer = RingBuffer(64, 24, 64)
    produced = []
    consumed = []
    counter = 0
    for _ in range(50):
        while True:
            record = counter.to_bytes(24, "little")
            if not buffer.write(record):
                break
            produced.append(record)
            counter += 1
        consumed.extend(buffer.read_batch(1))
    while (item := buffer.read()) is not None:
        consumed.append(item)
    assert consumed == produced
    assert len(buffer) == 0


def test_read_batch_limits_count():
    buffer = RingBuffer(4096, 8, 4096)
    for i in range(10):
        assert buffer.write(i.to_bytes(8, "little"))
    first = buffer.read_batch(4)
    assert [int.from_bytes(x, "little") for x in first] == [0, 1, 2, 3]
    rest = buffer.read_batch(100)
    assert [int.from_bytes(x, "little") for x in rest] == list(range(4, 10))
    assert buffer.read_batch(5) == []


def test_wrong_entry_size_rejected():
    buffer = RingBuffer(4096, 8, 4096)
    with pytest.raises(ValueError):
        buffer.write(b"short")


def test_negative_batch_rejected():
    buffer = RingBuffer(4096, 8, 4096)
    with pytest.raises(ValueError):
        buffer.read_batch(-1)


@pytest.mark.parametrize(
    "capacity, entry_size, page_size",
    [(0, 8, 4096), (16, 0, 4096), (16, 8, 0)],
)
def test_invalid_construction(capacity, entry_size, page_size):
    with pytest.raises(ValueError):
        RingBuffer(capacity, entry_size, page_size)


def test_entry_larger_than_buffer_never_fits():
    buffer = RingBuffer(16, 32, 16)
    assert buffer.write(b"x" * 32) is False
    assert len(buffer) == 0