# ringlog

`ringlog` keeps fixed-size binary records in a byte ring buffer. A small logger
is built on top of it. The logger packs each log call into a record and stores
it in a ring buffer that belongs to the calling thread.

The package uses only the standard library.

## Installation

```
pip install .
```

To run the tests, install the `test` extra as well:

```
pip install .[test]
pytest
```

## Ring buffer: `ringlog.ring_buffer.RingBuffer`

```python
from ringlog.ring_buffer import RingBuffer

buf = RingBuffer(capacity=32768, entry_size=72, page_size=4096)

record = bytes(72)
assert buf.write(record)      # False when there is no room right now
assert len(buf) == 1          # records waiting to be read

assert buf.read() == record   # None when nothing is waiting
assert buf.read() is None

for _ in range(3):
    buf.write(record)
batch = buf.read_batch(128)   # up to 128 records, oldest first; [] when none
assert len(batch) == 3
```

`RingBuffer(capacity, entry_size, page_size=mmap.PAGESIZE)` works as follows.

- `capacity` is given in bytes. It is rounded up to a whole number of pages of
  `page_size` bytes, and the result is available as `buffer_size`.
- All three arguments must be positive, otherwise `ValueError` is raised.
- Every record holds exactly `entry_size` bytes. If you pass `write` a record of
  any other length, it raises `ValueError`.

The buffer never overwrites unread data. When a record does not fit, `write`
returns `False`, and the producer is expected to try again later. A record may
wrap around the end of the storage, and `read` and `read_batch` still return it
whole.

`write` can also return `False` while space appears free. The write position
only moves back after the reader has read past the end of the storage. So a
writer that has gone round may have to wait for the next read.

`read_batch(max_count)` raises `ValueError` if `max_count` is negative.

Each operation holds an internal lock. The buffer is meant for one thread
writing and one thread reading at the same time.

## Log records: `ringlog.logger.PackedEntry`

`PackedEntry` is a frozen dataclass with the following fields:

- `level` (a `LogLevel`)
- `line`
- `timestamp`
- `file`
- `message`

Its binary layout is little-endian and unpadded. It takes 327 bytes, the value
of `PackedEntry.SIZE`, laid out as follows:

| Field       | Size                                        |
|-------------|---------------------------------------------|
| `level`     | 1 byte                                      |
| `line`      | 2 bytes                                     |
| `timestamp` | 4 bytes                                     |
| `file`      | 64-byte NUL-padded field                    |
| `message`   | 256-byte NUL-padded field                   |

`pack()` turns an entry into bytes.

- The file name is cut to at most 63 bytes of UTF-8 and the message to at most
  255 bytes. A cut never splits a character.
- A `line` outside 0–65535 raises `ValueError`.
- A `timestamp` outside the unsigned 32-bit range raises `ValueError`.

`PackedEntry.unpack(data)` turns bytes back into an entry. It raises
`ValueError` unless `data` is exactly `SIZE` bytes long.

`format()` renders an entry as `"<timestamp> [<LEVEL>] <file>:<line> <message>"`.

`LogLevel` is an `IntEnum` with the members `DEBUG`, `INFO`, `WARNING` and
`ERROR`, numbered 0 to 3. `str()` of a member gives its name.

## Logger: `ringlog.logger.Logger`

```python
import io
from ringlog.logger import Logger, LogLevel

log = Logger.get_instance()
out = io.StringIO()
log.set_out_stream(out)

log.log(LogLevel.INFO, __file__, 12, "service started")
count = log.flush()           # drains this thread's buffer into the stream
print(count, out.getvalue())
```

- `Logger.get_instance()` returns one shared logger for the process.
- `log(level, file, line, msg)` packs a record and writes it to the calling
  thread's ring buffer.
  - The timestamp is the current Unix time in seconds.
  - `str(msg)` becomes the message.
  - It returns `False` when that buffer is full. The record is then dropped.
- `ring_buffer()` returns the calling thread's buffer. The buffer is created on
  first use and holds 8192 bytes, rounded up to the system page size.
- `flush()` works on the calling thread's buffer.
  - It reads every waiting record from that buffer and writes each one, rendered
    with `PackedEntry.format()`, as a line to the output stream.
  - It then flushes the stream and returns the number of records written.
- `set_out_stream(stream)` sets the output stream. Until then, output goes to
  the current `sys.stdout`.

## What it does not do

- Records stay in memory until `flush()` is called. Nothing drains them in the
  background.
- `flush()` only drains the buffer of the thread that calls it. Records logged
  by other threads stay in those threads' buffers.
- There is no log server, no network transport and no command-line program.
  Output goes only to the stream you set.