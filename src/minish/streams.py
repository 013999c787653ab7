"""Byte streams used to connect commands.

Commands read from a byte source and write to byte sinks. A :class:`Pipe`
is both: a bounded in-memory buffer that suspends its writer while full and
its reader while empty, which gives pipeline stages the same backpressure as
an OS pipe. File-backed streams wrap the shell's own standard streams so that
child processes can inherit the underlying file descriptors.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, BinaryIO, Optional, Protocol

DEFAULT_PIPE_CAPACITY = 65536
READ_CHUNK_SIZE = 65536


class ByteSource(Protocol):
    """Anything a command can read bytes from."""

    async def read(self, n: int = READ_CHUNK_SIZE) -> bytes:
        """Return up to n bytes, or b"" at end of input."""
        ...


class ByteSink(Protocol):
    """Anything a command can write bytes to."""

    async def write(self, data: bytes) -> None:
        ...


class Pipe:
    """Bounded single-producer, single-consumer byte channel."""

    def __init__(self, capacity: int = DEFAULT_PIPE_CAPACITY):
        if capacity < 1:
            raise ValueError(f"pipe capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._buffer = bytearray()
        self._write_closed = False
        self._read_closed = False
        self._cond = asyncio.Condition()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        """True once the writer has closed its end."""
        return self._write_closed

    def __len__(self) -> int:
        return len(self._buffer)

    async def write(self, data: bytes) -> None:
        """Write all of data, suspending while the buffer is full.

        Raises:
            BrokenPipeError: The reader has gone away.
            ValueError: The write end was already closed.
        """
        view = memoryview(bytes(data))
        async with self._cond:
            while view:
                if self._read_closed:
                    raise BrokenPipeError("pipe reader closed")
                if self._write_closed:
                    raise ValueError("write to closed pipe")
                room = self._capacity - len(self._buffer)
                if room == 0:
                    await self._cond.wait()
                    continue
                self._buffer += view[:room]
                view = view[room:]
                self._cond.notify_all()

    async def read(self, n: int = READ_CHUNK_SIZE) -> bytes:
        """Read up to n bytes, suspending while the buffer is empty.

        Returns b"" once the writer has closed and the buffer is drained.
        A negative n reads everything currently buffered.
        """
        async with self._cond:
            while not self._buffer and not self._write_closed and not self._read_closed:
                await self._cond.wait()
            if n < 0 or n >= len(self._buffer):
                chunk = bytes(self._buffer)
                self._buffer.clear()
            else:
                chunk = bytes(self._buffer[:n])
                del self._buffer[:n]
            self._cond.notify_all()
            return chunk

    async def close(self) -> None:
        """Close the write end, signalling end of input to the reader."""
        async with self._cond:
            self._write_closed = True
            self._cond.notify_all()

    async def close_reader(self) -> None:
        """Close the read end. Pending and future writes fail."""
        async with self._cond:
            self._read_closed = True
            self._buffer.clear()
            self._cond.notify_all()

    def __repr__(self) -> str:
        return (
            f"Pipe(buffered={len(self._buffer)}, capacity={self._capacity}, "
            f"closed={self._write_closed})"
        )


class BytesSource:
    """Source that serves a fixed byte string."""

    def __init__(self, data: bytes = b""):
        self._data = data
        self._pos = 0

    async def read(self, n: int = READ_CHUNK_SIZE) -> bytes:
        if n < 0:
            n = len(self._data) - self._pos
        chunk = self._data[self._pos:self._pos + n]
        self._pos += len(chunk)
        return chunk

    async def readline(self) -> bytes:
        end = self._data.find(b"\n", self._pos)
        end = len(self._data) if end < 0 else end + 1
        line = self._data[self._pos:end]
        self._pos = end
        return line


class BufferSink:
    """Sink that collects everything written to it."""

    def __init__(self):
        self._chunks: list[bytes] = []

    async def write(self, data: bytes) -> None:
        self._chunks.append(bytes(data))

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)

    def text(self) -> str:
        return self.getvalue().decode("utf-8", errors="replace")


class FileSource:
    """Source backed by a binary file object, typically ``sys.stdin.buffer``.

    Blocking reads run in the default executor so they don't stall the loop.
    """

    def __init__(self, file: BinaryIO):
        self._file = file

    def fileno(self) -> Optional[int]:
        return _fileno(self._file)

    async def read(self, n: int = READ_CHUNK_SIZE) -> bytes:
        reader = getattr(self._file, "read1", self._file.read)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, reader, n)

    async def readline(self) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._file.readline)


class FileSink:
    """Sink backed by a binary file object, flushed after every write.

    Writes run in the default executor so a slow consumer doesn't stall the
    loop.
    """

    def __init__(self, file: BinaryIO):
        self._file = file

    def fileno(self) -> Optional[int]:
        return _fileno(self._file)

    async def write(self, data: bytes) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, bytes(data))

    def _write(self, data: bytes) -> None:
        self._file.write(data)
        self._file.flush()

    def flush(self) -> None:
        self._file.flush()


def _fileno(file) -> Optional[int]:
    try:
        return file.fileno()
    except (AttributeError, OSError, ValueError):
        # io.UnsupportedOperation for in-memory and captured streams
        return None


def fileno_of(stream) -> Optional[int]:
    """Return the OS file descriptor behind a stream, if there is one."""
    getter = getattr(stream, "fileno", None)
    if getter is None:
        return None
    return getter()


async def read_all(source: ByteSource) -> bytes:
    """Read a source to end of input."""
    chunks = []
    while True:
        chunk = await source.read(READ_CHUNK_SIZE)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


async def copy_stream(source: ByteSource, sink: ByteSink) -> int:
    """Copy a source into a sink until end of input. Returns bytes copied."""
    total = 0
    while True:
        chunk = await source.read(READ_CHUNK_SIZE)
        if not chunk:
            return total
        await sink.write(chunk)
        total += len(chunk)


async def iter_lines(source: ByteSource) -> AsyncIterator[bytes]:
    """Yield lines without their terminator.

    A trailing carriage return is dropped as well, and a final line that
    lacks a newline is still yielded.
    """
    pending = bytearray()
    while True:
        chunk = await source.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        pending += chunk
        while True:
            idx = pending.find(b"\n")
            if idx < 0:
                break
            line = bytes(pending[:idx])
            del pending[:idx + 1]
            yield _drop_cr(line)
    if pending:
        yield _drop_cr(bytes(pending))


def _drop_cr(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\r") else line
