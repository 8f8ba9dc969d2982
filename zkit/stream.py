"""In-memory streams that behave like files."""

from __future__ import annotations

from enum import IntEnum, IntFlag
from typing import Optional, Union

BufferLike = Union[bytes, bytearray, memoryview]


class StreamFlags(IntFlag):
    """How a memory stream treats the buffer it is opened on."""

    NONE = 0
    CLONE_WRITABLE = 1 << 0
    WRITABLE = 1 << 1


class Whence(IntEnum):
    """Reference point for a seek."""

    BEGIN = 0
    CURRENT = 1
    END = 2


class StreamError(Exception):
    """The stream cannot perform the requested operation."""


class MemoryStream:
    """A file-like view over a byte buffer.

    With ``CLONE_WRITABLE`` the stream owns a copy of the buffer and grows on
    writes past its end.  With ``WRITABLE`` it writes into the caller's buffer
    in place and never grows.  With neither flag it is read-only.
    """

    def __init__(
        self,
        buffer: Optional[BufferLike] = None,
        flags: StreamFlags = StreamFlags.CLONE_WRITABLE,
    ) -> None:
        self.flags = StreamFlags(flags)
        self._cursor = 0
        self._closed = False
        source = b"" if buffer is None else buffer
        if self.flags & StreamFlags.CLONE_WRITABLE:
            self._buf: Union[bytearray, memoryview] = bytearray(source)
        else:
            view = memoryview(source).cast("B")
            if self.flags & StreamFlags.WRITABLE and view.readonly:
                raise TypeError("a writable stream needs a mutable buffer")
            self._buf = view
        self._cap = len(self._buf)

    def __enter__(self) -> MemoryStream:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __len__(self) -> int:
        return self._cap

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on a closed stream")

    def _check_offset(self, offset: int) -> None:
        if offset < 0 or offset > self._cap:
            raise ValueError(f"offset {offset} outside stream of {self._cap} bytes")

    def read_at(self, size: int, offset: int) -> bytes:
        """Return up to ``size`` bytes starting at ``offset``; the cursor is untouched."""
        self._check_open()
        self._check_offset(offset)
        if size < 0:
            raise ValueError("size must not be negative")
        return bytes(self._buf[offset:min(offset + size, self._cap)])

    def write_at(self, data: BufferLike, offset: int) -> int:
        """Write ``data`` at ``offset`` and return the number of bytes stored.

        Fixed-size streams drop whatever does not fit.
        """
        self._check_open()
        if not self.flags & (StreamFlags.CLONE_WRITABLE | StreamFlags.WRITABLE):
            raise StreamError("stream is not writable")
        self._check_offset(offset)
        payload = bytes(data)
        extra = max(0, len(payload) - (self._cap - offset))
        in_place = len(payload) - extra
        self._buf[offset:offset + in_place] = payload[:in_place]
        if self.flags & StreamFlags.CLONE_WRITABLE and extra > 0:
            self._buf.extend(payload[in_place:])
            self._cap = len(self._buf)
        else:
            extra = 0
        return in_place + extra

    def seek(self, offset: int, whence: Whence = Whence.BEGIN) -> int:
        """Move the cursor, clamped to the stream bounds, and return it."""
        self._check_open()
        whence = Whence(whence)
        if whence == Whence.BEGIN:
            start = 0
        elif whence == Whence.END:
            start = self._cap
        else:
            start = self._cursor
        self._cursor = min(max(start + offset, 0), self._cap)
        return self._cursor

    def tell(self) -> int:
        self._check_open()
        return self._cursor

    def read(self, size: int) -> bytes:
        """Read from the cursor and advance it."""
        data = self.read_at(size, self._cursor)
        self.seek(self._cursor + len(data))
        return data

    def write(self, data: BufferLike) -> int:
        """Write at the cursor and advance it past what was written."""
        written = self.write_at(data, self._cursor)
        self.seek(self._cursor + written)
        return written

    def getvalue(self) -> bytes:
        """Return the whole contents of the stream."""
        self._check_open()
        return bytes(self._buf[:self._cap])

    def close(self) -> None:
        if self._closed:
            return
        if isinstance(self._buf, memoryview):
            self._buf.release()
        self._buf = bytearray()
        self._closed = True