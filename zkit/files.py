"""Files on disk opened through OS descriptors, with positional reads and writes."""

from __future__ import annotations

import errno
import os
import tempfile
from enum import IntFlag
from typing import List, Optional

_O_BINARY = getattr(os, "O_BINARY", 0)


class FileMode(IntFlag):
    """How a file is opened."""

    READ = 1 << 0
    WRITE = 1 << 1
    APPEND = 1 << 2
    RW = 1 << 3


_MODES = FileMode.READ | FileMode.WRITE | FileMode.APPEND | FileMode.RW

_OS_FLAGS = {
    FileMode.READ: os.O_RDONLY,
    FileMode.WRITE: os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    FileMode.APPEND: os.O_WRONLY | os.O_APPEND | os.O_CREAT,
    FileMode.READ | FileMode.RW: os.O_RDWR,
    FileMode.WRITE | FileMode.RW: os.O_RDWR | os.O_CREAT | os.O_TRUNC,
    FileMode.APPEND | FileMode.RW: os.O_RDWR | os.O_APPEND | os.O_CREAT,
}


class FileError(OSError):
    """A file operation failed."""


class FileNotExistsError(FileError):
    """The file does not exist."""


class FileExistsError_(FileError):
    """The file already exists."""


class FilePermissionError(FileError):
    """Access to the file was denied."""


class TruncationError(FileError):
    """The file could not be truncated."""


def _translate(exc: OSError, filename: Optional[str] = None) -> FileError:
    code = exc.errno
    if code == errno.ENOENT:
        cls = FileNotExistsError
    elif code == errno.EEXIST:
        cls = FileExistsError_
    elif code in (errno.EACCES, errno.EPERM):
        cls = FilePermissionError
    else:
        cls = FileError
    return cls(code, exc.strerror, filename)


class File:
    """An open file on disk."""

    def __init__(self, filename: str, mode: FileMode = FileMode.READ) -> None:
        key = FileMode(mode) & _MODES
        flags = _OS_FLAGS.get(key)
        if flags is None:
            raise ValueError(f"invalid file mode: {mode!r}")
        name = os.fspath(filename)
        try:
            fd = os.open(name, flags | _O_BINARY, 0o666)
        except OSError as exc:
            raise _translate(exc, name) from exc
        self._attach(fd, name, key, is_temp=False)

    @classmethod
    def _from_fd(cls, fd: int, filename: Optional[str], mode: FileMode, is_temp: bool) -> File:
        obj = cls.__new__(cls)
        obj._attach(fd, filename, mode, is_temp)
        return obj

    def _attach(self, fd: int, filename: Optional[str], mode: FileMode, is_temp: bool) -> None:
        self._fd = fd
        self.filename = filename
        self.mode = mode
        self.is_temp = is_temp
        self.last_write_time = 0
        self._closed = False

    def __enter__(self) -> File:
        return self

    def __exit__(self, *args) -> None:
        if not self._closed:
            self.close()

    @property
    def name(self) -> str:
        return self.filename or ""

    @property
    def closed(self) -> bool:
        return self._closed

    def _fileno(self) -> int:
        if self._closed:
            raise FileError(errno.EBADF, "file is closed", self.filename)
        return self._fd

    def read_at(self, size: int, offset: int) -> bytes:
        """Read up to ``size`` bytes at ``offset`` without moving the file position."""
        fd = self._fileno()
        try:
            if hasattr(os, "pread"):
                return os.pread(fd, size, offset)
            position = os.lseek(fd, 0, os.SEEK_CUR)
            try:
                os.lseek(fd, offset, os.SEEK_SET)
                return os.read(fd, size)
            finally:
                os.lseek(fd, position, os.SEEK_SET)
        except OSError as exc:
            raise _translate(exc, self.filename) from exc

    def write_at(self, data: bytes, offset: int) -> int:
        """Write ``data`` at ``offset`` and return the number of bytes written.

        Writing at the current position advances it; writing elsewhere does not.
        """
        fd = self._fileno()
        try:
            position = os.lseek(fd, 0, os.SEEK_CUR)
            if position == offset:
                return os.write(fd, data)
            if hasattr(os, "pwrite"):
                return os.pwrite(fd, data, offset)
            try:
                os.lseek(fd, offset, os.SEEK_SET)
                return os.write(fd, data)
            finally:
                os.lseek(fd, position, os.SEEK_SET)
        except OSError as exc:
            raise _translate(exc, self.filename) from exc

    def read(self, size: int) -> bytes:
        """Read from the current position and advance past what was read."""
        position = self.tell()
        data = self.read_at(size, position)
        self.seek(position + len(data))
        return data

    def write(self, data: bytes) -> int:
        """Write at the current position and advance past what was written."""
        return self.write_at(data, self.tell())

    def _lseek(self, offset: int, whence: int) -> int:
        fd = self._fileno()
        try:
            return os.lseek(fd, offset, whence)
        except OSError as exc:
            raise _translate(exc, self.filename) from exc

    def seek(self, offset: int) -> int:
        """Move to an absolute offset and return it."""
        return self._lseek(offset, os.SEEK_SET)

    def seek_to_end(self) -> int:
        return self._lseek(0, os.SEEK_END)

    def tell(self) -> int:
        return self._lseek(0, os.SEEK_CUR)

    def size(self) -> int:
        """Size of the file in bytes; the position is left unchanged."""
        position = self.tell()
        end = self.seek_to_end()
        self.seek(position)
        return end

    def truncate(self, size: int) -> None:
        fd = self._fileno()
        try:
            os.ftruncate(fd, size)
        except OSError as exc:
            raise TruncationError(exc.errno, exc.strerror, self.filename) from exc

    def has_changed(self) -> bool:
        """Report whether the file's modification time differs from the last check."""
        if self.is_temp or self.filename is None:
            return False
        try:
            current = os.stat(self.filename).st_mtime_ns
        except OSError:
            current = 0
        if current != self.last_write_time:
            self.last_write_time = current
            return True
        return False

    def close(self) -> None:
        fd = self._fileno()
        self._closed = True
        os.close(fd)


def open_file(filename: str) -> File:
    """Open an existing file for reading."""
    return File(filename, FileMode.READ)


def create_file(filename: str) -> File:
    """Create or truncate a file for reading and writing."""
    return File(filename, FileMode.WRITE | FileMode.RW)


def temp_file() -> File:
    """Open an anonymous temporary file for reading and writing."""
    with tempfile.TemporaryFile() as handle:
        fd = os.dup(handle.fileno())
    return File._from_fd(fd, None, FileMode.WRITE | FileMode.RW, is_temp=True)


def fs_exists(name: str) -> bool:
    return os.access(name, os.F_OK)


def read_contents(filepath: str, zero_terminate: bool = False) -> bytes:
    """Return the whole file, or empty bytes if it cannot be opened or is empty."""
    try:
        f = open_file(filepath)
    except FileError:
        return b""
    with f:
        size = f.size()
        if size <= 0:
            return b""
        data = f.read_at(size, 0)
    return data + b"\0" if zero_terminate else data


def write_contents(filepath: str, data: bytes) -> int:
    """Replace the file's contents with ``data`` and return the bytes written."""
    with File(filepath, FileMode.WRITE) as f:
        return f.write(data)


def read_lines(filepath: str, strip_whitespace: bool = False) -> List[str]:
    """Read a text file and split it into lines.

    With ``strip_whitespace`` each line is stripped and empty lines are dropped.
    """
    with open_file(filepath) as f:
        text = f.read(f.size()).decode("utf-8", errors="replace")
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    result = []
    for line in lines:
        if line.endswith("\r"):
            line = line[:-1]
        if strip_whitespace:
            line = line.strip()
            if not line:
                continue
        result.append(line)
    return result