"""Packing files into, and reading them out of, uncompressed tar archives."""

from __future__ import annotations

import functools
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Union

from zkit.files import FileError, FileNotExistsError, create_file, open_file
from zkit.fsutil import DirType, dirlist, get_type, last_write_time, mkdir_recursive
from zkit.stream import StreamError

BLOCK_SIZE = 512
_CHUNK = 4096
_WINDOWS = os.name == "nt"
_SEP = os.sep

_NAME = slice(0, 100)
_MODE = slice(100, 108)
_SIZE = slice(124, 136)
_MTIME = slice(136, 148)
_CHECKSUM = slice(148, 156)
_TYPE = 156


class TarType(str, Enum):
    """Kind of an archive member."""

    REGULAR = "0"
    LINK = "1"
    SYMBOLIC = "2"
    CHR = "3"
    BLK = "4"
    DIR = "5"
    FIFO = "6"


class TarError(Exception):
    """The archive could not be read or written."""


@dataclass
class TarRecord:
    """One member of an archive: where its data lies and whether its header is sound."""

    type: Union[TarType, str]
    path: str
    offset: int
    length: int
    checksum_ok: bool = True


Callback = Callable[[object, TarRecord], object]

_IO_ERRORS = (OSError, StreamError, ValueError)


def _fix_slashes(path: str) -> str:
    return path.replace("/", "\\") if _WINDOWS else path


def _align(size: int) -> int:
    return (size + BLOCK_SIZE - 1) // BLOCK_SIZE * BLOCK_SIZE


def _field(text: str, width: int) -> bytes:
    return text.encode("utf-8")[:width - 1].ljust(width, b"\0")


def _checksum(header: bytes) -> int:
    return 256 + sum(header[:_CHECKSUM.start]) + sum(header[_CHECKSUM.stop:])


def _octal(raw: bytes) -> int:
    text = raw.split(b"\0", 1)[0].decode("ascii", "replace").lstrip()
    value = 0
    for c in text:
        if not "0" <= c <= "7":
            break
        value = value * 8 + int(c)
    return value


def _cstr(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", "replace")


def _record_type(byte: int) -> Union[TarType, str]:
    c = chr(byte)
    try:
        return TarType(c)
    except ValueError:
        return c


def _header(path: str, size: int, mtime: int) -> bytes:
    header = bytearray(BLOCK_SIZE)
    header[_NAME] = _field(path, 100)
    header[_SIZE] = _field(f"{size:o}", 12)
    header[_MODE] = _field(f"{0o664:o}", 8)
    header[_MTIME] = _field(f"{max(mtime, 0):o}", 12)
    header[_TYPE] = ord(TarType.REGULAR.value)
    header[_CHECKSUM] = _field(f"{_checksum(header):o}", 8)
    return bytes(header)


def _write(archive, data: bytes) -> None:
    try:
        archive.write(data)
    except _IO_ERRORS as exc:
        raise TarError("cannot write to archive") from exc


def pack(archive, paths: Iterable[str]) -> None:
    """Append the given files to ``archive`` and close it with two empty blocks."""
    for path in paths:
        try:
            source = open_file(path)
        except FileNotExistsError:
            raise
        except FileError as exc:
            raise TarError(f"cannot open {path!r}") from exc
        with source:
            size = source.size()
            _write(archive, _header(path, size, last_write_time(path)))
            pos = 0
            while pos < size:
                try:
                    chunk = source.read_at(min(_CHUNK, size - pos), pos)
                except FileError as exc:
                    raise TarError(f"cannot read {path!r}") from exc
                if not chunk:
                    break
                _write(archive, chunk)
                pos += len(chunk)
            padding = _align(size) - size
            if padding:
                _write(archive, b"\0" * padding)
    _write(archive, b"\0" * (2 * BLOCK_SIZE))


def pack_dir(archive, path: str) -> None:
    """Pack every regular file found below ``path``."""
    files = [p for p in dirlist(path, True) if get_type(p) == DirType.FILE]
    pack(archive, files)


def unpack(archive, callback: Callback) -> bool:
    """Call ``callback(archive, record)`` for each member from the current position.

    A truthy return from the callback stops the walk. Returns True when the end
    of the archive was reached and False when the callback stopped it.
    """
    while True:
        try:
            header = archive.read(BLOCK_SIZE)
        except _IO_ERRORS as exc:
            raise TarError("cannot read archive header") from exc
        if not header:
            return True
        if len(header) < BLOCK_SIZE:
            raise TarError("truncated archive header")
        if header[_CHECKSUM.start] == 0:
            return True
        pos = archive.tell()
        record = TarRecord(
            type=_record_type(header[_TYPE]),
            path=_cstr(header[_NAME]),
            offset=pos,
            length=_octal(header[_SIZE]),
            checksum_ok=_octal(header[_CHECKSUM]) == _checksum(header),
        )
        if callback(archive, record):
            return False
        archive.seek(pos + _align(record.length))


def list_file(archive, record: TarRecord) -> bool:
    """Print the name, offset and length of a sound regular member."""
    if record.checksum_ok and record.type == TarType.REGULAR:
        print(f"name: {record.path}, offset: {record.offset}, length: {record.length}")
    return False


def unpack_file(archive, record: TarRecord, base_path: str) -> bool:
    """Write a sound regular member below ``base_path``; True if reading it failed."""
    if not record.checksum_ok or record.type != TarType.REGULAR:
        return False
    if record.path.startswith(".."):
        return False

    target = _fix_slashes(base_path)
    if target and not target.endswith(_SEP):
        target += _SEP
    target = _fix_slashes(target + record.path)

    directory, sep, _ = target.rpartition(_SEP)
    if sep:
        mkdir_recursive(directory, 0o755)

    remaining = record.length
    pos = record.offset
    with create_file(target) as out:
        while remaining > 0:
            try:
                chunk = archive.read_at(min(_CHUNK, remaining), pos)
            except _IO_ERRORS:
                return True
            if not chunk:
                break
            out.write(chunk)
            pos += len(chunk)
            remaining -= len(chunk)
    return False


def unpack_dir(archive, dest: str) -> bool:
    """Extract every sound regular member below ``dest``."""
    return unpack(archive, functools.partial(unpack_file, base_path=dest))