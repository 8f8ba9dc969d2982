"""Filesystem helpers: copying, moving, directories and directory listings."""

from __future__ import annotations

import errno
import os
import shutil
import stat
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Optional

from zkit.files import (
    FileError,
    FileExistsError_,
    FileNotExistsError,
    FilePermissionError,
)

_WINDOWS = os.name == "nt"
_SEP = os.sep


class DirType(IntEnum):
    """Kind of a filesystem entry."""

    UNKNOWN = 0
    FILE = 1
    FOLDER = 2


def _error(exc: OSError, filename: Optional[str]) -> FileError:
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


def _exists_error(filename: str) -> FileExistsError_:
    return FileExistsError_(errno.EEXIST, os.strerror(errno.EEXIST), filename)


def _fix_slashes(path: str) -> str:
    return path.replace("/", "\\") if _WINDOWS else path


def last_write_time(filepath: str) -> int:
    """Modification time of a file in whole seconds, or 0 if it cannot be read."""
    try:
        return int(os.stat(filepath).st_mtime)
    except OSError:
        return 0


def copy(existing_filename: str, new_filename: str, fail_if_exists: bool = False) -> None:
    """Copy a file's data to a new name."""
    if fail_if_exists and os.path.lexists(new_filename):
        raise _exists_error(new_filename)
    try:
        shutil.copyfile(existing_filename, new_filename)
    except OSError as exc:
        raise _error(exc, existing_filename) from exc


def move(existing_filename: str, new_filename: str) -> None:
    """Rename a file; the new name must not exist yet."""
    if not os.path.lexists(existing_filename):
        raise FileNotExistsError(errno.ENOENT, os.strerror(errno.ENOENT), existing_filename)
    if os.path.lexists(new_filename):
        raise _exists_error(new_filename)
    try:
        os.rename(existing_filename, new_filename)
    except OSError as exc:
        raise _error(exc, existing_filename) from exc


def remove(filename: str) -> None:
    """Delete a file."""
    try:
        os.remove(filename)
    except OSError as exc:
        raise _error(exc, filename) from exc


def full_name(path: str) -> str:
    """Absolute, resolved form of an existing path; other paths come back unchanged."""
    if _WINDOWS:
        return os.path.abspath(path)
    if os.path.exists(path):
        return os.path.realpath(path)
    return path


def mkdir(path: str, mode: int = 0o777) -> None:
    """Create one directory."""
    try:
        os.mkdir(path, mode)
    except OSError as exc:
        raise _error(exc, path) from exc


def mkdir_recursive(path: str, mode: int = 0o755) -> None:
    """Create a directory and every missing parent, ignoring ones that already exist."""
    target = _fix_slashes(path)
    prefixes = [target[:i] for i, c in enumerate(target) if i > 0 and c == _SEP]
    prefixes.append(target)
    for prefix in prefixes:
        try:
            os.mkdir(prefix, mode)
        except OSError:
            pass


def rmdir(path: str) -> None:
    """Remove an empty directory."""
    try:
        os.rmdir(path)
    except OSError as exc:
        raise _error(exc, path) from exc


def _is_real_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def _walk(dirname: str, recurse: bool) -> Iterator[str]:
    base = dirname
    if _WINDOWS:
        base = _fix_slashes(base)
        if base.endswith(_SEP):
            base = base[:-1]
    try:
        iterator = os.scandir(base)
    except OSError:
        return
    with iterator:
        entries = list(iterator)
    for entry in entries:
        name = entry.name
        if name.startswith("..") or name == ".":
            continue
        path = f"{base}{_SEP}{name}"
        yield path
        if recurse and _is_real_dir(entry):
            yield from _walk(path, recurse)


def dirlist(dirname: str, recurse: bool = False) -> List[str]:
    """List the paths inside a directory, each a subdirectory's own entries following it.

    Names starting with ``..`` are skipped; an unreadable directory gives an empty list.
    """
    return list(_walk(dirname, recurse))


def get_type(path: str) -> DirType:
    """Tell whether a path is a folder, a file or does not exist."""
    try:
        mode = os.stat(path).st_mode
    except OSError:
        return DirType.UNKNOWN
    return DirType.FOLDER if stat.S_ISDIR(mode) else DirType.FILE


@dataclass(eq=False)
class DirEntry:
    """One entry of a directory listing."""

    filename: str
    type: DirType = DirType.UNKNOWN
    dir_info: Optional[DirInfo] = None

    def step(self) -> DirInfo:
        """List the folder this entry names, or the folder containing it if it is a file."""
        path = self.filename
        if self.type != DirType.FOLDER:
            path = _fix_slashes(path).rpartition(_SEP)[0]
        self.dir_info = DirInfo(path)
        return self.dir_info


class DirInfo:
    """The immediate contents of a directory."""

    def __init__(self, path: str) -> None:
        self.fullpath = path
        self.filenames = dirlist(path, False)
        self.entries = [DirEntry(name, get_type(name)) for name in self.filenames]

    def __iter__(self) -> Iterator[DirEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)