# zkit

A small toolkit of building blocks, using only the standard library:

- `zkit.adt` provides a tree of typed nodes: objects, arrays, strings, integers and reals. Nodes can be looked up by path and moved around. Numbers can be parsed from text and formatted back.
- `zkit.stream` provides `MemoryStream`, a file-like stream over an in-memory byte buffer.
- `zkit.files` provides `File`, an OS-level file with positional reads and writes. It also has helpers that read or write a whole file.
- `zkit.fsutil` has filesystem helpers: copy, move and remove. It can also create and remove directories and list their contents.
- `zkit.tar` packs files into an uncompressed tar archive, lists the members and extracts them.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Trees of nodes

```python
from zkit.adt import Node

root = Node()
root.set_obj(None)
root.append_str("name", "Diffuse shader")
root.append_int("version", 150)
uniforms = root.append_arr("uniforms")
u = uniforms.append_obj(None)
u.append_str("name", "l_pos")
u.append_str("type", "vec3")

root.get("version").integer                   # 150
root.get("uniforms/0/name").string            # "l_pos"
root.get("uniforms/[name=l_pos]/type").string  # "vec3"
```

A path passed to `Node.get` is made of segments separated by `/`. Each segment is one of these:

- a field name, which is looked up in an object;
- an index, which is looked up in an array;
- `[field=value]`. In an array this finds the first object child with that field and value. In an object it gives the object itself, if that object has such a field.
- `[value]`, which finds the first child of an array whose string or formatted number equals `value`.

`get` returns `None` when nothing matches. It raises `ValueError` for a malformed bracket segment.

Other node operations:

- `find` looks a child up by name, and can also search nested objects.
- `alloc` and `alloc_at` insert blank children.
- `move`, `move_at`, `swap` and `remove` rearrange nodes.
- The `set_*` and `append_*` methods build the tree.

`Node.parse_number(text)` reads a number from the start of `text` into the node and returns how many characters it consumed. It keeps enough detail, such as hex notation, leading zeros of the fraction and the exponent, for `Node.format_number` to write the number back:

```python
n = Node()
n.parse_number("0x1F")   # 4
n.integer                # 31
n.format_number()        # "0x1f"
```

`Node.format_string(escaped_chars, escape_symbol)` writes a string node back out. Every character found in `escaped_chars` is preceded by `escape_symbol`. `Node.str_to_number` turns a string node into a number node.

Errors on the wrong node type are raised as `InvalidTypeError`. Converting a node that already holds a number raises `AlreadyConvertedError`. Both are subclasses of `AdtError`.

The tree is only the data model: this package does not parse or write any text format such as JSON or CSV.

## Memory streams

```python
from zkit.stream import MemoryStream, StreamFlags, Whence

s = MemoryStream(b"\x01\x02\x03\x04", StreamFlags.NONE)
s.read(2)                 # b"\x01\x02"
s.seek(-1, Whence.END)    # 3
```

How the stream behaves depends on its flags:

- `CLONE_WRITABLE`, the default, makes the stream copy the buffer. Writes past the end grow it.
- `WRITABLE` makes it write into the caller's mutable buffer in place. Bytes that do not fit are dropped.
- With neither flag the stream is read-only, and writing raises `StreamError`.

Seeks are clamped to the stream's bounds. `getvalue` returns the whole contents.

## Files

```python
from zkit.files import create_file, open_file, read_contents, write_contents

with create_file("dump.txt") as f:
    f.write(b"Hello World!")

read_contents("dump.txt", False)   # b"Hello World!"
```

`File` has the following operations:

- `read_at` and `write_at` for positional access;
- `read` and `write` at the current position;
- `seek`, `seek_to_end`, `tell`, `size` and `truncate`;
- `has_changed`, which compares the file's modification time with the last check.

Other helpers:

- `open_file` opens a file for reading.
- `create_file` creates or truncates a file for reading and writing.
- `temp_file` opens an anonymous temporary file.
- `fs_exists` tells whether a path exists.
- `write_contents` replaces a file's contents.
- `read_lines` returns a file's lines, optionally stripped, with empty lines dropped.

Failures raise `FileError`, an `OSError`, or one of its subclasses: `FileNotExistsError`, `FileExistsError_`, `FilePermissionError` and `TruncationError`.

## Filesystem helpers

`zkit.fsutil` provides these functions:

- `copy`, `move`, `remove` and `last_write_time`;
- `full_name`;
- `mkdir`, `mkdir_recursive` and `rmdir`;
- `get_type`, which returns a `DirType`;
- `dirlist(dirname, recurse)`, which returns a list of paths inside the directory.

`DirInfo(path)` holds the immediate entries of a directory as `DirEntry` objects. `DirEntry.step()` lists the folder that the entry names. If the entry is a file, it lists the folder that contains it.

## Tar archives

```python
from zkit.files import create_file, open_file
from zkit import tar

with create_file("archive.tar") as archive:
    tar.pack(archive, ["notes.txt"])

with open_file("archive.tar") as archive:
    tar.unpack(archive, tar.list_file)
    archive.seek(0)
    tar.unpack_dir(archive, "out")
```

`pack_dir` packs every regular file below a directory.

`unpack(archive, callback)` calls `callback(archive, record)` with a `TarRecord` for each member. A truthy return stops the walk, and `unpack` then returns `False`. When it reaches the end of the archive it returns `True`.

Only regular members whose checksum matches are listed or extracted. Member paths starting with `..` are not extracted. Errors while reading or writing an archive raise `TarError`.