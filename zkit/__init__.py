"""Tree nodes, memory and file streams, filesystem helpers and tar archives."""

__version__ = "0.1.0"
__all__ = ["adt", "stream", "files", "fsutil", "tar"]