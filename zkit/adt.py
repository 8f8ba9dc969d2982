"""A generic tree of named values shared by the structured-text formats."""

from __future__ import annotations

import re
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Optional


class AdtType(IntEnum):
    """Kind of value a node holds."""

    UNINITIALISED = 0
    ARRAY = 1
    OBJECT = 2
    STRING = 3
    MULTISTRING = 4
    INTEGER = 5
    REAL = 6


class AdtProps(IntEnum):
    """Extra information about how a number was written or what it stands for."""

    NONE = 0
    NAN = 1
    NAN_NEG = 2
    INFINITY = 3
    INFINITY_NEG = 4
    FALSE = 5
    TRUE = 6
    NULL = 7
    IS_EXP = 8
    IS_HEX = 9
    IS_PARSED_REAL = 10


class AdtError(Exception):
    """Base class for errors raised by tree operations."""


class InvalidTypeError(AdtError):
    """The node has the wrong type for the requested operation."""


class AlreadyConvertedError(AdtError):
    """The node already holds a number."""


_BRANCH_TYPES = (AdtType.OBJECT, AdtType.ARRAY)
_STRING_TYPES = (AdtType.STRING, AdtType.MULTISTRING)
_NUMBER_TYPES = (AdtType.INTEGER, AdtType.REAL)

_MASK64 = (1 << 64) - 1
# The tenth used for negative exponents is a single-precision constant.
_F32_TENTH = struct.unpack("<f", struct.pack("<f", 0.1))[0]
_FLOAT_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_SPECIAL_REALS = {
    AdtProps.NAN: "NaN",
    AdtProps.NAN_NEG: "-NaN",
    AdtProps.INFINITY: "Infinity",
    AdtProps.INFINITY_NEG: "-Infinity",
    AdtProps.TRUE: "true",
    AdtProps.FALSE: "false",
    AdtProps.NULL: "null",
}


def _wrap64(value: int) -> int:
    value &= _MASK64
    return value - (1 << 64) if value >> 63 else value


def _to_i32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >> 31 else value


def _to_i8(value: int) -> int:
    value &= 0xFF
    return value - 256 if value > 127 else value


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def _is_hex(c: str) -> bool:
    return c != "\0" and c in "0123456789abcdefABCDEF"


def _str_to_int(text: str, base: int) -> int:
    """Lenient integer parse: leading sign and digits, stopping at the first invalid char."""
    s = text.lstrip()
    negative = False
    if s[:1] in ("+", "-"):
        negative = s[0] == "-"
        s = s[1:]
    if base in (0, 16) and s[:2] in ("0x", "0X"):
        s = s[2:]
        base = 16
    elif base == 0:
        base = 10
    value = 0
    for c in s:
        try:
            digit = int(c, 36)
        except ValueError:
            break
        if digit >= base:
            break
        value = value * base + digit
    return _wrap64(-value if negative else value)


def _str_to_f64(text: str) -> float:
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(0)) if match else 0.0


def _zero_pad(width: int) -> str:
    """Render the integer 0 zero-padded to the given width."""
    return "0" * max(width, 1)


@dataclass(eq=False)
class Node:
    """One node of the tree: a branch (object or array) or a leaf value."""

    type: AdtType = AdtType.UNINITIALISED
    name: Optional[str] = None
    parent: Optional[Node] = field(default=None, repr=False)
    nodes: Optional[list] = None
    string: Optional[str] = None
    integer: int = 0
    real: float = 0.0
    props: AdtProps = AdtProps.NONE
    base: int = 0
    base2: int = 0
    base2_offset: int = 0
    exp: int = 0
    neg_zero: bool = False
    lead_digit: bool = False

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes or ())

    @property
    def is_branch(self) -> bool:
        return self.type in _BRANCH_TYPES

    def _reset(self, type_: AdtType, name: Optional[str]) -> None:
        parent = self.parent
        for f_name, default in _DEFAULTS.items():
            setattr(self, f_name, default)
        self.parent = parent
        self.type = type_
        self.name = name

    def make_branch(self, name: Optional[str], is_array: bool) -> Node:
        """Turn this node into an empty object or array, keeping its parent."""
        self._reset(AdtType.ARRAY if is_array else AdtType.OBJECT, name)
        self.nodes = []
        return self

    def make_leaf(self, name: Optional[str], type: AdtType) -> Node:
        """Turn this node into a leaf of the given type, keeping its parent."""
        type_ = AdtType(type)
        if type_ in _BRANCH_TYPES:
            raise ValueError("a leaf cannot be an object or an array")
        self._reset(type_, name)
        return self

    def find(self, name: str, deep_search: bool) -> Optional[Node]:
        """Find a child of an object by name, optionally searching nested objects."""
        if self.type != AdtType.OBJECT:
            return None
        for child in self.nodes:
            if child.name == name:
                return child
        if deep_search:
            for child in self.nodes:
                found = child.find(name, deep_search)
                if found is not None:
                    return found
        return None

    def get(self, uri: str) -> Optional[Node]:
        """Look a node up by a slash-separated path.

        Segments are field names, array indices, ``[value]`` matches or
        ``[field=value]`` matches.
        """
        return _lookup(self, uri)

    def alloc_at(self, index: int) -> Optional[Node]:
        """Insert a blank child at ``index``; None if not a branch or out of range."""
        if not self.is_branch or self.nodes is None:
            return None
        if index < 0 or index > len(self.nodes):
            return None
        child = Node(parent=self)
        self.nodes.insert(index, child)
        return child

    def alloc(self) -> Optional[Node]:
        """Append a blank child; None if this node is not a branch."""
        if not self.is_branch or self.nodes is None:
            return None
        return self.alloc_at(len(self.nodes))

    def set_obj(self, name: Optional[str]) -> Node:
        return self.make_branch(name, False)

    def set_arr(self, name: Optional[str]) -> Node:
        return self.make_branch(name, True)

    def set_str(self, name: Optional[str], value: str) -> Node:
        self.make_leaf(name, AdtType.STRING)
        self.string = value
        return self

    def set_flt(self, name: Optional[str], value: float) -> Node:
        self.make_leaf(name, AdtType.REAL)
        self.real = float(value)
        return self

    def set_int(self, name: Optional[str], value: int) -> Node:
        self.make_leaf(name, AdtType.INTEGER)
        self.integer = _wrap64(int(value))
        return self

    def _position(self) -> int:
        if self.parent is None:
            raise ValueError("node has no parent")
        for i, sibling in enumerate(self.parent.nodes):
            if sibling is self:
                return i
        raise ValueError("node is not among its parent's children")

    def move_at(self, new_parent: Node, index: int) -> Node:
        """Move this node under ``new_parent`` at position ``index``."""
        if not new_parent.is_branch:
            raise InvalidTypeError("new parent must be an object or an array")
        if index < 0 or index > len(new_parent.nodes):
            raise IndexError("insertion index out of range")
        old_parent = self.parent
        old_index = self._position() if old_parent is not None else -1
        new_parent.nodes.insert(index, self)
        if old_parent is not None:
            if old_parent is new_parent and index <= old_index:
                old_index += 1
            del old_parent.nodes[old_index]
        self.parent = new_parent
        return self

    def move(self, new_parent: Node) -> Node:
        """Move this node to the end of ``new_parent``."""
        if not new_parent.is_branch:
            raise InvalidTypeError("new parent must be an object or an array")
        return self.move_at(new_parent, len(new_parent.nodes))

    def swap(self, other: Node) -> None:
        """Exchange the positions of two nodes within their parents."""
        index = self._position()
        other_index = other._position()
        parent, other_parent = self.parent, other.parent
        parent.nodes[index] = other
        other_parent.nodes[other_index] = self
        self.parent, other.parent = other_parent, parent

    def remove(self) -> None:
        """Detach this node from its parent."""
        index = self._position()
        del self.parent.nodes[index]
        self.parent = None

    def _append(self) -> Node:
        child = self.alloc()
        if child is None:
            raise InvalidTypeError("can only append to an object or an array")
        return child

    def append_obj(self, name: Optional[str]) -> Node:
        return self._append().set_obj(name)

    def append_arr(self, name: Optional[str]) -> Node:
        return self._append().set_arr(name)

    def append_str(self, name: Optional[str], value: str) -> Node:
        return self._append().set_str(name, value)

    def append_flt(self, name: Optional[str], value: float) -> Node:
        return self._append().set_flt(name, value)

    def append_int(self, name: Optional[str], value: int) -> Node:
        return self._append().set_int(name, value)

    def parse_number(self, text: str) -> int:
        """Parse a number at the start of ``text`` into this node.

        Returns the number of characters consumed.
        """

        def at(i: int) -> str:
            return text[i] if i < len(text) else "\0"

        first = at(0)
        if first == "\0" or first in "eE" or (
            first in ".+-" and not _is_hex(at(1)) and at(1) != "."
        ):
            return 1

        self.type = AdtType.INTEGER
        neg_zero = False
        lead_digit = False
        base = base2 = base2_offset = 0
        exp = 0
        buf: list[str] = []
        e = 0

        if at(e) == "+":
            e += 1
        elif at(e) == "-":
            buf.append("-")
            e += 1

        if at(e) == ".":
            self.type = AdtType.REAL
            self.props = AdtProps.IS_PARSED_REAL
            lead_digit = False
            buf.append("0")
            while True:
                buf.append(at(e))
                e += 1
                if not _is_digit(at(e)):
                    break
        else:
            if text[e:e + 2] in ("0x", "0X"):
                self.props = AdtProps.IS_HEX
            while _is_hex(at(e)) or at(e) in "xX":
                buf.append(at(e))
                e += 1
            if at(e) == ".":
                self.type = AdtType.REAL
                lead_digit = True
                step = 0
                while True:
                    buf.append(at(e))
                    step += 1
                    e += 1
                    if not _is_digit(at(e)):
                        break
                if step < 2:
                    buf.append("0")

        tenth = False
        orig_exp = 0
        if at(e) in "eE":
            e += 1
            digits: list[str] = []
            c = at(e)
            if c in "+-" or _is_digit(c):
                if c == "-":
                    tenth = True
                if not _is_digit(c):
                    e += 1
                while _is_digit(at(e)):
                    digits.append(at(e))
                    e += 1
            exp = orig_exp = _to_i8(_str_to_int("".join(digits), 10))

        number = "".join(buf)
        if self.type == AdtType.INTEGER:
            value = _str_to_int(number, 0)
            if value == 0 and number.startswith("-"):
                neg_zero = True
            factor = 0 if tenth else 10
            for _ in range(orig_exp):
                value = _wrap64(value * factor)
            self.integer = value
        else:
            real = _str_to_f64(number)
            whole, _, frac = number.partition(".")
            base2_offset = (len(frac) - len(frac.lstrip("0"))) & 0xFF
            base = _to_i32(_str_to_int(whole, 0))
            base2 = _to_i32(_str_to_int(frac, 0))
            if exp:
                exp = _to_i8(-exp if tenth else exp)
                self.props = AdtProps.IS_EXP
            if base == 0 and number.startswith("-"):
                neg_zero = True
            factor = _F32_TENTH if tenth else 10.0
            for _ in range(orig_exp):
                real *= factor
            self.real = real

        self.base = base
        self.base2 = base2
        self.base2_offset = base2_offset
        self.exp = exp
        self.neg_zero = neg_zero
        self.lead_digit = lead_digit
        return e

    def format_number(self) -> str:
        """Render a numeric node the way it was written where that is known."""
        if self.type not in _NUMBER_TYPES:
            raise InvalidTypeError("node is not a number")
        prefix = "-" if self.neg_zero else ""
        if self.type == AdtType.INTEGER:
            if self.props == AdtProps.IS_HEX:
                return f"{prefix}0x{self.integer & _MASK64:x}"
            return f"{prefix}{self.integer}"
        if self.props in _SPECIAL_REALS:
            return prefix + _SPECIAL_REALS[self.props]
        if self.props == AdtProps.IS_EXP:
            return (f"{prefix}{self.base}.{_zero_pad(self.base2_offset)}"
                    f"{self.base2}e{self.exp}")
        if self.props == AdtProps.IS_PARSED_REAL:
            if not self.lead_digit:
                return f"{prefix}.{_zero_pad(self.base2_offset)}{self.base2}"
            return f"{prefix}{self.base2_offset}.{self.base}{self.base2}"
        return f"{prefix}{self.real:f}"

    def format_string(self, escaped_chars: str, escape_symbol: str) -> str:
        """Render a string node, prefixing each char in ``escaped_chars`` with ``escape_symbol``."""
        if self.type not in _STRING_TYPES:
            raise InvalidTypeError("node is not a string")
        return "".join(
            escape_symbol + c if c in escaped_chars else c
            for c in (self.string or "")
        )

    def str_to_number(self) -> None:
        """Convert a string node into a number node by parsing its text."""
        if self.type in _NUMBER_TYPES:
            raise AlreadyConvertedError("node already holds a number")
        if self.type not in _STRING_TYPES:
            raise InvalidTypeError("node is not a string")
        self.parse_number(self.string or "")
        if self.type in _NUMBER_TYPES:
            self.string = None


_DEFAULTS = {
    "type": AdtType.UNINITIALISED,
    "name": None,
    "nodes": None,
    "string": None,
    "integer": 0,
    "real": 0.0,
    "props": AdtProps.NONE,
    "base": 0,
    "base2": 0,
    "base2_offset": 0,
    "exp": 0,
    "neg_zero": False,
    "lead_digit": False,
}


def _value_matches(node: Node, value: str) -> bool:
    if node.type in _STRING_TYPES:
        return node.string is not None and node.string == value
    if node.type in _NUMBER_TYPES:
        return node.format_number() == value
    return False


def _field_matches(node: Node, name: str, value: str) -> bool:
    return any(
        child.name == name and _value_matches(child, value)
        for child in node.nodes or ()
    )


def _lookup(node: Optional[Node], uri: str) -> Optional[Node]:
    if uri.startswith("/"):
        uri = uri[1:]
    if not uri:
        return node
    if node is None or not node.is_branch:
        return None

    segment, sep, rest = uri.partition("/")
    more = bool(sep)
    found: Optional[Node] = None

    if segment.startswith("["):
        inner = segment[1:]
        close = inner.find("]")
        eq = inner.find("=")
        if (eq < 0 and node.type != AdtType.ARRAY) or close < 0:
            raise ValueError("invalid field value lookup")
        if eq >= 0:
            if eq < close:
                field_name, value = inner[:eq], inner[eq + 1:close]
            else:
                field_name, value = inner[:close], inner[eq + 1:]
            if node.type == AdtType.OBJECT:
                found = node if _field_matches(node, field_name, value) else None
            else:
                found = next(
                    (child for child in node.nodes
                     if child.type == AdtType.OBJECT
                     and _field_matches(child, field_name, value)),
                    None,
                )
        else:
            value = inner[:close]
            found = next(
                (child for child in node.nodes if _value_matches(child, value)),
                None,
            )
        return _lookup(found, rest) if more else found

    if node.type == AdtType.OBJECT:
        found = node.find(segment, False)
        return _lookup(found, rest) if more else found

    index = _str_to_int(segment, 10)
    if 0 <= index < len(node.nodes):
        found = node.nodes[index]
        if more:
            return _lookup(found, rest)
    return found