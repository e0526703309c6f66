"""Reader and writer for the game's tagged binary tree format.

Every named node is a one byte type tag, a length prefixed name and a
payload. List elements and array entries carry no names. All numbers are
big-endian. Strings use Java's modified UTF-8.
"""

import struct
from enum import IntEnum
from typing import Any, NamedTuple

from .errors import MalformedTag

# Every level costs up to two Python frames, keep well below the recursion limit.
MAX_DEPTH = 256


class TagType(IntEnum):
    END = 0
    BYTE = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    DOUBLE = 6
    BYTE_ARRAY = 7
    STRING = 8
    LIST = 9
    COMPOUND = 10
    INT_ARRAY = 11
    LONG_ARRAY = 12


TYPE_NAMES = {
    TagType.END: "End",
    TagType.BYTE: "Byte",
    TagType.SHORT: "Short",
    TagType.INT: "Int",
    TagType.LONG: "Long",
    TagType.FLOAT: "Float",
    TagType.DOUBLE: "Double",
    TagType.BYTE_ARRAY: "ByteArray",
    TagType.STRING: "String",
    TagType.LIST: "List",
    TagType.COMPOUND: "Compound",
    TagType.INT_ARRAY: "IntArray",
    TagType.LONG_ARRAY: "LongArray",
}

INTEGER_TYPES = (TagType.BYTE, TagType.SHORT, TagType.INT, TagType.LONG)


class Tag(NamedTuple):
    """One node of a decoded tree.

    ``value`` depends on ``type``: int for the integer kinds, float, str,
    bytes for byte arrays (unsigned view), tuple of ints for int/long
    arrays, list of Tag for lists and dict of name to Tag for compounds.
    ``element_type`` is only meaningful for lists.
    """
    type: TagType
    value: Any
    element_type: TagType = TagType.END


_SCALARS = {
    TagType.BYTE: struct.Struct('>b'),
    TagType.SHORT: struct.Struct('>h'),
    TagType.INT: struct.Struct('>i'),
    TagType.LONG: struct.Struct('>q'),
    TagType.FLOAT: struct.Struct('>f'),
    TagType.DOUBLE: struct.Struct('>d'),
}
_ARRAY_CODES = {TagType.INT_ARRAY: 'i', TagType.LONG_ARRAY: 'q'}
_USHORT = struct.Struct('>H')
_INT = _SCALARS[TagType.INT]


def compound(entries=None):
    return Tag(TagType.COMPOUND, dict(entries or {}))


def tag_list(element_type, items=()):
    return Tag(TagType.LIST, list(items), TagType(element_type))


def decode_mutf8(raw):
    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError:
        pass
    # NUL is stored as C0 80 and supplementary characters as surrogate pairs
    text = raw.replace(b'\xc0\x80', b'\x00').decode('utf-8', 'surrogatepass')
    return text.encode('utf-16', 'surrogatepass').decode('utf-16')


def encode_mutf8(text):
    out = bytearray()
    for char in text:
        code = ord(char)
        if code == 0:
            out += b'\xc0\x80'
        elif code > 0xFFFF:
            code -= 0x10000
            out += chr(0xD800 + (code >> 10)).encode('utf-8', 'surrogatepass')
            out += chr(0xDC00 + (code & 0x3FF)).encode('utf-8', 'surrogatepass')
        else:
            out += char.encode('utf-8', 'surrogatepass')
    return bytes(out)


class _TagReader:
    def __init__(self, data):
        self.data = bytes(data)
        self.pos = 0

    def take(self, size):
        end = self.pos + size
        if end > len(self.data):
            raise MalformedTag(self.pos, f"needed {size} bytes but only {len(self.data) - self.pos} left")
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def unpack(self, fmt):
        return fmt.unpack(self.take(fmt.size))[0]

    def read_type(self):
        offset = self.pos
        raw = self.take(1)[0]
        try:
            return TagType(raw)
        except ValueError:
            raise MalformedTag(offset, f"unknown tag type {raw}") from None

    def read_length(self):
        offset = self.pos
        length = self.unpack(_INT)
        if length < 0:
            raise MalformedTag(offset, f"negative length {length}")
        return length

    def read_string(self):
        length = self.unpack(_USHORT)
        offset = self.pos
        raw = self.take(length)
        try:
            return decode_mutf8(raw)
        except UnicodeDecodeError as e:
            raise MalformedTag(offset, f"invalid string: {e}") from e

    def read_payload(self, tag_type, depth):
        if depth > MAX_DEPTH:
            raise MalformedTag(self.pos, "nesting too deep")

        fmt = _SCALARS.get(tag_type)
        if fmt is not None:
            return Tag(tag_type, self.unpack(fmt))
        if tag_type == TagType.STRING:
            return Tag(tag_type, self.read_string())
        if tag_type == TagType.BYTE_ARRAY:
            return Tag(tag_type, self.take(self.read_length()))
        if tag_type in _ARRAY_CODES:
            count = self.read_length()
            code = _ARRAY_CODES[tag_type]
            raw = self.take(count * struct.calcsize(code))
            return Tag(tag_type, struct.unpack(f'>{count}{code}', raw))
        if tag_type == TagType.LIST:
            element_type = self.read_type()
            offset = self.pos
            count = self.read_length()
            if element_type == TagType.END and count > 0:
                raise MalformedTag(offset, "list of End tags cannot have elements")
            items = [self.read_payload(element_type, depth + 1) for _ in range(count)]
            return Tag(tag_type, items, element_type)
        if tag_type == TagType.COMPOUND:
            entries = {}
            while True:
                child_type = self.read_type()
                if child_type == TagType.END:
                    break
                name = self.read_string()
                entries[name] = self.read_payload(child_type, depth + 1)
            return Tag(tag_type, entries)

        raise MalformedTag(self.pos, "End tag has no payload")


def read_root(data):
    """Decode ``data`` and return ``(root_name, root_tag)``.

    Bytes after the root compound are ignored.
    """
    reader = _TagReader(data)
    root_type = reader.read_type()
    if root_type != TagType.COMPOUND:
        raise MalformedTag(0, f"root tag is {TYPE_NAMES[root_type]}, not Compound")
    name = reader.read_string()
    return name, reader.read_payload(root_type, 0)


def decode_tree(data):
    return read_root(data)[1]


def _write_string(out, text):
    raw = encode_mutf8(text)
    if len(raw) > 0xFFFF:
        raise ValueError(f"string too long for a tag ({len(raw)} bytes)")
    out += _USHORT.pack(len(raw))
    out += raw


def _write_payload(out, tag):
    fmt = _SCALARS.get(tag.type)
    if fmt is not None:
        out += fmt.pack(tag.value)
    elif tag.type == TagType.STRING:
        _write_string(out, tag.value)
    elif tag.type == TagType.BYTE_ARRAY:
        out += _INT.pack(len(tag.value))
        out += bytes(tag.value)
    elif tag.type in _ARRAY_CODES:
        out += _INT.pack(len(tag.value))
        out += struct.pack(f'>{len(tag.value)}{_ARRAY_CODES[tag.type]}', *tag.value)
    elif tag.type == TagType.LIST:
        element_type = tag.element_type
        if element_type == TagType.END and tag.value:
            element_type = tag.value[0].type
        out.append(element_type)
        out += _INT.pack(len(tag.value))
        for item in tag.value:
            if item.type != element_type:
                raise ValueError(f"list of {TYPE_NAMES[element_type]} contains {TYPE_NAMES[item.type]}")
            _write_payload(out, item)
    elif tag.type == TagType.COMPOUND:
        for key, child in tag.value.items():
            out.append(child.type)
            _write_string(out, key)
            _write_payload(out, child)
        out.append(TagType.END)
    else:
        raise ValueError(f"cannot write payload of {TYPE_NAMES[tag.type]}")


def encode(tag, name=""):
    """Serialize ``tag`` as a named root. The inverse of ``read_root``."""
    if tag.type != TagType.COMPOUND:
        raise ValueError("root tag must be a Compound")
    out = bytearray()
    out.append(tag.type)
    _write_string(out, name)
    _write_payload(out, tag)
    return bytes(out)


def _label(tag_type, name):
    return f"{TYPE_NAMES[tag_type]}: {name}" if name else TYPE_NAMES[tag_type]


def _format_array(tag, name):
    label = _label(tag.type, name)
    values = tag.value
    if tag.type == TagType.BYTE_ARRAY:
        values = struct.unpack(f'>{len(values)}b', values)
    if len(values) < 8:
        return f"{label} = {list(values)}"
    head = ", ".join(str(v) for v in values[:8])
    return f"{label} = [{head}, ...] ({len(values)} values)"


def _dump(tag, name, depth, lines):
    pad = "  " * depth
    if tag.type == TagType.COMPOUND:
        lines.append(pad + _label(tag.type, name))
        for key, child in tag.value.items():
            _dump(child, key, depth + 1, lines)
    elif tag.type == TagType.LIST:
        lines.append(f"{pad}{_label(tag.type, name)} [{TYPE_NAMES[tag.element_type]}]×{len(tag.value)}")
        for item in tag.value:
            _dump(item, "", depth + 1, lines)
    elif tag.type in (TagType.BYTE_ARRAY, TagType.INT_ARRAY, TagType.LONG_ARRAY):
        lines.append(pad + _format_array(tag, name))
    elif tag.type == TagType.STRING:
        lines.append(f"{pad}{_label(tag.type, name)} = {tag.value!r}")
    else:
        lines.append(f"{pad}{_label(tag.type, name)} = {tag.value}")


def dump_tree(tag, name=""):
    """Readable, indented listing of a tree, one line per node."""
    lines = []
    _dump(tag, name, 0, lines)
    return lines
