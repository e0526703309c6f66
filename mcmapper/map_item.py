"""Typed view of a decoded map item (``map_<n>.dat``)."""

import gzip
import json
import zlib
from typing import NamedTuple, Optional, Tuple

from . import coords
from .errors import ConfigError, MalformedTag, SchemaError
from .nbt import INTEGER_TYPES, Tag, TagType, compound, decode_tree, encode, tag_list

COLORS_LENGTH = coords.MAP_SIZE * coords.MAP_SIZE
GZIP_MAGIC = b'\x1f\x8b'


class Dimension(NamedTuple):
    """A world space, by its resource location (``minecraft:overworld``).

    Dimensions the game may add later keep whatever name the file used.
    """
    name: str

    @property
    def path(self):
        return self.name.split(":", 1)[-1]

    @property
    def pretty(self):
        return self.path.replace("_", " ").title()

    @property
    def is_known(self):
        return self in KNOWN_DIMENSIONS

    def matches(self, text):
        text = text.strip().lower().replace(" ", "_")
        path = self.path.lower()
        return text in (self.name.lower(), path, path.removeprefix("the_"))

    def __str__(self):
        return self.pretty


OVERWORLD = Dimension("minecraft:overworld")
NETHER = Dimension("minecraft:the_nether")
END = Dimension("minecraft:the_end")
KNOWN_DIMENSIONS = (OVERWORLD, NETHER, END)

# Before 1.16 the dimension was a number
LEGACY_DIMENSIONS = {0: OVERWORLD, -1: NETHER, 1: END}


class Banner(NamedTuple):
    name: Optional[str]
    color: str
    x: int
    y: int
    z: int

    @property
    def display_name(self):
        """Plain text of the banner name, which is stored as JSON text."""
        if self.name is None:
            return "[nameless]"
        try:
            parsed = json.loads(self.name)
        except ValueError:
            return self.name
        if isinstance(parsed, dict) and "text" in parsed:
            return str(parsed["text"])
        if isinstance(parsed, str):
            return parsed
        return self.name


class Frame(NamedTuple):
    entity_id: int
    rotation: int
    x: int
    y: int
    z: int


class MapRecord(NamedTuple):
    scale: int
    dimension: Dimension
    locked: bool
    tracking_position: bool
    unlimited_tracking: bool
    center: Tuple[int, int]
    colors: bytes
    banners: Tuple[Banner, ...] = ()
    frames: Tuple[Frame, ...] = ()
    data_version: Optional[int] = None

    def color_at(self, x, z):
        return self.colors[z * coords.MAP_SIZE + x]

    def bounds(self):
        return coords.bounds(self.center, self.scale)

    @property
    def scale_description(self):
        return f"1:{coords.blocks_per_pixel(self.scale)}"

    def __repr__(self):
        # Keep the 16384 color bytes out of logs
        return (f"MapRecord(scale={self.scale}, dimension={self.dimension.name!r}, "
                f"center={self.center}, locked={self.locked}, "
                f"banners={len(self.banners)}, frames={len(self.frames)})")


def bounds(record):
    return record.bounds()


def _join(path, key):
    return f"{path}.{key}" if path else key


def _find(node, keys):
    for key in keys:
        tag = node.value.get(key)
        if tag is not None:
            return key, tag
    return keys[0], None


def _optional(node, keys, path, types, expected):
    key, tag = _find(node, keys)
    if tag is None:
        return None
    if tag.type not in types:
        raise SchemaError(_join(path, key), expected)
    return tag


def _require(node, keys, path, types, expected):
    key, tag = _find(node, keys)
    if tag is None:
        raise SchemaError(_join(path, key), f"{expected} (missing)")
    if tag.type not in types:
        raise SchemaError(_join(path, key), expected)
    return tag


def _int(node, keys, path):
    tag = _require(node, keys, path, INTEGER_TYPES, "integer")
    if not coords.INT32_MIN <= tag.value <= coords.INT32_MAX:
        raise SchemaError(_join(path, keys[0]), "32-bit integer")
    return tag.value


def _flag(node, key, path, default):
    tag = _optional(node, (key,), path, INTEGER_TYPES, "byte boolean")
    return default if tag is None else tag.value != 0


def _position(node, path):
    pos = node.value.get("Pos")
    if pos is not None and pos.type == TagType.COMPOUND:
        pos_path = _join(path, "Pos")
        return tuple(_int(pos, (axis,), pos_path) for axis in ("X", "Y", "Z"))
    pos = node.value.get("pos")
    if pos is not None and pos.type == TagType.INT_ARRAY and len(pos.value) == 3:
        return tuple(pos.value)
    raise SchemaError(_join(path, "Pos"), "Compound with X, Y and Z")


def _text(tag):
    if tag is None:
        return None
    if tag.type == TagType.COMPOUND:
        text = tag.value.get("text")
        return text.value if text is not None and text.type == TagType.STRING else None
    return tag.value


def _banner(node, path):
    name = _optional(node, ("Name", "name"), path, (TagType.STRING, TagType.COMPOUND), "String")
    color = _optional(node, ("Color", "color"), path, (TagType.STRING,), "String")
    x, y, z = _position(node, path)
    return Banner(_text(name), color.value if color is not None else "white", x, y, z)


def _frame(node, path):
    entity_id = _int(node, ("EntityId", "entity_id"), path)
    rotation = _int(node, ("Rotation", "rotation"), path)
    x, y, z = _position(node, path)
    return Frame(entity_id, rotation, x, y, z)


def _markers(node, key, path, parse):
    tag = _optional(node, (key,), path, (TagType.LIST,), "List")
    if tag is None:
        return ()
    list_path = _join(path, key)
    if tag.value and tag.element_type != TagType.COMPOUND:
        raise SchemaError(list_path, "List of Compound")
    return tuple(parse(item, f"{list_path}[{i}]") for i, item in enumerate(tag.value))


def _center(node, path, scale):
    center = []
    for key in ("xCenter", "zCenter"):
        value = _int(node, (key,), path)
        try:
            coords.bounds((value, 0), scale)
        except ConfigError:
            raise SchemaError(_join(path, key),
                              f"center that keeps a scale {scale} map inside the world range") from None
        center.append(value)
    return tuple(center)


def _dimension(node, path):
    tag = _require(node, ("dimension",), path, (TagType.STRING,) + INTEGER_TYPES,
                   "String or legacy integer")
    if tag.type == TagType.STRING:
        return Dimension(tag.value)
    return LEGACY_DIMENSIONS.get(tag.value, Dimension(str(tag.value)))


def extract(root):
    """Build a MapRecord from a decoded tree, raising SchemaError on mismatch."""
    if root.type != TagType.COMPOUND:
        raise SchemaError("<root>", "Compound")

    version_tag = _optional(root, ("DataVersion",), "", INTEGER_TYPES, "integer")
    data = _require(root, ("data",), "", (TagType.COMPOUND,), "Compound")
    path = "data"

    scale = _int(data, ("scale",), path)
    if not coords.MIN_SCALE <= scale <= coords.MAX_SCALE:
        raise SchemaError(_join(path, "scale"), f"integer between {coords.MIN_SCALE} and {coords.MAX_SCALE}")

    colors = _require(data, ("colors",), path, (TagType.BYTE_ARRAY,), "ByteArray")
    if len(colors.value) != COLORS_LENGTH:
        raise SchemaError(_join(path, "colors"),
                          f"ByteArray of {COLORS_LENGTH} entries, got {len(colors.value)}")

    return MapRecord(
        scale=scale,
        dimension=_dimension(data, path),
        locked=_flag(data, "locked", path, False),
        tracking_position=_flag(data, "trackingPosition", path, True),
        unlimited_tracking=_flag(data, "unlimitedTracking", path, False),
        center=_center(data, path, scale),
        colors=bytes(colors.value),
        banners=_markers(data, "banners", path, _banner),
        frames=_markers(data, "frames", path, _frame),
        data_version=version_tag.value if version_tag is not None else None,
    )


def decode(data):
    """Decode uncompressed map file bytes into a MapRecord."""
    return extract(decode_tree(data))


def decompress(raw):
    """Undo the file compression, detected from the leading bytes."""
    try:
        if raw[:2] == GZIP_MAGIC:
            return gzip.decompress(raw)
        if len(raw) >= 2 and raw[0] == 0x78 and int.from_bytes(raw[:2], "big") % 31 == 0:
            return zlib.decompress(raw)
    except (OSError, EOFError, zlib.error) as e:
        raise MalformedTag(0, f"cannot decompress: {e}") from e
    return raw


def read_map_file(path):
    with open(path, "rb") as f:
        raw = f.read()
    return decode(decompress(raw))


def _position_tag(item):
    return compound({
        "X": Tag(TagType.INT, item.x),
        "Y": Tag(TagType.INT, item.y),
        "Z": Tag(TagType.INT, item.z),
    })


def _banner_tag(banner):
    entries = {"Color": Tag(TagType.STRING, banner.color), "Pos": _position_tag(banner)}
    if banner.name is not None:
        entries["Name"] = Tag(TagType.STRING, banner.name)
    return compound(entries)


def _frame_tag(frame):
    return compound({
        "EntityId": Tag(TagType.INT, frame.entity_id),
        "Rotation": Tag(TagType.INT, frame.rotation),
        "Pos": _position_tag(frame),
    })


def to_tree(record):
    """The tree ``extract`` would turn back into ``record``."""
    data = compound({
        "scale": Tag(TagType.BYTE, record.scale),
        "dimension": Tag(TagType.STRING, record.dimension.name),
        "trackingPosition": Tag(TagType.BYTE, int(record.tracking_position)),
        "unlimitedTracking": Tag(TagType.BYTE, int(record.unlimited_tracking)),
        "locked": Tag(TagType.BYTE, int(record.locked)),
        "xCenter": Tag(TagType.INT, record.center[0]),
        "zCenter": Tag(TagType.INT, record.center[1]),
        "banners": tag_list(TagType.COMPOUND, [_banner_tag(b) for b in record.banners]),
        "frames": tag_list(TagType.COMPOUND, [_frame_tag(f) for f in record.frames]),
        "colors": Tag(TagType.BYTE_ARRAY, bytes(record.colors)),
    })
    root = {"data": data}
    if record.data_version is not None:
        root["DataVersion"] = Tag(TagType.INT, record.data_version)
    return compound(root)


def write_map_file(path, record):
    """Write ``record`` gzip compressed, the way the game stores map items."""
    with open(path, "wb") as f:
        f.write(gzip.compress(encode(to_tree(record))))
