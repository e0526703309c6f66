class MapToolError(Exception):
    """Base class for everything the map tool raises on purpose."""


class MalformedTag(MapToolError):
    """The byte stream does not parse as a tagged tree."""

    def __init__(self, offset, msg=""):
        self.offset = offset
        super().__init__(f"Malformed tag data at byte {offset}" + (f": {msg}" if msg else ""))


class SchemaError(MapToolError):
    """The tree parsed but does not have the shape of a map item."""

    def __init__(self, path, expected):
        self.path = path
        self.expected = expected
        super().__init__(f"Map schema mismatch at '{path}': expected {expected}")


class ConfigError(MapToolError):
    """Caller supplied filters or coordinates that cannot be used."""


class SinkError(MapToolError):
    """Writing the finished image failed."""


DecodeError = (MalformedTag, SchemaError)
