"""World block coordinates covered by a map.

X grows east, Z grows south, so "top" is the smaller Z.
"""

from typing import NamedTuple

from .errors import ConfigError

MAP_SIZE = 128
MIN_SCALE = 0
MAX_SCALE = 4

# Coordinates are stored as 32-bit ints in the save files
INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1


class WorldRect(NamedTuple):
    """Inclusive block rectangle. A rectangle with right < left is empty."""
    left: int
    top: int
    right: int
    bottom: int

    @classmethod
    def empty(cls):
        return cls(0, 0, -1, -1)

    @property
    def width(self):
        return max(0, self.right - self.left + 1)

    @property
    def height(self):
        return max(0, self.bottom - self.top + 1)

    @property
    def is_empty(self):
        return self.width == 0 or self.height == 0

    def intersects(self, other):
        if self.is_empty or other.is_empty:
            return False
        return (self.left <= other.right and self.right >= other.left
                and self.top <= other.bottom and self.bottom >= other.top)

    def union(self, other):
        if self.is_empty:
            return other
        if other.is_empty:
            return self
        return WorldRect(min(self.left, other.left), min(self.top, other.top),
                         max(self.right, other.right), max(self.bottom, other.bottom))

    def contains(self, x, z):
        return self.left <= x <= self.right and self.top <= z <= self.bottom


def check_scale(scale):
    if not isinstance(scale, int) or not MIN_SCALE <= scale <= MAX_SCALE:
        raise ConfigError(f"Scale must be between {MIN_SCALE} and {MAX_SCALE}, got {scale!r}")
    return scale


def blocks_per_pixel(scale):
    return 2 ** check_scale(scale)


def block_span(scale):
    """World blocks covered by the full width of a map."""
    return MAP_SIZE * blocks_per_pixel(scale)


def _check_coordinate(name, value):
    if not INT32_MIN <= value <= INT32_MAX:
        raise ConfigError(f"{name} coordinate {value} is outside the world range")
    return value


def bounds(center, scale):
    """Block rectangle drawn by a map with the given ``(x, z)`` center."""
    x, z = center
    span = block_span(scale)
    left = _check_coordinate("left", x - span // 2)
    top = _check_coordinate("top", z - span // 2)
    right = _check_coordinate("right", left + span - 1)
    bottom = _check_coordinate("bottom", top + span - 1)
    return WorldRect(left, top, right, bottom)


def union_all(rects):
    area = WorldRect.empty()
    for rect in rects:
        area = area.union(rect)
    return area


def validate_rect(rect):
    """Reject a caller supplied rectangle that cannot describe an image."""
    for name, value in zip(WorldRect._fields, rect):
        _check_coordinate(name, value)
    if rect.left > rect.right:
        raise ConfigError(f"Left ({rect.left}) is greater than right ({rect.right})")
    if rect.top > rect.bottom:
        raise ConfigError(f"Top ({rect.top}) is greater than bottom ({rect.bottom})")
    return WorldRect(*rect)
