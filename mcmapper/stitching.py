"""Composite many maps into one image in world block space.

The canvas has one pixel per world block. A map pixel at scale S covers a
2^S × 2^S block square and is replicated over it without interpolation, so
only palette colors ever appear. Maps are drawn in the order given; a later
map overwrites an earlier one wherever its pixels are not transparent.
"""

import logging

from PIL import Image

from . import coords
from .errors import ConfigError
from .palette import TRANSPARENT, map_image

logger = logging.getLogger("MapGen")

# 16384 × 16384 blocks
MAX_CANVAS_PIXELS = 1 << 28


class Canvas:
    def __init__(self, rect, max_pixels=MAX_CANVAS_PIXELS):
        if rect.width * rect.height > max_pixels:
            raise ConfigError(
                f"Area {rect.width}×{rect.height} is larger than the limit of {max_pixels} pixels")
        self.rect = rect
        self.drawn = 0
        self.image = Image.new("RGBA", (rect.width, rect.height), TRANSPARENT)

    @property
    def width(self):
        return self.image.width

    @property
    def height(self):
        return self.image.height

    def to_pixel(self, x, z):
        return x - self.rect.left, z - self.rect.top

    def pixel_at(self, x, z):
        """Color at world block (x, z); transparent outside the canvas."""
        if not self.rect.contains(x, z):
            return TRANSPARENT
        return self.image.getpixel(self.to_pixel(x, z))

    def draw(self, record):
        area = record.bounds()
        if not area.intersects(self.rect):
            return False
        tile = map_image(record)
        factor = coords.blocks_per_pixel(record.scale)
        if factor > 1:
            tile = tile.resize((tile.width * factor, tile.height * factor), Image.Resampling.NEAREST)
        # The tile's alpha is the mask, index 0 pixels leave the canvas alone
        self.image.paste(tile, self.to_pixel(area.left, area.top), tile)
        self.drawn += 1
        return True

    def tobytes(self):
        return self.image.tobytes()


def _dimension_matches(record, dimension):
    if dimension is None:
        return True
    if isinstance(dimension, str):
        return record.dimension.matches(dimension)
    return record.dimension == dimension


def select(records, dimension=None, zoom=None):
    """Records in ``dimension`` (name or Dimension) and at ``zoom``, order kept."""
    if zoom is not None:
        coords.check_scale(zoom)
    return [r for r in records
            if _dimension_matches(r, dimension) and (zoom is None or r.scale == zoom)]


def stitch(records, dimension=None, zoom=None, rect=None, max_pixels=MAX_CANVAS_PIXELS):
    """Draw ``records`` (already in draw order) onto a new Canvas.

    Without ``rect`` the canvas covers the union of the selected maps; an
    empty selection gives an empty 0×0 canvas. With ``rect`` only maps that
    overlap it are drawn.
    """
    selected = select(records, dimension, zoom)
    if rect is None:
        area = coords.union_all(r.bounds() for r in selected)
    else:
        area = coords.validate_rect(rect)
        selected = [r for r in selected if r.bounds().intersects(area)]

    canvas = Canvas(area, max_pixels)
    for record in selected:
        canvas.draw(record)
    logger.info(f"Stitched {len(selected)} maps into {canvas.width}×{canvas.height} "
                f"[l: {area.left}, t: {area.top}, r: {area.right}, b: {area.bottom}]")
    return canvas
