"""Map color index to RGBA.

A stored index packs a base color id in the upper six bits and a shade in
the lower two. The base colors are the ones the game uses since data
version 2699 (21w10a).
"""

from PIL import Image

from .coords import MAP_SIZE

TRANSPARENT = (0, 0, 0, 0)
# Shown for base colors this table does not know
MISSING_COLOR = (255, 0, 255, 255)

SHADE_MULTIPLIERS = (180, 220, 255, 135)

# Index is the base color id. Id 0 is the game's "no color" and has no RGB.
BASE_COLORS = (
    None,
    (127, 178, 56),   # grass
    (247, 233, 163),  # sand
    (199, 199, 199),  # wool
    (255, 0, 0),      # fire
    (160, 160, 255),  # ice
    (167, 167, 167),  # metal
    (0, 124, 0),      # plant
    (255, 255, 255),  # snow
    (164, 168, 184),  # clay
    (151, 109, 77),   # dirt
    (112, 112, 112),  # stone
    (64, 64, 255),    # water
    (143, 119, 72),   # wood
    (255, 252, 245),  # quartz
    (216, 127, 51),   # orange
    (178, 76, 216),   # magenta
    (102, 153, 216),  # light blue
    (229, 229, 51),   # yellow
    (127, 204, 25),   # lime
    (242, 127, 165),  # pink
    (76, 76, 76),     # gray
    (153, 153, 153),  # light gray
    (76, 127, 153),   # cyan
    (127, 63, 178),   # purple
    (51, 76, 178),    # blue
    (102, 76, 51),    # brown
    (102, 127, 51),   # green
    (153, 51, 51),    # red
    (25, 25, 25),     # black
    (250, 238, 77),   # gold
    (92, 219, 213),   # diamond
    (74, 128, 255),   # lapis
    (0, 217, 58),     # emerald
    (129, 86, 49),    # podzol
    (112, 2, 0),      # nether
    (209, 177, 161),  # terracotta white
    (159, 82, 36),    # terracotta orange
    (149, 87, 108),   # terracotta magenta
    (112, 108, 138),  # terracotta light blue
    (186, 133, 36),   # terracotta yellow
    (103, 117, 53),   # terracotta lime
    (160, 77, 78),    # terracotta pink
    (57, 41, 35),     # terracotta gray
    (135, 107, 98),   # terracotta light gray
    (87, 92, 92),     # terracotta cyan
    (122, 73, 88),    # terracotta purple
    (76, 62, 92),     # terracotta blue
    (76, 50, 35),     # terracotta brown
    (76, 82, 42),     # terracotta green
    (142, 60, 46),    # terracotta red
    (37, 22, 16),     # terracotta black
    (189, 48, 49),    # crimson nylium
    (148, 63, 97),    # crimson stem
    (92, 25, 29),     # crimson hyphae
    (22, 126, 134),   # warped nylium
    (58, 142, 140),   # warped stem
    (86, 44, 62),     # warped hyphae
    (20, 180, 133),   # warped wart block
    (100, 100, 100),  # deepslate
    (216, 175, 147),  # raw iron
    (127, 167, 150),  # glow lichen
    None,
    None,
)


def _shade(channel, multiplier):
    return min(255, (channel * multiplier + 127) // 255)


def _build_palette():
    palette = [TRANSPARENT]
    for index in range(1, 256):
        base = BASE_COLORS[index >> 2]
        if base is None:
            palette.append(MISSING_COLOR)
            continue
        multiplier = SHADE_MULTIPLIERS[index & 0b11]
        palette.append(tuple(_shade(c, multiplier) for c in base) + (255,))
    return tuple(palette)


PALETTE = _build_palette()
_PALETTE_BYTES = tuple(bytes(color) for color in PALETTE)


def resolve(index):
    """RGBA tuple for a stored color index. Never fails."""
    return PALETTE[index & 0xFF]


def colors_to_rgba(colors):
    """Raw RGBA bytes for a sequence of color indices."""
    return b"".join(_PALETTE_BYTES[index] for index in colors)


def map_image(record):
    """128×128 RGBA image of a single map at one pixel per map pixel."""
    return Image.frombytes("RGBA", (MAP_SIZE, MAP_SIZE), colors_to_rgba(record.colors))
