"""
Tests for the color index palette.
"""

import pytest

from conftest import make_record
from mcmapper.palette import BASE_COLORS, MISSING_COLOR, PALETTE, TRANSPARENT, colors_to_rgba, map_image, resolve


class TestPalette:
    def test_every_index_resolves(self):
        assert len(PALETTE) == 256
        for index in range(256):
            assert len(resolve(index)) == 4

    def test_only_index_zero_is_transparent(self):
        for index in range(256):
            alpha = resolve(index)[3]
            assert (alpha == 0) == (index == 0), f"index {index} has alpha {alpha}"
        assert resolve(0) == TRANSPARENT

    def test_alpha_is_binary(self):
        assert {color[3] for color in PALETTE} == {0, 255}

    @pytest.mark.parametrize("index, expected", [
        (4, (90, 126, 40, 255)),
        (5, (110, 154, 48, 255)),
        (6, (127, 178, 56, 255)),
        (7, (67, 94, 30, 255)),
    ])
    def test_grass_shades(self, index, expected):
        assert resolve(index) == expected

    def test_shade_two_is_the_base_color(self):
        for base_id, base in enumerate(BASE_COLORS):
            if base is not None:
                assert resolve(base_id * 4 + 2) == base + (255,)

    @pytest.mark.parametrize("index", [1, 2, 3, 248, 251, 252, 255])
    def test_unknown_colors_use_the_sentinel(self, index):
        assert resolve(index) == MISSING_COLOR

    def test_colors_to_rgba(self):
        assert colors_to_rgba(bytes([0, 6])) == bytes(TRANSPARENT) + bytes((127, 178, 56, 255))

    def test_map_image(self):
        colors = bytearray(128 * 128)
        colors[5 * 128 + 3] = 6
        image = map_image(make_record(colors=colors))
        assert image.mode == "RGBA"
        assert image.size == (128, 128)
        assert image.getpixel((3, 5)) == (127, 178, 56, 255)
        assert image.getpixel((5, 3)) == TRANSPARENT
