"""
Tests for reading map items out of decoded trees and files.
"""

import gzip
import zlib

import pytest

from conftest import make_record
from mcmapper.errors import MalformedTag, SchemaError
from mcmapper.map_item import (
    END, NETHER, OVERWORLD, Banner, Dimension, Frame, decode, decompress, extract,
    read_map_file, to_tree, write_map_file,
)
from mcmapper.nbt import Tag, TagType, compound, encode, tag_list


def map_tree(**overrides):
    data = {
        "scale": Tag(TagType.BYTE, 2),
        "dimension": Tag(TagType.STRING, "minecraft:the_nether"),
        "xCenter": Tag(TagType.INT, -128),
        "zCenter": Tag(TagType.INT, -512),
        "colors": Tag(TagType.BYTE_ARRAY, bytes(128 * 128)),
    }
    for key, value in overrides.items():
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
    return compound({"data": compound(data), "DataVersion": Tag(TagType.INT, 3700)})


class TestExtract:
    def test_minimal_map(self):
        record = extract(map_tree())
        assert record.scale == 2
        assert record.dimension == NETHER
        assert record.center == (-128, -512)
        assert record.data_version == 3700
        assert record.locked is False
        assert record.tracking_position is True
        assert record.unlimited_tracking is False
        assert record.banners == () and record.frames == ()

    def test_flags(self):
        record = extract(map_tree(locked=Tag(TagType.BYTE, 1), trackingPosition=Tag(TagType.BYTE, 0),
                                  unlimitedTracking=Tag(TagType.BYTE, 1)))
        assert record.locked and record.unlimited_tracking and not record.tracking_position

    @pytest.mark.parametrize("value, expected", [(0, OVERWORLD), (-1, NETHER), (1, END)])
    def test_legacy_dimension_numbers(self, value, expected):
        assert extract(map_tree(dimension=Tag(TagType.BYTE, value))).dimension == expected

    def test_unknown_dimension_is_kept(self):
        record = extract(map_tree(dimension=Tag(TagType.STRING, "mod:mining_world")))
        assert record.dimension == Dimension("mod:mining_world")
        assert not record.dimension.is_known
        assert record.dimension.pretty == "Mining World"

    def test_missing_colors(self):
        with pytest.raises(SchemaError) as exc:
            extract(map_tree(colors=None))
        assert exc.value.path == "data.colors"

    def test_short_colors(self):
        with pytest.raises(SchemaError) as exc:
            extract(map_tree(colors=Tag(TagType.BYTE_ARRAY, bytes(100))))
        assert exc.value.path == "data.colors"

    def test_colors_of_wrong_type(self):
        with pytest.raises(SchemaError) as exc:
            extract(map_tree(colors=Tag(TagType.INT_ARRAY, (0,) * 16384)))
        assert exc.value.path == "data.colors"

    @pytest.mark.parametrize("scale", [-1, 5, 100])
    def test_scale_out_of_range(self, scale):
        with pytest.raises(SchemaError) as exc:
            extract(map_tree(scale=Tag(TagType.BYTE, scale)))
        assert exc.value.path == "data.scale"

    def test_missing_center(self):
        with pytest.raises(SchemaError) as exc:
            extract(map_tree(zCenter=None))
        assert exc.value.path == "data.zCenter"

    def test_missing_data(self):
        with pytest.raises(SchemaError) as exc:
            extract(compound({"DataVersion": Tag(TagType.INT, 1)}))
        assert exc.value.path == "data"

    def test_center_wider_than_int32(self):
        with pytest.raises(SchemaError):
            extract(map_tree(xCenter=Tag(TagType.LONG, 2 ** 40)))

    @pytest.mark.parametrize("key", ["xCenter", "zCenter"])
    def test_center_too_close_to_the_world_edge(self, key):
        with pytest.raises(SchemaError) as exc:
            extract(map_tree(**{key: Tag(TagType.INT, 2 ** 31 - 1)}))
        assert exc.value.path == f"data.{key}"

    def test_center_at_the_world_edge(self):
        # scale 2 spans 512 blocks, the last one lands on the largest int32
        record = extract(map_tree(xCenter=Tag(TagType.INT, 2 ** 31 - 256)))
        assert record.bounds().right == 2 ** 31 - 1

    def test_banners_and_frames(self):
        banner = compound({
            "Color": Tag(TagType.STRING, "red"),
            "Name": Tag(TagType.STRING, '{"text":"Home"}'),
            "Pos": compound({"X": Tag(TagType.INT, 1), "Y": Tag(TagType.INT, 64), "Z": Tag(TagType.INT, -3)}),
        })
        newer_banner = compound({
            "color": Tag(TagType.STRING, "blue"),
            "pos": Tag(TagType.INT_ARRAY, (5, 70, 9)),
        })
        frame = compound({
            "EntityId": Tag(TagType.INT, 42),
            "Rotation": Tag(TagType.INT, 90),
            "Pos": compound({"X": Tag(TagType.INT, 0), "Y": Tag(TagType.INT, 65), "Z": Tag(TagType.INT, 0)}),
        })
        record = extract(map_tree(banners=tag_list(TagType.COMPOUND, [banner, newer_banner]),
                                  frames=tag_list(TagType.COMPOUND, [frame])))
        assert record.banners == (Banner('{"text":"Home"}', "red", 1, 64, -3), Banner(None, "blue", 5, 70, 9))
        assert record.banners[0].display_name == "Home"
        assert record.banners[1].display_name == "[nameless]"
        assert record.frames == (Frame(42, 90, 0, 65, 0),)

    def test_banner_without_position(self):
        banner = compound({"Color": Tag(TagType.STRING, "red")})
        with pytest.raises(SchemaError) as exc:
            extract(map_tree(banners=tag_list(TagType.COMPOUND, [banner])))
        assert exc.value.path == "data.banners[0].Pos"

    def test_repr_leaves_out_colors(self):
        assert "colors" not in repr(make_record())


class TestDimension:
    @pytest.mark.parametrize("text", ["nether", "The Nether", "the_nether", "minecraft:the_nether", "NETHER"])
    def test_matches(self, text):
        assert NETHER.matches(text)

    def test_does_not_match_other(self):
        assert not OVERWORLD.matches("end")

    def test_pretty(self):
        assert str(OVERWORLD) == "Overworld"
        assert NETHER.pretty == "The Nether"


class TestFiles:
    @pytest.mark.parametrize("scale", range(5))
    def test_read_bounds_follow_scale(self, tmp_path, scale):
        path = str(tmp_path / f"map_{scale}.dat")
        write_map_file(path, make_record(center=(-300, 700), scale=scale))
        area = read_map_file(path).bounds()
        assert area.width == area.height == 128 * 2 ** scale

    def test_write_then_read(self, tmp_path):
        record = make_record(center=(64, -64), scale=3, fill=34, dimension=END, locked=True,
                             data_version=3955, banners=(Banner(None, "white", 1, 2, 3),))
        path = str(tmp_path / "map_7.dat")
        write_map_file(path, record)
        with open(path, "rb") as f:
            assert f.read(2) == b'\x1f\x8b'
        assert read_map_file(path) == record

    def test_uncompressed_and_zlib(self, tmp_path):
        raw = encode(to_tree(make_record(fill=4)))
        plain = tmp_path / "plain.dat"
        plain.write_bytes(raw)
        packed = tmp_path / "packed.dat"
        packed.write_bytes(zlib.compress(raw))
        assert read_map_file(str(plain)) == read_map_file(str(packed)) == decode(raw)

    def test_broken_gzip(self):
        with pytest.raises(MalformedTag) as exc:
            decompress(gzip.compress(b'0123456789')[:12])
        assert exc.value.offset == 0

    def test_garbage(self, tmp_path):
        path = tmp_path / "map_1.dat"
        path.write_bytes(b'not a map')
        with pytest.raises(MalformedTag):
            read_map_file(str(path))
