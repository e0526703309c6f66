"""
End to end tests of the command line entry point.
"""

import json
import logging
import os

import pytest
from PIL import Image

from conftest import make_record
from mcmapper import versions, versions_client
from mcmapper.cli import format_table, main
from mcmapper.map_item import write_map_file
from mcmapper.palette import resolve


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()


@pytest.fixture
def workspace(tmp_path):
    """Data dir, a folder with the test map in it and an output folder."""
    data_dir = str(tmp_path / "data")
    maps = str(tmp_path / "maps")
    out = str(tmp_path / "images")

    def run(*args):
        return main(["--data-dir", data_dir, "-i", maps, "-o", out] + list(args))

    assert run("make-test-map", os.path.join(maps, "map_0.dat")) == 0
    run.maps, run.out, run.data_dir = maps, out, data_dir
    return run


class TestCommands:
    def test_list(self, workspace, capsys):
        assert workspace("list") == 0
        output = capsys.readouterr().out
        assert "map_0.dat" in output
        assert "Overworld" in output

    def test_list_empty_directory(self, workspace, tmp_path, capsys):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert main(["--data-dir", workspace.data_dir, "-i", str(empty), "list"]) == 1
        assert "Nothing to list" in capsys.readouterr().out

    def test_list_reports_map_outside_world(self, workspace, capsys):
        write_map_file(os.path.join(workspace.maps, "map_1.dat"), make_record(center=(2 ** 31 - 1, 0)))
        capsys.readouterr()
        assert workspace("list") == 0
        output = capsys.readouterr().out
        assert "map_0.dat" in output
        assert "Could not read map_1.dat" in output

    def test_info(self, workspace, capsys):
        assert workspace("info", os.path.join(workspace.maps, "map_0.dat")) == 0
        lines = capsys.readouterr().out.splitlines()
        assert any("Locked" in line and "Yes" in line for line in lines)
        assert any("1:1" in line for line in lines)
        assert any(versions.version_name(versions.latest_data_version()) in line for line in lines)
        assert any(line.split()[:2] == ["Upper", "left"] and line.split()[2:] == ["-64", "-64"] for line in lines)

    def test_info_broken_file(self, workspace, tmp_path):
        broken = tmp_path / "map_9.dat"
        broken.write_bytes(b"\x0a\x00")
        assert workspace("info", str(broken)) == 1

    def test_image(self, workspace):
        assert workspace("image", os.path.join(workspace.maps, "map_0.dat")) == 0
        with Image.open(os.path.join(workspace.out, "map_0.png")) as image:
            rgba = image.convert("RGBA")
            # 16 indices per row of 8×8 squares
            assert rgba.getpixel((8, 0)) == resolve(1)
            assert rgba.getpixel((0, 8)) == resolve(16)
            assert rgba.getpixel((127, 127)) == resolve(255)

    def test_images(self, workspace, capsys):
        assert workspace("images") == 0
        assert os.path.isfile(os.path.join(workspace.out, "map_0.png"))

    def test_stitch(self, workspace, capsys):
        assert workspace("stitch", "all.png", "-d", "all", "-s", "name") == 0
        assert "Map area: (-64, -64) - (63, 63)" in capsys.readouterr().out
        with Image.open(os.path.join(workspace.out, "all.png")) as image:
            assert image.size == (128, 128)

    def test_stitch_with_area(self, workspace):
        assert workspace("stitch", "part.png", "-l", "0", "-t", "0") == 0
        with Image.open(os.path.join(workspace.out, "part.png")) as image:
            assert image.size == (64, 64)

    def test_stitch_to_given_path(self, workspace, tmp_path):
        target = tmp_path / "elsewhere" / "world.png"
        assert workspace("stitch", str(target), "-d", "all") == 0
        assert target.is_file()
        assert not os.path.exists(os.path.join(workspace.out, "world.png"))

    def test_stitch_nothing_matches(self, workspace, capsys):
        assert workspace("stitch", "none.png", "-d", "end") == 0
        assert "No maps matched" in capsys.readouterr().out
        assert not os.path.exists(os.path.join(workspace.out, "none.png"))

    def test_stitch_bad_zoom(self, workspace):
        with pytest.raises(SystemExit):
            workspace("stitch", "x.png", "-z", "9")

    def test_dump_nbt(self, workspace, capsys):
        capsys.readouterr()
        assert workspace("dump-nbt", os.path.join(workspace.maps, "map_0.dat")) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "Compound: map_0.dat"
        assert f"  Int: DataVersion = {versions.latest_data_version()}" in lines
        assert any(line.startswith("    ByteArray: colors = [0, 0, 0, 0, 0, 0, 0, 0, ...] (16384 values)")
                   for line in lines)

    def test_config(self, workspace, capsys):
        capsys.readouterr()
        assert workspace("config", "zoom=2", "dimension=Nether") == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["zoom"] == 2
        with open(os.path.join(workspace.data_dir, "config.json")) as f:
            assert json.load(f)["dimension"] == "Nether"

    def test_config_needs_key_value(self, workspace):
        assert workspace("config", "zoom") == 1

    def test_update_versions(self, workspace, monkeypatch, capsys):
        class Response:
            text = ("<h2>List of data versions</h2><table>"
                    "<tr><td>9.9</td><td>-</td><td>99999</td></tr></table>")

            def raise_for_status(self):
                pass

        monkeypatch.setattr(versions_client.requests, "get", lambda url, **kwargs: Response())
        assert workspace("update-versions") == 0
        assert "1 data versions written" in capsys.readouterr().out
        with open(os.path.join(workspace.data_dir, "versions.json")) as f:
            assert json.load(f) == {"99999": "9.9"}

    def test_log_file(self, workspace):
        workspace("list")
        assert os.path.isfile(os.path.join(workspace.data_dir, "mcmapper.log"))


class TestFormatTable:
    def test_columns_line_up(self):
        text = format_table(["A", "Long"], [[1, 2], ["wide", 3]])
        assert text.splitlines() == ["A     Long", "----  ----", "1     2", "wide  3"]
