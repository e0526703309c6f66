"""Shared helpers for building map items in tests."""

import os
import sys

import pytest

# Add the project root to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from mcmapper.map_item import OVERWORLD, MapRecord, write_map_file


def make_record(center=(0, 0), scale=0, fill=0, dimension=OVERWORLD, colors=None, **extra):
    if colors is None:
        colors = bytes([fill]) * (128 * 128)
    return MapRecord(
        scale=scale,
        dimension=dimension,
        locked=extra.pop("locked", False),
        tracking_position=extra.pop("tracking_position", True),
        unlimited_tracking=extra.pop("unlimited_tracking", False),
        center=center,
        colors=bytes(colors),
        **extra,
    )


@pytest.fixture
def map_dir(tmp_path):
    """Directory for map files plus a function that writes one into it."""
    folder = tmp_path / "maps"
    folder.mkdir()

    def write(name, record=None, raw=None, mtime=None):
        path = folder / name
        if raw is not None:
            path.write_bytes(raw)
        else:
            write_map_file(str(path), record if record is not None else make_record())
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return str(path)

    write.path = str(folder)
    return write
