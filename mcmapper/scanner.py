import logging
import os
import re
from enum import Enum
from typing import NamedTuple, Optional

from .errors import DecodeError
from .map_item import MapRecord, read_map_file

logger = logging.getLogger("MapScan")

MAP_FILE_PATTERN = re.compile(r'^map_-?\d+\.dat$')


class SortOrder(str, Enum):
    NAME = "name"  # natural file name order
    TIME = "time"  # oldest first, so the newest map ends on top


class MapFile(NamedTuple):
    path: str
    mtime: float
    record: Optional[MapRecord]
    error: Optional[Exception]
    label: str

    @property
    def ok(self):
        return self.record is not None


def natural_key(text):
    """Sort key that orders map_2 before map_10."""
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r'(\d+)', text)]


def scan_map_files(path, recursive=False):
    """Paths of map item files under ``path`` (or ``path`` itself if it is a file)."""
    if os.path.isfile(path):
        return [path]
    if not recursive:
        return [os.path.join(path, f) for f in os.listdir(path)
                if MAP_FILE_PATTERN.match(f) and os.path.isfile(os.path.join(path, f))]
    found = []
    for root, _dirs, files in os.walk(path):
        found.extend(os.path.join(root, f) for f in files if MAP_FILE_PATTERN.match(f))
    return found


def common_base(paths):
    if not paths:
        return ""
    return os.path.commonpath([os.path.dirname(os.path.abspath(p)) for p in paths])


def sort_entries(entries, order):
    order = SortOrder(order)
    if order == SortOrder.TIME:
        return sorted(entries, key=lambda e: (e.mtime, natural_key(e.path)))
    return sorted(entries, key=lambda e: natural_key(e.path))


def read_maps(path, order=SortOrder.NAME, recursive=False, timestamps=None):
    """Read every map under ``path``; a broken file never stops the others.

    ``timestamps`` optionally maps a path to the time used for TIME order,
    otherwise the file modification time is used. Each entry keeps either
    its record or the error that prevented reading it.
    """
    paths = scan_map_files(path, recursive)
    base = common_base(paths)
    entries = []
    for p in paths:
        record, error, mtime = None, None, 0.0
        try:
            if timestamps is not None and p in timestamps:
                mtime = timestamps[p]
            else:
                mtime = os.path.getmtime(p)
            record = read_map_file(p)
        except DecodeError + (OSError,) as e:
            logger.warning(f"Could not read {p}: {e}")
            error = e
        entries.append(MapFile(p, mtime, record, error, os.path.relpath(os.path.abspath(p), base)))

    entries = sort_entries(entries, order)
    failed = sum(1 for e in entries if not e.ok)
    logger.info(f"Read {len(entries) - failed} map files from {path} ({failed} failed)")
    return entries


def records(entries):
    """Decoded records of ``entries``, in the same order."""
    return [e.record for e in entries if e.record is not None]
