import os

from . import versions
from .coords import MAP_SIZE
from .map_item import OVERWORLD, MapRecord, decompress, read_map_file, write_map_file
from .map_renderer import MapRenderer
from .nbt import dump_tree, read_root
from .scanner import SortOrder, read_maps
from .storage import StorageManager
from .versions_client import VersionsClient


class MapManager:
    def __init__(self, data_dir=None):
        self.storage = StorageManager(data_dir)
        self.renderer = MapRenderer(self.storage)
        self.versions = VersionsClient(self.storage)

        # Expose config for convenience
        self.config = self.storage.config

    # --- Reading ---
    def list_maps(self, path, order=SortOrder.NAME, recursive=False):
        return read_maps(path, order, recursive)

    def read_map(self, map_file):
        return read_map_file(map_file)

    def version_name(self, data_version):
        return versions.version_name(data_version, self.storage.load_versions())

    def dump_map(self, map_file):
        with open(map_file, "rb") as f:
            name, root = read_root(decompress(f.read()))
        return dump_tree(root, name or os.path.basename(map_file))

    # --- Rendering proxies ---
    def render_map(self, map_file, output_file):
        return self.renderer.render_map(map_file, output_file)

    def render_all(self, path, output_dir, recursive=False):
        return self.renderer.render_all(path, output_dir, recursive)

    def render_stitched(self, path, output_file, **options):
        return self.renderer.render_stitched(path, output_file, **options)

    # --- Tools ---
    def make_test_map(self, output_file, data_version=None):
        """Scale 0 map at (0, 0) showing all 256 color indices as 8×8 squares."""
        if data_version is None:
            data_version = versions.latest_data_version(self.storage.load_versions())
        colors = bytes((z // 8) * 16 + x // 8 for z in range(MAP_SIZE) for x in range(MAP_SIZE))
        record = MapRecord(
            scale=0,
            dimension=OVERWORLD,
            locked=True,
            tracking_position=True,
            unlimited_tracking=False,
            center=(0, 0),
            colors=colors,
            data_version=data_version,
        )
        out_dir = os.path.dirname(output_file)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        write_map_file(output_file, record)
        return {"status": "success", "file": output_file, "data_version": data_version}

    def update_versions(self, url=None):
        return self.versions.update_versions(url)

    # --- Config ---
    def save_config(self, cfg):
        return self.storage.save_config(cfg)
