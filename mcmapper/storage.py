import os
import json
import logging

from .stitching import MAX_CANVAS_PIXELS

logger = logging.getLogger("MapStorage")

DEFAULT_VERSIONS_URL = "https://minecraft.fandom.com/wiki/Data_version"


class StorageManager:
    def __init__(self, data_dir=None):
        if data_dir:
            self.data_dir = data_dir
        else:
            self.data_dir = os.path.join(os.path.expanduser("~"), ".mcmapper")

        self.config_file = os.path.join(self.data_dir, "config.json")
        self.versions_file = os.path.join(self.data_dir, "versions.json")
        self.log_file = os.path.join(self.data_dir, "mcmapper.log")

        self.ensure_directories()
        self.config = self.load_config()

    def ensure_directories(self):
        if not os.path.exists(self.data_dir):
            os.makedirs(self.data_dir)

    def load_config(self):
        default = {
            "input_dir": "data",
            "output_dir": "images",
            "dimension": "Overworld",
            "sort": "time",
            "zoom": 0,
            "recursive": False,
            "versions_url": DEFAULT_VERSIONS_URL,
            "max_canvas_pixels": MAX_CANVAS_PIXELS,
        }
        if os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r') as f:
                    data = json.load(f)
                    default.update(data)
            except (OSError, ValueError) as e:
                logger.warning(f"Ignoring unreadable {self.config_file}: {e}")
        return default

    def save_config(self, new_config):
        self.config.update(new_config)
        with open(self.config_file, 'w') as f:
            json.dump(self.config, f, indent=2)
        return {"status": "success"}

    def load_versions(self):
        """Downloaded DataVersion table, empty if it was never fetched."""
        if not os.path.exists(self.versions_file):
            return {}
        try:
            with open(self.versions_file, 'r') as f:
                return {int(k): v for k, v in json.load(f).items()}
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable {self.versions_file}: {e}")
            return {}

    def save_versions(self, versions):
        with open(self.versions_file, 'w') as f:
            json.dump({str(k): versions[k] for k in sorted(versions)}, f, indent=2)
