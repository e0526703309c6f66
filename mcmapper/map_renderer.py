import os
import logging

from .coords import WorldRect, union_all
from .errors import ConfigError, DecodeError, SinkError
from .map_item import read_map_file
from .palette import map_image
from .scanner import SortOrder, read_maps, records
from .stitching import MAX_CANVAS_PIXELS, select, stitch

logger = logging.getLogger("MapGen")


class MapRenderer:
    def __init__(self, storage):
        self.storage = storage

    def save_image(self, image, output_file):
        """Hand a finished image to Pillow; the format follows the file extension."""
        out_dir = os.path.dirname(output_file)
        try:
            if out_dir:
                os.makedirs(out_dir, exist_ok=True)
            image.save(output_file)
        except (OSError, ValueError) as e:
            raise SinkError(f"Could not write image {output_file}: {e}") from e
        logger.info(f"Image written to: {output_file}")

    def render_map(self, map_file, output_file):
        try:
            record = read_map_file(map_file)
            self.save_image(map_image(record), output_file)
        except DecodeError + (OSError, SinkError) as e:
            logger.error(f"Could not render {map_file}: {e}")
            return {"status": "error", "message": str(e)}
        return {"status": "success", "file": output_file}

    def render_all(self, path, output_dir, recursive=False):
        """One image per map file. Broken files are reported, not fatal."""
        try:
            entries = read_maps(path, SortOrder.NAME, recursive)
        except OSError as e:
            logger.error(f"Could not read maps from {path}: {e}")
            return {"status": "error", "message": str(e)}

        rendered, failed = [], []
        for entry in entries:
            if not entry.ok:
                failed.append({"file": entry.path, "error": str(entry.error)})
                continue
            target_dir = output_dir
            if recursive:
                target_dir = os.path.join(output_dir, entry.record.dimension.pretty)
            stem = os.path.splitext(os.path.basename(entry.path))[0]
            output_file = os.path.join(target_dir, f"{stem}.png")
            try:
                self.save_image(map_image(entry.record), output_file)
                rendered.append({"file": entry.path, "image": output_file})
            except SinkError as e:
                logger.error(str(e))
                failed.append({"file": entry.path, "error": str(e)})

        logger.info(f"Rendered: {len(rendered)}, failed: {len(failed)}")
        return {"status": "success", "rendered": rendered, "failed": failed}

    def stitch_area(self, maps, dimension=None, zoom=None, left=None, top=None, right=None, bottom=None):
        """Target rectangle for a stitch, or None to use the union of the maps.

        Each side given overrides that side of the union only.
        """
        sides = {"left": left, "top": top, "right": right, "bottom": bottom}
        if all(v is None for v in sides.values()):
            return None
        area = union_all(m.bounds() for m in select(maps, dimension, zoom))
        if area.is_empty:
            missing = [name for name, v in sides.items() if v is None]
            if missing:
                raise ConfigError(f"No maps to take {', '.join(missing)} from, give all four sides")
        return WorldRect(*(area._asdict()[name] if v is None else v for name, v in sides.items()))

    def render_stitched(self, path, output_file, dimension=None, zoom=None, order=SortOrder.TIME,
                        recursive=False, left=None, top=None, right=None, bottom=None, timestamps=None):
        try:
            entries = read_maps(path, order, recursive, timestamps)
        except OSError as e:
            logger.error(f"Could not read maps from {path}: {e}")
            return {"status": "error", "message": str(e)}
        failed = [{"file": e.path, "error": str(e.error)} for e in entries if not e.ok]
        maps = records(entries)

        max_pixels = self.storage.config.get("max_canvas_pixels", MAX_CANVAS_PIXELS)
        try:
            rect = self.stitch_area(maps, dimension, zoom, left, top, right, bottom)
            canvas = stitch(maps, dimension, zoom, rect, max_pixels=max_pixels)
        except ConfigError as e:
            logger.error(f"Invalid stitching parameters: {e}")
            return {"status": "error", "message": str(e)}

        if canvas.width == 0 or canvas.height == 0:
            logger.warning("No maps matched the filters, nothing to save")
            return {"status": "empty", "message": "No maps matched the filters", "failed": failed}

        try:
            self.save_image(canvas.image, output_file)
        except SinkError as e:
            logger.error(str(e))
            return {"status": "error", "message": str(e)}

        return {
            "status": "success",
            "file": output_file,
            "maps": canvas.drawn,
            "area": canvas.rect._asdict(),
            "size": (canvas.width, canvas.height),
            "failed": failed,
        }
