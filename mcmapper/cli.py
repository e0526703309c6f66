import argparse
import json
import logging
import os
import sys

from . import coords
from .errors import DecodeError
from .manager import MapManager
from .scanner import SortOrder

logger = logging.getLogger("MapTool")

VERSION = "0.2.0"
LIST_HEADER = ["File", "Zoom", "Dimension", "Locked", "Center", "Left", "Top", "Right", "Bottom"]


def setup_logging(log_path, level=logging.INFO):
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(sys.stderr)
        ],
        force=True,
    )


def yes_or_no(flag):
    return "Yes" if flag else "No"


def format_table(header, rows):
    widths = [len(h) for h in header]
    for row in rows:
        widths = [max(w, len(str(cell))) for w, cell in zip(widths, row)]
    lines = ["  ".join(str(cell).ljust(w) for w, cell in zip(widths, header)).rstrip(),
             "  ".join("-" * w for w in widths)]
    for row in rows:
        lines.append("  ".join(str(cell).ljust(w) for w, cell in zip(widths, row)).rstrip())
    return "\n".join(lines)


def _section(title, rows):
    lines = [f"== {title} =="]
    lines.extend("  " + "  ".join(str(c) for c in row) for row in rows)
    return lines


class Cli:
    def __init__(self, manager):
        self.manager = manager
        self.config = manager.config

    def list_maps(self, args):
        try:
            entries = self.manager.list_maps(args.input_dir, args.sort, args.recursive)
        except OSError as e:
            logger.error(f"Could not get maps: {e}")
            return 1
        if not entries:
            print("Nothing to list")
            return 1
        rows = []
        for entry in entries:
            if not entry.ok:
                continue
            record = entry.record
            area = record.bounds()
            rows.append([entry.label, record.scale, record.dimension.pretty, yes_or_no(record.locked),
                         f"{record.center[0]}, {record.center[1]}",
                         area.left, area.top, area.right, area.bottom])
        print(format_table(LIST_HEADER, rows))
        for entry in entries:
            if not entry.ok:
                print(f"Could not read {entry.label}: {entry.error}")
        return 0

    def info(self, args):
        try:
            record = self.manager.read_map(args.file)
        except DecodeError + (OSError,) as e:
            logger.error(f"Could not read map item: {e}")
            return 1

        area = record.bounds()
        lines = _section(os.path.basename(args.file), [
            ["Scale", record.scale, record.scale_description],
            ["Version", record.data_version if record.data_version is not None else "-",
             self.manager.version_name(record.data_version)],
            ["Dimension", record.dimension.pretty],
            ["Locked", yes_or_no(record.locked)],
        ])
        lines += _section("Tracking", [
            ["Tracking position", yes_or_no(record.tracking_position)],
            ["Unlimited tracking", yes_or_no(record.unlimited_tracking)],
        ])
        lines += _section("Coordinates (X, Z)", [
            ["Upper left", area.left, area.top],
            ["Lower left", area.left, area.bottom],
            ["Upper right", area.right, area.top],
            ["Lower right", area.right, area.bottom],
            ["Center", record.center[0], record.center[1]],
        ])
        if record.banners:
            lines.append("== Banners ==")
            lines.append("  " + format_table(
                ["Name", "Color", "X", "Y", "Z"],
                [[b.display_name, b.color, b.x, b.y, b.z] for b in record.banners]).replace("\n", "\n  "))
        if record.frames:
            lines.append("== Frames ==")
            lines.append("  " + format_table(
                ["Entity ID", "Angle", "X", "Y", "Z"],
                [[f.entity_id, f.rotation, f.x, f.y, f.z] for f in record.frames]).replace("\n", "\n  "))
        print("\n".join(lines))
        return 0

    def image(self, args):
        output_file = args.output_file
        if not output_file:
            stem = os.path.splitext(os.path.basename(args.file))[0]
            output_file = os.path.join(args.output_dir, f"{stem}.png")
        res = self.manager.render_map(args.file, output_file)
        if res["status"] != "success":
            return 1
        print(f"Image written to: {res['file']}")
        return 0

    def images(self, args):
        res = self.manager.render_all(args.input_dir, args.output_dir, args.recursive)
        if res["status"] != "success":
            return 1
        for item in res["rendered"]:
            print(f"{item['file']} -> {item['image']}")
        for item in res["failed"]:
            print(f"Failed {item['file']}: {item['error']}")
        if not res["rendered"] and not res["failed"]:
            print("Could not find any maps!")
            return 1
        return 0

    def stitch(self, args):
        dimension = None if args.dimension.lower() == "all" else args.dimension
        output_file = args.filename
        if not os.path.dirname(output_file):
            output_file = os.path.join(args.output_dir, output_file)
        res = self.manager.render_stitched(
            args.input_dir, output_file,
            dimension=dimension, zoom=args.zoom, order=args.sort, recursive=args.recursive,
            left=args.left, top=args.top, right=args.right, bottom=args.bottom,
        )
        for item in res.get("failed", []):
            print(f"Skipped {item['file']}: {item['error']}")
        if res["status"] == "empty":
            print(res["message"])
            return 0
        if res["status"] != "success":
            print(res["message"])
            return 1
        area = res["area"]
        print(f"Map area: ({area['left']}, {area['top']}) - ({area['right']}, {area['bottom']})")
        print(f"Drew {res['maps']} maps into {res['size'][0]}×{res['size'][1]} image: {res['file']}")
        return 0

    def dump_nbt(self, args):
        try:
            lines = self.manager.dump_map(args.file)
        except DecodeError + (OSError,) as e:
            logger.error(f"Could not dump NBT file: {e}")
            return 1
        print("\n".join(lines))
        return 0

    def make_test_map(self, args):
        try:
            res = self.manager.make_test_map(args.file, args.data_version)
        except OSError as e:
            logger.error(f"Could not write test map: {e}")
            return 1
        print(f"Test map written to: {res['file']}")
        return 0

    def update_versions(self, args):
        res = self.manager.update_versions(args.url)
        if res["status"] != "success":
            print(f"Loading error: {res['message']}")
            return 1
        print(f"{res['count']} data versions written to: {res['file']}")
        return 0

    def show_config(self, args):
        if args.settings:
            updates = {}
            for setting in args.settings:
                key, sep, value = setting.partition("=")
                if not sep:
                    print(f"Expected KEY=VALUE, got {setting!r}")
                    return 1
                try:
                    updates[key] = json.loads(value)
                except ValueError:
                    updates[key] = value
            self.manager.save_config(updates)
        print(json.dumps(self.config, indent=2))
        return 0


def _build_parser(config):
    parser = argparse.ArgumentParser(
        prog="mcmapper",
        description="Tells information about map item files and creates images from them",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--data-dir", metavar="PATH", help="Directory for config, logs and version table")
    parser.add_argument("-i", "--input-dir", default=config["input_dir"], metavar="PATH",
                        help="Directory where map data files are")
    parser.add_argument("-o", "--output-dir", default=config["output_dir"], metavar="PATH",
                        help="Output directory where image(s) are written")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    sub = parser.add_subparsers(dest="command", required=True)

    list_p = sub.add_parser("list", help="List maps and their information")
    list_p.add_argument("-r", "--recursive", action="store_true", default=config["recursive"],
                        help="Search map files recursively in subdirectories")
    list_p.add_argument("-s", "--sort", type=SortOrder, choices=list(SortOrder), metavar="{name,time}", default=SortOrder.NAME,
                        help="Sorting order for files")

    info_p = sub.add_parser("info", help="Show information about one map file")
    info_p.add_argument("file", help="map_<n>.dat file")

    image_p = sub.add_parser("image", help="Create an image of one map file")
    image_p.add_argument("file", help="map_<n>.dat file")
    image_p.add_argument("--output-file", metavar="FILE",
                         help="Image file, standard formats are supported (default: <output-dir>/<name>.png)")

    images_p = sub.add_parser("images", help="Create an image from each map")
    images_p.add_argument("-r", "--recursive", action="store_true", default=config["recursive"],
                          help="Search recursively, images go to a directory per dimension")

    stitch_p = sub.add_parser("stitch", help="Create one image from multiple maps")
    stitch_p.add_argument("filename", help="Image path; a bare file name is written to the output directory")
    stitch_p.add_argument("-d", "--dimension", default=config["dimension"],
                          help="Only draw maps in this dimension ('all' for every dimension)")
    stitch_p.add_argument("-s", "--sort", type=SortOrder, choices=list(SortOrder), metavar="{name,time}",
                          default=SortOrder(config["sort"]),
                          help="Drawing order; later maps are drawn over earlier ones")
    stitch_p.add_argument("-z", "--zoom", type=int, default=config["zoom"],
                          choices=range(coords.MIN_SCALE, coords.MAX_SCALE + 1),
                          help="Draw only maps with this zoom level")
    stitch_p.add_argument("-l", "--left", type=int, help="Left coordinate (smaller X)")
    stitch_p.add_argument("-t", "--top", type=int, help="Top coordinate (smaller Z)")
    stitch_p.add_argument("-r", "--right", type=int, help="Right coordinate (larger X)")
    stitch_p.add_argument("-b", "--bottom", type=int, help="Bottom coordinate (larger Z)")
    stitch_p.add_argument("--recursive", action="store_true", default=config["recursive"],
                          help="Search map files recursively in subdirectories")

    dump_p = sub.add_parser("dump-nbt", help="Print the tag tree of a file")
    dump_p.add_argument("file", help="Tagged tree file, compressed or not")

    test_p = sub.add_parser("make-test-map", help="Write a map item showing every color")
    test_p.add_argument("file", nargs="?", default=os.path.join("tests", "map_0.dat"), metavar="FILE")
    test_p.add_argument("--data-version", type=int, metavar="VERSION",
                        help="Data version to store (default: newest known)")

    versions_p = sub.add_parser("update-versions", help="Download the data version table")
    versions_p.add_argument("--url", default=config["versions_url"], help="Page with the data versions table")

    config_p = sub.add_parser("config", help="Show or change saved defaults")
    config_p.add_argument("settings", nargs="*", metavar="KEY=VALUE")

    return parser


COMMANDS = {
    "list": Cli.list_maps,
    "info": Cli.info,
    "image": Cli.image,
    "images": Cli.images,
    "stitch": Cli.stitch,
    "dump-nbt": Cli.dump_nbt,
    "make-test-map": Cli.make_test_map,
    "update-versions": Cli.update_versions,
    "config": Cli.show_config,
}


def _data_dir_from(argv):
    # --data-dir decides where the defaults for every other option come from
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--data-dir")
    known, _ = pre.parse_known_args(argv)
    return known.data_dir


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    manager = MapManager(_data_dir_from(argv))
    args = _build_parser(manager.config).parse_args(argv)
    setup_logging(manager.storage.log_file, logging.WARNING if args.quiet else logging.INFO)
    logger.info(f"Command: {args.command}, input dir: {args.input_dir}, output dir: {args.output_dir}")
    return COMMANDS[args.command](Cli(manager), args)
