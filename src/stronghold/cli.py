from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Optional

from . import __version__, archive, store
from .codec import HEADER_SIZE, check_header, decompress
from .errors import CorruptSaveError, SaveNotFound, StrongholdError
from .logging_config import configure_logging
from .paths import resolve
from .storage import FileStorage

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_CORRUPT = 2
EXIT_ERROR = 3


@dataclass
class DemoRecord:
    x: int
    y: int
    text: str


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="stronghold",
        description="Inspect and exercise stronghold save files",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_path = sub.add_parser("path", help="Print where a save file lives")
    p_path.add_argument("app", help="Application id")
    p_path.add_argument("name", help="Resource name")

    p_inspect = sub.add_parser("inspect", help="Show header version and sizes of a save file")
    p_inspect.add_argument("app", help="Application id")
    p_inspect.add_argument("name", help="Resource name")

    p_demo = sub.add_parser("demo", help="Save and reload an example record in both modes")
    p_demo.add_argument("--app", default="stronghold-demo", help="Application id to use (default: %(default)s)")
    return parser.parse_args(argv)


def _cmd_path(app: str, name: str) -> int:
    print(resolve(app, name, create=False))
    return EXIT_OK


def _cmd_inspect(app: str, name: str) -> int:
    path = resolve(app, name, create=False)
    try:
        blob = FileStorage(path).read_bytes()
        check_header(blob)
        raw = decompress(blob[HEADER_SIZE:])
    except SaveNotFound as exc:
        print(f"not found: {exc}")
        return EXIT_NOT_FOUND
    except CorruptSaveError as exc:
        print(f"corrupt: {exc}")
        return EXIT_CORRUPT
    print(f"path:         {path}")
    print(f"format:       {blob[:2].decode('ascii')} v{blob[2]}.{blob[3]}")
    print(f"uncompressed: {len(raw)} bytes")
    print(f"compressed:   {len(blob)} bytes (including {HEADER_SIZE}-byte header)")
    return EXIT_OK


def _cmd_demo(app: str) -> int:
    data = DemoRecord(x=0, y=0, text="Hello, world!")

    info = store.save(app, "savefile", data)
    print(f"Saved: {info}")
    loaded = store.load(app, "savefile", DemoRecord)
    if loaded != data:
        log.error("Standalone round trip mismatch: %r != %r", loaded, data)
        return EXIT_ERROR

    if archive.save(app, "savefile.zip", "bin/data", data):
        log.error("Failed to save archive entry")
        return EXIT_ERROR
    print("Saved!")
    from_archive: Optional[DemoRecord] = archive.load(app, "savefile.zip", "bin/data", DemoRecord)
    if from_archive != data:
        log.error("Archive round trip mismatch: %r != %r", from_archive, data)
        return EXIT_ERROR
    print("Loaded successfully!")
    return EXIT_OK


def main(argv=None) -> int:
    args = parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    configure_logging(default_level=level)

    try:
        if args.command == "path":
            return _cmd_path(args.app, args.name)
        if args.command == "inspect":
            return _cmd_inspect(args.app, args.name)
        return _cmd_demo(args.app)
    except StrongholdError as exc:
        log.error("%s", exc)
        return EXIT_ERROR
