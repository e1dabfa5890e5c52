import argparse
import logging
import pathlib
import sys

import msgspec

from .commontypes import ConfigError
from .config import parse_config
from .includes import SYSTEM_INCLUDE_DIRS
from .unparse import dump_config

logger = logging.getLogger(__name__)


check_parser = argparse.ArgumentParser(description="Compile keyboard config files and report problems.")
check_output_group = check_parser.add_mutually_exclusive_group()
check_output_group.add_argument("--dump", action="store_true", help="print the compiled config as config text")
check_output_group.add_argument("--json", action="store_true", help="print the compiled config as JSON")
check_parser.add_argument("--include-dir", type=pathlib.Path, action="append", dest="include_dirs")
check_parser.add_argument("-v", "--verbose", action="store_true")
check_parser.add_argument("files", type=pathlib.Path, nargs="+")


def check(files, include_dirs, dump=False, json=False) -> int:
    failures = 0
    for path in files:
        try:
            config = parse_config(path, include_dirs=include_dirs)
        except ConfigError as exc:
            logger.error("%s", exc)
            failures += 1
            continue
        if dump:
            print(dump_config(config))
        elif json:
            print(msgspec.json.format(msgspec.json.encode(config)).decode("utf-8"))
        else:
            logger.info("%s: ok (%d layers)", path, len(config.layers))
    return 1 if failures else 0


def check_cli():
    args = check_parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s: %(message)s")
    include_dirs = args.include_dirs if args.include_dirs is not None else SYSTEM_INCLUDE_DIRS
    sys.exit(check(args.files, include_dirs, dump=args.dump, json=args.json))
