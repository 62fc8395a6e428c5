from __future__ import annotations

import argparse
import logging
import re
import sys

from binarycover.constants import COVER_MODES, COVER_VAR_PREFIX, DEFAULT_COVER_MODE, ENTRY_POINT_FILE
from binarycover.errors import CoverageToolError
from binarycover.pipeline import Conf, run
from binarycover.profile import format_summary, merge_profiles, read_profile, write_profile

logger = logging.getLogger(__name__)

USAGE_EPILOG = """
Enables coverage of all the files in the packages reachable from each entry
module listed, and replaces the entry module's main file with a generated one
which registers all the coverage variables and can write a coverage report.

Note:
   The files in the instrumented packages are changed in place.

Environment variables read by the instrumented binary:
   COVERAGE_FILENAME: The suffix given to the coverage file created
   COVERAGE_FILEPATH: The directory in which to put the coverage file
"""

_EXPORTED_IDENTIFIER = re.compile(r"^[A-Z][A-Za-z0-9_]*$")


def _var_prefix(value: str) -> str:
    if not _EXPORTED_IDENTIFIER.match(value):
        raise argparse.ArgumentTypeError(f"{value!r} is not an exported Go identifier")
    return value


def _setup_logging(level: str) -> None:
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    prsr = argparse.ArgumentParser(
        "binarycover",
        description="Instrument a Go program for statement coverage.",
        epilog=USAGE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    prsr.add_argument("modules", nargs="*", metavar="package", help="Entry module to instrument")
    prsr.add_argument("--go", dest="go_path", default="go", help="Go binary used to list and instrument packages")
    prsr.add_argument("--mode", choices=COVER_MODES, default=DEFAULT_COVER_MODE, help="Coverage mode")
    prsr.add_argument("--var-prefix", type=_var_prefix, default=COVER_VAR_PREFIX, help="Coverage variable prefix")
    prsr.add_argument("--entry-file", default=ENTRY_POINT_FILE, help="Entry point file of the entry module")
    prsr.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    prsr.add_argument("-v", "--verbose", action="store_true", help="Shorthand for --log-level DEBUG")
    args = prsr.parse_args(argv)

    if not args.modules:
        prsr.print_help(sys.stderr)
        return 1

    _setup_logging("DEBUG" if args.verbose else args.log_level)
    conf = Conf(go_path=args.go_path, mode=args.mode, var_prefix=args.var_prefix, entry_file=args.entry_file)
    try:
        run(args.modules, conf)
    except CoverageToolError as e:
        logger.error(f"Failed to instrument {' '.join(args.modules)}: {e}")
        return 1
    return 0


def profile_main(argv: list[str] | None = None) -> int:
    prsr = argparse.ArgumentParser("binarycover-profile", description="Inspect and merge coverage profiles.")
    prsr.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = prsr.add_subparsers(dest="command", required=True)

    summary = sub.add_parser("summary", help="Print the coverage summary of the merged profiles")
    summary.add_argument("profiles", nargs="+")

    merge = sub.add_parser("merge", help="Merge profiles into one")
    merge.add_argument("-o", "--output", required=True)
    merge.add_argument("profiles", nargs="+")

    args = prsr.parse_args(argv)
    _setup_logging(args.log_level)

    try:
        blocks = merge_profiles(read_profile(path) for path in args.profiles)
        if args.command == "summary":
            print(format_summary(blocks))
            return 0
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                write_profile(blocks, f)
        except OSError as e:
            logger.error(f"Failed to write {args.output}: {e}")
            return 1
        logger.info(f"Merged {len(args.profiles)} profile(s) into {args.output}")
    except CoverageToolError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
