"""Command line entry point: ``latex2rtf [options] input[.tex]``."""

import argparse
import logging
import logging.handlers
import sys
from pathlib import Path

from latex2rtf import __version__
from latex2rtf.config import settings
from latex2rtf.core.context import ConversionOptions
from latex2rtf.core.converter import convert_file
from latex2rtf.core.errors import Latex2RtfError

logger = logging.getLogger(__name__)

# -d level -> logging level
_DEBUG_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: logging.INFO,
}


def _setup_logging(level: int, log_file: str = "") -> None:
    """Configure root logger with console + rotating file handlers.

    Guarded against duplicate handlers when main() runs more than once.
    """
    root = logging.getLogger()
    if getattr(root, "_latex2rtf_configured", False):
        root.setLevel(level)
        return
    root._latex2rtf_configured = True  # type: ignore[attr-defined]

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-7s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    root.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(fmt)
    root.addHandler(console)

    # File handler: rotate at 5 MB, keep 3 backups
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_h = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8",
        )
        file_h.setLevel(level)
        file_h.setFormatter(fmt)
        root.addHandler(file_h)


def _log_level(debug: int | None) -> int:
    if debug is None:
        return getattr(logging, settings.LOG_LEVEL.upper(), logging.WARNING)
    return _DEBUG_LEVELS.get(debug, logging.DEBUG)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="latex2rtf",
        description="Convert a LaTeX file to RTF using the .aux and .bbl files of a previous LaTeX run.",
    )
    parser.add_argument("input", help="LaTeX file (.tex may be omitted)")
    parser.add_argument("-a", dest="aux", metavar="auxfile", help="use auxfile instead of input.aux")
    parser.add_argument("-b", dest="bbl", metavar="bblfile", help="use bblfile instead of input.bbl")
    parser.add_argument("-o", dest="output", metavar="outputfile", help="write RTF to outputfile")
    parser.add_argument("-d", dest="debug", type=int, metavar="level", choices=range(8),
                        help="debugging output level (0-7)")
    parser.add_argument("-W", dest="rtf_warnings", action="store_true", default=None,
                        help="include warnings in the RTF file")
    parser.add_argument("-Z", dest="safety_braces", type=int, metavar="n", choices=range(10),
                        help="add n extra '}' at the end of the RTF file")
    parser.add_argument("-P", dest="profile", metavar="profile.json", help="conversion profile")
    parser.add_argument("--no-fields", dest="use_fields", action="store_false", default=None,
                        help="write references as plain text instead of RTF fields")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(_log_level(args.debug), settings.LOG_FILE)

    options = ConversionOptions.from_settings(
        settings,
        aux_path=args.aux,
        bbl_path=args.bbl,
        output_path=args.output,
        rtf_warnings=args.rtf_warnings,
        safety_braces=args.safety_braces,
        use_fields=args.use_fields,
        profile_path=args.profile,
    )

    try:
        convert_file(args.input, args.output, options)
    except Latex2RtfError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
