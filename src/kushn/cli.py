"""CLI entry point: argument parsing, logging setup and dispatch."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from kushn import __version__
from kushn.config import load_config, resolve_path


def setup_logging(verbose: bool = False, quiet: bool = False, root: Path | None = None) -> None:
    """
    Configure the kushn logger: level from --verbose/--quiet or config, stderr handler,
    optional file handler from config (logging.file).
    """
    config = load_config(root)
    log_cfg = config.get("logging") or {}
    if verbose:
        level_name = "DEBUG"
    elif quiet:
        level_name = "ERROR"
    else:
        level_name = (log_cfg.get("level") or "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    logger = logging.getLogger("kushn")
    logger.setLevel(level)
    if not logger.handlers:
        fmt = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(fmt)
        logger.addHandler(console)
        log_file = log_cfg.get("file")
        if log_file:
            try:
                fh = logging.FileHandler(Path(log_file).expanduser(), encoding="utf-8")
                fh.setFormatter(fmt)
                logger.addHandler(fh)
            except OSError as e:
                logger.warning("Cannot open log file %s: %s", log_file, e)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kushn",
        description="Write a JSON manifest of SHA-256 hashes for every file under a directory.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=Path("."),
        help="Directory to hash (default: .).",
    )
    parser.add_argument(
        "-n",
        "--name",
        metavar="FILE",
        help="Output file name for the generated hashes manifest (default: kushn_result.json).",
    )
    policy = parser.add_mutually_exclusive_group()
    policy.add_argument(
        "--strict",
        dest="strict",
        action="store_true",
        default=None,
        help="Abort on the first unreadable directory entry (default).",
    )
    policy.add_argument(
        "--lenient",
        dest="strict",
        action="store_false",
        help="Log unreadable directory entries and continue.",
    )
    parser.set_defaults(strict=None)
    log_group = parser.add_mutually_exclusive_group()
    log_group.add_argument("-v", "--verbose", action="store_true", help="Verbose (DEBUG) output.")
    log_group.add_argument("-q", "--quiet", action="store_true", help="Quiet (errors only).")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.path = resolve_path(args.path)
    setup_logging(verbose=args.verbose, quiet=args.quiet, root=args.path)

    from kushn.commands.generate import run as cmd_run

    cmd_run(args)


if __name__ == "__main__":
    main()
