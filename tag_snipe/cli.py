"""
cli.py — Command-line entry point for Tag Snipe.

Usage:
    tag-snipe                         # scan ., show fix + improvement tags
    tag-snipe src/ include/ --all     # every level
    tag-snipe -t fixme --no-blame     # only FIXME, skip git blame
    tag-snipe --json 2>/dev/null      # machine-readable
    python -m tag_snipe --custom-tag PERF=slow --lang py=#

Findings go to stdout; logging and errors go to stderr so --json pipes cleanly.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from itertools import chain
from pathlib import Path
from typing import Iterable, Iterator

import colorama

from .formatters import DEFAULT_WIDTH, iter_table, to_json
from .languages import LanguageMap
from .models import Finding, Tag, TagLevel
from .orchestrator import ScanOptions, scan
from .registry import ConfigError, TagRegistry, build_registry
from .walker import iter_source_files

logger = logging.getLogger(__name__)

DEFAULT_LEVELS = [TagLevel.FIX, TagLevel.IMPROVEMENT]

EXIT_MISSING_PATH = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _err(msg: str) -> None:
    """Print *msg* to stderr."""
    print(msg, file=sys.stderr)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _positive_int(value: str) -> int:
    """argparse type: an integer of at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _use_color(mode: str) -> bool:
    if mode == "always":
        return True
    if mode == "never":
        return False
    return sys.stdout.isatty()


# ---------------------------------------------------------------------------
# Core run logic (importable, not CLI-only)
# ---------------------------------------------------------------------------


def collect(
    paths: Iterable[str],
    registry: TagRegistry,
    options: ScanOptions,
    git_ignore: bool = True,
    levels: Iterable[TagLevel] | None = None,
    tag: Tag | None = None,
) -> Iterator[Finding]:
    """
    Walk *paths*, scan them, and filter the findings.

    Args:
        paths:      Directories or files, scanned in the given order.
        registry:   Recognised tags.
        options:    ScanOptions for the orchestrator.
        git_ignore: Skip files git ignores.
        levels:     Keep only these levels (None keeps all).
        tag:        Keep only this tag.
    """
    stream = chain.from_iterable(
        iter_source_files(p, git_ignore=git_ignore, extensions=options.languages.extensions)
        for p in paths
    )
    wanted = set(levels) if levels is not None else None
    for finding in scan(stream, registry, options):
        if wanted is not None and finding.tag.level not in wanted:
            continue
        if tag is not None and finding.tag != tag:
            continue
        yield finding


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tag-snipe",
        description=(
            "Tag Snipe — find comment tags (TODO, FIXME, HACK, todo!() ...) in source code\n"
            "and show when each one was last changed, via git blame."
        ),
        epilog="Examples:\n"
        "  tag-snipe                          # fix + improvement tags under .\n"
        "  tag-snipe src/ --all               # every tag level\n"
        "  tag-snipe -t hack -b               # only HACK, no git blame\n"
        "  tag-snipe --custom-tag PERF=slow   # extra tag with an alias\n"
        "  tag-snipe --lang py=#              # scan .py with # comments\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        metavar="PATH",
        help="Files or directories to search (default: current directory).",
    )
    parser.add_argument(
        "--level",
        "-l",
        action="append",
        choices=[level.value for level in TagLevel],
        default=None,
        help="Only show tags of this level; repeatable (default: fix, improvement).",
    )
    parser.add_argument(
        "--all",
        "-a",
        action="store_true",
        dest="all_levels",
        help="Show tags of every level.",
    )
    parser.add_argument(
        "--tag",
        "-t",
        default=None,
        metavar="TAG",
        help="Only show this tag (any alias, case-insensitive).",
    )
    parser.add_argument(
        "--custom-tag",
        action="append",
        default=[],
        metavar="TAG[=ALIAS,...]",
        help="Register an extra tag, optionally with aliases; repeatable.",
    )
    parser.add_argument(
        "--only-custom",
        action="store_true",
        help="Recognise only --custom-tag tags, not the built-in set.",
    )
    parser.add_argument(
        "--lang",
        action="append",
        default=[],
        metavar="EXT=SYNTAX",
        help=(
            "Override language detection; SYNTAX is c-like, rust-macro, off, "
            "or a custom LINE[,OPEN,CLOSE] (e.g. py=#, sql=--,/*,*/)."
        ),
    )
    parser.add_argument(
        "--no-ignore",
        "-i",
        action="store_true",
        help="Do not skip git-ignored files.",
    )
    parser.add_argument(
        "--no-blame",
        "-b",
        action="store_true",
        help="Do not look up last-changed times with git blame (faster).",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Only accept tags followed by a colon (TODO: ...).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="output_json",
        help="Write findings as a JSON array to stdout.",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Colour the table output (default: auto).",
    )
    parser.add_argument(
        "--width",
        type=_positive_int,
        default=DEFAULT_WIDTH,
        metavar="N",
        help=f"Width of the tag/message column (default: {DEFAULT_WIDTH}).",
    )
    parser.add_argument(
        "--jobs",
        "-j",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Files scanned in parallel (default: CPU count).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=ScanOptions.blame_timeout,
        metavar="SECONDS",
        help="Ceiling for each git blame call (default: %(default)s).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="More logging on stderr (-v info, -vv debug).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """
    Parse CLI arguments and run the scan.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    # Configuration errors are fatal before any scanning
    try:
        registry = build_registry(args.custom_tag, replace=args.only_custom)
        languages = LanguageMap(args.lang)
    except (ConfigError, ValueError) as exc:
        _err(f"tag-snipe: error: {exc}")
        sys.exit(EXIT_CONFIG_ERROR)

    tag_filter = None
    if args.tag:
        tag_filter = registry.lookup(args.tag)
        if tag_filter is None:
            _err(f"tag-snipe: error: unknown tag: {args.tag}")
            sys.exit(EXIT_CONFIG_ERROR)

    for path in args.paths:
        if not Path(path).exists():
            _err(f"tag-snipe: error: path does not exist: {path}")
            sys.exit(EXIT_MISSING_PATH)

    if args.all_levels or tag_filter is not None:
        levels = None
    elif args.level:
        levels = [TagLevel(value) for value in args.level]
    else:
        levels = DEFAULT_LEVELS

    options = ScanOptions(
        blame=not args.no_blame,
        require_colon=args.strict,
        workers=args.jobs,
        blame_timeout=args.timeout,
        languages=languages,
    )
    findings = collect(
        args.paths,
        registry,
        options,
        git_ignore=not args.no_ignore,
        levels=levels,
        tag=tag_filter,
    )

    try:
        if args.output_json:
            print(json.dumps(to_json(findings), indent=2, ensure_ascii=False))
            return

        color = _use_color(args.color)
        if color:
            colorama.just_fix_windows_console()
        count = 0
        for line in iter_table(findings, color=color, width=args.width):
            print(line, flush=True)
            count += 1
        logger.info(f"{count} tags found")
    except KeyboardInterrupt:
        _err("\ntag-snipe: interrupted by user")
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    main()
