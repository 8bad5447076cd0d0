from __future__ import annotations

import argparse
import importlib.metadata
import logging
import sys
from pathlib import Path

from .errors import GoSigFindError
from .extract import extract_declarations
from .filter import TypeFilterSet
from .report import collect_matches, write_report
from .resolve import expand_patterns
from .scan import GoTypeResolver, TypeResolver

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s | %(name)s | %(message)s"


def _comma_list(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gosigfind",
        description="Find Go functions and methods by parameter and return types.",
    )
    parser.add_argument(
        "--pkgs",
        type=_comma_list,
        default=[],
        help="Comma-separated list of packages to search for functions.",
    )
    parser.add_argument(
        "--args",
        type=_comma_list,
        default=[],
        help="Comma-separated list of argument types to match.",
    )
    parser.add_argument(
        "--rets",
        type=_comma_list,
        default=[],
        help="Comma-separated list of return types to match.",
    )
    parser.add_argument(
        "--and",
        dest="match_all",
        action="store_true",
        help="Use AND instead of OR for matching functions.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")
    parser.add_argument("--version", action="store_true", help="Print gosigfind version.")
    return parser


def configure_logging(verbose: bool) -> None:
    root_logger = logging.getLogger("gosigfind")
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.propagate = False


def _usage_error(parser: argparse.ArgumentParser, message: str) -> int:
    print(message, file=sys.stderr)
    parser.print_usage(sys.stderr)
    return 1


def run(
    patterns: list[str],
    filters: TypeFilterSet,
    *,
    resolver: TypeResolver | None = None,
    cwd: Path | None = None,
) -> int:
    """Run the search pipeline and print the report. Returns the exit status."""
    cwd = Path(cwd) if cwd is not None else Path.cwd()
    if resolver is None:
        resolver = GoTypeResolver(cwd=cwd)

    paths = expand_patterns(patterns, cwd=cwd)
    logger.debug("searching %d package(s)", len(paths))
    decls, errors = extract_declarations(paths, resolver)
    signatures = collect_matches(decls, filters)
    write_report(signatures, errors, resolver.fallbacks, out=sys.stdout, err=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.version:
        try:
            print(importlib.metadata.version("gosigfind"))
        except importlib.metadata.PackageNotFoundError:
            print("0.0.0")
        return 0

    if not args.pkgs:
        return _usage_error(parser, "Need to specify at least one package to check.")
    filters = TypeFilterSet(args=tuple(args.args), rets=tuple(args.rets), match_all=args.match_all)
    if filters.empty:
        return _usage_error(parser, "Need at least one type to search for.")

    try:
        return run(args.pkgs, filters)
    except GoSigFindError as e:
        print(f"gosigfind: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
