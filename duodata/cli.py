"""
CLI (Command Line Interface).

One entry point for all dataset tasks:

    duodata scrape   [--output DIR] [--rate-limit MS] [--full-refresh true|false]
    duodata validate [--data DIR] [--error-threshold PCT] [--verbose]
    duodata coverage [--data DIR] [--rate-limit MS]
    duodata missing  [--data DIR]

scrape and validate are also runnable on their own
(python -m duodata.scrape / python -m duodata.validate).
"""

from __future__ import annotations

import argparse
from pathlib import Path

from duodata import report, scrape, validate
from duodata.config import DEFAULT_DATA_DIR, DEFAULT_RATE_LIMIT_MS


def _cmd_coverage(args: argparse.Namespace) -> int:
    """
    Print how many catalog courses have a detail page.
    """
    cov = report.coverage(args.data, rate_limit_ms=args.rate_limit)
    if cov.total == 0:
        print(f"No courses found in {args.data}.")
        return 1
    report.print_coverage(cov)
    return 0


def _cmd_missing(args: argparse.Namespace) -> int:
    """
    Print detail pages listed in the catalog but missing on disk.
    Exit code 1 if any are missing.
    """
    missing = report.find_missing(args.data)
    report.print_missing(missing)
    return 1 if missing else 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="duodata", description="Course catalog scraper")
    sub = parser.add_subparsers(dest="command", required=True)

    p_scrape = sub.add_parser("scrape", help="Scrape the catalog and course details")
    scrape.add_arguments(p_scrape)

    p_validate = sub.add_parser("validate", help="Validate a scraped dataset")
    validate.add_arguments(p_validate)

    p_cov = sub.add_parser("coverage", help="Show detail-page coverage of the catalog")
    p_cov.add_argument("--data", "-d", type=Path, default=DEFAULT_DATA_DIR, help="Dataset directory")
    p_cov.add_argument("--rate-limit", type=int, default=DEFAULT_RATE_LIMIT_MS, help="Spacing used for the estimate")

    p_missing = sub.add_parser("missing", help="List course details missing on disk")
    p_missing.add_argument("--data", "-d", type=Path, default=DEFAULT_DATA_DIR, help="Dataset directory")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    args = build_parser().parse_args(argv)

    if args.command == "scrape":
        raise SystemExit(scrape.run(args))
    if args.command == "validate":
        raise SystemExit(validate.run(args))
    if args.command == "coverage":
        raise SystemExit(_cmd_coverage(args))
    if args.command == "missing":
        raise SystemExit(_cmd_missing(args))

    raise SystemExit(2)
