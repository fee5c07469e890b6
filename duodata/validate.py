"""
Dataset validation (release gate).

Reads a scraped dataset from disk (never the network) and checks:
- manifest.json and courses.json exist and parse
- manifest fields are present and have the right primitive types
- courses.json has a meta block and a non-empty courses array
- every courses/*.json has meta (hard error), required meta fields,
  numeric totals and a sections array (these count toward the error rate)

error rate = (failed scrapes + invalid detail files) / courseCount * 100

Hard errors and an error rate above the threshold fail the run. Results
go to stdout/stderr and as "::set-output" lines for CI.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from rich import box
from rich.console import Console
from rich.table import Table

from duodata.config import COURSES_DIR, COURSES_FILE, DEFAULT_DATA_DIR, DEFAULT_ERROR_THRESHOLD, MANIFEST_FILE

console = Console(highlight=False, soft_wrap=True)


MANIFEST_REQUIRED_FIELDS = [
    "version",
    "schemaVersion",
    "scrapedAt",
    "scrapedAtUnix",
    "lastSuccessfulScrape",
    "lastAttemptedScrape",
    "scrapeDurationMs",
    "courseCount",
    "detailCount",
    "failedCourses",
    "checksum",
    "source",
    "nextUpdate",
]

MANIFEST_NUMBER_FIELDS = ["scrapedAtUnix", "scrapeDurationMs", "courseCount", "detailCount"]
MANIFEST_STRING_FIELDS = ["version", "schemaVersion", "scrapedAt", "checksum", "source", "nextUpdate"]

CATALOG_META_FIELDS = ["scrapedAt", "totalCourses", "source", "schemaVersion"]

COURSE_REQUIRED_FIELDS = ["courseId", "key", "title", "fromLang", "toLang", "lastUpdated", "detailAvailable"]

DETAIL_META_FIELDS = ["key", "courseTitle", "scrapedAt", "sourceHash", "detailHref", "detailHrefHash"]

# per-course warnings listed individually (verbose mode) before summarizing
MAX_COURSE_WARNINGS = 20


@dataclass
class ValidationResult:
    passed: bool = False
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error_rate: float = 100.0
    detail_files: int = 0
    valid_details: int = 0
    invalid_details: int = 0
    total_courses: int = 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _load(path: Path, result: ValidationResult) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        result.errors.append(f"Invalid {path.name}: {exc}")
        return None


def check_manifest(manifest: Any, result: ValidationResult) -> None:
    if not isinstance(manifest, dict):
        result.errors.append("manifest.json must be a JSON object")
        return

    for name in MANIFEST_REQUIRED_FIELDS:
        if name not in manifest:
            result.errors.append(f"Missing required field: {name}")

    for name in MANIFEST_NUMBER_FIELDS:
        if name in manifest and not _is_number(manifest[name]):
            result.errors.append(f"manifest.{name} must be a number")
    for name in MANIFEST_STRING_FIELDS:
        if name in manifest and not isinstance(manifest[name], str):
            result.errors.append(f"manifest.{name} must be a string")
    if "failedCourses" in manifest and not isinstance(manifest["failedCourses"], list):
        result.errors.append("manifest.failedCourses must be an array")


def check_catalog(catalog: Any, result: ValidationResult, verbose: bool = False) -> None:
    if not isinstance(catalog, dict):
        result.errors.append("courses.json must be a JSON object")
        return

    meta = catalog.get("meta")
    if not isinstance(meta, dict):
        result.errors.append("courses.json missing meta field")
    else:
        for name in CATALOG_META_FIELDS:
            if name not in meta:
                result.errors.append(f"courses.json missing meta.{name}")

    courses = catalog.get("courses")
    if not isinstance(courses, list):
        result.errors.append("courses.json courses field must be an array")
        return
    if not courses:
        result.errors.append("courses.json courses array is empty")
        return

    incomplete = 0
    for course in courses:
        if not isinstance(course, dict):
            incomplete += 1
            continue
        missing = [name for name in COURSE_REQUIRED_FIELDS if name not in course]
        if missing:
            incomplete += 1
            if verbose and incomplete <= MAX_COURSE_WARNINGS:
                result.warnings.append(f"Course {course.get('key', 'unknown')} missing field: {missing[0]}")

    if incomplete:
        result.warnings.append(f"{incomplete} courses have incomplete data")


def check_detail(name: str, detail: Any, result: ValidationResult, verbose: bool = False) -> bool:
    """
    Check one detail file. Returns True if it is valid.
    """
    if not isinstance(detail, dict) or not isinstance(detail.get("meta"), dict):
        result.errors.append(f"{name} missing meta object")
        return False

    valid = True
    meta = detail["meta"]
    missing_meta = [f for f in DETAIL_META_FIELDS if f not in meta]
    if missing_meta:
        if verbose:
            result.warnings.append(f"{name} missing meta.{missing_meta[0]}")
        valid = False

    totals = detail.get("totals")
    if not isinstance(totals, dict) or not all(_is_number(totals.get(k)) for k in ("sections", "units", "activities")):
        if verbose:
            result.warnings.append(f"{name} has invalid totals")
        valid = False

    if not isinstance(detail.get("sections"), list):
        if verbose:
            result.warnings.append(f"{name} sections is not an array")
        valid = False

    return valid


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def validate_dataset(
    data_dir: str | Path,
    error_threshold: float = DEFAULT_ERROR_THRESHOLD,
    verbose: bool = False,
) -> ValidationResult:
    """
    Validate the dataset in data_dir and return the collected result.
    """
    data = Path(data_dir)
    result = ValidationResult()

    for name in (MANIFEST_FILE, COURSES_FILE):
        if not (data / name).is_file():
            result.errors.append(f"Missing required file: {name}")
    if result.errors:
        return result

    manifest = _load(data / MANIFEST_FILE, result)
    if manifest is None:
        return result
    check_manifest(manifest, result)

    catalog = _load(data / COURSES_FILE, result)
    if catalog is None:
        return result
    check_catalog(catalog, result, verbose=verbose)

    courses_dir = data / COURSES_DIR
    if courses_dir.is_dir():
        detail_files = sorted(courses_dir.glob("*.json"))
    else:
        detail_files = []
        result.warnings.append("No courses/ directory found")

    result.detail_files = len(detail_files)
    for path in detail_files:
        detail = _load(path, result)
        if detail is not None and check_detail(path.name, detail, result, verbose=verbose):
            result.valid_details += 1
        else:
            result.invalid_details += 1

    manifest_dict: Dict[str, Any] = manifest if isinstance(manifest, dict) else {}
    course_count = manifest_dict.get("courseCount")
    total = course_count if _is_number(course_count) and course_count > 0 else 1
    failed = manifest_dict.get("failedCourses")
    failed_count = (len(failed) if isinstance(failed, list) else 0) + result.invalid_details

    result.total_courses = int(total)
    result.error_rate = failed_count / total * 100
    if result.error_rate > error_threshold:
        result.errors.append(f"Error rate {result.error_rate:.1f}% exceeds threshold {error_threshold:g}%")

    result.passed = not result.errors
    return result


def report(result: ValidationResult, error_threshold: float) -> None:
    table = Table(title="Validation summary", box=box.SIMPLE)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total courses", str(result.total_courses))
    table.add_row("Detail files", str(result.detail_files))
    table.add_row("Valid / invalid", f"{result.valid_details} / {result.invalid_details}")
    table.add_row("Error rate", f"{result.error_rate:.1f}%")
    table.add_row("Threshold", f"{error_threshold:g}%")
    console.print(table)

    if result.passed:
        print(f"Validation PASSED (error rate: {result.error_rate:.1f}%)")
    else:
        print(f"Validation FAILED with {len(result.errors)} errors:", file=sys.stderr)
        for err in result.errors:
            print(f"  - {err}", file=sys.stderr)

    if result.warnings:
        print(f"{len(result.warnings)} warnings:")
        for warn in result.warnings[:10]:
            print(f"  - {warn}")
        if len(result.warnings) > 10:
            print(f"  ... and {len(result.warnings) - 10} more")

    # GitHub Actions outputs
    print(f"::set-output name=passed::{str(result.passed).lower()}")
    print(f"::set-output name=error_count::{len(result.errors)}")
    print(f"::set-output name=error_rate::{result.error_rate:.1f}")


# ---------------------------------------------------------------------------
# CLI entry
# ---------------------------------------------------------------------------


def add_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--data", "-d", type=Path, default=DEFAULT_DATA_DIR, help="Dataset directory")
    p.add_argument(
        "--error-threshold",
        type=float,
        default=DEFAULT_ERROR_THRESHOLD,
        help="Maximum allowed error rate in percent",
    )
    p.add_argument("--verbose", "-v", action="store_true", help="List individual warnings")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="duodata.validate", description="Validate a scraped dataset")
    add_arguments(p)
    return p


def run(args: argparse.Namespace) -> int:
    print(f"Validating {args.data} (error threshold: {args.error_threshold:g}%)")
    result = validate_dataset(args.data, error_threshold=args.error_threshold, verbose=args.verbose)
    report(result, args.error_threshold)
    return 0 if result.passed else 1


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    raise SystemExit(run(args))


if __name__ == "__main__":
    main()
