"""
Dataset reports: detail-page coverage and missing detail files.

Both work on an already scraped dataset directory and never touch the
network. They help answer "did the last run get everything?" and "how
long will a full refresh take?".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from rich import box
from rich.console import Console
from rich.table import Table

from duodata.config import COURSES_DIR, COURSES_FILE, DEFAULT_RATE_LIMIT_MS
from duodata.storage import load_json_or_none

console = Console(highlight=False, soft_wrap=True)

SAMPLE_SIZE = 10


@dataclass
class Coverage:
    total: int = 0
    with_detail: int = 0
    without_detail: int = 0
    estimated_seconds: float = 0.0
    sample_without_detail: List[Dict[str, Any]] = field(default_factory=list)


def _load_courses(data_dir: Path) -> List[Dict[str, Any]]:
    """
    Return the course entries of courses.json ([] if missing or broken).
    """
    data = load_json_or_none(data_dir / COURSES_FILE)
    if not isinstance(data, dict):
        return []
    courses = data.get("courses")
    return [c for c in courses if isinstance(c, dict)] if isinstance(courses, list) else []


def coverage(data_dir: str | Path, rate_limit_ms: float = DEFAULT_RATE_LIMIT_MS) -> Coverage:
    """
    Count courses with and without a detail page.

    estimated_seconds is the pure rate-limit delay of a full refresh
    (network and parsing time come on top).
    """
    courses = _load_courses(Path(data_dir))
    with_detail = [c for c in courses if c.get("detailHref")]
    without = [c for c in courses if not c.get("detailHref")]

    return Coverage(
        total=len(courses),
        with_detail=len(with_detail),
        without_detail=len(without),
        estimated_seconds=len(with_detail) * rate_limit_ms / 1000,
        sample_without_detail=without[:SAMPLE_SIZE],
    )


def find_missing(data_dir: str | Path) -> List[Dict[str, Any]]:
    """
    Return catalog entries that should have a detail file but do not.
    """
    data = Path(data_dir)
    courses_dir = data / COURSES_DIR
    scraped = {p.stem for p in courses_dir.glob("*.json")} if courses_dir.is_dir() else set()

    missing: List[Dict[str, Any]] = []
    for course in _load_courses(data):
        key = course.get("detailKey")
        if course.get("detailAvailable") and key and key not in scraped:
            missing.append(course)
    return missing


# ---------------------------------------------------------------------------
# Printing
# ---------------------------------------------------------------------------


def print_coverage(cov: Coverage) -> None:
    table = Table(title="Course coverage", box=box.SIMPLE)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total courses", str(cov.total))
    table.add_row("With detail page", str(cov.with_detail))
    table.add_row("Without detail page", str(cov.without_detail))
    table.add_row("Rate-limit delay (full refresh)", f"{cov.estimated_seconds:.0f}s ({cov.estimated_seconds / 60:.1f} min)")
    console.print(table)

    if cov.sample_without_detail:
        sample = Table(title="Courses without detail pages (sample)", box=box.SIMPLE)
        sample.add_column("Course")
        sample.add_column("Units", justify="right")
        sample.add_column("Key")
        for c in cov.sample_without_detail:
            sample.add_row(str(c.get("title", "")), str(c.get("unitsCount") or "-"), str(c.get("key", "")))
        console.print(sample)
        if cov.without_detail > SAMPLE_SIZE:
            console.print(f"... and {cov.without_detail - SAMPLE_SIZE} more")


def print_missing(missing: List[Dict[str, Any]]) -> None:
    if not missing:
        console.print("All courses with a detail page were scraped.")
        return

    table = Table(title=f"Missing course details ({len(missing)})", box=box.SIMPLE)
    table.add_column("Key")
    table.add_column("Title")
    table.add_column("URL")
    for c in missing:
        table.add_row(str(c.get("detailKey", "")), str(c.get("title", "")), str(c.get("detailHref", "")))
    console.print(table)
