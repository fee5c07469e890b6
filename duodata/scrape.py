"""
Scrape orchestration (network -> JSON dataset).

One run does, strictly in this order:
1. fetch + parse the catalog, write courses.json
2. for every course with a detail page: skip it if a fresh copy exists,
   otherwise fetch, parse, estimate and write courses/<key>.json
3. fetch the daily news page (best effort), write dailynews.json
4. write manifest.json with counts, failures and the catalog checksum

Requests are sequential and always go through one RateLimiter.
Only a catalog failure (or an empty catalog) aborts the run; a failing
course is recorded in failedCourses and the run goes on.
"""

from __future__ import annotations

import argparse
import sys
import time
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import requests
from rich import box
from rich.console import Console
from rich.table import Table

from duodata.catalog import extract_key, parse_course_list
from duodata.config import (
    COURSES_DIR,
    COURSES_FILE,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_RATE_LIMIT_MS,
    MANIFEST_FILE,
    MANIFEST_VERSION,
    NEWS_FILE,
    NEWS_PATH,
    NEXT_RUN_HOUR,
    NEXT_RUN_WEEKDAY,
    REMOTE_BASE,
    SCHEMA_VERSION,
    STALE_AFTER,
)
from duodata.detail import parse_course_detail
from duodata.estimate import apply_fallback
from duodata.fetch import RateLimiter, fetch_with_retry
from duodata.model import CourseSummary, ParsedDetail, ScrapeManifest
from duodata.news import parse_daily_news
from duodata.storage import isoformat_utc, load_json_or_none, parse_timestamp, short_hash, write_json

FetchFn = Callable[[str], str]

console = Console(highlight=False, soft_wrap=True)


class ScrapeError(RuntimeError):
    """
    Fatal orchestrator failure: the run cannot produce a dataset.
    """


@dataclass
class RunStats:
    detail_count: int = 0
    scraped: int = 0
    skipped: int = 0
    rescraped: int = 0
    failed_courses: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def next_scheduled_run(
    now: datetime,
    weekday: int = NEXT_RUN_WEEKDAY,
    hour: int = NEXT_RUN_HOUR,
) -> datetime:
    """
    Next <weekday> at <hour>:00 UTC strictly after today's date.

    With the defaults: the next Sunday 03:00 UTC (a week ahead on Sundays).
    """
    now = now.astimezone(timezone.utc)
    days = (weekday - now.weekday()) % 7 or 7
    target = now + timedelta(days=days)
    return target.replace(hour=hour, minute=0, second=0, microsecond=0)


def build_catalog(courses: List[CourseSummary], scraped_at: str, source: str) -> Dict[str, Any]:
    """
    Build the courses.json payload.
    """
    entries: List[Dict[str, Any]] = []
    for course in courses:
        entry = course.to_dict()
        entry["courseId"] = course.key
        entry["lastUpdated"] = scraped_at
        entry["detailKey"] = extract_key(course.detail_href)
        entry["detailAvailable"] = course.has_detail
        entries.append(entry)

    return {
        "meta": {
            "scrapedAt": scraped_at,
            "totalCourses": len(courses),
            "source": source,
            "schemaVersion": SCHEMA_VERSION,
        },
        "courses": entries,
    }


def build_detail(
    course: CourseSummary,
    key: str,
    html: str,
    scraped_at: str,
) -> Dict[str, Any]:
    """
    Parse one detail page and build the courses/<key>.json payload.
    """
    detail: ParsedDetail = parse_course_detail(html, course)
    apply_fallback(detail, course.lessons_count, course.units_count)

    level = course.level
    level_short = course.level_short
    if detail.level_short and not level_short:
        level_short = detail.level_short
        level = f"CEFR {level_short}"

    return {
        "meta": {
            "key": key,
            "courseTitle": course.title,
            "scrapedAt": scraped_at,
            "sourceHash": short_hash(html),
            "fromLang": course.from_lang,
            "toLang": course.to_lang,
            "fromCode": course.from_code,
            "toCode": course.to_code,
            "level": level,
            "levelShort": level_short,
            "unitsCount": course.units_count,
            "lessonsCount": course.lessons_count,
            "fallbackLessons": detail.fallback_lessons,
            "detailHref": course.detail_href,
            "detailHrefHash": short_hash(course.detail_href or ""),
            "scrapeWarnings": list(detail.warnings),
            "schemaVersion": SCHEMA_VERSION,
        },
        "totals": detail.totals.to_dict(),
        "sections": [s.to_dict() for s in detail.sections],
    }


def needs_fetch(
    existing: Optional[Dict[str, Any]],
    detail_href: Optional[str],
    now: datetime,
    stale_after: timedelta = STALE_AFTER,
) -> tuple[bool, str]:
    """
    Decide whether a course detail must be (re-)fetched.

    Returns:
        (fetch?, reason) with reason one of "new", "changed", "stale", "fresh".
    """
    if not isinstance(existing, dict) or not isinstance(existing.get("meta"), dict):
        return True, "new"

    meta = existing["meta"]
    if meta.get("detailHref") != detail_href:
        return True, "changed"

    scraped_at = parse_timestamp(meta.get("scrapedAt"))
    if scraped_at is not None and scraped_at > now - stale_after:
        return False, "fresh"
    return True, "stale"


def _print_summary(courses: List[CourseSummary], stats: RunStats, duration_ms: int) -> None:
    table = Table(title="Scrape complete", box=box.SIMPLE)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Courses", str(len(courses)))
    table.add_row("Details", str(stats.detail_count))
    table.add_row("Scraped", str(stats.scraped))
    table.add_row("Skipped (recent)", str(stats.skipped))
    table.add_row("Rescraped (changed)", str(stats.rescraped))
    table.add_row("Failed", str(len(stats.failed_courses)))
    table.add_row("Duration", f"{duration_ms / 1000:.1f}s")
    console.print(table)

    if stats.failed_courses:
        shown = ", ".join(stats.failed_courses[:10])
        console.print(f"Failed courses ({len(stats.failed_courses)}): {shown}", markup=False)
        if len(stats.failed_courses) > 10:
            console.print(f"... and {len(stats.failed_courses) - 10} more")


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def scrape_all(
    output_dir: str | Path,
    rate_limit_ms: float = DEFAULT_RATE_LIMIT_MS,
    full_refresh: bool = False,
    *,
    fetch: Optional[FetchFn] = None,
    limiter: Optional[RateLimiter] = None,
    base_url: str = REMOTE_BASE,
    stale_after: timedelta = STALE_AFTER,
    now: Optional[datetime] = None,
) -> ScrapeManifest:
    """
    Run the full pipeline and write the dataset into output_dir.

    fetch defaults to fetch_with_retry over one shared requests.Session;
    tests pass a plain callable url -> html instead.

    Raises:
        FetchError if the catalog cannot be fetched,
        ScrapeError if it yields no courses.
    """
    started = time.monotonic()
    out = Path(output_dir)
    courses_dir = out / COURSES_DIR
    courses_dir.mkdir(parents=True, exist_ok=True)

    if fetch is None:
        session = requests.Session()
        fetch = partial(fetch_with_retry, session=session)
    if limiter is None:
        limiter = RateLimiter(rate_limit_ms)

    run_time = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    scraped_at = isoformat_utc(run_time)
    stats = RunStats()

    print(f"Output       : {out.resolve()}")
    print(f"Rate limit   : {rate_limit_ms}ms")
    print(f"Full refresh : {full_refresh}")

    # 1. Catalog --------------------------------------------------------------
    print("Fetching course catalog...")
    limiter.wait()
    catalog_html = fetch(base_url)
    courses = parse_course_list(catalog_html, base_url=base_url)
    if not courses:
        raise ScrapeError(f"No courses found in catalog at {base_url}")
    print(f"Found {len(courses)} courses")

    catalog_text = write_json(out / COURSES_FILE, build_catalog(courses, scraped_at, base_url))
    print(f"Saved {COURSES_FILE}")

    # 2. Details ---------------------------------------------------------------
    with_detail = [c for c in courses if c.detail_href]
    print(f"Fetching {len(with_detail)} course details...")

    for course in with_detail:
        key = extract_key(course.detail_href)
        if not key:
            print(f"SKIP  invalid detail href: {course.detail_href}")
            continue

        detail_path = courses_dir / f"{key}.json"

        if not full_refresh and detail_path.exists():
            existing = load_json_or_none(detail_path)
            fetch_it, reason = needs_fetch(existing, course.detail_href, run_time, stale_after)
            if not fetch_it:
                stats.skipped += 1
                stats.detail_count += 1
                print(f"SKIP  {key} (fresh)")
                continue
            if reason == "changed":
                stats.rescraped += 1
                print(f"CHANGED {key}: detail URL changed, forcing rescrape")

        limiter.wait()
        try:
            html = fetch(course.detail_href)
            payload = build_detail(course, key, html, scraped_at)
            write_json(detail_path, payload)
        except Exception as exc:
            stats.failed_courses.append(key)
            print(f"FAIL  {key}: {exc}", file=sys.stderr)
            continue

        stats.detail_count += 1
        stats.scraped += 1
        totals = payload["totals"]
        print(f"FETCH {key} ({totals['units']} units, {totals['activities']} activities)")

    # 3. Daily news (non-fatal) ------------------------------------------------
    news_url = f"{base_url}{NEWS_PATH}"
    print("Fetching daily news...")
    try:
        limiter.wait()
        news = parse_daily_news(fetch(news_url))
        write_json(
            out / NEWS_FILE,
            {
                "meta": {"scrapedAt": scraped_at, "source": news_url, "schemaVersion": SCHEMA_VERSION},
                **news,
            },
        )
        print(f"Saved {NEWS_FILE} ({len(news['entries'])} entries)")
    except Exception as exc:
        print(f"WARN  daily news failed: {exc}", file=sys.stderr)

    # 4. Manifest --------------------------------------------------------------
    duration_ms = int((time.monotonic() - started) * 1000)
    manifest = ScrapeManifest(
        version=MANIFEST_VERSION,
        schema_version=SCHEMA_VERSION,
        scraped_at=scraped_at,
        scraped_at_unix=int(run_time.timestamp()),
        scrape_duration_ms=duration_ms,
        course_count=len(courses),
        detail_count=stats.detail_count,
        failed_courses=list(stats.failed_courses),
        checksum=short_hash(catalog_text),
        source=base_url,
        next_update=isoformat_utc(next_scheduled_run(run_time)),
    )
    write_json(out / MANIFEST_FILE, manifest.to_dict())
    print(f"Saved {MANIFEST_FILE}")

    _print_summary(courses, stats, duration_ms)
    return manifest


# ---------------------------------------------------------------------------
# CLI entry
# ---------------------------------------------------------------------------


def _parse_bool(value: str) -> bool:
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "y", "on"):
        return True
    if text in ("false", "0", "no", "n", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def add_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--output",
        "-o",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help="Dataset directory (default: data/ in the project root)",
    )
    p.add_argument("--rate-limit", type=int, default=DEFAULT_RATE_LIMIT_MS, help="Minimum ms between requests")
    p.add_argument(
        "--full-refresh",
        type=_parse_bool,
        nargs="?",
        const=True,
        default=False,
        help="Re-fetch every course detail (true|false)",
    )
    p.add_argument(
        "--stale-days",
        type=float,
        default=STALE_AFTER.total_seconds() / 86400,
        help="Re-fetch details older than this many days",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="duodata.scrape", description="Scrape the course catalog into JSON")
    add_arguments(p)
    return p


def run(args: argparse.Namespace) -> int:
    """
    Run a scrape from parsed CLI arguments and return the exit code.
    """
    try:
        scrape_all(
            args.output.resolve(),
            rate_limit_ms=args.rate_limit,
            full_refresh=args.full_refresh,
            stale_after=timedelta(days=args.stale_days),
        )
    except Exception as exc:
        print(f"Scraper failed: {exc}", file=sys.stderr)
        traceback.print_exc()
        return 1
    return 0


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    raise SystemExit(run(args))


if __name__ == "__main__":
    main()
