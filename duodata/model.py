"""
Central data model definitions used across the project.

This module defines the canonical structure of the scraped records so that:
- parsers, estimator and orchestrator share the same field names
- the JSON written to disk always uses the same (camelCase) keys

The dataclasses use Python naming; to_dict() produces the on-disk shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass(frozen=True)
class CourseSummary:
    """
    One row of the course catalog table.

    Created fresh on every catalog parse and never changed afterwards.
    """

    key: str
    from_lang: str
    to_lang: str
    from_code: Optional[str]
    to_code: Optional[str]
    level: Optional[str]
    level_short: Optional[str]
    units_count: Optional[int]
    lessons_count: Optional[int]
    updated: str
    detail_href: Optional[str]

    @property
    def title(self) -> str:
        return f"{self.from_lang} → {self.to_lang}"

    @property
    def has_detail(self) -> bool:
        return bool(self.detail_href)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "fromLang": self.from_lang,
            "toLang": self.to_lang,
            "fromCode": self.from_code,
            "toCode": self.to_code,
            "level": self.level,
            "levelShort": self.level_short,
            "unitsCount": self.units_count,
            "lessonsCount": self.lessons_count,
            "updated": self.updated,
            "detailHref": self.detail_href,
            "hasDetail": self.has_detail,
        }


@dataclass
class UnitRecord:
    """
    One numbered unit inside a section.

    activities stays None until a breakdown line is seen or the
    fallback estimator fills it in.
    """

    section_index: int
    unit_index: int
    title: str
    activity_pattern: List[int] = field(default_factory=list)
    activities: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sectionIndex": self.section_index,
            "unitIndex": self.unit_index,
            "title": self.title,
            "activityPattern": list(self.activity_pattern),
            "activities": self.activities,
        }


@dataclass
class SectionRecord:
    """
    One numbered section of a course, as declared by the source page.
    """

    section_index: int
    unit_count: int
    title: str
    raw_title: str
    cefr: str = ""
    units: List[UnitRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sectionIndex": self.section_index,
            "unitCount": self.unit_count,
            "title": self.title,
            "rawTitle": self.raw_title,
            "cefr": self.cefr,
            "units": [u.to_dict() for u in self.units],
        }


@dataclass
class Totals:
    sections: int = 0
    units: int = 0
    activities: int = 0
    estimated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "sections": self.sections,
            "units": self.units,
            "activities": self.activities,
            "estimated": self.estimated,
        }


@dataclass
class ParsedDetail:
    """
    Result of parsing one course detail page.

    level_short is the CEFR level found in a section heading (if any);
    fallback_lessons is filled by the estimator.
    """

    sections: List[SectionRecord] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)
    warnings: List[str] = field(default_factory=list)
    level_short: Optional[str] = None
    fallback_lessons: Optional[int] = None


@dataclass(frozen=True)
class ScrapeManifest:
    """
    Run-level summary written once at the end of a scrape.
    """

    version: str
    schema_version: str
    scraped_at: str
    scraped_at_unix: int
    scrape_duration_ms: int
    course_count: int
    detail_count: int
    failed_courses: List[str]
    checksum: str
    source: str
    next_update: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "schemaVersion": self.schema_version,
            "scrapedAt": self.scraped_at,
            "scrapedAtUnix": self.scraped_at_unix,
            "lastSuccessfulScrape": self.scraped_at,
            "lastAttemptedScrape": self.scraped_at,
            "scrapeDurationMs": self.scrape_duration_ms,
            "courseCount": self.course_count,
            "detailCount": self.detail_count,
            "failedCourses": list(self.failed_courses),
            "checksum": self.checksum,
            "source": self.source,
            "nextUpdate": self.next_update,
        }
