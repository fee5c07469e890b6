"""
Fallback estimation of activity counts.

Not every unit on a detail page lists its activity breakdown. To keep the
dataset usable every retained unit must end up with a positive count, so
missing counts are back-filled with a course-level average:

1. catalog lessons / catalog units        (if both known and > 0)
2. observed activities / observed units   (units with an explicit count)
3. DEFAULT_FALLBACK_LESSONS

Averages are rounded half-up and never below 1.
"""

from __future__ import annotations

import math
from typing import List, Optional

from duodata.config import DEFAULT_FALLBACK_LESSONS
from duodata.model import ParsedDetail, SectionRecord, Totals


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _has_count(activities: Optional[int]) -> bool:
    return activities is not None and activities > 0


def fallback_average(
    sections: List[SectionRecord],
    lessons_count: Optional[int],
    units_count: Optional[int],
    default: int = DEFAULT_FALLBACK_LESSONS,
) -> int:
    """
    Compute the activities-per-unit average used for units without a count.
    """
    if (lessons_count or 0) > 0 and (units_count or 0) > 0:
        return max(1, round_half_up(lessons_count / units_count))

    observed = [u.activities for s in sections for u in s.units if _has_count(u.activities)]
    if observed:
        return max(1, round_half_up(sum(observed) / len(observed)))

    return default


def compute_totals(sections: List[SectionRecord], estimated: bool = False) -> Totals:
    totals = Totals(sections=len(sections), estimated=estimated)
    for section in sections:
        for unit in section.units:
            totals.units += 1
            if _has_count(unit.activities):
                totals.activities += unit.activities
    return totals


def apply_fallback(
    detail: ParsedDetail,
    lessons_count: Optional[int],
    units_count: Optional[int],
    default: int = DEFAULT_FALLBACK_LESSONS,
) -> ParsedDetail:
    """
    Back-fill missing unit counts and recompute totals (in place).

    Units that receive the fallback lose their activity_pattern, because
    the pattern would no longer describe the count. If no unit was parsed
    at all, the catalog's declared counts become the totals and a warning
    is recorded; the course is kept either way.

    Returns:
        The same ParsedDetail, for chaining.
    """
    fallback = fallback_average(detail.sections, lessons_count, units_count, default=default)
    detail.fallback_lessons = fallback

    estimated = False
    for section in detail.sections:
        for unit in section.units:
            if not _has_count(unit.activities):
                unit.activities = fallback
                unit.activity_pattern = []
                estimated = True

    if estimated:
        detail.warnings.append(f"Some units missing activity data, using fallback: {fallback}")

    totals = compute_totals(detail.sections, estimated=estimated)

    if totals.units == 0:
        used_meta = False
        if units_count is not None:
            totals.units = units_count
            used_meta = True
        if totals.activities == 0 and lessons_count is not None:
            totals.activities = lessons_count
            used_meta = True
        if used_meta:
            detail.warnings.append("No sections parsed, using meta counts")

    detail.totals = totals
    return detail
