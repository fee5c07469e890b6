"""
Unit tests for the fallback estimator.

Guarantees:
- every retained unit ends with activities > 0
- totals.estimated is True iff at least one unit was back-filled
- zero parsed units -> catalog counts become the totals (with a warning)
"""

import unittest

from helpers import read_fixture

from duodata.catalog import parse_course_list
from duodata.detail import parse_course_detail
from duodata.estimate import apply_fallback, fallback_average, round_half_up
from duodata.model import ParsedDetail, SectionRecord, UnitRecord


def _section(index, counts):
    units = [UnitRecord(section_index=index, unit_index=i + 1, title=f"U{i + 1}", activities=c) for i, c in enumerate(counts)]
    for u in units:
        if u.activities:
            u.activity_pattern = [u.activities]
    return SectionRecord(section_index=index, unit_count=len(units), title="S", raw_title="S", units=units)


class TestFallbackAverage(unittest.TestCase):
    def test_catalog_counts_first(self) -> None:
        sections = [_section(1, [30, None])]
        self.assertEqual(fallback_average(sections, lessons_count=95, units_count=10), 10)

    def test_observed_counts_second(self) -> None:
        sections = [_section(1, [14, 9, None])]
        # only units with an explicit count are averaged: 23 / 2 = 11.5 -> 12
        self.assertEqual(fallback_average(sections, lessons_count=None, units_count=8), 12)

    def test_zero_catalog_units_skips_catalog(self) -> None:
        sections = [_section(1, [6])]
        self.assertEqual(fallback_average(sections, lessons_count=50, units_count=0), 6)

    def test_default(self) -> None:
        self.assertEqual(fallback_average([_section(1, [None])], None, None), 10)

    def test_never_below_one(self) -> None:
        self.assertEqual(fallback_average([], lessons_count=1, units_count=10), 1)

    def test_zero_catalog_lessons_skips_catalog(self) -> None:
        sections = [_section(1, [12, None])]
        self.assertEqual(fallback_average(sections, lessons_count=0, units_count=5), 12)

    def test_round_half_up(self) -> None:
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(11.5), 12)
        self.assertEqual(round_half_up(2.49), 2)


class TestApplyFallback(unittest.TestCase):
    def test_zero_lessons_cell_uses_observed_average(self) -> None:
        html = (
            "<table><thead><tr><th>Course</th><th>From</th><th>To</th><th>Units</th><th>Lessons</th></tr></thead>"
            '<tbody><tr><td><a href="esfen.html">Spanish</a></td><td>English</td><td>Spanish</td>'
            "<td>5</td><td>0</td></tr></tbody></table>"
        )
        course = parse_course_list(html)[0]
        page = "<p>Section 1 (2 units) Basics</p><p>1 1 Food</p><p>8, 4</p><p>1 2 Travel</p>"
        detail = apply_fallback(parse_course_detail(page, course), course.lessons_count, course.units_count)

        self.assertIsNone(course.lessons_count)
        self.assertEqual(detail.fallback_lessons, 12)
        self.assertEqual([u.activities for u in detail.sections[0].units], [12, 12])

    def test_fills_missing_units_and_marks_estimated(self) -> None:
        detail = ParsedDetail(sections=[_section(1, [14, None]), _section(2, [0])])
        apply_fallback(detail, lessons_count=80, units_count=8)

        units = [u for s in detail.sections for u in s.units]
        self.assertTrue(all(u.activities and u.activities > 0 for u in units))
        self.assertEqual([u.activities for u in units], [14, 10, 10])
        # synthetic counts carry no observed pattern
        self.assertEqual(units[1].activity_pattern, [])
        self.assertEqual(units[2].activity_pattern, [])

        self.assertEqual(detail.fallback_lessons, 10)
        self.assertEqual(detail.totals.sections, 2)
        self.assertEqual(detail.totals.units, 3)
        self.assertEqual(detail.totals.activities, 34)
        self.assertTrue(detail.totals.estimated)
        self.assertEqual(detail.warnings, ["Some units missing activity data, using fallback: 10"])

    def test_complete_data_is_not_estimated(self) -> None:
        detail = ParsedDetail(sections=[_section(1, [5, 7])])
        apply_fallback(detail, lessons_count=None, units_count=None)
        self.assertFalse(detail.totals.estimated)
        self.assertEqual(detail.totals.activities, 12)
        self.assertEqual(detail.warnings, [])

    def test_no_units_uses_catalog_counts(self) -> None:
        detail = ParsedDetail()
        apply_fallback(detail, lessons_count=50, units_count=5)
        self.assertEqual(detail.totals.to_dict(), {"sections": 0, "units": 5, "activities": 50, "estimated": False})
        self.assertEqual(detail.warnings, ["No sections parsed, using meta counts"])

    def test_no_units_and_no_catalog_counts(self) -> None:
        detail = parse_course_detail(read_fixture("course-detail-empty.html"))
        apply_fallback(detail, lessons_count=None, units_count=None)
        self.assertEqual(detail.sections, [])
        self.assertEqual(detail.totals.to_dict(), {"sections": 0, "units": 0, "activities": 0, "estimated": False})
        self.assertEqual(detail.warnings, [])

    def test_fixture_page_totals(self) -> None:
        detail = parse_course_detail(read_fixture("course-detail.html"))
        apply_fallback(detail, lessons_count=80, units_count=8)
        self.assertEqual(detail.totals.to_dict(), {"sections": 2, "units": 3, "activities": 33, "estimated": True})


if __name__ == "__main__":
    unittest.main()
