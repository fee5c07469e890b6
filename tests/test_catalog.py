"""
Unit tests for catalog (course list) parsing.

Contract:
- the course table is found by its header, columns by header text
- codes come from the detail file name ("esfen" -> to=es, from=en)
- rows without a detail page get a synthetic "fallback:" key
- same-language rows and short rows are dropped
"""

import unittest

from helpers import read_fixture

from duodata.catalog import extract_key, parse_course_list


class TestParseCourseList(unittest.TestCase):
    def setUp(self) -> None:
        self.courses = parse_course_list(read_fixture("course-list.html"))

    def test_keeps_only_valid_rows(self) -> None:
        self.assertEqual(len(self.courses), 2)

    def test_row_with_detail_page(self) -> None:
        c = self.courses[0]
        self.assertEqual(c.key, "https://duolingodata.com/esfen.html")
        self.assertEqual(c.detail_href, "https://duolingodata.com/esfen.html")
        self.assertEqual(c.to_code, "es")
        self.assertEqual(c.from_code, "en")
        self.assertEqual(c.to_lang, "Spanish")
        self.assertEqual(c.from_lang, "English")
        self.assertEqual(c.title, "English → Spanish")
        self.assertEqual(c.level, "A2")
        self.assertEqual(c.level_short, "A2")
        self.assertEqual(c.units_count, 8)
        self.assertEqual(c.lessons_count, 80)
        self.assertEqual(c.updated, "2024-05-01")
        self.assertTrue(c.has_detail)

    def test_row_without_detail_page(self) -> None:
        c = self.courses[1]
        self.assertEqual(c.key, "fallback:english::french::B1")
        self.assertIsNone(c.detail_href)
        self.assertIsNone(c.to_code)
        self.assertIsNone(c.from_code)
        self.assertEqual(c.to_lang, "French")
        self.assertEqual(c.level, "CEFR B1")
        self.assertEqual(c.level_short, "B1")
        self.assertEqual(c.units_count, 5)
        # a cell without digits is unknown, not zero
        self.assertIsNone(c.lessons_count)
        self.assertFalse(c.has_detail)

    def test_to_dict_uses_camel_case(self) -> None:
        d = self.courses[0].to_dict()
        self.assertEqual(d["fromLang"], "English")
        self.assertEqual(d["toCode"], "es")
        self.assertEqual(d["detailHref"], "https://duolingodata.com/esfen.html")
        self.assertTrue(d["hasDetail"])

    def test_parsing_is_deterministic(self) -> None:
        html = read_fixture("course-list.html")
        first = [c.to_dict() for c in parse_course_list(html)]
        second = [c.to_dict() for c in parse_course_list(html)]
        self.assertEqual(first, second)

    def test_malformed_html_returns_empty_list(self) -> None:
        self.assertEqual(parse_course_list(read_fixture("course-list-malformed.html")), [])

    def test_empty_input_returns_empty_list(self) -> None:
        self.assertEqual(parse_course_list(""), [])


class TestParseCourseListVariants(unittest.TestCase):
    def test_duplicate_rows_are_dropped(self) -> None:
        row = '<tr><td><a href="frfen.html">French</a></td><td>English</td><td>French</td></tr>'
        html = f"<table><thead><tr><th>Course</th><th>From</th><th>To</th></tr></thead><tbody>{row}{row}</tbody></table>"
        courses = parse_course_list(html)
        self.assertEqual(len(courses), 1)
        self.assertEqual(courses[0].to_lang, "French")

    def test_same_language_codes_are_dropped(self) -> None:
        html = (
            "<table><thead><tr><th>Course</th><th>From</th><th>To</th><th>Units</th></tr></thead>"
            '<tbody><tr><td><a href="enfen.html">English</a></td><td>English</td><td>English</td><td>3</td></tr>'
            "</tbody></table>"
        )
        self.assertEqual(parse_course_list(html), [])

    def test_positional_fallback_without_matching_headers(self) -> None:
        html = (
            "<table><thead><tr><th>A</th><th>B</th><th>C</th></tr></thead>"
            "<tbody><tr><td>German for Spanish speakers</td><td>Spanish</td><td>x</td></tr></tbody></table>"
        )
        courses = parse_course_list(html)
        self.assertEqual(len(courses), 1)
        # "to" falls back to the course cell, "from" to the second cell
        self.assertEqual(courses[0].to_lang, "German")
        self.assertEqual(courses[0].from_lang, "Spanish")

    def test_level_from_course_name(self) -> None:
        html = (
            "<table><thead><tr><th>Course</th><th>From</th><th>To</th><th>Units</th></tr></thead>"
            '<tbody><tr><td><a href="itfde.html">Italian CEFR B2</a></td><td>German</td>'
            "<td>Italian</td><td>12</td></tr></tbody></table>"
        )
        course = parse_course_list(html)[0]
        self.assertEqual(course.level_short, "B2")
        self.assertEqual(course.level, "CEFR B2")
        self.assertEqual(course.from_lang, "German")
        self.assertEqual(course.to_lang, "Italian")

    def test_zero_count_cells_are_unknown(self) -> None:
        html = (
            "<table><thead><tr><th>Course</th><th>From</th><th>To</th><th>Units</th><th>Lessons</th></tr></thead>"
            '<tbody><tr><td><a href="esfen.html">Spanish</a></td><td>English</td><td>Spanish</td>'
            "<td>5</td><td>0</td></tr></tbody></table>"
        )
        course = parse_course_list(html)[0]
        self.assertEqual(course.units_count, 5)
        self.assertIsNone(course.lessons_count)

    def test_custom_base_url(self) -> None:
        html = (
            "<table><thead><tr><th>Course</th><th>From</th><th>To</th></tr></thead>"
            '<tbody><tr><td><a href="jafen.html">Japanese</a></td><td>English</td><td>Japanese</td></tr>'
            "</tbody></table>"
        )
        course = parse_course_list(html, base_url="http://localhost:8000/data/")[0]
        self.assertEqual(course.detail_href, "http://localhost:8000/data/jafen.html")


class TestExtractKey(unittest.TestCase):
    def test_key_from_url(self) -> None:
        self.assertEqual(extract_key("https://duolingodata.com/enfes.html"), "enfes")
        self.assertEqual(extract_key("https://duolingodata.com/sub/enfes.html?x=1"), "enfes")

    def test_invalid_href(self) -> None:
        self.assertIsNone(extract_key(None))
        self.assertIsNone(extract_key("https://duolingodata.com/"))
        self.assertIsNone(extract_key("https://duolingodata.com/page.php"))


if __name__ == "__main__":
    unittest.main()
