"""
Catalog parsing (course list HTML -> CourseSummary records).

The catalog is one big HTML table whose columns move around between
versions of the page, so columns are found by header text and only fall
back to fixed positions when no header matches.

Rules:
- rows with fewer cells than the header are skipped
- a numeric cell without digits is None (never 0)
- courses whose source and target language are the same are dropped
- the first row wins when two rows share a key
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Pattern, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from duodata.config import REMOTE_BASE
from duodata.languages import (
    cefr_from_title,
    extract_language_codes,
    humanize_language_label,
    language_code_to_name,
    normalize_language_code,
    normalize_level,
)
from duodata.model import CourseSummary
from duodata.normalize import normalize_space


# ---------------------------------------------------------------------------
# Column matchers
# ---------------------------------------------------------------------------

COLUMN_MATCHERS: Dict[str, List[Pattern[str]]] = {
    "course": [re.compile(r"course"), re.compile(r"name")],
    "from": [re.compile(r"^from"), re.compile(r"base"), re.compile(r"speaker")],
    "to": [re.compile(r"^to"), re.compile(r"learn"), re.compile(r"target")],
    "level": [re.compile(r"cefr"), re.compile(r"level")],
    "units": [re.compile(r"unit")],
    "lessons": [re.compile(r"lesson")],
    "updated": [re.compile(r"updated"), re.compile(r"refresh")],
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _find_course_table(soup: BeautifulSoup) -> Optional[Tag]:
    """
    Prefer the table whose header mentions both "course" and "units".
    """
    tables = soup.find_all("table")
    for table in tables:
        head = table.find("thead") or table.find("tr")
        header_text = head.get_text(" ") if head else ""
        if re.search(r"course", header_text, re.I) and re.search(r"units", header_text, re.I):
            return table
    return tables[0] if tables else None


def _header_cells(table: Tag) -> List[str]:
    thead = table.find("thead")
    cells = thead.find_all("th") if thead else []
    if not cells:
        first_row = table.find("tr")
        cells = first_row.find_all("th") if first_row else []
    return [normalize_space(c.get_text(" ")).lower() for c in cells]


def _body_rows(table: Tag) -> List[List[Tag]]:
    bodies = table.find_all("tbody")
    rows = [tr for body in bodies for tr in body.find_all("tr")] if bodies else table.find_all("tr")
    out: List[List[Tag]] = []
    for tr in rows:
        cells = tr.find_all("td")
        if cells:
            out.append(cells)
    return out


def _find_index(headers: Sequence[str], matchers: Sequence[Pattern[str]]) -> int:
    for i, text in enumerate(headers):
        if any(m.search(text) for m in matchers):
            return i
    return -1


def _cell(cells: Sequence[Tag], index: int, fallback: int = -1) -> Optional[Tag]:
    if 0 <= index < len(cells):
        return cells[index]
    if 0 <= fallback < len(cells):
        return cells[fallback]
    return None


def _cell_text(cell: Optional[Tag]) -> str:
    if cell is None:
        return ""
    return normalize_space(cell.get_text(" "))


def _cell_number(cell: Optional[Tag]) -> Optional[int]:
    """
    Parse a numeric cell by stripping everything but digits.

    A zero count means "unknown" on the catalog page and yields None.
    """
    digits = re.sub(r"[^0-9]", "", _cell_text(cell))
    if not digits:
        return None
    return int(digits) or None


def _detail_href(cell: Optional[Tag]) -> str:
    if cell is None:
        return ""
    for a in cell.find_all("a", href=True):
        href = a["href"].strip()
        if href.lower().endswith(".html"):
            return href
    return ""


def _fallback_key(from_lang: str, to_lang: str, *parts: object) -> str:
    tail = next((str(p) for p in parts if p), "v1")
    return f"fallback:{from_lang.lower()}::{to_lang.lower()}::{tail}"


def _is_valid(course: CourseSummary) -> bool:
    from_lang = course.from_lang.lower()
    to_lang = course.to_lang.lower()
    if from_lang and to_lang and from_lang == to_lang:
        return False
    if course.from_code and course.to_code and course.from_code == course.to_code:
        return False
    return True


# ---------------------------------------------------------------------------
# Row parsing
# ---------------------------------------------------------------------------


def parse_course_row(
    cells: Sequence[Tag],
    columns: Dict[str, int],
    base_url: str = REMOTE_BASE,
) -> CourseSummary:
    """
    Build one CourseSummary from the cells of a catalog row.
    """
    course_idx = columns["course"]
    course_cell = _cell(cells, course_idx, 0)
    from_cell = _cell(cells, columns["from"], 1)
    to_cell = _cell(cells, columns["to"], course_idx if course_idx >= 0 else 0)

    course_name = _cell_text(course_cell)
    from_raw = _cell_text(from_cell)
    to_raw = _cell_text(to_cell)

    href = _detail_href(course_cell) or _detail_href(to_cell)
    detail_href = urljoin(base_url, href) if href else None

    to_code, from_code = extract_language_codes(detail_href)

    to_lang = (
        language_code_to_name(to_code)
        or humanize_language_label(to_raw)
        or humanize_language_label(course_name)
    )
    from_lang = (
        language_code_to_name(from_code)
        or humanize_language_label(from_raw)
        or humanize_language_label(course_name.split("→")[0].strip())
    )

    level_raw = _cell_text(_cell(cells, columns["level"]))
    level_short = normalize_level(level_raw)
    if not level_short:
        titled = cefr_from_title(course_name)
        if titled:
            level_short = titled
            level_raw = f"CEFR {titled}"

    units_count = _cell_number(_cell(cells, columns["units"]))
    lessons_count = _cell_number(_cell(cells, columns["lessons"]))
    updated = _cell_text(_cell(cells, columns["updated"]))

    key = detail_href or _fallback_key(
        from_lang,
        to_lang,
        level_short,
        level_raw,
        updated,
        units_count,
        lessons_count,
    )

    return CourseSummary(
        key=key,
        from_lang=from_lang,
        to_lang=to_lang,
        from_code=normalize_language_code(from_code),
        to_code=normalize_language_code(to_code),
        level=level_raw or None,
        level_short=level_short or None,
        units_count=units_count,
        lessons_count=lessons_count,
        updated=updated,
        detail_href=detail_href,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_course_list(html: str, base_url: str = REMOTE_BASE) -> List[CourseSummary]:
    """
    Parse the catalog page into an ordered list of courses.

    Returns an empty list when no usable table is found.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    table = _find_course_table(soup)
    if table is None:
        return []

    headers = _header_cells(table)
    columns = {name: _find_index(headers, matchers) for name, matchers in COLUMN_MATCHERS.items()}
    min_cells = max(3, len(headers))

    courses: List[CourseSummary] = []
    seen: set[str] = set()
    for cells in _body_rows(table):
        if len(cells) < min_cells:
            continue

        course = parse_course_row(cells, columns, base_url=base_url)
        if not _is_valid(course) or course.key in seen:
            continue

        seen.add(course.key)
        courses.append(course)

    return courses


def extract_key(detail_href: Optional[str]) -> Optional[str]:
    """
    Return the stable file key of a detail URL.

    "https://duolingodata.com/enfes.html" -> "enfes"
    """
    if not detail_href:
        return None
    path = re.sub(r"[?#].*$", "", detail_href)
    file_name = path.rsplit("/", 1)[-1]
    match = re.match(r"^([^.]+)\.html$", file_name)
    return match.group(1) if match else None
