"""
Course detail parsing (detail page HTML -> sections / units).

Detail pages have no machine-readable structure. After normalization the
page is read line by line with a small state machine:

    NoSection  --heading-->            InSection(n)
    InSection  --heading-->            InSection(m)
    InSection  --"n u Title" line-->   InSection(n), new current unit
    InSection  --"8, 4, 2" line-->     activity breakdown of current unit

Two heading grammars are tried, in this order:
1. parenthesized:  "Section 3 (12 units) Title"
2. word form:      "Sección 3 · 12 unidades Title"
   where the unit word comes from UNIT_WORDS (many languages).

Unrecognized lines are ignored. The parser never raises on bad input;
it simply finds fewer sections.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from duodata.languages import detect_cefr, strip_cefr_label
from duodata.model import CourseSummary, ParsedDetail, SectionRecord, UnitRecord
from duodata.normalize import html_to_lines


# ---------------------------------------------------------------------------
# Localized "unit(s)/lesson(s)" words
# ---------------------------------------------------------------------------

UNIT_WORDS = [
    # English
    "units", "unit", "lessons", "lesson",
    # Spanish / Portuguese
    "unidades", "unidad", "unidade", "lecciones", "lección", "lições", "lição",
    # French
    "unités", "unité", "leçons", "leçon",
    # Italian
    "unità", "lezioni", "lezione",
    # German
    "einheiten", "einheit", "lektionen", "lektion",
    # Dutch
    "eenheden", "lessen",
    # Scandinavian
    "lektioner", "enheter",
    # Polish
    "lekcje", "lekcji",
    # Russian / Ukrainian
    "разделы", "юнитов", "уроков", "урока", "урок", "занятий", "уроків",
    # Turkish
    "üniteler", "ünite", "ders",
    # Arabic / Persian
    "وحدات", "درس",
    # Chinese
    "单元", "單元", "课程", "課",
    # Japanese
    "レッスン", "単元", "ユニット",
    # Korean
    "단원", "레슨", "유닛",
    # Vietnamese
    "bài học", "bài",
]


def _word_alternation(words: List[str]) -> str:
    # longest first so "units" is not cut short by "unit"
    ordered = sorted(set(words), key=lambda w: (-len(w), w))
    return "|".join(re.escape(w) for w in ordered)


# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------

SECTION_PAREN_RE = re.compile(r"^([^\d]{2,})\s*(\d+)\s*\((\d+)\s+[^)]*\)\s*(.*)$")
SECTION_WORD_RE = re.compile(
    rf"^([^\d]{{2,}})\s*(\d+)\s+[^\d]*?(\d+)\s+(?:{_word_alternation(UNIT_WORDS)})\s*(.*)$",
    re.IGNORECASE,
)
UNIT_RE = re.compile(r"^\s*(\d+)\s+(\d+)\s+(.+)$")
NUMBER_RE = re.compile(r"\d+")


# ---------------------------------------------------------------------------
# Heading matchers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SectionHeading:
    heading: str
    section_index: int
    unit_count: int
    rest: str


def _heading_from_match(match: Optional[re.Match]) -> Optional[SectionHeading]:
    if not match:
        return None
    heading, section_number, unit_count, rest = match.groups()
    return SectionHeading(
        heading=heading.strip(),
        section_index=int(section_number),
        unit_count=int(unit_count),
        rest=rest.strip(),
    )


def match_paren_heading(line: str) -> Optional[SectionHeading]:
    """
    Match "Heading N (M units ...) Title".
    """
    return _heading_from_match(SECTION_PAREN_RE.match(line))


def match_word_heading(line: str) -> Optional[SectionHeading]:
    """
    Match "Heading N ... M <unit word> Title".
    """
    return _heading_from_match(SECTION_WORD_RE.match(line))


def match_section_heading(line: str) -> Optional[SectionHeading]:
    return match_paren_heading(line) or match_word_heading(line)


def build_section(heading: SectionHeading) -> SectionRecord:
    """
    Turn a matched heading into an (empty) SectionRecord.

    The title is the text after the unit count; a "CEFR X" label in it is
    recorded as cefr and removed from the display title.
    """
    heading_clean = re.sub(r"[:\s]+$", "", heading.heading)
    title_candidate = re.sub(r"^[\s:–-]+", "", heading.rest)
    raw_title = title_candidate or heading_clean

    cefr = detect_cefr(raw_title) if re.search(r"CEFR", raw_title, re.I) else None
    cleaned = strip_cefr_label(raw_title)

    return SectionRecord(
        section_index=heading.section_index,
        unit_count=heading.unit_count,
        title=cleaned or raw_title,
        raw_title=raw_title,
        cefr=cefr or "",
    )


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class DetailStateMachine:
    """
    Line-driven section/unit accumulator.

    current_section is None in the NoSection state; otherwise the parser is
    InSection(current_section.section_index).
    """

    def __init__(self) -> None:
        self.sections: List[SectionRecord] = []
        self.current_section: Optional[SectionRecord] = None
        self.current_unit: Optional[UnitRecord] = None
        self.level_short: Optional[str] = None

    def feed(self, line: str) -> None:
        heading = match_section_heading(line)
        if heading:
            self._open_section(heading)
            return

        if self.current_section is None:
            return

        unit_match = UNIT_RE.match(line)
        if unit_match:
            self._open_unit(self.current_section, unit_match)
            return

        if self.current_unit is not None and "," in line and NUMBER_RE.search(line):
            counts = [int(n) for n in NUMBER_RE.findall(line)]
            self.current_unit.activity_pattern = counts
            self.current_unit.activities = sum(counts)

    def _open_section(self, heading: SectionHeading) -> None:
        section = build_section(heading)
        self.sections.append(section)
        self.current_section = section
        self.current_unit = None

        if section.cefr and not self.level_short:
            self.level_short = section.cefr

    def _open_unit(self, section: SectionRecord, match: re.Match) -> None:
        section_number, unit_number, title = match.groups()

        # unit lines of other sections are ignored, and so is their breakdown
        if int(section_number) != section.section_index:
            self.current_unit = None
            return

        unit = UnitRecord(
            section_index=section.section_index,
            unit_index=int(unit_number),
            title=title.strip(),
        )
        section.units.append(unit)
        self.current_unit = unit

    def non_empty_sections(self) -> List[SectionRecord]:
        return [s for s in self.sections if s.units]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_course_detail(html: str, summary: Optional[CourseSummary] = None) -> ParsedDetail:
    """
    Parse a detail page into sections and units (no estimation yet).

    summary is only used to decide whether a heading level is new
    information: level_short is reported when the catalog had none.
    """
    machine = DetailStateMachine()
    for line in html_to_lines(html):
        machine.feed(line)

    level_short = None
    if machine.level_short and not (summary and summary.level_short):
        level_short = machine.level_short

    return ParsedDetail(sections=machine.non_empty_sections(), level_short=level_short)
