"""
Text normalization (HTML -> plain text lines).

Detail pages are free prose. Before any pattern matching we:
- turn <br> and the end of block elements into line breaks
- drop all remaining markup (scripts and styles included)
- unify line endings and the odd whitespace characters the source uses
"""

from __future__ import annotations

import re
from typing import List

from bs4 import BeautifulSoup


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Elements whose end marks the end of a line of text
BLOCK_TAGS = ["p", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6"]

# NBSP, Hangul filler and zero-width characters seen in scraped pages
_SPACE_LIKE = {
    "\u00a0": " ",
    "\u3164": " ",
    "\u2007": " ",
    "\u202f": " ",
    "\u200b": "",
    "\ufeff": "",
}

_SPACE_RUN = re.compile(r"[ \t\f\v]+")
_LEADING_BULLET = re.compile(r"^[\-–—•*]+\s*")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_space(text: str) -> str:
    """
    Collapse every whitespace run (including newlines) into one space.
    """
    return re.sub(r"\s+", " ", clean_unicode(text)).strip()


def clean_unicode(text: str) -> str:
    """
    Replace space-like Unicode artifacts and unify line endings.
    """
    out = text.replace("\r\n", "\n").replace("\r", "\n")
    for src, dst in _SPACE_LIKE.items():
        out = out.replace(src, dst)
    return out


def html_to_text(html: str) -> str:
    """
    Convert an HTML document into plain text with one logical line per block.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    for br in soup.find_all("br"):
        br.replace_with("\n")

    for tag in soup.find_all(BLOCK_TAGS):
        tag.append("\n")

    return clean_unicode(soup.get_text())


def html_to_lines(html: str) -> List[str]:
    """
    Return the non-empty, whitespace-normalized text lines of a page.

    Leading list bullets ("-", "•", "*", dashes) are stripped as well.
    """
    lines: List[str] = []
    for raw in html_to_text(html).split("\n"):
        line = _SPACE_RUN.sub(" ", raw).strip()
        line = _LEADING_BULLET.sub("", line)
        if line:
            lines.append(line)
    return lines
