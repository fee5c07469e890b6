"""
Daily news parsing (auxiliary, best effort).

The news page is unstructured; we keep short text blocks that look like
change notes (a date or a change keyword). If none qualify, the first
paragraph/list texts are kept instead.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

from bs4 import BeautifulSoup

MAX_ENTRIES = 50

_CHANGE_HINT = re.compile(r"\d{4}[-/]\d{2}[-/]\d{2}|added|updated|new|changed|removed", re.IGNORECASE)


def _collect(soup: BeautifulSoup, tags: List[str], min_len: int, require_hint: bool) -> List[Dict[str, Any]]:
    body = soup.body or soup
    entries: List[Dict[str, Any]] = []
    for index, el in enumerate(body.find_all(tags)):
        text = el.get_text().strip()
        if not (min_len < len(text) < 500):
            continue
        if require_hint and not _CHANGE_HINT.search(text):
            continue
        entries.append({"text": text, "index": index})
    return entries


def parse_daily_news(html: str) -> Dict[str, List[Dict[str, Any]]]:
    """
    Parse the news page into {"entries": [{"text", "index"}, ...]}.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    entries = _collect(soup, ["p", "div", "li"], min_len=10, require_hint=True)
    if not entries:
        entries = _collect(soup, ["p", "li"], min_len=20, require_hint=False)

    return {"entries": entries[:MAX_ENTRIES]}
