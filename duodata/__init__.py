"""
duodata – language-course catalog scraper.

Turns the HTML catalog and course detail pages of the upstream data source
into a versioned JSON dataset (courses.json, courses/<key>.json, manifest.json).
"""

from __future__ import annotations

from pathlib import Path


def _read_version() -> str:
    try:
        return (Path(__file__).resolve().parent / "VERSION").read_text(encoding="utf-8").strip()
    except OSError:
        return "1.0.0"


__version__ = _read_version()
