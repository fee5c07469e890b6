"""
Central constants and defaults.

Everything the scraper and validator need to know about the upstream source,
the dataset layout and the scrape cadence lives here, so the CLI flags and
the tests can override it in one place.
"""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

from duodata import __version__


# ---------------------------------------------------------------------------
# Paths & URLs
# ---------------------------------------------------------------------------

PACKAGE_DIR = Path(__file__).resolve().parent

REMOTE_BASE = "https://duolingodata.com/"
NEWS_PATH = "dailynews.html"

# <repo>/data, the same directory DEFAULT_DATA_DIR names from the repo root
DEFAULT_OUTPUT_DIR = PACKAGE_DIR / ".." / "data"
DEFAULT_DATA_DIR = Path("data")

COURSES_FILE = "courses.json"
MANIFEST_FILE = "manifest.json"
NEWS_FILE = "dailynews.json"
COURSES_DIR = "courses"


# ---------------------------------------------------------------------------
# Dataset versioning
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "1.0.0"
MANIFEST_VERSION = "1.0.0"


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRIES = 3
MAX_BACKOFF = 10.0
MAX_RETRY_AFTER = 60.0
DEFAULT_RATE_LIMIT_MS = 500

ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_LANGUAGE = "en-US,en;q=0.5"


def user_agent() -> str:
    """
    Return the User-Agent for outbound requests.

    The USER_AGENT environment variable wins; it is read on every call so
    tests (and long-running shells) can change it without re-importing.
    """
    override = os.environ.get("USER_AGENT", "").strip()
    if override:
        return override
    return f"duodata-scraper/{__version__}"


# ---------------------------------------------------------------------------
# Incremental policy & cadence
# ---------------------------------------------------------------------------

STALE_AFTER = timedelta(days=6)

# datetime.weekday(): Monday == 0 ... Sunday == 6
NEXT_RUN_WEEKDAY = 6
NEXT_RUN_HOUR = 3


# ---------------------------------------------------------------------------
# Estimation & validation
# ---------------------------------------------------------------------------

DEFAULT_FALLBACK_LESSONS = 10
DEFAULT_ERROR_THRESHOLD = 10.0
