"""
Dataset persistence.

All files of the dataset are JSON (UTF-8, indented). Writes go through a
temporary file in the same directory followed by an atomic rename, so a
crash never leaves a half-written file behind.
"""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def write_json(path: str | Path, data: Any) -> str:
    """
    Atomically write data as JSON to path. Creates parent directories.

    Returns:
        The exact text written (used for checksums).
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    text = dump_json(data)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return text


def read_json(path: str | Path) -> Any:
    """
    Load JSON from a file. Raises on missing or broken files.
    """
    return json.loads(Path(path).read_text(encoding="utf-8"))


def load_json_or_none(path: str | Path) -> Optional[Any]:
    """
    Load JSON from a file, or None if it is missing or unreadable.
    """
    try:
        return read_json(path)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return None


def short_hash(text: str) -> str:
    """
    "sha256:" + the first 16 hex chars of the SHA-256 of text.
    """
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]
    return f"sha256:{digest}"


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def isoformat_utc(dt: datetime) -> str:
    """
    Format as "2026-01-04T03:00:00.000Z".
    """
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO timestamp written by isoformat_utc (or similar).

    Naive values are taken as UTC; anything unparseable yields None.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
