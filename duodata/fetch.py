"""
HTTP fetching with retries and rate limiting.

- fetch_with_retry(): GET a page, retrying transport errors and non-2xx
  responses with exponential backoff, and honoring Retry-After on 429;
  the timeout is an overall deadline per attempt, body download included
- RateLimiter: keeps a minimum spacing between consecutive requests

Both take their clock/sleep as parameters so tests never have to wait.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Dict, Optional

import requests

from duodata.config import (
    ACCEPT_HEADER,
    ACCEPT_LANGUAGE,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT,
    MAX_BACKOFF,
    MAX_RETRY_AFTER,
    user_agent,
)


class FetchError(RuntimeError):
    """
    Raised when a URL could not be fetched after all attempts.
    """

    def __init__(self, url: str, attempts: int, cause: str) -> None:
        super().__init__(f"Failed to fetch {url} after {attempts} attempts: {cause}")
        self.url = url
        self.attempts = attempts
        self.cause = cause


class _TooManyRequests(Exception):
    pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """
    Parse a Retry-After header into seconds.

    The header is either a number of seconds or an HTTP date. Dates in the
    past give 0; anything unparseable gives None.
    """
    if not value or not value.strip():
        return None
    text = value.strip()

    try:
        seconds = float(text)
    except ValueError:
        seconds = None
    if seconds is not None:
        return seconds if seconds >= 0 else None

    try:
        when = parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())


def backoff_delay(attempt: int) -> float:
    """
    Exponential backoff: 2s, 4s, 8s, ... capped at MAX_BACKOFF.
    """
    return min(float(2 ** attempt), MAX_BACKOFF)


def _read_body(resp: requests.Response, deadline: float) -> str:
    """
    Read a streamed response body, failing once the overall deadline passes.

    requests only bounds the connect and each single read; a server that
    keeps sending small chunks would otherwise never time out.
    """
    chunks = []
    for chunk in resp.iter_content(chunk_size=8192):
        if time.monotonic() > deadline:
            resp.close()
            raise requests.Timeout(f"Reading {resp.url} exceeded the request deadline")
        chunks.append(chunk)
    return b"".join(chunks).decode(resp.encoding or "utf-8", errors="replace")


def default_headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    headers = {
        "User-Agent": user_agent(),
        "Accept": ACCEPT_HEADER,
        "Accept-Language": ACCEPT_LANGUAGE,
    }
    if extra:
        headers.update(extra)
    return headers


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


def fetch_with_retry(
    url: str,
    retries: int = DEFAULT_RETRIES,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    GET url and return the response body as text.

    Raises:
        FetchError after `retries` failed attempts. A 429 on the last
        attempt fails as well.
    """
    http = session or requests
    request_headers = default_headers(headers)
    attempts = max(1, retries)

    for attempt in range(1, attempts + 1):
        try:
            deadline = time.monotonic() + timeout
            resp = http.get(url, headers=request_headers, timeout=timeout, stream=True)

            if resp.status_code == 429:
                resp.close()
                retry_after = resp.headers.get("Retry-After")
                if attempt == attempts:
                    raise _TooManyRequests("HTTP 429: Too Many Requests")

                parsed = parse_retry_after(retry_after)
                delay = min(parsed if parsed is not None else backoff_delay(attempt), MAX_RETRY_AFTER)
                print(f"WAIT  HTTP 429 for {url} (Retry-After: {retry_after or 'n/a'}), waiting {delay:.1f}s")
                sleep(delay)
                continue

            if not 200 <= resp.status_code < 300:
                resp.close()
                raise requests.HTTPError(f"HTTP {resp.status_code}: {resp.reason}", response=resp)

            return _read_body(resp, deadline)

        except (requests.RequestException, _TooManyRequests) as exc:
            if attempt == attempts:
                if isinstance(exc, requests.Timeout):
                    cause = "Request timed out"
                else:
                    cause = str(exc)
                raise FetchError(url, attempts, cause) from exc

            delay = backoff_delay(attempt)
            print(f"RETRY {attempt}/{attempts} for {url} ({exc}), waiting {delay:.1f}s")
            sleep(delay)

    # unreachable: the loop either returns or raises
    raise FetchError(url, attempts, "no attempt made")


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


class RateLimiter:
    """
    Space out requests by at least min_delay_ms.

    wait() blocks until min_delay_ms have passed since the previous wait()
    returned. The first call never blocks.
    """

    def __init__(
        self,
        min_delay_ms: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_delay_ms = max(0.0, float(min_delay_ms))
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None

    def wait(self) -> None:
        if self._last is not None:
            elapsed_ms = (self._clock() - self._last) * 1000.0
            if elapsed_ms < self.min_delay_ms:
                self._sleep((self.min_delay_ms - elapsed_ms) / 1000.0)
        self._last = self._clock()
