"""
src/crawlers/base_crawler.py
History source interface and the HTTP base crawler.

Remote failures are classified here into TransientRemoteError (worth
retrying) and PermanentRemoteError; retrying itself is RetryPolicy's job.
"""
from __future__ import annotations

import random
import threading
from abc import ABC, abstractmethod
from typing import Any

import requests

from src.utils.config import HTTP_TIMEOUT
from src.utils.exceptions import OperationCancelled, PermanentRemoteError, TransientRemoteError
from src.utils.logger import get_logger

log = get_logger("crawler")

# Rate limiting and gateway/unavailable statuses
TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})


class HistorySource(ABC):
    """Anything that can list draws newer than a known concourse."""

    @abstractmethod
    def request_history(self, since_sequence_number: int | None = None, limit: int = 50) -> list[dict[str, Any]]:
        """
        Return raw draw records ({concourse, date, numbers}), newest first.
        With since_sequence_number: every draw after it.
        Without: the most recent `limit` draws.
        """
        ...


class BaseCrawler(HistorySource):
    """requests-based crawler with polite delays and error classification."""

    BASE_URL = ""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = HTTP_TIMEOUT,
        delay_min: float = 0.2,
        delay_max: float = 0.6,
        cancel_event: threading.Event | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.delay_min = delay_min
        self.delay_max = delay_max
        self.cancel_event = cancel_event or threading.Event()
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/121.0.0.0 Safari/537.36"
            ),
            "Accept": "application/json",
            "Accept-Language": "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
        })

    # ── HTTP helpers ──────────────────────────────────────────────

    def _get_json(self, url: str, params: dict | None = None) -> Any | None:
        """GET a JSON document. Returns None on 404, raises classified errors otherwise."""
        self._check_cancelled()
        log.debug(f"GET {url} params={params}")
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise TransientRemoteError(f"GET {url} failed: {exc}") from exc
        except requests.RequestException as exc:
            raise PermanentRemoteError(f"GET {url} failed: {exc}") from exc

        status = resp.status_code
        if status == 404:
            return None
        if status in TRANSIENT_STATUSES:
            raise TransientRemoteError(f"GET {url} returned {status}", status=status)
        if status >= 400:
            raise PermanentRemoteError(f"GET {url} returned {status}", status=status)

        try:
            return resp.json()
        except ValueError as exc:
            raise PermanentRemoteError(f"GET {url} returned invalid JSON", status=status) from exc

    def _sleep(self) -> None:
        """Polite delay between requests; wakes up early when cancelled."""
        if self.cancel_event.wait(random.uniform(self.delay_min, self.delay_max)):
            raise OperationCancelled("History crawl cancelled")

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise OperationCancelled("History crawl cancelled")
