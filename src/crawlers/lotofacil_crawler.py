"""
src/crawlers/lotofacil_crawler.py
Crawler for Lotofácil results from the Caixa portal API.
Draw schedule: Monday to Saturday at 20:00 BRT.
Numbers: 15 from 1–25.
"""
from __future__ import annotations

from typing import Any

from src.crawlers.base_crawler import BaseCrawler
from src.utils.config import CAIXA_API_URL
from src.utils.exceptions import PermanentRemoteError
from src.utils.logger import get_logger

log = get_logger("crawler.lotofacil")


class LotofacilCrawler(BaseCrawler):
    """Walk the Caixa API from the latest concourse backwards."""

    BASE_URL = CAIXA_API_URL
    GAME = "lotofacil"

    # ── Core fetch ────────────────────────────────────────────────

    def fetch_latest(self) -> dict[str, Any] | None:
        """Fetch the most recent draw."""
        payload = self._get_json(f"{self.base_url}/{self.GAME}/")
        return self._to_record(payload) if payload else None

    def fetch_draw(self, concourse: int) -> dict[str, Any] | None:
        """Fetch a single draw, or None if Caixa has not published it."""
        payload = self._get_json(f"{self.base_url}/{self.GAME}/{concourse}")
        return self._to_record(payload) if payload else None

    def request_history(self, since_sequence_number: int | None = None, limit: int = 50) -> list[dict[str, Any]]:
        latest = self.fetch_latest()
        if not latest:
            log.warning("Caixa API returned no latest draw")
            return []

        top = latest["concourse"]
        if since_sequence_number:
            if top <= since_sequence_number:
                log.info(f"No draws after #{since_sequence_number} (latest is #{top})")
                return []
            lowest = since_sequence_number + 1
        else:
            lowest = max(1, top - limit + 1)

        log.info(f"Fetching concourses #{top} → #{lowest}")
        results = [latest]
        for concourse in range(top - 1, lowest - 1, -1):
            self._sleep()
            record = self.fetch_draw(concourse)
            if record is None:
                log.warning(f"Concourse #{concourse} not found, skipping")
                continue
            results.append(record)
        return results

    # ── Payload parsing ───────────────────────────────────────────

    @staticmethod
    def _to_record(payload: Any) -> dict[str, Any]:
        """Map the Caixa payload to {concourse, date, numbers}. Values are validated later."""
        if not isinstance(payload, dict):
            raise PermanentRemoteError("Caixa API returned a non-object payload")
        try:
            concourse = int(payload["numero"])
        except (KeyError, TypeError, ValueError) as exc:
            raise PermanentRemoteError(f"Caixa payload without a valid 'numero': {payload!r}") from exc
        return {
            "concourse": concourse,
            "date": payload.get("dataApuracao"),
            "numbers": payload.get("listaDezenas") or payload.get("dezenasSorteadasOrdemSorteio") or [],
        }
