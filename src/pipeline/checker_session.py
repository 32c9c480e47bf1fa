"""
src/pipeline/checker_session.py
One user session of the bet checker: archive, sync, live scoring.

Every collaborator is passed in, so tests wire fakes and the scripts
wire the Caixa crawler and the Supabase (or offline) store.
"""
from __future__ import annotations

import threading
from typing import Iterable

from src.crawlers.base_crawler import HistorySource
from src.crawlers.lotofacil_crawler import LotofacilCrawler
from src.models.draw import ScoreResult, SyncReport
from src.pipeline import scoring_engine
from src.pipeline.draw_archive import DrawArchive
from src.pipeline.retry_policy import RetryPolicy
from src.pipeline.selection import Selection
from src.pipeline.sync_controller import SyncController
from src.utils.logger import get_logger
from src.utils.supabase_client import DrawStore, build_store

log = get_logger("pipeline.session")


class CheckerSession:
    def __init__(
        self,
        store: DrawStore,
        source: HistorySource,
        retry: RetryPolicy | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.retry = retry or RetryPolicy()
        if cancel_event is not None:
            self.retry.cancel_event = cancel_event
        # close() must reach the retry loop, so the session shares its event
        self.cancel_event = self.retry.cancel_event
        self.store = store
        self.archive = DrawArchive(store)
        self.sync_controller = SyncController(self.archive, source, retry=self.retry)
        self.selection = Selection()
        self.scoreboard = scoring_engine.ScoreBoard(self.selection, self.archive)

    @classmethod
    def from_config(cls) -> "CheckerSession":
        cancel_event = threading.Event()
        return cls(
            store=build_store(),
            source=LotofacilCrawler(cancel_event=cancel_event),
            cancel_event=cancel_event,
        )

    # ── Exposed surface ───────────────────────────────────────────

    def start(self) -> SyncReport | None:
        """Load the archive; sync straight away when it is empty."""
        self.archive.load()
        if self.archive.latest_sequence_number() == 0:
            log.info("Archive empty, running initial sync")
            return self.sync()
        return None

    def sync(self) -> SyncReport:
        return self.sync_controller.sync()

    def score(self, selection: Iterable[int]) -> list[ScoreResult]:
        return scoring_engine.score(selection, self.archive.snapshot())

    def latest_archived_sequence_number(self) -> int:
        return self.archive.latest_sequence_number()

    def close(self) -> None:
        """Cancel pending fetches and retry sleeps, stop live scoring."""
        self.cancel_event.set()
        self.scoreboard.close()
        log.debug("Session closed")
