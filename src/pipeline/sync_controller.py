"""
src/pipeline/sync_controller.py
Incremental sync: fetch only the draws newer than the archive's latest
concourse and merge them in.

IDLE → SYNCING → IDLE. A sync requested while another one is running
returns an empty report without touching the source.
"""
from __future__ import annotations

import threading
from enum import Enum

from src.crawlers.base_crawler import HistorySource
from src.models.draw import Draw, SyncReport
from src.pipeline.draw_archive import DrawArchive
from src.pipeline.retry_policy import RetryPolicy
from src.utils.config import DEFAULT_HISTORY_WINDOW
from src.utils.exceptions import LotteryError, ValidationError
from src.utils.logger import get_logger

log = get_logger("pipeline.sync")


class SyncStatus(str, Enum):
    IDLE = "IDLE"
    SYNCING = "SYNCING"


class SyncController:
    def __init__(
        self,
        archive: DrawArchive,
        source: HistorySource,
        retry: RetryPolicy | None = None,
        history_window: int = DEFAULT_HISTORY_WINDOW,
    ):
        self.archive = archive
        self.source = source
        self.retry = retry or RetryPolicy()
        self.history_window = history_window
        self._lock = threading.Lock()

    @property
    def state(self) -> SyncStatus:
        return SyncStatus.SYNCING if self._lock.locked() else SyncStatus.IDLE

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    @property
    def last_known_sequence_number(self) -> int:
        return self.archive.latest_sequence_number()

    def sync(self) -> SyncReport:
        if not self._lock.acquire(blocking=False):
            log.info("[SYNC] Already in progress, skipping")
            return SyncReport(fetched_count=0, since=self.archive.latest_sequence_number(),
                              latest_sequence_number=self.archive.latest_sequence_number())
        try:
            return self._run()
        except LotteryError as exc:
            log.error(f"[SYNC] Failed, archive left at #{self.archive.latest_sequence_number()}: {exc}")
            raise
        finally:
            self._lock.release()

    def _run(self) -> SyncReport:
        since = self.archive.latest_sequence_number()
        if since:
            log.info(f"[SYNC] Requesting draws after #{since}")
            records = self.retry.execute(lambda: self.source.request_history(since))
        else:
            log.info(f"[SYNC] Empty archive, requesting the last {self.history_window} draws")
            records = self.retry.execute(
                lambda: self.source.request_history(None, limit=self.history_window)
            )

        if not records:
            log.info(f"[SYNC] Archive already up to date at #{since}")
            return SyncReport(fetched_count=0, since=since, latest_sequence_number=since)

        valid: list[Draw] = []
        rejected = 0
        for record in records:
            try:
                draw = Draw.from_record(record)
            except ValidationError as exc:
                rejected += 1
                log.warning(f"[SYNC] Rejected record: {exc}")
                continue
            if draw.sequence_number <= since:
                log.debug(f"[SYNC] #{draw.sequence_number} already archived, ignoring")
                continue
            valid.append(draw)

        self.archive.merge_upsert(valid)

        report = SyncReport(
            fetched_count=len({d.sequence_number for d in valid}),
            rejected_count=rejected,
            since=since,
            latest_sequence_number=self.archive.latest_sequence_number(),
        )
        log.info(
            f"[SYNC] Done: fetched={report.fetched_count} rejected={report.rejected_count} "
            f"latest=#{report.latest_sequence_number}"
        )
        return report
