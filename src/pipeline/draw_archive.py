"""
src/pipeline/draw_archive.py
Local archive of Lotofácil draws, newest concourse first.

The in-memory view is an immutable tuple that is replaced in a single
assignment after the store accepts a write, so readers always see a
complete snapshot.
"""
from __future__ import annotations

from typing import Callable, Iterable

from src.models.draw import Draw
from src.utils.exceptions import StorageUnavailable, ValidationError
from src.utils.logger import get_logger
from src.utils.supabase_client import DrawStore

log = get_logger("pipeline.archive")

Snapshot = tuple[Draw, ...]
Listener = Callable[[Snapshot], None]


class DrawArchive:
    def __init__(self, store: DrawStore):
        self._store = store
        self._draws: Snapshot = ()
        self._loaded = False
        self._listeners: list[Listener] = []

    # ── Reads ─────────────────────────────────────────────────────

    def latest_sequence_number(self) -> int:
        draws = self._draws
        return draws[0].sequence_number if draws else 0

    def snapshot(self) -> Snapshot:
        return self._draws

    def __len__(self) -> int:
        return len(self._draws)

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> Snapshot:
        """Reload from the store. Falls back to the cached snapshot if the store is down."""
        try:
            rows = self._store.fetch_draws()
        except StorageUnavailable:
            if self._loaded or self._draws:
                log.warning(f"Store unavailable, serving cached archive ({len(self._draws)} draws)")
                return self._draws
            raise

        # Draws are never deleted: keep what this session already merged
        # (the offline store persists nothing) and let stored rows win.
        draws = {d.sequence_number: d for d in self._draws}
        for row in rows:
            try:
                draw = Draw.from_record(row)
            except ValidationError as exc:
                log.warning(f"Skipping invalid stored draw: {exc}")
                continue
            draws[draw.sequence_number] = draw

        self._loaded = True
        self._swap(draws)
        log.info(f"Archive loaded: {len(self._draws)} draws, latest #{self.latest_sequence_number()}")
        return self._draws

    def all(self) -> Snapshot:
        return self.load()

    # ── Writes ────────────────────────────────────────────────────

    def merge_upsert(self, draws: Iterable[Draw]) -> None:
        """Insert or replace draws by concourse. Last one wins within a batch."""
        batch: dict[int, Draw] = {}
        for draw in draws:
            batch[draw.sequence_number] = draw
        if not batch:
            return

        # Store first: a failed write must leave the snapshot untouched
        self._store.upsert_draws([d.to_record() for d in batch.values()])

        merged = {d.sequence_number: d for d in self._draws}
        merged.update(batch)
        self._swap(merged)
        log.info(f"Merged {len(batch)} draws, latest #{self.latest_sequence_number()}")

    # ── Change notifications ──────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _swap(self, draws: dict[int, Draw]) -> None:
        new = tuple(sorted(draws.values(), key=lambda d: d.sequence_number, reverse=True))
        if new == self._draws:
            return
        self._draws = new
        for listener in list(self._listeners):
            listener(new)
