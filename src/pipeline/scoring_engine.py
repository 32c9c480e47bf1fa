"""
src/pipeline/scoring_engine.py
Compare a selection against every archived draw and classify each
result into a Lotofácil prize tier.
"""
from __future__ import annotations

from collections import Counter
from typing import Callable, Iterable

from src.models.draw import Draw, ScoreResult, Tier
from src.pipeline.draw_archive import DrawArchive
from src.pipeline.selection import Selection
from src.utils.config import (
    MAX_SELECTION,
    NUMBER_RANGE,
    TIER_JACKPOT_HITS,
    TIER_SECOND_HITS,
    TIER_THIRD_MIN_HITS,
)
from src.utils.exceptions import ValidationError
from src.utils.logger import get_logger

log = get_logger("pipeline.scoring")


# ── Tier logic ────────────────────────────────────────────────────

def classify(hit_count: int) -> Tier:
    """15 → jackpot, 14 → second, 11–13 → third, anything below → no prize."""
    if hit_count == TIER_JACKPOT_HITS:
        return Tier.JACKPOT
    if hit_count == TIER_SECOND_HITS:
        return Tier.SECOND_TIER
    if hit_count >= TIER_THIRD_MIN_HITS:
        return Tier.THIRD_TIER
    return Tier.NO_TIER


def hit_count(draw: Draw, selection: Iterable[int]) -> int:
    return len(draw.numbers.intersection(selection))


def validate_selection(selection: Iterable[int]) -> frozenset[int]:
    nums = list(selection)
    lo, hi = NUMBER_RANGE
    if len(nums) > MAX_SELECTION:
        raise ValidationError(f"Selection has {len(nums)} numbers, max is {MAX_SELECTION}")
    if any(isinstance(n, bool) or not isinstance(n, int) for n in nums):
        raise ValidationError(f"Selection must contain integers only: {nums}")
    if not all(lo <= n <= hi for n in nums):
        raise ValidationError(f"Selection out of range [{lo},{hi}]: {nums}")
    if len(set(nums)) != len(nums):
        raise ValidationError(f"Duplicate numbers in selection: {nums}")
    return frozenset(nums)


def score(selection: Iterable[int], draws: Iterable[Draw]) -> list[ScoreResult]:
    """One ScoreResult per draw, in the order the draws are given."""
    chosen = validate_selection(selection)
    results = []
    for draw in draws:
        hits = hit_count(draw, chosen)
        results.append(ScoreResult(draw=draw, hit_count=hits, tier=classify(hits)))
    return results


def summarize(results: Iterable[ScoreResult]) -> dict:
    """Backtest summary: prize-range hit counts and tier totals."""
    results = list(results)
    by_hits = Counter(r.hit_count for r in results)
    by_tier = Counter(r.tier for r in results)
    best = max((r.hit_count for r in results), default=0)
    return {
        "draws": len(results),
        "hits": {h: by_hits.get(h, 0) for h in range(TIER_THIRD_MIN_HITS, TIER_JACKPOT_HITS + 1)},
        "tiers": {t: by_tier.get(t, 0) for t in Tier},
        "prized": sum(1 for r in results if r.tier is not Tier.NO_TIER),
        "best_hit_count": best,
    }


class ScoreBoard:
    """Keeps `results` current by recomputing on every selection or archive change."""

    def __init__(self, selection: Selection, archive: DrawArchive):
        self.selection = selection
        self.archive = archive
        self.results: list[ScoreResult] = []
        self._listeners: list[Callable[[list[ScoreResult]], None]] = []
        self._unsubscribers = [
            selection.subscribe(lambda _numbers: self.recompute()),
            archive.subscribe(lambda _snapshot: self.recompute()),
        ]
        self.recompute()

    def recompute(self) -> list[ScoreResult]:
        self.results = score(self.selection.numbers, self.archive.snapshot())
        log.debug(f"Rescored {len(self.results)} draws for {list(self.selection.numbers)}")
        for listener in list(self._listeners):
            listener(self.results)
        return self.results

    def subscribe(self, listener: Callable[[list[ScoreResult]], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
