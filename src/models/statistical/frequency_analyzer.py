"""
src/models/statistical/frequency_analyzer.py
Hot/cold number scoring and global frequency stats over the archive.
"""
from __future__ import annotations

from collections import Counter
from itertools import combinations

import numpy as np


class FrequencyAnalyzer:
    """Score each number by how often it appears in recent draws."""

    def __init__(self, number_range: tuple[int, int], window: int = 100, weight_recency: float = 1.0):
        self.lo, self.hi = number_range
        self.window = window
        self.weight_recency = weight_recency  # 1.0 = plain counts, < 1 favours recent draws

    def get_counts(self, history: list[list[int]]) -> dict[int, int]:
        """Raw appearance counts for every number in range over the whole history."""
        flat = np.fromiter((n for draw in history for n in draw), dtype=np.int64)
        flat = flat[(flat >= self.lo) & (flat <= self.hi)]
        counts = np.bincount(flat, minlength=self.hi + 1)
        return {n: int(counts[n]) for n in range(self.lo, self.hi + 1)}

    def get_scores(self, history: list[list[int]]) -> dict[int, float]:
        """
        Returns a score dict {number: score} for all numbers in range.
        Higher score = more frequent recently (hot). Normalized to [0, 1].
        """
        recent = history[: self.window]
        if not recent:
            return {n: 1.0 for n in range(self.lo, self.hi + 1)}

        weights = self.weight_recency ** np.arange(len(recent))
        scores = np.zeros(self.hi + 1)
        for weight, draw in zip(weights, recent):
            for num in draw:
                if self.lo <= num <= self.hi:
                    scores[num] += weight

        max_score = scores.max() or 1.0
        return {n: float(scores[n] / max_score) for n in range(self.lo, self.hi + 1)}

    def get_hot_numbers(self, history: list[list[int]], top_n: int = 15) -> list[int]:
        scores = self.get_scores(history)
        return sorted(scores, key=lambda n: (-scores[n], n))[:top_n]

    def get_cold_numbers(self, history: list[list[int]], bottom_n: int = 15) -> list[int]:
        scores = self.get_scores(history)
        return sorted(scores, key=lambda n: (scores[n], n))[:bottom_n]

    def global_stats(self, history: list[list[int]], hot_n: int = 12, cold_n: int = 5) -> dict:
        """Hot/cold numbers over the full history: {hot, cold, total}."""
        if not history:
            return {"hot": [], "cold": [], "total": 0}
        counts = self.get_counts(history)
        ranked = sorted(counts, key=lambda n: (-counts[n], n))
        return {
            "hot": ranked[:hot_n],
            "cold": ranked[-cold_n:],
            "total": len(history),
        }

    def frequent_groups(self, history: list[list[int]], size: int = 2, top_n: int = 3) -> list[tuple[tuple[int, ...], int]]:
        """Most common co-occurring groups (pairs, trios...) in the window."""
        counter: Counter = Counter()
        for draw in history[: self.window]:
            counter.update(combinations(sorted(draw), size))
        return counter.most_common(top_n)
