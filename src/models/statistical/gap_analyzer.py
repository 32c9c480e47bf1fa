"""
src/models/statistical/gap_analyzer.py
Score numbers by their gap (draws since last appearance).
Numbers with larger-than-average gaps are "overdue".
"""
from __future__ import annotations


class GapAnalyzer:
    """Score each number based on draws since last appearance."""

    def __init__(self, number_range: tuple[int, int], window: int = 50):
        self.lo, self.hi = number_range
        self.window = window

    def get_gaps(self, history: list[list[int]]) -> dict[int, int]:
        """
        Returns {number: draws_since_last_appearance}, newest draw first.
        If never seen in window, gap = window + 1.
        """
        recent = history[: self.window]
        gaps = {n: self.window + 1 for n in range(self.lo, self.hi + 1)}
        for idx, draw in reversed(list(enumerate(recent))):
            for num in draw:
                if num in gaps:
                    gaps[num] = idx
        return gaps

    def get_overdue_numbers(self, history: list[list[int]], top_n: int = 5, exclude: set[int] | None = None) -> list[int]:
        gaps = self.get_gaps(history)
        candidates = [n for n in gaps if not exclude or n not in exclude]
        return sorted(candidates, key=lambda n: (-gaps[n], n))[:top_n]
