"""
src/pipeline/selection.py
The numbers a user is currently checking. Lives only in session memory.
"""
from __future__ import annotations

import re
from typing import Callable, Iterable

from src.utils.config import MAX_SELECTION, NUMBER_RANGE
from src.utils.exceptions import ValidationError

Listener = Callable[[tuple[int, ...]], None]

_NUMBER_RE = re.compile(r"\d+")


def parse_numbers(text: str) -> list[int]:
    """
    Pull Lotofácil numbers out of pasted text ("01 02 03", "1,5,9"...).
    Out-of-range values are dropped, duplicates keep their first
    occurrence, at most 19 are kept, result is sorted.
    """
    lo, hi = NUMBER_RANGE
    seen: list[int] = []
    for token in _NUMBER_RE.findall(text or ""):
        n = int(token)
        if lo <= n <= hi and n not in seen:
            seen.append(n)
    return sorted(seen[:MAX_SELECTION])


class Selection:
    def __init__(self, numbers: Iterable[int] = ()):
        self._numbers: tuple[int, ...] = ()
        self._listeners: list[Listener] = []
        if numbers:
            self.replace(numbers)

    @property
    def numbers(self) -> tuple[int, ...]:
        return self._numbers

    def __len__(self) -> int:
        return len(self._numbers)

    def __contains__(self, n: object) -> bool:
        return n in self._numbers

    @property
    def is_full(self) -> bool:
        return len(self._numbers) >= MAX_SELECTION

    def toggle(self, n: int) -> bool:
        """Add or remove n. Returns False when n could not be added (selection full)."""
        _check_number(n)
        if n in self._numbers:
            self._set(tuple(x for x in self._numbers if x != n))
            return True
        if self.is_full:
            return False
        self._set(tuple(sorted(self._numbers + (n,))))
        return True

    def clear(self) -> None:
        self._set(())

    def replace(self, numbers: Iterable[int]) -> None:
        nums = list(numbers)
        for n in nums:
            _check_number(n)
        if len(set(nums)) != len(nums):
            raise ValidationError(f"Duplicate numbers in selection: {nums}")
        if len(nums) > MAX_SELECTION:
            raise ValidationError(f"At most {MAX_SELECTION} numbers, got {len(nums)}")
        self._set(tuple(sorted(nums)))

    def paste(self, text: str) -> bool:
        """Replace the selection with numbers parsed from text. False if none were found."""
        nums = parse_numbers(text)
        if not nums:
            return False
        self._set(tuple(nums))
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, numbers: tuple[int, ...]) -> None:
        if numbers == self._numbers:
            return
        self._numbers = numbers
        for listener in list(self._listeners):
            listener(numbers)


def _check_number(n: object) -> None:
    lo, hi = NUMBER_RANGE
    if isinstance(n, bool) or not isinstance(n, int) or not lo <= n <= hi:
        raise ValidationError(f"Number must be an integer in [{lo},{hi}], got {n!r}")
