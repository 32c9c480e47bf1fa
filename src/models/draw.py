"""
src/models/draw.py
Value types for draws, scores, sync reports and saved games.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable

from src.utils.config import DRAW_SIZE, NUMBER_RANGE
from src.utils.exceptions import ValidationError

SAVED_GAME_SCHEMA_VERSION = 1

_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y")


def _parse_date(raw: Any) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        # Supabase returns timestamps for date columns on some schemas
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise ValidationError(f"Unrecognized draw date: {raw!r}")


def _parse_int(raw: Any, what: str) -> int:
    if isinstance(raw, bool):
        raise ValidationError(f"{what} must be an integer, got {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdecimal():
        return int(raw.strip())
    raise ValidationError(f"{what} must be an integer, got {raw!r}")


def parse_numbers(raw: Any) -> frozenset[int]:
    """Validate a draw's numbers: exactly 15 distinct values in 1..25."""
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise ValidationError(f"numbers must be a list, got {raw!r}")
    nums = [_parse_int(n, "number") for n in raw]
    lo, hi = NUMBER_RANGE

    if len(nums) != DRAW_SIZE:
        raise ValidationError(f"Expected {DRAW_SIZE} numbers, got {len(nums)}: {nums}")
    if len(set(nums)) != DRAW_SIZE:
        raise ValidationError(f"Duplicate numbers: {nums}")
    if not all(lo <= n <= hi for n in nums):
        raise ValidationError(f"Numbers out of range [{lo},{hi}]: {nums}")
    return frozenset(nums)


@dataclass(frozen=True)
class Draw:
    """One historical Lotofácil result."""

    sequence_number: int
    occurred_on: date
    numbers: frozenset[int]

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Draw":
        """Build a Draw from an API or database row, raising ValidationError."""
        if not isinstance(record, dict):
            raise ValidationError(f"Draw record must be a mapping, got {type(record).__name__}")

        raw_seq = record.get("concourse", record.get("sequence_number"))
        if raw_seq is None:
            raise ValidationError(f"Missing concourse: {record}")
        seq = _parse_int(raw_seq, "concourse")
        if seq <= 0:
            raise ValidationError(f"concourse must be positive, got {seq}")

        if record.get("date") is None:
            raise ValidationError(f"Missing date for concourse {seq}")
        occurred_on = _parse_date(record["date"])

        if "numbers" not in record:
            raise ValidationError(f"Missing numbers for concourse {seq}")
        return cls(sequence_number=seq, occurred_on=occurred_on, numbers=parse_numbers(record["numbers"]))

    def sorted_numbers(self) -> list[int]:
        return sorted(self.numbers)

    def to_record(self) -> dict[str, Any]:
        return {
            "concourse": self.sequence_number,
            "date": self.occurred_on.isoformat(),
            "numbers": self.sorted_numbers(),
        }


class Tier(str, Enum):
    JACKPOT = "JACKPOT"
    SECOND_TIER = "SECOND_TIER"
    THIRD_TIER = "THIRD_TIER"
    NO_TIER = "NO_TIER"


@dataclass(frozen=True)
class ScoreResult:
    draw: Draw
    hit_count: int
    tier: Tier


@dataclass(frozen=True)
class SyncReport:
    fetched_count: int = 0
    rejected_count: int = 0
    since: int = 0
    latest_sequence_number: int = 0


# ── Suggestions ───────────────────────────────────────────────────

@dataclass
class LottoGame:
    numbers: list[int]
    reasoning: str = ""
    probability_score: int = 0
    tags: list[str] = field(default_factory=list)


@dataclass
class FrequentCombination:
    numbers: list[int]
    count: int
    type: str
    description: str


@dataclass
class GeneratorResponse:
    games: list[LottoGame]
    frequent_combinations: list[FrequentCombination]


# ── Saved games ───────────────────────────────────────────────────

@dataclass
class SavedGame:
    id: int
    created_at: str
    numbers: list[int]
    reasoning: str
    score: int
    tags: list[str] = field(default_factory=list)
    schema_version: int = SAVED_GAME_SCHEMA_VERSION

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SavedGame":
        return cls(
            id=row["id"],
            created_at=row.get("created_at", ""),
            numbers=list(row.get("numbers") or []),
            reasoning=row.get("reasoning") or "",
            score=row.get("score") or 0,
            tags=list(row.get("tags") or []),
            schema_version=row.get("schema_version") or SAVED_GAME_SCHEMA_VERSION,
        )


@dataclass(frozen=True)
class SaveResult:
    success: bool
    error: str | None = None


def saved_game_payload(game: LottoGame) -> dict[str, Any]:
    """Row written to saved_games. The shape is versioned by schema_version."""
    return {
        "numbers": sorted(game.numbers),
        "reasoning": game.reasoning or "Sem análise",
        "score": game.probability_score or 0,
        "tags": list(game.tags),
        "schema_version": SAVED_GAME_SCHEMA_VERSION,
    }
