"""
src/models/suggestion_service.py
Generation services: anything that turns archive context into suggested
games. FrequencySuggestionService is the bundled local implementation.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from src.models.draw import Draw, FrequentCombination, GeneratorResponse, LottoGame
from src.models.statistical.frequency_analyzer import FrequencyAnalyzer
from src.models.statistical.gap_analyzer import GapAnalyzer
from src.utils.config import DRAW_SIZE, NUMBER_RANGE
from src.utils.exceptions import ValidationError
from src.utils.logger import get_logger

log = get_logger("suggestions")

_GROUP_LABELS = {2: "Par", 3: "Trio", 4: "Quadra"}


@dataclass
class SuggestionContext:
    """What a generation service gets to look at."""

    stats: dict
    window: list[Draw] = field(default_factory=list)
    next_concourse: int | None = None

    @property
    def history(self) -> list[list[int]]:
        return [d.sorted_numbers() for d in self.window]


class GenerationService(ABC):
    @abstractmethod
    def request_suggestions(self, context: SuggestionContext) -> GeneratorResponse:
        """Return suggested games plus statistical insights. May raise RemoteError."""
        ...


class FrequencySuggestionService(GenerationService):
    """
    Four games built from the backtest window:
    best historical average, recent trend, 8 odd / 7 even balance,
    and the best-average game with its weakest numbers swapped for overdue ones.
    """

    def __init__(self, recent_window: int = 20, recency: float = 0.9, swaps: int = 3):
        self.recent_window = recent_window
        self.recency = recency
        self.swaps = swaps

    def request_suggestions(self, context: SuggestionContext) -> GeneratorResponse:
        history = context.history
        if not history:
            raise ValidationError("No history provided for suggestions.")

        plain = FrequencyAnalyzer(NUMBER_RANGE, window=len(history))
        counts = plain.get_counts(history)
        ranked = sorted(counts, key=lambda n: (-counts[n], n))

        # Sum of hits over the window is the sum of the chosen numbers' counts,
        # so the top-15 by count has the best historical average.
        champion = sorted(ranked[:DRAW_SIZE])

        trend = FrequencyAnalyzer(NUMBER_RANGE, window=self.recent_window, weight_recency=self.recency)
        recent = sorted(trend.get_hot_numbers(history, top_n=DRAW_SIZE))

        odds = [n for n in ranked if n % 2 == 1][:8]
        evens = [n for n in ranked if n % 2 == 0][:7]
        balanced = sorted(odds + evens)

        weakest = sorted(champion, key=lambda n: (counts[n], n))[: self.swaps]
        overdue = GapAnalyzer(NUMBER_RANGE, window=len(history)).get_overdue_numbers(
            history, top_n=self.swaps, exclude=set(champion)
        )
        hunter = sorted((set(champion) - set(weakest)) | set(overdue))

        games = [
            self._game(champion, history, "Maior média de acertos na janela de backtest.",
                       ["Alta Performance Histórica", "Backtest Approved"]),
            self._game(recent, history, f"Peso maior nos últimos {self.recent_window} concursos.",
                       ["Tendência de Alta", "Momento"]),
            self._game(balanced, history, "8 ímpares / 7 pares preenchidos pelos números mais frequentes.",
                       ["Padrão Ouro", "Matemática Pura"]),
            self._game(hunter, history, f"Base campeã trocando {len(overdue)} números por atrasados.",
                       ["Alavancagem", "Busca de 14pts"]),
        ]

        insights = [
            FrequentCombination(
                numbers=list(group),
                count=count,
                type=_GROUP_LABELS.get(len(group), "Grupo"),
                description=f"Saíram juntos em {count} dos {len(history)} concursos analisados.",
            )
            for size in (2, 3)
            for group, count in plain.frequent_groups(history, size=size, top_n=2)
        ]
        log.info(f"Generated {len(games)} games from {len(history)} draws")
        return GeneratorResponse(games=games, frequent_combinations=insights)

    @staticmethod
    def _game(numbers: list[int], history: list[list[int]], reasoning: str, tags: list[str]) -> LottoGame:
        chosen = set(numbers)
        avg_hits = sum(len(chosen.intersection(d)) for d in history) / len(history)
        return LottoGame(
            numbers=sorted(numbers),
            reasoning=f"{reasoning} Média de {avg_hits:.1f} acertos.",
            probability_score=round(100 * avg_hits / DRAW_SIZE),
            tags=tags,
        )
