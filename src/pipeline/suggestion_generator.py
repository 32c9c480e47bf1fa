"""
src/pipeline/suggestion_generator.py
Build the backtest context from the archive and ask a generation service
for suggested games. Falls back to fixed offline games on failure.
"""
from __future__ import annotations

from typing import Sequence

from src.models.draw import Draw, FrequentCombination, GeneratorResponse, LottoGame
from src.models.statistical.frequency_analyzer import FrequencyAnalyzer
from src.models.suggestion_service import GenerationService, SuggestionContext
from src.pipeline.draw_archive import DrawArchive
from src.pipeline.retry_policy import RetryPolicy
from src.utils.config import CONTEXT_WINDOW, NUMBER_RANGE
from src.utils.exceptions import LotteryError, OperationCancelled
from src.utils.logger import get_logger

log = get_logger("pipeline.suggestions")


def offline_suggestions() -> GeneratorResponse:
    """Fixed games returned when the generation service cannot be reached."""
    return GeneratorResponse(
        games=[
            LottoGame(
                numbers=[1, 2, 4, 6, 7, 8, 10, 12, 13, 15, 20, 21, 23, 24, 25],
                reasoning="Modo Offline: Análise baseada em probabilidade fixa devido a erro de conexão.",
                probability_score=92,
                tags=["Offline", "Probabilidade Fixa"],
            ),
            LottoGame(
                numbers=[1, 2, 4, 5, 8, 10, 11, 13, 15, 17, 20, 21, 23, 24, 25],
                reasoning="Modo Offline: Estratégia de segurança.",
                probability_score=88,
                tags=["Offline", "Segurança"],
            ),
        ],
        frequent_combinations=[
            FrequentCombination(
                numbers=[1, 4, 8, 20],
                count=0,
                type="Erro",
                description="Não foi possível gerar a análise do histórico.",
            )
        ],
    )


def build_context(draws: Sequence[Draw], window: int = CONTEXT_WINDOW) -> SuggestionContext:
    """Global stats over every draw plus the most recent `window` draws."""
    history = [d.sorted_numbers() for d in draws]
    stats = FrequencyAnalyzer(NUMBER_RANGE).global_stats(history)
    recent = list(draws[:window])
    next_concourse = recent[0].sequence_number + 1 if recent else None
    return SuggestionContext(stats=stats, window=recent, next_concourse=next_concourse)


def generate_suggestions(
    service: GenerationService,
    archive: DrawArchive,
    retry: RetryPolicy | None = None,
) -> GeneratorResponse:
    """
    1. Load archive (stale copy is fine)
    2. Build context: global stats + last 100 draws
    3. Call the generation service through the retry policy
    4. On any failure except cancellation, return offline games
    """
    retry = retry or RetryPolicy()
    try:
        draws = archive.all()
    except LotteryError as exc:
        log.warning(f"Could not load history for context, using empty context: {exc}")
        draws = ()

    context = build_context(draws)
    log.info(
        f"[GENERATE] {context.stats['total']} draws in base, "
        f"window={len(context.window)}, next concourse={context.next_concourse or '?'}"
    )

    try:
        return retry.execute(lambda: service.request_suggestions(context))
    except OperationCancelled:
        raise
    except LotteryError as exc:
        log.error(f"[GENERATE] Suggestion service failed, using offline games: {exc}")
        return offline_suggestions()
