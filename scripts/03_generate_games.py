"""
scripts/03_generate_games.py
Generate suggested games from the archive and optionally save them.

--save needs the schema_version column on saved_games:
    alter table saved_games add column if not exists schema_version int not null default 1;
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.models.suggestion_service import FrequencySuggestionService
from src.pipeline.draw_archive import DrawArchive
from src.pipeline.saved_games import list_saved_games, save_game
from src.pipeline.suggestion_generator import generate_suggestions
from src.utils.logger import get_logger
from src.utils.supabase_client import build_store

log = get_logger("generate_games")


def _fmt(nums: list[int]) -> str:
    return " - ".join(f"{n:02d}" for n in sorted(nums))


def main() -> int:
    parser = argparse.ArgumentParser(description="Lotofácil game suggestions")
    parser.add_argument("--save", action="store_true", help="Save every generated game (saved_games needs a schema_version int column)")
    parser.add_argument("--list", action="store_true", help="List saved games and exit")
    args = parser.parse_args()

    store = build_store()

    if args.list:
        for game in list_saved_games(store):
            print(f"  [{game.id}] {game.created_at[:16]} | {_fmt(game.numbers)} | score={game.score}")
        return 0

    response = generate_suggestions(FrequencySuggestionService(), DrawArchive(store))

    print("\n" + "=" * 60)
    print("SUGGESTED GAMES")
    print("=" * 60)
    for game in response.games:
        print(f"  {_fmt(game.numbers)}  ({game.probability_score})  {', '.join(game.tags)}")
        print(f"    {game.reasoning}")
        if args.save:
            result = save_game(store, game)
            print("    saved" if result.success else f"    not saved: {result.error}")
    print("-" * 60)
    for combo in response.frequent_combinations:
        print(f"  {combo.type:6s} {_fmt(combo.numbers)}  x{combo.count}  {combo.description}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
