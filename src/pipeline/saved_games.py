"""
src/pipeline/saved_games.py
Save, list and delete chosen combinations.

The saved_games row carries schema_version. A store that rejects the
payload is reported as a failed save; fields are never dropped to make
an older schema accept it.
"""
from __future__ import annotations

from src.models.draw import LottoGame, SavedGame, SaveResult, saved_game_payload
from src.utils.exceptions import StorageUnavailable
from src.utils.logger import get_logger
from src.utils.supabase_client import DrawStore

log = get_logger("pipeline.saved_games")


def save_game(store: DrawStore, game: LottoGame) -> SaveResult:
    payload = saved_game_payload(game)
    try:
        store.insert_saved_game(payload)
    except StorageUnavailable as exc:
        log.error(f"Could not save game {payload['numbers']}: {exc}")
        return SaveResult(success=False, error=str(exc))
    log.info(f"Saved game {payload['numbers']} (schema v{payload['schema_version']})")
    return SaveResult(success=True)


def list_saved_games(store: DrawStore) -> list[SavedGame]:
    """Newest first. Empty list when the store is unreachable."""
    try:
        rows = store.list_saved_games()
    except StorageUnavailable as exc:
        log.error(f"Could not list saved games: {exc}")
        return []
    return [SavedGame.from_row(row) for row in rows]


def delete_saved_game(store: DrawStore, game_id: int) -> bool:
    try:
        return store.delete_saved_game(game_id)
    except StorageUnavailable as exc:
        log.error(f"Could not delete saved game {game_id}: {exc}")
        return False
