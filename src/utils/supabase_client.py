"""
src/utils/supabase_client.py
Supabase persistence for draw_results and saved_games, plus the offline
NullStore used when credentials are not configured.

Errors raised by postgrest/httpx are classified here, once, into
StorageUnavailable so callers never inspect driver exceptions.
"""
from __future__ import annotations

from typing import Any, Callable, Protocol, TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from src.utils import config
from src.utils.exceptions import StorageUnavailable
from src.utils.logger import get_logger

log = get_logger("supabase")

T = TypeVar("T")

# PostgREST caps each response at 1000 rows by default
PAGE_SIZE = 1000

# Postgres "undefined_table": the draws table was never created
_UNDEFINED_TABLE = "42P01"


class DrawStore(Protocol):
    """Durable keyed storage for draw rows and saved games."""

    def fetch_draws(self) -> list[dict[str, Any]]: ...

    def upsert_draws(self, rows: list[dict[str, Any]]) -> int: ...

    def insert_saved_game(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    def list_saved_games(self) -> list[dict[str, Any]]: ...

    def delete_saved_game(self, game_id: int) -> bool: ...


def get_client(url: str | None = None, key: str | None = None) -> Client:
    return create_client(url or config.SUPABASE_URL, key or config.SUPABASE_KEY)


def _guard(action: str, call: Callable[[], T]) -> T:
    try:
        return call()
    except APIError as exc:
        log.error(f"Supabase {action} rejected: code={exc.code} {exc.message}")
        raise StorageUnavailable(f"{action} failed: {exc.message}") from exc
    except httpx.HTTPError as exc:
        log.error(f"Supabase {action} unreachable: {exc}")
        raise StorageUnavailable(f"{action} failed: {exc}") from exc


class SupabaseStore:
    """DrawStore backed by a Supabase project."""

    def __init__(self, client: Client):
        self.client = client

    # ── draw_results ──────────────────────────────────────────────

    def fetch_draws(self) -> list[dict[str, Any]]:
        """All stored draws, newest concourse first."""
        rows: list[dict[str, Any]] = []
        start = 0
        while True:
            try:
                page = self._fetch_page(start)
            except StorageUnavailable as exc:
                cause = exc.__cause__
                if isinstance(cause, APIError) and cause.code == _UNDEFINED_TABLE:
                    log.warning(f"Table {config.DRAWS_TABLE} does not exist yet; treating as empty")
                    return []
                raise
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    def _fetch_page(self, start: int) -> list[dict[str, Any]]:
        resp = _guard(
            "fetch draws",
            lambda: self.client.table(config.DRAWS_TABLE)
            .select("*")
            .order("concourse", desc=True)
            .range(start, start + PAGE_SIZE - 1)
            .execute(),
        )
        return resp.data or []

    def upsert_draws(self, rows: list[dict[str, Any]]) -> int:
        """Upsert on the unique concourse column. Returns rows written."""
        if not rows:
            return 0
        resp = _guard(
            "upsert draws",
            lambda: self.client.table(config.DRAWS_TABLE)
            .upsert(rows, on_conflict="concourse")
            .execute(),
        )
        written = len(resp.data) if resp.data else len(rows)
        log.debug(f"Upserted {written} draw rows")
        return written

    # ── saved_games ───────────────────────────────────────────────

    def insert_saved_game(self, payload: dict[str, Any]) -> dict[str, Any]:
        resp = _guard(
            "save game",
            lambda: self.client.table(config.SAVED_GAMES_TABLE).insert(payload).execute(),
        )
        return resp.data[0] if resp.data else {}

    def list_saved_games(self) -> list[dict[str, Any]]:
        resp = _guard(
            "list saved games",
            lambda: self.client.table(config.SAVED_GAMES_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .execute(),
        )
        return resp.data or []

    def delete_saved_game(self, game_id: int) -> bool:
        _guard(
            "delete saved game",
            lambda: self.client.table(config.SAVED_GAMES_TABLE).delete().eq("id", game_id).execute(),
        )
        return True


class NullStore:
    """Offline store: always empty. Draw writes are dropped, saved games refused."""

    OFFLINE_MESSAGE = "Modo Offline (Sem Banco de Dados)"

    def fetch_draws(self) -> list[dict[str, Any]]:
        return []

    def upsert_draws(self, rows: list[dict[str, Any]]) -> int:
        if rows:
            log.warning(f"Offline mode: {len(rows)} draws kept in memory only")
        return 0

    def insert_saved_game(self, payload: dict[str, Any]) -> dict[str, Any]:
        raise StorageUnavailable(self.OFFLINE_MESSAGE)

    def list_saved_games(self) -> list[dict[str, Any]]:
        return []

    def delete_saved_game(self, game_id: int) -> bool:
        return False


def build_store() -> DrawStore:
    """SupabaseStore when credentials are set, NullStore otherwise."""
    if not config.is_supabase_configured():
        log.warning("Supabase credentials not found. Running in offline mode.")
        return NullStore()
    return SupabaseStore(get_client())
