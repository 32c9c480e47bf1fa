"""
src/utils/config.py
Load env vars and game constants for the Lotofácil checker.
"""
import os

from dotenv import load_dotenv

from src.utils.exceptions import ConfigurationError

load_dotenv()


def _float_from_env(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc


def _int_from_env(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc


# ── Supabase ──────────────────────────────────────────────────────
# Empty credentials switch the app to offline mode (NullStore).
SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")

DRAWS_TABLE = "draw_results"
SAVED_GAMES_TABLE = "saved_games"

# ── Caixa results API ─────────────────────────────────────────────
CAIXA_API_URL: str = os.getenv(
    "CAIXA_API_URL", "https://servicebus2.caixa.gov.br/portaldeloterias/api"
)
HTTP_TIMEOUT: float = _float_from_env("HTTP_TIMEOUT", 15.0)

# ── Retry / sync ──────────────────────────────────────────────────
RETRY_MAX_ATTEMPTS: int = _int_from_env("RETRY_MAX_ATTEMPTS", 3)
RETRY_INITIAL_DELAY: float = _float_from_env("RETRY_INITIAL_DELAY", 2.0)   # seconds
RETRY_BACKOFF: float = _float_from_env("RETRY_BACKOFF", 2.0)

# Draws requested when the archive has no baseline yet
DEFAULT_HISTORY_WINDOW: int = _int_from_env("HISTORY_WINDOW", 50)

# Draws handed to the generation service as backtest context
CONTEXT_WINDOW = 100

# ── Lotofácil rules ───────────────────────────────────────────────
NUMBER_RANGE: tuple[int, int] = (1, 25)
DRAW_SIZE = 15
MAX_SELECTION = 19

TIER_JACKPOT_HITS = 15
TIER_SECOND_HITS = 14
TIER_THIRD_MIN_HITS = 11


def is_supabase_configured() -> bool:
    return bool(SUPABASE_URL) and bool(SUPABASE_KEY)
