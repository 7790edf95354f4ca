"""
Configuration for hintsearch (env-overridable).
All settings are plain module constants read once at import time.
"""

import os
import sys
from pathlib import Path

from loguru import logger


def _env_path(key: str, default: Path) -> Path:
	return Path(os.getenv(key, str(default))).expanduser()


def _env_int(key: str, default: int) -> int:
	try:
		return int(os.getenv(key, default))
	except (TypeError, ValueError):
		return default


def _env_float(key: str, default: float) -> float:
	try:
		return float(os.getenv(key, default))
	except (TypeError, ValueError):
		return default


def _env_bool(key: str, default: bool) -> bool:
	raw = os.getenv(key)
	if raw is None:
		return default
	return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = _env_path("HINTSEARCH_DATA_DIR", PROJECT_ROOT / "data")
CATALOG_PATH = _env_path("HINTSEARCH_CATALOG_PATH", DATA_DIR / "movies.jsonl")
CACHE_DB_PATH = _env_path("HINTSEARCH_CACHE_DB", DATA_DIR / "comprehensive_searches.db")

LOG_LEVEL = os.getenv("HINTSEARCH_LOG_LEVEL", "INFO").upper()

# Canonical metadata provider (TMDB v3)
TMDB_API_KEY = os.getenv("TMDB_API_KEY", "")
TMDB_BASE_URL = os.getenv("HINTSEARCH_TMDB_BASE_URL", "https://api.themoviedb.org/3")
TMDB_IMAGE_BASE_URL = os.getenv("HINTSEARCH_TMDB_IMAGE_BASE_URL", "https://image.tmdb.org/t/p")
TMDB_LANGUAGE = os.getenv("HINTSEARCH_TMDB_LANGUAGE", "en-US")

# AI discovery (OpenAI-compatible chat completions)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("HINTSEARCH_OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("HINTSEARCH_OPENAI_MODEL", "gpt-4o-mini")
AI_MAX_RESULTS = _env_int("HINTSEARCH_AI_MAX_RESULTS", 25)
AI_MAX_TOKENS = _env_int("HINTSEARCH_AI_MAX_TOKENS", 2500)
AI_TEMPERATURE = _env_float("HINTSEARCH_AI_TEMPERATURE", 0.3)
AI_DAILY_BUDGET_CENTS = _env_float("HINTSEARCH_AI_DAILY_BUDGET_CENTS", 1000.0)
AI_INPUT_COST_PER_1M = _env_float("HINTSEARCH_AI_INPUT_COST_PER_1M", 2.50)  # dollars
AI_OUTPUT_COST_PER_1M = _env_float("HINTSEARCH_AI_OUTPUT_COST_PER_1M", 10.00)  # dollars

HTTP_TIMEOUT_S = _env_float("HINTSEARCH_HTTP_TIMEOUT_S", 30.0)

# Comprehensive-search cache freshness window
COMPREHENSIVE_TTL_DAYS = _env_int("HINTSEARCH_COMPREHENSIVE_TTL_DAYS", 7)

# Fallback chain limits
TITLE_FALLBACK_LIMIT = _env_int("HINTSEARCH_TITLE_FALLBACK_LIMIT", 5)
ACTOR_FALLBACK_LIMIT = _env_int("HINTSEARCH_ACTOR_FALLBACK_LIMIT", 10)

# Fuzzy matching thresholds (rapidfuzz scores, 0..100)
NAME_MATCH_THRESHOLD = _env_int("HINTSEARCH_NAME_MATCH_THRESHOLD", 88)
TEXT_MATCH_THRESHOLD = _env_int("HINTSEARCH_TEXT_MATCH_THRESHOLD", 86)
TEXT_SEARCH_LIMIT = _env_int("HINTSEARCH_TEXT_SEARCH_LIMIT", 20)

# Wait for background enrichment before returning the final response
AWAIT_ENRICHMENT = _env_bool("HINTSEARCH_AWAIT_ENRICHMENT", True)


def configure_logging(level: str = LOG_LEVEL) -> None:
	"""Reset loguru to a single stderr sink at the given level."""
	logger.remove()
	logger.add(sys.stderr, level=level.upper())
	logger.debug(f"[Config] Logging configured at level {level.upper()}")
