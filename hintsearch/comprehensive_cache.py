"""
Comprehensive-search cache.
Records exhaustive AI searches per (hint type, hint value) in SQLite so repeat
queries for the same director/actor/author can skip the AI call.
"""

import asyncio
import json
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Sequence, Union

from loguru import logger

from . import config
from .errors import CacheError


_SCHEMA = """
CREATE TABLE IF NOT EXISTS comprehensive_searches (
	search_type TEXT NOT NULL,
	search_value TEXT NOT NULL,
	normalized_value TEXT NOT NULL,
	movies_found INTEGER NOT NULL,
	tmdb_ids TEXT NOT NULL,
	last_searched TEXT NOT NULL,
	PRIMARY KEY (search_type, normalized_value)
)
"""


def normalize_value(value: str) -> str:
	return value.strip().lower()


class ComprehensiveSearchCache:
	"""
	SQLite-backed cache. A record is "recent" when it is younger than the TTL
	and the search that produced it found at least one movie.
	"""

	def __init__(self, db_path: Union[str, Path] = config.CACHE_DB_PATH, ttl_days: int = config.COMPREHENSIVE_TTL_DAYS):
		self.db_path = str(db_path)
		self.ttl = timedelta(days=ttl_days)
		self._lock = threading.Lock()
		if self.db_path != ":memory:":
			Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
		self._conn = sqlite3.connect(self.db_path, timeout=5.0, check_same_thread=False)
		self._conn.row_factory = sqlite3.Row
		with self._lock:
			self._conn.execute(_SCHEMA)
			self._conn.commit()
		logger.debug(f"[Cache] Comprehensive search cache at {self.db_path} (ttl={ttl_days}d)")

	def close(self) -> None:
		self._conn.close()

	async def has_recent(self, search_type: str, value: str) -> bool:
		return await asyncio.to_thread(self.has_recent_sync, search_type, value)

	async def save(self, search_type: str, value: str, movie_ids: Sequence[int]) -> None:
		await asyncio.to_thread(self.save_sync, search_type, value, movie_ids)

	def has_recent_sync(self, search_type: str, value: str, now: Optional[datetime] = None) -> bool:
		now = now or datetime.now(timezone.utc)
		cutoff = (now - self.ttl).isoformat()
		normalized = normalize_value(value)
		try:
			with self._lock:
				row = self._conn.execute(
					"SELECT movies_found, last_searched FROM comprehensive_searches "
					"WHERE search_type = ? AND normalized_value = ? AND last_searched >= ? LIMIT 1",
					(search_type, normalized, cutoff),
				).fetchone()
		except sqlite3.Error as e:
			raise CacheError(f"cache read failed: {e}") from e
		hit = row is not None and row["movies_found"] > 0
		logger.debug(f"[Cache] {'HIT' if hit else 'MISS'} for {search_type}: {value}")
		return hit

	def save_sync(self, search_type: str, value: str, movie_ids: Sequence[int], now: Optional[datetime] = None) -> None:
		now = now or datetime.now(timezone.utc)
		ids = [int(i) for i in movie_ids]
		try:
			with self._lock:
				# Upsert on (search_type, normalized_value)
				self._conn.execute(
					"INSERT INTO comprehensive_searches "
					"(search_type, search_value, normalized_value, movies_found, tmdb_ids, last_searched) "
					"VALUES (?, ?, ?, ?, ?, ?) "
					"ON CONFLICT(search_type, normalized_value) DO UPDATE SET "
					"search_value = excluded.search_value, movies_found = excluded.movies_found, "
					"tmdb_ids = excluded.tmdb_ids, last_searched = excluded.last_searched",
					(search_type, value, normalize_value(value), len(ids), json.dumps(ids), now.isoformat()),
				)
				self._conn.commit()
		except sqlite3.Error as e:
			raise CacheError(f"cache write failed: {e}") from e
		logger.info(f"[Cache] Saved {search_type}={value} with {len(ids)} movies")
