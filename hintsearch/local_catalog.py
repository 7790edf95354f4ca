"""
Local catalog module.
Holds lightweight movie records in memory, answers director/actor/text queries,
and persists itself as JSON Lines so ingested movies survive restarts.
"""

# Pathlib for robust path handling when saving/loading
from pathlib import Path  # filesystem paths
# Typing hints for clarity of public API
from typing import Dict, Iterable, List, Optional  # type hints

# Fuzzy matching for names and titles
from rapidfuzz import fuzz, process  # scorers and batch extraction

from . import config
from .data_loader import DataLoader  # JSONL persistence
from .models import CatalogMovie  # movie record class

# Console logging
from loguru import logger  # console logger


class LocalCatalog:
	"""
	In-memory movie catalog with optional JSONL persistence.
	"""

	def __init__(self, movies: Optional[Iterable[CatalogMovie]] = None, path: Optional[str] = None):
		"""
		- movies: initial records (later records with the same id win)
		- path: JSONL file written on every upsert; None keeps the catalog in memory only
		"""
		self.path = Path(path) if path else None  # persistence target
		self.movies_map: Dict[int, CatalogMovie] = {}  # dict mapping movie id -> record
		self._loader = DataLoader()  # reused for writes
		for movie in movies or []:
			self.movies_map[movie.id] = movie
		logger.info(f"[Catalog] Initialized with {len(self.movies_map)} movies | path={self.path}")

	@classmethod
	def load(cls, filepath: str) -> 'LocalCatalog':
		"""Load a catalog from JSONL; a missing file yields an empty catalog bound to that path."""
		filepath = Path(filepath)
		if not filepath.exists():
			logger.warning(f"[Catalog] No catalog file at {filepath}; starting empty")
			return cls(path=str(filepath))
		movies = DataLoader().load_movies_from_jsonl(str(filepath))
		return cls(movies, path=str(filepath))

	def save(self) -> None:
		"""Persist every record to the bound JSONL path."""
		if self.path is None:
			return  # memory-only catalog
		self._loader.write_movies_to_jsonl(str(self.path), self.movies_map.values())
		logger.debug(f"[Catalog] Saved {len(self.movies_map)} movies to {self.path}")

	def upsert(self, movie: CatalogMovie) -> None:
		"""Insert or replace a record by id, then persist."""
		is_new = movie.id not in self.movies_map
		self.movies_map[movie.id] = movie
		self.save()
		logger.info(f"[Catalog] {'Added' if is_new else 'Updated'} {movie.title} ({movie.id})")

	def get(self, movie_id: int) -> Optional[CatalogMovie]:
		"""Return the record for an id, or None if not found."""
		return self.movies_map.get(movie_id)

	def size(self) -> int:
		return len(self.movies_map)

	def known_actors(self) -> List[str]:
		return self._loader.get_all_actors(list(self.movies_map.values()))

	def known_directors(self) -> List[str]:
		return self._loader.get_all_directors(list(self.movies_map.values()))

	async def search_by_director(self, name: str) -> List[CatalogMovie]:
		"""Movies whose director matches the name (case-insensitive, typo tolerant)."""
		target = name.strip().lower()
		results = [
			m for m in self.movies_map.values()
			if m.director and self._name_matches(target, m.director)
		]
		logger.debug(f"[Catalog] Director '{name}' -> {len(results)} movies")
		return results

	async def search_by_actor(self, name: str) -> List[CatalogMovie]:
		"""Movies whose billed cast contains the name."""
		target = name.strip().lower()
		results = [
			m for m in self.movies_map.values()
			if any(self._name_matches(target, actor) for actor in m.actors)
		]
		logger.debug(f"[Catalog] Actor '{name}' -> {len(results)} movies")
		return results

	async def search_by_text(self, query: str) -> List[CatalogMovie]:
		"""Fuzzy title search, best matches first."""
		q = query.strip().lower()
		if not q or not self.movies_map:
			return []
		choices = {movie_id: m.title.lower() for movie_id, m in self.movies_map.items()}
		hits = process.extract(
			q,
			choices,
			scorer=fuzz.WRatio,
			score_cutoff=config.TEXT_MATCH_THRESHOLD,
			limit=config.TEXT_SEARCH_LIMIT,
		)
		results = [self.movies_map[key] for _, _, key in hits]
		logger.debug(f"[Catalog] Text '{query}' -> {len(results)} movies")
		return results

	@staticmethod
	def _name_matches(target: str, candidate: str) -> bool:
		candidate = candidate.strip().lower()
		if candidate == target:
			return True
		return fuzz.token_sort_ratio(target, candidate) >= config.NAME_MATCH_THRESHOLD
