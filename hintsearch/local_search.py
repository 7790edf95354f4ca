"""
Local search stage.
Queries the local catalog using the most specific hint available, with one tier of text-search fallback.
"""

from typing import Awaitable, Callable, List, Optional

from loguru import logger

from .interfaces import LocalCatalogProtocol
from .models import CatalogMovie, HintSet, ResultSource, SearchResult
from .ranking import ResultMerger

TEXT_FALLBACK_REASON = "Text search fallback"


class LocalSearchStage:
	"""
	Priority order, first non-empty tier wins:
	director hint -> first actor hint -> free text (likely title or raw query).
	A people tier that finds nothing falls back to free text once.
	"""

	def __init__(self, catalog: LocalCatalogProtocol, merger: Optional[ResultMerger] = None):
		self.catalog = catalog
		self.merger = merger or ResultMerger()

	async def run(self, query: str, hints: Optional[HintSet]) -> List[SearchResult]:
		text_query = (hints.title_likely if hints and hints.title_likely else None) or query
		year = hints.year if hints else None
		collected: List[SearchResult] = []

		if hints and hints.director:
			records = await self._safe(self.catalog.search_by_director, hints.director, "director")
			self._collect(collected, records, lambda m: self._people_reason("Director", year, m))
			logger.debug(f"[LocalSearch] Director '{hints.director}' -> {len(records)} records")
			if not collected:
				await self._text_fallback(collected, text_query)

		elif hints and hints.actors:
			actor = hints.primary_actor
			records = await self._safe(self.catalog.search_by_actor, actor, "actor")
			self._collect(collected, records, lambda m: self._people_reason("Actor", year, m))
			logger.debug(f"[LocalSearch] Actor '{actor}' -> {len(records)} records")
			if not collected:
				await self._text_fallback(collected, text_query)

		else:
			records = await self._safe(self.catalog.search_by_text, text_query, "text")
			self._collect(
				collected,
				records,
				lambda m: "Year match" if year is not None and m.year == year else None,
			)

		results = self.merger.sort_by_score(collected)
		logger.info(f"[LocalSearch] '{query}' -> {len(results)} local results")
		return results

	async def _text_fallback(self, collected: List[SearchResult], text_query: str) -> None:
		records = await self._safe(self.catalog.search_by_text, text_query, "text")
		self._collect(collected, records, lambda m: TEXT_FALLBACK_REASON)
		logger.debug(f"[LocalSearch] Text fallback '{text_query}' -> {len(records)} records")

	async def _safe(
		self,
		search: Callable[[str], Awaitable[List[CatalogMovie]]],
		value: str,
		tier: str,
	) -> List[CatalogMovie]:
		"""Run one catalog query; any failure counts as zero results."""
		try:
			return list(await search(value))
		except Exception as e:
			logger.warning(f"[LocalSearch] {tier} search for '{value}' failed: {e}")
			return []

	@staticmethod
	def _people_reason(role: str, year: Optional[int], movie: CatalogMovie) -> str:
		if year is not None and movie.year == year:
			return f"{role} + year match"
		return f"{role} match"

	@staticmethod
	def _collect(
		collected: List[SearchResult],
		records: List[CatalogMovie],
		reason: Callable[[CatalogMovie], Optional[str]],
	) -> None:
		seen = {r.canonical_id for r in collected}
		for movie in records:
			try:
				movie_id = int(movie.id)
			except (TypeError, ValueError):
				logger.warning(f"[LocalSearch] Skipping record with invalid id: {movie.id!r}")
				continue
			if movie_id in seen:
				continue
			seen.add(movie_id)
			collected.append(to_search_result(movie, ResultSource.LOCAL, reason(movie)))


def to_search_result(movie: CatalogMovie, source: ResultSource, match_reason: Optional[str]) -> SearchResult:
	return SearchResult(
		canonical_id=int(movie.id),
		title=movie.title,
		source=source,
		year=movie.year,
		poster_url=movie.poster_url,
		genres=list(movie.genres) if movie.genres else None,
		runtime_display=movie.runtime_display,
		match_reason=match_reason,
		ai_score=movie.ai_score,
		vote_average=movie.vote_average,
	)
