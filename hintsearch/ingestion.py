"""
Two-phase ingestion.
Phase 1 shows lightweight provider details immediately; phase 2 runs full enrichment
in a detached task and upgrades the placeholder in place.
"""

import asyncio  # detached enrichment tasks
from dataclasses import dataclass  # per-item state record
from enum import Enum  # item states
from typing import Callable, List, Optional, Sequence  # type hints

from loguru import logger  # console logging

from .errors import IngestionError
from .interfaces import CanonicalProviderProtocol, IngestionServiceProtocol
from .models import CatalogMovie, MovieDetails, ResultSource, SearchResult, SearchSession
from .ranking import ResultMerger
from .tmdb_client import build_image_url, format_runtime

# Emits the session's current merged view; must be a no-op for stale sessions
Publisher = Callable[[SearchSession], None]


class IngestionState(str, Enum):
	SUGGESTED = "suggested"  # came out of AI discovery
	VERIFIED = "verified"  # id resolved by the provider
	REJECTED = "rejected"  # could not be verified; surfaced but never ingested
	DISPLAYED = "displayed"  # phase-1 placeholder emitted
	ENRICHED = "enriched"  # phase-2 upgrade applied
	FAILED = "failed"  # phase 2 failed; the placeholder stays visible


@dataclass
class IngestionItem:
	"""One movie moving through ingestion."""
	canonical_id: int
	title: str
	year: Optional[int] = None
	match_reason: Optional[str] = None
	state: IngestionState = IngestionState.VERIFIED
	result: Optional[SearchResult] = None
	error: Optional[str] = None

	@property
	def ingestible(self) -> bool:
		return self.state not in (IngestionState.SUGGESTED, IngestionState.REJECTED)


class IngestionPipeline:
	"""
	Drives verified items through phase 1 (sequential, in order) and phase 2 (detached).
	Every mutation of the session's results and every emission is preceded by a cancellation check.
	"""

	def __init__(
		self,
		provider: CanonicalProviderProtocol,
		service: IngestionServiceProtocol,
		merger: Optional[ResultMerger] = None,
	):
		self.provider = provider
		self.service = service
		self.merger = merger or ResultMerger()

	async def ingest_all(
		self,
		session: SearchSession,
		items: Sequence[IngestionItem],
		publish: Publisher,
		on_item: Optional[Callable[[int, int], None]] = None,
	) -> List[SearchResult]:
		"""Phase 1 for each item in order; returns the placeholders that were shown."""
		shown: List[SearchResult] = []
		for index, item in enumerate(items, 1):
			if session.cancelled:
				logger.debug(f"[Ingest] Session {session.generation} cancelled; stopping at item {index}/{len(items)}")
				break
			if on_item is not None:
				on_item(index, len(items))
			result = await self.ingest(session, item, publish)
			if result is not None:
				shown.append(result)
		return shown

	async def ingest(self, session: SearchSession, item: IngestionItem, publish: Publisher) -> Optional[SearchResult]:
		"""Phase 1 for one item, then schedule phase 2. Returns the placeholder, or None if skipped."""
		if not item.ingestible:
			logger.warning(f"[Ingest] Refusing to ingest unverified '{item.title}' ({item.canonical_id})")
			return None
		if session.cancelled:
			return None
		if any(r.canonical_id == item.canonical_id for r in session.local_results + session.results):
			logger.debug(f"[Ingest] {item.canonical_id} already in session results; skipping")
			return None

		try:
			details = await self.provider.get_details(item.canonical_id)
		except Exception as e:
			logger.warning(f"[Ingest] Details for {item.canonical_id} failed, using suggestion data: {e}")
			details = None

		if session.cancelled:
			return None  # stale write dropped

		result = self._placeholder(item, details)
		# Re-check for a duplicate that landed while details were in flight
		if any(r.canonical_id == item.canonical_id for r in session.results):
			return None
		session.results.append(result)
		item.result = result
		item.state = IngestionState.DISPLAYED
		publish(session)
		logger.debug(f"[Ingest] Phase 1 shown: {result.title} ({result.canonical_id})")

		task = asyncio.create_task(self._enrich(session, item, publish))
		session.enrichment_tasks.add(task)
		task.add_done_callback(session.enrichment_tasks.discard)
		return result

	async def _enrich(self, session: SearchSession, item: IngestionItem, publish: Publisher) -> None:
		"""Phase 2: full ingestion, then replace the placeholder in place."""
		if session.cancelled:
			return
		try:
			await self.service.ingest(item.canonical_id)
			enriched = await self.service.fetch_enriched(item.canonical_id)
		except Exception as e:
			item.state = IngestionState.FAILED
			item.error = str(e)
			logger.warning(f"[Ingest] Enrichment of {item.canonical_id} failed; keeping placeholder: {e}")
			return
		if enriched is None:
			item.state = IngestionState.FAILED
			logger.warning(f"[Ingest] No enriched record for {item.canonical_id}; keeping placeholder")
			return
		if session.cancelled or item.result is None:
			return

		upgraded = self._upgrade(item.result, enriched)
		if self.merger.replace_by_id(session.results, upgraded):
			item.result = upgraded
			item.state = IngestionState.ENRICHED
			session.newly_ingested += 1
			publish(session)
			logger.info(f"[Ingest] Enriched {upgraded.title} ({upgraded.canonical_id}) ai_score={upgraded.ai_score}")

	@staticmethod
	def _placeholder(item: IngestionItem, details: Optional[MovieDetails]) -> SearchResult:
		if details is None:
			return SearchResult(
				canonical_id=item.canonical_id,
				title=item.title,
				source=ResultSource.AI_DISCOVERED,
				year=item.year,
				match_reason=item.match_reason,
			)
		return SearchResult(
			canonical_id=item.canonical_id,
			title=details.title or item.title,
			source=ResultSource.AI_DISCOVERED,
			year=details.year if details.year is not None else item.year,
			poster_url=build_image_url(details.poster_path),
			genres=list(details.genres) or None,
			runtime_display=format_runtime(details.runtime_minutes),
			match_reason=item.match_reason,
			ai_score=None,
			vote_average=details.rating,
		)

	@staticmethod
	def _upgrade(placeholder: SearchResult, enriched: CatalogMovie) -> SearchResult:
		return placeholder.upgraded(
			source=ResultSource.AI_INGESTED,
			title=enriched.title or placeholder.title,
			year=enriched.year if enriched.year is not None else placeholder.year,
			poster_url=enriched.poster_url or placeholder.poster_url,
			genres=list(enriched.genres) or placeholder.genres,
			runtime_display=enriched.runtime_display or placeholder.runtime_display,
			ai_score=enriched.ai_score,
			vote_average=enriched.vote_average if enriched.vote_average is not None else placeholder.vote_average,
		)


class CatalogIngestionService:
	"""
	Ingests a movie by fetching full TMDB details and credits into the local catalog,
	so it is locally searchable from then on.
	"""

	def __init__(self, provider, catalog):
		self.provider = provider  # TMDBClient (needs get_movie_credits)
		self.catalog = catalog  # LocalCatalog

	async def ingest(self, movie_id: int) -> None:
		try:
			details, credits = await asyncio.gather(
				self.provider.get_details(movie_id),
				self.provider.get_movie_credits(movie_id),
			)
		except Exception as e:
			raise IngestionError(f"could not fetch TMDB data for {movie_id}: {e}") from e

		movie = CatalogMovie(
			id=details.id,
			title=details.title,
			year=details.year,
			poster_url=build_image_url(details.poster_path),
			genres=list(details.genres),
			runtime_display=format_runtime(details.runtime_minutes),
			ai_score=round(details.rating, 1) if details.rating else None,  # TMDB rating only, for now
			vote_average=details.rating,
			director=credits.directors[0] if credits.directors else None,
			actors=list(credits.cast),
			popularity=details.popularity,
		)
		try:
			await asyncio.to_thread(self.catalog.upsert, movie)  # rewrites the JSONL file
		except OSError as e:
			raise IngestionError(f"could not persist {movie_id}: {e}") from e

	async def fetch_enriched(self, movie_id: int) -> Optional[CatalogMovie]:
		return self.catalog.get(movie_id)
