"""
Search coordinator module.
Owns search sessions: runs local search, AI discovery with verification and two-phase ingestion,
and the fallback chain, streaming deduplicated ranked snapshots to the caller.
"""

import asyncio  # cooperative tasks
from typing import Callable, List, Optional, Sequence, Set, Tuple  # type annotations for clarity

# Import project modules for data structures and components
from .fallback import FallbackChain  # provider title/actor fallback
from .ingestion import IngestionItem, IngestionPipeline  # two-phase ingest
from .interfaces import (
	AIDiscoveryProtocol,
	CanonicalProviderProtocol,
	ComprehensiveSearchCacheProtocol,
	HintExtractorProtocol,
	IngestionServiceProtocol,
	LocalCatalogProtocol,
)
from .local_search import LocalSearchStage  # hint-prioritized local lookup
from .models import (
	HintSet,
	ProgressStage,
	ResultSource,
	SearchProgress,
	SearchResponse,
	SearchResult,
	SearchSession,
)
from .ranking import ResultMerger  # dedup + ranking
from .verification import IdentityVerifier  # trusted id resolution
from . import config

# Import loguru for console logging
from loguru import logger  # simple structured logger

ProgressCallback = Callable[[List[SearchResult]], None]


class SearchCoordinator:
	"""
	High-level search API. One instance serves one caller; at most one session is authoritative.
	Starting a new search supersedes the previous one: its remaining work may finish,
	but it can no longer emit progress or touch shared results.
	"""
	def __init__(
		self,
		catalog: LocalCatalogProtocol,  # local store
		provider: CanonicalProviderProtocol,  # canonical ids (TMDB)
		ingestion_service: IngestionServiceProtocol,  # full enrichment
		ai_discovery: Optional[AIDiscoveryProtocol] = None,  # None disables the AI path
		cache: Optional[ComprehensiveSearchCacheProtocol] = None,  # exhaustive-search memory
		hint_extractor: Optional[HintExtractorProtocol] = None,  # used when no hints are passed
		merger: Optional[ResultMerger] = None,
		await_enrichment: bool = config.AWAIT_ENRICHMENT,  # final response waits for phase 2
	):
		self.merger = merger or ResultMerger()
		self.local_stage = LocalSearchStage(catalog, self.merger)
		self.verifier = IdentityVerifier(provider)
		self.pipeline = IngestionPipeline(provider, ingestion_service, self.merger)
		self.fallback = FallbackChain(provider, self.pipeline)
		self.ai_discovery = ai_discovery
		self.cache = cache
		self.hint_extractor = hint_extractor
		self.await_enrichment = await_enrichment

		self._generation = 0  # cancellation token source
		self._session: Optional[SearchSession] = None  # the authoritative session
		self._background: Set[asyncio.Task] = set()  # detached cache writes

		# State values for progress indicators
		self.progress = SearchProgress()
		self.verification_progress: Optional[Tuple[int, int]] = None
		self.is_searching = False
		self.is_ai_searching = False
		logger.info(f"[Coordinator] Ready | ai={'on' if ai_discovery else 'off'} | cache={'on' if cache else 'off'}")

	@property
	def current_generation(self) -> int:
		return self._generation

	async def search(
		self,
		query: str,
		hints: Optional[HintSet] = None,
		enable_ai: bool = True,
		on_progress: Optional[ProgressCallback] = None,
	) -> SearchResponse:
		"""
		Run a search. Never raises for collaborator failures;
		returns an empty response with cancelled=True when a newer search supersedes this one.
		"""
		session = self._begin(query)
		self._deliver(session, on_progress, [])  # clear stale results right away
		try:
			return await self._run(session, hints, enable_ai, on_progress)
		except asyncio.CancelledError:
			session.cancelled = True  # pending enrichment must not publish for a dropped caller
			raise
		except Exception as e:
			logger.exception(f"[Coordinator] Search '{query}' failed unexpectedly: {e}")
			self._set_progress(session, ProgressStage.ERROR, message=str(e))
			return SearchResponse.empty(query, session.hints, cancelled=self._is_stale(session))
		finally:
			self._end(session)

	async def drain(self) -> None:
		"""Wait for detached background work (comprehensive-search cache writes)."""
		if self._background:
			await asyncio.gather(*list(self._background), return_exceptions=True)

	# ------------------------------------------------------------------
	# Session lifecycle
	# ------------------------------------------------------------------

	def _begin(self, query: str) -> SearchSession:
		if self._session is not None and not self._session.cancelled:
			logger.info(f"[Coordinator] Superseding session {self._session.generation} ('{self._session.query}')")
			self._session.cancel()
		self._generation += 1
		session = SearchSession(query=query, generation=self._generation)
		self._session = session
		self.is_searching = True
		self.is_ai_searching = False
		self.verification_progress = None
		self.progress = SearchProgress(ProgressStage.SEARCHING_LOCAL)
		return session

	def _end(self, session: SearchSession) -> None:
		if self._session is session:
			self._session = None
			self.is_searching = False
			self.is_ai_searching = False
			self.verification_progress = None

	def _is_stale(self, session: SearchSession) -> bool:
		return session.cancelled or session.generation != self._generation

	def _cancelled(self, session: SearchSession) -> SearchResponse:
		logger.debug(f"[Coordinator] Session {session.generation} ('{session.query}') was superseded")
		return SearchResponse.empty(session.query, session.hints, cancelled=True)

	def _set_progress(self, session: SearchSession, stage: ProgressStage, **fields) -> None:
		if not self._is_stale(session):
			self.progress = SearchProgress(stage, **fields)

	def _deliver(self, session: SearchSession, on_progress: Optional[ProgressCallback], results: List[SearchResult]) -> None:
		if on_progress is None or self._is_stale(session):
			return
		try:
			on_progress(results)
		except Exception as e:
			logger.warning(f"[Coordinator] Progress callback raised: {e}")

	def _publisher(self, on_progress: Optional[ProgressCallback]) -> Callable[[SearchSession], None]:
		"""Emit the session's merged, ranked view; a no-op once the session is stale."""
		def publish(session: SearchSession) -> None:
			if self._is_stale(session):
				return
			self._deliver(session, on_progress, self.merger.merge(session.local_results, session.results))
		return publish

	# ------------------------------------------------------------------
	# Pipeline
	# ------------------------------------------------------------------

	async def _run(
		self,
		session: SearchSession,
		hints: Optional[HintSet],
		enable_ai: bool,
		on_progress: Optional[ProgressCallback],
	) -> SearchResponse:
		query = session.query
		if not query or not query.strip():
			logger.warning("[Coordinator] Empty query; nothing to search")
			self._set_progress(session, ProgressStage.COMPLETE)
			return SearchResponse.empty(query)

		publish = self._publisher(on_progress)
		session.hints = hints if hints is not None else self._extract_hints(query)
		logger.info(f"[Coordinator] Session {session.generation}: '{query}' | hints={session.hints}")

		# 1) Local search, always emitted first
		local = await self.local_stage.run(query, session.hints)
		if self._is_stale(session):
			return self._cancelled(session)
		session.local_results = local
		publish(session)
		self._set_progress(session, ProgressStage.LOCAL_COMPLETE, count=len(local))

		# 2) Decide whether AI discovery is warranted
		use_ai = await self._should_use_ai(session.hints, enable_ai, local)
		if self._is_stale(session):
			return self._cancelled(session)
		logger.info(f"[Coordinator] should_use_ai={use_ai} ({len(local)} local results)")

		cost: Optional[float] = None
		if use_ai:
			if session.hints is None:
				session.hints = HintSet.title_only(query)  # AI still needs something to go on
			verified_ids, cost = await self._discover(session, publish)
			if self._is_stale(session):
				return self._cancelled(session)

			# 3) Nothing ingestible from AI: provider fallback chain
			if not verified_ids:
				self._set_progress(session, ProgressStage.FALLBACK)
				await self.fallback.run(
					session, query, session.hints, publish,
					on_item=lambda i, n: self._set_progress(session, ProgressStage.INGESTING, current=i, total=n),
				)
				if self._is_stale(session):
					return self._cancelled(session)

			if verified_ids is not None:
				self._record_comprehensive_search(session, verified_ids)

		# 4) Let detached enrichment land before the final snapshot
		if self.await_enrichment and session.enrichment_tasks:
			await asyncio.gather(*list(session.enrichment_tasks), return_exceptions=True)
		if self._is_stale(session):
			return self._cancelled(session)

		all_results = self.merger.merge(session.local_results, session.results)
		response = SearchResponse(
			query=query,
			hints=session.hints,
			local_results=list(session.local_results),
			ai_results=list(session.results),
			all_results=all_results,
			newly_ingested_count=session.newly_ingested,
			ai_cost_estimate=cost,
		)
		publish(session)
		self._set_progress(session, ProgressStage.COMPLETE, count=len(all_results), new_count=session.newly_ingested)
		logger.info(
			f"[Coordinator] Session {session.generation} complete | local={len(local)} ai={len(session.results)} "
			f"total={len(all_results)} ingested={session.newly_ingested}"
		)
		return response

	def _extract_hints(self, query: str) -> Optional[HintSet]:
		if self.hint_extractor is None:
			return None
		try:
			return self.hint_extractor.extract(query)
		except Exception as e:
			logger.warning(f"[Coordinator] Hint extraction failed for '{query}': {e}")
			return None

	async def _should_use_ai(self, hints: Optional[HintSet], enable_ai: bool, local: Sequence[SearchResult]) -> bool:
		if not enable_ai:
			return False  # skipping the cache lookup does not change the outcome
		key = hints.comprehensive_key() if hints else None
		if key is not None and await self._has_recent_comprehensive(*key):
			logger.info(f"[Coordinator] Recent comprehensive search for {key[0]}={key[1]}; skipping AI")
			return False
		if hints is not None and hints.has_hints:
			return True
		if not local:
			return True
		if hints is not None and hints.year is not None and not any(r.year == hints.year for r in local):
			return True
		return False

	async def _has_recent_comprehensive(self, search_type: str, value: str) -> bool:
		if self.cache is None:
			return False
		try:
			return await self.cache.has_recent(search_type, value)
		except Exception as e:
			logger.warning(f"[Coordinator] Comprehensive cache lookup failed: {e}")
			return False

	async def _discover(self, session: SearchSession, publish) -> Tuple[Optional[List[int]], Optional[float]]:
		"""
		AI discovery + verification + phase-1 ingestion, one suggestion at a time.
		Returns (verified ids, AI cost in cents); the ids are None when discovery did not complete.
		"""
		if self.ai_discovery is None:
			logger.info("[Coordinator] AI discovery not configured")
			return None, None

		self.is_ai_searching = True
		self._set_progress(session, ProgressStage.SEARCHING_AI)
		try:
			discovery = await self.ai_discovery.discover(session.query, session.hints)
		except Exception as e:
			logger.warning(f"[Coordinator] AI discovery failed: {e}")
			return None, None
		finally:
			if not self._is_stale(session):
				self.is_ai_searching = False
		if self._is_stale(session):
			return None, discovery.cost_cents

		suggestions = discovery.movies
		local_ids = {r.canonical_id for r in session.local_results}
		verified_ids: List[int] = []
		for index, suggestion in enumerate(suggestions, 1):
			if self._is_stale(session):
				break
			self.verification_progress = (index, len(suggestions))
			self._set_progress(session, ProgressStage.INGESTING, current=index, total=len(suggestions))

			verified_id = await self.verifier.verify(suggestion.title, suggestion.year, suggestion.tentative_id)
			if self._is_stale(session):
				break

			if verified_id is None:
				self._surface_unverified(session, suggestion, publish)
				continue

			if verified_id not in verified_ids:
				verified_ids.append(verified_id)
			if verified_id in local_ids:
				continue  # already shown from the local catalog
			# A verified entry outranks an unverified one carrying the same AI id
			session.results[:] = [
				r for r in session.results if r.verified or r.canonical_id != verified_id
			]
			item = IngestionItem(
				canonical_id=verified_id,
				title=suggestion.title,
				year=suggestion.year,
				match_reason=suggestion.reason,
			)
			await self.pipeline.ingest(session, item, publish)

		if not self._is_stale(session):
			self.verification_progress = None
			self._set_progress(session, ProgressStage.AI_COMPLETE, count=len(suggestions), new_count=len(verified_ids))
		logger.info(f"[Coordinator] AI suggested {len(suggestions)} movies, {len(verified_ids)} verified")
		return verified_ids, discovery.cost_cents

	def _surface_unverified(self, session: SearchSession, suggestion, publish) -> None:
		"""Show an unverifiable suggestion under its own AI id; it is never ingested."""
		if suggestion.tentative_id is None:
			logger.debug(f"[Coordinator] Dropping '{suggestion.title}': unverified and no AI id")
			return
		if any(r.canonical_id == suggestion.tentative_id for r in session.local_results + session.results):
			return
		session.results.append(SearchResult(
			canonical_id=suggestion.tentative_id,
			title=suggestion.title,
			source=ResultSource.AI_DISCOVERED,
			year=suggestion.year,
			match_reason=suggestion.reason,
			verified=False,
		))
		publish(session)

	def _record_comprehensive_search(self, session: SearchSession, ids: List[int]) -> None:
		"""Remember a completed AI hint search and every id it verified; failures are only logged."""
		if self.cache is None or session.hints is None or self._is_stale(session):
			return
		key = session.hints.comprehensive_key()
		if key is None:
			return
		task = asyncio.create_task(self._save_comprehensive(key[0], key[1], ids))
		self._background.add(task)
		task.add_done_callback(self._background.discard)

	async def _save_comprehensive(self, search_type: str, value: str, ids: List[int]) -> None:
		try:
			await self.cache.save(search_type, value, ids)
		except Exception as e:
			logger.warning(f"[Coordinator] Could not record comprehensive search {search_type}={value}: {e}")


def default_collaborators(catalog_path: Optional[str] = None) -> dict:
	"""
	Build the reference collaborators from config.
	Returns keyword arguments for SearchCoordinator; they can be shared by many coordinators.
	"""
	# Local imports keep the coordinator usable with injected fakes alone
	from .ai_discovery import AIDiscoveryService
	from .comprehensive_cache import ComprehensiveSearchCache
	from .hint_extractor import HintExtractor
	from .ingestion import CatalogIngestionService
	from .local_catalog import LocalCatalog
	from .tmdb_client import TMDBClient

	catalog = LocalCatalog.load(catalog_path or str(config.CATALOG_PATH))
	provider = TMDBClient()
	return {
		"catalog": catalog,
		"provider": provider,
		"ingestion_service": CatalogIngestionService(provider, catalog),
		"ai_discovery": AIDiscoveryService(),
		"cache": ComprehensiveSearchCache(),
		"hint_extractor": HintExtractor(
			known_actors=catalog.known_actors(),
			known_directors=catalog.known_directors(),
		),
	}
