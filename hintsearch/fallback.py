"""
Fallback chain.
When AI discovery yields nothing ingestible: search the provider by title, then by the actor's filmography.
"""

import re
from typing import Callable, List, Optional

from loguru import logger

from . import config
from .ingestion import IngestionItem, IngestionPipeline, Publisher
from .interfaces import CanonicalProviderProtocol
from .models import CreditEntry, HintSet, SearchResult, SearchSession, year_from_date

TITLE_FALLBACK_REASON = "TMDB fallback search"
ACTOR_FALLBACK_PREFIX = "TMDB actor fallback: "

_GENERIC_WORDS = re.compile(r"\b(?:the movie|movie|film)\b", re.I)


def strip_generic_words(query: str) -> str:
	"""'the movie oldboy' -> 'oldboy'."""
	return " ".join(_GENERIC_WORDS.sub(" ", query).split())


def rank_filmography(entries: List[CreditEntry], limit: int) -> List[CreditEntry]:
	"""Dedup by id, then popularity desc with release date desc as tie-break."""
	unique = {}
	for entry in entries:
		unique.setdefault(entry.id, entry)
	ranked = sorted(
		unique.values(),
		key=lambda e: (e.popularity or 0.0, e.release_date or ""),
		reverse=True,
	)
	return ranked[:limit]


class FallbackChain:
	"""
	Each provider call is independently fault tolerant: a failing tier logs and falls through.
	"""

	def __init__(
		self,
		provider: CanonicalProviderProtocol,
		pipeline: IngestionPipeline,
		title_limit: int = config.TITLE_FALLBACK_LIMIT,
		actor_limit: int = config.ACTOR_FALLBACK_LIMIT,
	):
		self.provider = provider
		self.pipeline = pipeline
		self.title_limit = title_limit
		self.actor_limit = actor_limit

	async def run(
		self,
		session: SearchSession,
		query: str,
		hints: Optional[HintSet],
		publish: Publisher,
		on_item: Optional[Callable[[int, int], None]] = None,
	) -> List[SearchResult]:
		shown, candidates = await self._title_fallback(session, query, publish, on_item)
		if candidates or session.cancelled:
			return shown
		if hints is None or not hints.primary_actor:
			logger.info(f"[Fallback] Title fallback found nothing for '{query}' and there is no actor hint")
			return shown
		return shown + await self._actor_fallback(session, hints.primary_actor, publish, on_item)

	async def _title_fallback(self, session, query, publish, on_item):
		title = strip_generic_words(query)
		if not title:
			return [], 0
		try:
			candidates = await self.provider.search_by_title(title)
		except Exception as e:
			logger.warning(f"[Fallback] Title search for '{title}' failed: {e}")
			return [], 0
		top = candidates[:self.title_limit]
		logger.info(f"[Fallback] Title search '{title}' -> {len(candidates)} results, ingesting {len(top)}")
		items = [
			IngestionItem(canonical_id=c.id, title=c.title, year=c.year, match_reason=TITLE_FALLBACK_REASON)
			for c in top
		]
		shown = await self.pipeline.ingest_all(session, items, publish, on_item)
		return shown, len(top)

	async def _actor_fallback(self, session, actor, publish, on_item) -> List[SearchResult]:
		try:
			people = await self.provider.search_by_person(actor)
		except Exception as e:
			logger.warning(f"[Fallback] Person search for '{actor}' failed: {e}")
			return []
		if not people:
			logger.info(f"[Fallback] No person found for '{actor}'")
			return []
		person = people[0]
		if session.cancelled:
			return []

		try:
			credits = await self.provider.get_person_credits(person.id)
		except Exception as e:
			logger.warning(f"[Fallback] Credits for {person.name} ({person.id}) failed: {e}")
			return []

		top = rank_filmography(credits.cast + credits.crew, self.actor_limit)
		logger.info(f"[Fallback] {person.name}: {len(credits.cast)} cast + {len(credits.crew)} crew credits, ingesting {len(top)}")
		reason = f"{ACTOR_FALLBACK_PREFIX}{actor}"
		items = [
			IngestionItem(canonical_id=e.id, title=e.title, year=year_from_date(e.release_date), match_reason=reason)
			for e in top
		]
		return await self.pipeline.ingest_all(session, items, publish, on_item)
