"""
Unit tests for the fallback chain: title search first, actor filmography only when the title tier finds nothing.
"""

import asyncio

from conftest import FakeIngestionService, FakeProvider, credit, details, hit

from hintsearch.fallback import (
	ACTOR_FALLBACK_PREFIX,
	TITLE_FALLBACK_REASON,
	FallbackChain,
	rank_filmography,
	strip_generic_words,
)
from hintsearch.ingestion import IngestionPipeline
from hintsearch.models import HintSet, PersonCredits, ProviderPerson, SearchSession


def run_chain(provider, query, hints, title_limit=5, actor_limit=10):
	pipeline = IngestionPipeline(provider, FakeIngestionService())
	chain = FallbackChain(provider, pipeline, title_limit=title_limit, actor_limit=actor_limit)

	async def scenario():
		session = SearchSession(query, 1)
		shown = await chain.run(session, query, hints, lambda s: None)
		await asyncio.gather(*list(session.enrichment_tasks), return_exceptions=True)
		return session, shown

	return asyncio.run(scenario())


def test_strip_generic_words():
	assert strip_generic_words("the movie oldboy") == "oldboy"
	assert strip_generic_words("Oldboy film") == "Oldboy"
	assert strip_generic_words("movie") == ""


def test_rank_filmography_by_popularity_then_date():
	entries = [
		credit(1, "A", "1990-01-01", 10.0),
		credit(2, "B", "2001-01-01", 50.0),
		credit(3, "C", "2010-01-01", 10.0),
		credit(2, "B (crew)", "2001-01-01", 50.0),
		credit(4, "D", None, None),
	]
	ranked = rank_filmography(entries, 3)
	assert [e.id for e in ranked] == [2, 3, 1]


def test_title_fallback_ingests_top_results():
	titles = {"oldboy": [hit(i, f"Oldboy {i}", "2003-01-01") for i in range(1, 9)]}
	provider = FakeProvider(titles=titles, details={1: details(1, "Oldboy", "2003-11-21")})
	session, shown = run_chain(provider, "the movie oldboy", HintSet(actors=("Choi Min-sik",)))

	assert provider.title_calls == ["oldboy"]
	assert provider.person_calls == []  # title tier found candidates
	assert [r.canonical_id for r in shown] == [1, 2, 3, 4, 5]
	assert all(r.match_reason == TITLE_FALLBACK_REASON for r in shown)


def test_actor_fallback_when_title_search_is_empty():
	cast = [credit(i, f"Hanks {i}", f"{1980 + i}-06-01", float(i)) for i in range(1, 15)]
	provider = FakeProvider(
		people={"tom hanks": [ProviderPerson(31, "Tom Hanks", "Acting"), ProviderPerson(99, "Tom Hanks Jr")]},
		credits={31: PersonCredits(cast=cast, crew=[credit(14, "Hanks 14", "1994-06-01", 14.0)])},
	)
	session, shown = run_chain(provider, "that movie with tom hanks", HintSet(actors=("Tom Hanks",)))

	assert provider.person_calls == ["Tom Hanks"]
	assert [r.canonical_id for r in shown] == list(range(14, 4, -1))
	assert all(r.match_reason == f"{ACTOR_FALLBACK_PREFIX}Tom Hanks" for r in shown)
	assert shown[0].year == 1994  # from the credit's release date


def test_no_actor_hint_means_no_person_search():
	provider = FakeProvider()
	session, shown = run_chain(provider, "something obscure", HintSet(director="Nobody"))
	assert shown == []
	assert provider.person_calls == []


def test_failing_title_search_still_tries_actor():
	class Flaky(FakeProvider):
		async def search_by_title(self, title):
			raise ConnectionError("timeout")

	provider = Flaky(
		people={"meg ryan": [ProviderPerson(5344, "Meg Ryan")]},
		credits={5344: PersonCredits(cast=[credit(858, "Sleepless in Seattle", "1993-06-24", 20.0)])},
	)
	session, shown = run_chain(provider, "meg ryan romcom", HintSet(actors=("Meg Ryan",)))
	assert [r.canonical_id for r in shown] == [858]


def test_unknown_person_yields_nothing():
	provider = FakeProvider()
	session, shown = run_chain(provider, "xyz", HintSet(actors=("Nobody Known",)))
	assert shown == []
	assert provider.person_calls == ["Nobody Known"]
