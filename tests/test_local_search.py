"""
Unit tests for LocalSearchStage: hint priority, match reasons and the single text fallback.
"""

import asyncio

from conftest import FakeCatalog, movie

from hintsearch.local_search import TEXT_FALLBACK_REASON, LocalSearchStage
from hintsearch.models import HintSet, ResultSource


def run(catalog, query, hints):
	return asyncio.run(LocalSearchStage(catalog).run(query, hints))


def test_director_tier_wins_over_actor():
	catalog = FakeCatalog([
		movie(1, "Get Out", 2017, 7.7, director="Jordan Peele", actors=["Daniel Kaluuya"]),
		movie(2, "Nope", 2022, 6.9, director="Jordan Peele", actors=["Daniel Kaluuya"]),
	])
	hints = HintSet(director="Jordan Peele", actors=("Daniel Kaluuya",), year=2017)
	results = run(catalog, "jordan peele 2017", hints)

	assert catalog.calls == [("director", "Jordan Peele")]
	assert [r.canonical_id for r in results] == [1, 2]
	assert results[0].match_reason == "Director + year match"
	assert results[1].match_reason == "Director match"
	assert all(r.source == ResultSource.LOCAL for r in results)


def test_first_actor_is_used():
	catalog = FakeCatalog([movie(10, "Big", 1988, 7.3, actors=["Tom Hanks"])])
	results = run(catalog, "tom hanks movie", HintSet(actors=("Tom Hanks", "Meg Ryan")))
	assert catalog.calls == [("actor", "Tom Hanks")]
	assert results[0].match_reason == "Actor match"


def test_people_tier_falls_back_to_text_once():
	catalog = FakeCatalog([movie(5, "Us", 2019, 6.8)])
	hints = HintSet(director="Jordan Peele", title_likely="Us")
	results = run(catalog, "us by jordan peele", hints)

	assert catalog.calls == [("director", "Jordan Peele"), ("text", "Us")]
	assert [r.canonical_id for r in results] == [5]
	assert results[0].match_reason == TEXT_FALLBACK_REASON


def test_director_hint_with_nothing_anywhere():
	catalog = FakeCatalog([])
	results = run(catalog, "movies directed by jordan peele", HintSet(director="Jordan Peele"))
	assert results == []
	assert [c[0] for c in catalog.calls] == ["director", "text"]


def test_text_search_without_hints():
	catalog = FakeCatalog([movie(27205, "Inception", 2010, 8.2)])
	results = run(catalog, "Inception", None)
	assert catalog.calls == [("text", "Inception")]
	assert results[0].canonical_id == 27205
	assert results[0].match_reason is None


def test_year_match_reason_for_text_tier():
	catalog = FakeCatalog([movie(1, "Heat", 1995, 8.3), movie(2, "Heat Wave", 2001, 5.0)])
	results = run(catalog, "heat", HintSet(year=1995, title_likely="heat"))
	reasons = {r.canonical_id: r.match_reason for r in results}
	assert reasons == {1: "Year match", 2: None}


def test_results_sorted_and_deduplicated():
	catalog = FakeCatalog([movie(1, "Alien", 1979, 8.0), movie(1, "Alien", 1979, 8.0), movie(2, "Aliens", 1986, 8.4)])
	results = run(catalog, "alien", None)
	assert [r.canonical_id for r in results] == [2, 1]


def test_catalog_failure_is_empty_result():
	results = run(FakeCatalog(fail=True), "anything", HintSet(actors=("Someone",)))
	assert results == []
