"""
Shared fakes for the collaborator protocols.
Each fake records its calls so tests can assert on what the pipeline asked for.
"""

import asyncio
from typing import Dict, Iterable, List, Optional

from hintsearch.models import (
	AIDiscoveryResult,
	AISuggestion,
	CatalogMovie,
	CreditEntry,
	MovieDetails,
	PersonCredits,
	ProviderMovie,
	ProviderPerson,
)


class FakeCatalog:
	def __init__(self, movies: Iterable[CatalogMovie] = (), fail: bool = False):
		self.movies = list(movies)
		self.fail = fail
		self.calls: List[tuple] = []

	async def search_by_director(self, name: str) -> List[CatalogMovie]:
		self.calls.append(("director", name))
		if self.fail:
			raise RuntimeError("catalog offline")
		return [m for m in self.movies if m.director and m.director.lower() == name.lower()]

	async def search_by_actor(self, name: str) -> List[CatalogMovie]:
		self.calls.append(("actor", name))
		if self.fail:
			raise RuntimeError("catalog offline")
		return [m for m in self.movies if name.lower() in (a.lower() for a in m.actors)]

	async def search_by_text(self, query: str) -> List[CatalogMovie]:
		self.calls.append(("text", query))
		if self.fail:
			raise RuntimeError("catalog offline")
		q = query.lower()
		return [m for m in self.movies if q in m.title.lower() or m.title.lower() in q]


class FakeProvider:
	"""
	titles: lowercased title -> search hits
	details: id -> MovieDetails (missing ids raise)
	"""

	def __init__(
		self,
		titles: Optional[Dict[str, List[ProviderMovie]]] = None,
		details: Optional[Dict[int, MovieDetails]] = None,
		people: Optional[Dict[str, List[ProviderPerson]]] = None,
		credits: Optional[Dict[int, PersonCredits]] = None,
	):
		self.titles = titles or {}
		self.details = details or {}
		self.people = people or {}
		self.credits = credits or {}
		self.title_calls: List[str] = []
		self.person_calls: List[str] = []
		self.detail_calls: List[int] = []

	async def search_by_title(self, title: str) -> List[ProviderMovie]:
		self.title_calls.append(title)
		return list(self.titles.get(title.lower(), []))

	async def search_by_person(self, name: str) -> List[ProviderPerson]:
		self.person_calls.append(name)
		return list(self.people.get(name.lower(), []))

	async def get_details(self, movie_id: int) -> MovieDetails:
		self.detail_calls.append(movie_id)
		if movie_id not in self.details:
			raise LookupError(f"no details for {movie_id}")
		return self.details[movie_id]

	async def get_person_credits(self, person_id: int) -> PersonCredits:
		return self.credits.get(person_id, PersonCredits())


class FakeAI:
	def __init__(self, suggestions: Iterable[AISuggestion] = (), error: Optional[Exception] = None, cost: float = 0.5):
		self.suggestions = list(suggestions)
		self.error = error
		self.cost = cost
		self.calls: List[tuple] = []
		self.gate: Optional[asyncio.Event] = None

	async def discover(self, query, hints) -> AIDiscoveryResult:
		self.calls.append((query, hints))
		if self.gate is not None:
			await self.gate.wait()
		if self.error is not None:
			raise self.error
		return AIDiscoveryResult(movies=list(self.suggestions), cost_cents=self.cost)


class FakeIngestionService:
	"""Enriches every id with the given ai_score; ids in `failing` raise."""

	def __init__(self, scores: Optional[Dict[int, float]] = None, failing: Iterable[int] = ()):
		self.scores = scores or {}
		self.failing = set(failing)
		self.ingested: List[int] = []
		self.records: Dict[int, CatalogMovie] = {}

	async def ingest(self, movie_id: int) -> None:
		if movie_id in self.failing:
			raise RuntimeError(f"ingest {movie_id} failed")
		self.ingested.append(movie_id)
		self.records[movie_id] = CatalogMovie(
			id=movie_id,
			title=f"Enriched {movie_id}",
			year=2000,
			genres=["Drama"],
			runtime_display="1h 40m",
			ai_score=self.scores.get(movie_id, 7.0),
			vote_average=7.0,
		)

	async def fetch_enriched(self, movie_id: int) -> Optional[CatalogMovie]:
		return self.records.get(movie_id)


class FakeCache:
	def __init__(self, recent: Iterable[tuple] = (), fail: bool = False):
		self.recent = {(t, v.lower()) for t, v in recent}
		self.fail = fail
		self.saved: List[tuple] = []
		self.lookups: List[tuple] = []

	async def has_recent(self, search_type: str, value: str) -> bool:
		self.lookups.append((search_type, value))
		if self.fail:
			raise RuntimeError("cache offline")
		return (search_type, value.lower()) in self.recent

	async def save(self, search_type: str, value: str, movie_ids) -> None:
		self.saved.append((search_type, value, list(movie_ids)))


def movie(id, title, year=None, ai_score=None, director=None, actors=()):
	return CatalogMovie(id=id, title=title, year=year, ai_score=ai_score, director=director, actors=list(actors))


def hit(id, title, release_date=None, popularity=None):
	return ProviderMovie(id=id, title=title, release_date=release_date, popularity=popularity)


def details(id, title, release_date=None, rating=None):
	return MovieDetails(id=id, title=title, release_date=release_date, rating=rating, genres=["Drama"], runtime_minutes=100)


def credit(id, title, release_date=None, popularity=None):
	return CreditEntry(id=id, title=title, release_date=release_date, popularity=popularity)
