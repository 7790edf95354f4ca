"""Protocol definitions for the collaborators consumed by the search core."""

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from .models import (
	AIDiscoveryResult,
	CatalogMovie,
	HintSet,
	MovieDetails,
	PersonCredits,
	ProviderMovie,
	ProviderPerson,
)


@runtime_checkable
class HintExtractorProtocol(Protocol):
	"""Parses free text into structured hints."""

	def extract(self, text: str) -> Optional[HintSet]:
		...


@runtime_checkable
class LocalCatalogProtocol(Protocol):
	"""Local store of lightweight movie records."""

	async def search_by_director(self, name: str) -> List[CatalogMovie]:
		...

	async def search_by_actor(self, name: str) -> List[CatalogMovie]:
		...

	async def search_by_text(self, query: str) -> List[CatalogMovie]:
		...


@runtime_checkable
class AIDiscoveryProtocol(Protocol):
	"""Suggests movies for a query; the identifiers it returns are untrusted."""

	async def discover(self, query: str, hints: Optional[HintSet]) -> AIDiscoveryResult:
		...


@runtime_checkable
class CanonicalProviderProtocol(Protocol):
	"""Source of truth for movie identifiers."""

	async def search_by_title(self, title: str) -> List[ProviderMovie]:
		...

	async def search_by_person(self, name: str) -> List[ProviderPerson]:
		...

	async def get_details(self, movie_id: int) -> MovieDetails:
		...

	async def get_person_credits(self, person_id: int) -> PersonCredits:
		...


@runtime_checkable
class IngestionServiceProtocol(Protocol):
	"""Persists full movie data for a verified identifier."""

	async def ingest(self, movie_id: int) -> None:
		...

	async def fetch_enriched(self, movie_id: int) -> Optional[CatalogMovie]:
		...


@runtime_checkable
class ComprehensiveSearchCacheProtocol(Protocol):
	"""Remembers exhaustive AI searches per (hint type, hint value)."""

	async def has_recent(self, search_type: str, value: str) -> bool:
		...

	async def save(self, search_type: str, value: str, movie_ids: Sequence[int]) -> None:
		...
