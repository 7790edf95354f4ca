"""
TMDB client module.
Canonical metadata provider backed by the TMDB v3 REST API; the source of truth for movie ids.
Blocking HTTP calls run in worker threads so every request is an await point.
"""

import asyncio  # run blocking requests off the event loop
import time  # request latency
from typing import Any, Dict, List, Optional  # type hints

import requests  # HTTP client

from loguru import logger  # console logging

from . import config
from .errors import ProviderError
from .models import (
	CreditEntry,
	MovieCredits,
	MovieDetails,
	PersonCredits,
	ProviderMovie,
	ProviderPerson,
)


def build_image_url(path: Optional[str], size: str = 'w500') -> Optional[str]:
	"""Full image URL for a TMDB image path, or None when there is no image."""
	if not path:
		return None
	return f"{config.TMDB_IMAGE_BASE_URL}/{size}{path}"


def format_runtime(minutes: Optional[int]) -> Optional[str]:
	"""148 -> "2h 28m", 120 -> "2h", 45 -> "45m"."""
	if not minutes:
		return None
	hours, mins = divmod(int(minutes), 60)
	if hours and mins:
		return f"{hours}h {mins}m"
	if hours:
		return f"{hours}h"
	return f"{mins}m"


class TMDBClient:
	"""
	Thin TMDB wrapper returning the project's record types.
	"""

	def __init__(
		self,
		api_key: str = config.TMDB_API_KEY,
		base_url: str = config.TMDB_BASE_URL,
		timeout: float = config.HTTP_TIMEOUT_S,
		session: Optional[requests.Session] = None,
	):
		self.api_key = api_key
		self.base_url = base_url.rstrip('/')
		self.timeout = timeout
		self.session = session or requests.Session()  # connection reuse

	def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
		"""Blocking GET returning parsed JSON; raises ProviderError on any failure."""
		if not self.api_key:
			raise ProviderError("TMDB_API_KEY is not configured")
		query = {'api_key': self.api_key, 'language': config.TMDB_LANGUAGE}
		query.update(params or {})
		start = time.time()
		try:
			response = self.session.get(f"{self.base_url}{endpoint}", params=query, timeout=self.timeout)
		except requests.RequestException as e:
			logger.warning(f"[TMDB] GET {endpoint} failed after {(time.time() - start) * 1000:.0f} ms: {e}")
			raise ProviderError(f"TMDB request failed: {e}") from e
		elapsed_ms = (time.time() - start) * 1000
		if not response.ok:
			logger.warning(f"[TMDB] GET {endpoint} -> HTTP {response.status_code} in {elapsed_ms:.0f} ms")
			raise ProviderError(f"TMDB error: {response.status_code} {response.reason}", status_code=response.status_code)
		try:
			data = response.json()
		except ValueError as e:
			raise ProviderError(f"TMDB returned invalid JSON for {endpoint}") from e
		logger.debug(f"[TMDB] GET {endpoint} -> {response.status_code} in {elapsed_ms:.0f} ms")
		return data

	async def _aget(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
		return await asyncio.to_thread(self._get, endpoint, params)

	async def search_by_title(self, title: str) -> List[ProviderMovie]:
		"""Search movies by title; provider order is preserved."""
		data = await self._aget('/search/movie', {'query': title, 'page': 1, 'include_adult': 'false'})
		results = [
			ProviderMovie(
				id=int(item['id']),
				title=item.get('title') or item.get('original_title') or '',
				release_date=item.get('release_date') or None,
				popularity=item.get('popularity'),
				vote_average=item.get('vote_average'),
			)
			for item in data.get('results', [])
			if item.get('id') is not None
		]
		logger.debug(f"[TMDB] search_by_title '{title}' -> {len(results)} results")
		return results

	async def search_by_person(self, name: str) -> List[ProviderPerson]:
		data = await self._aget('/search/person', {'query': name, 'page': 1, 'include_adult': 'false'})
		return [
			ProviderPerson(
				id=int(item['id']),
				name=item.get('name', ''),
				known_for_department=item.get('known_for_department'),
			)
			for item in data.get('results', [])
			if item.get('id') is not None
		]

	async def get_details(self, movie_id: int) -> MovieDetails:
		data = await self._aget(f'/movie/{movie_id}')
		return MovieDetails(
			id=int(data.get('id', movie_id)),
			title=data.get('title') or data.get('original_title') or '',
			poster_path=data.get('poster_path'),
			release_date=data.get('release_date') or None,
			genres=[g['name'] for g in data.get('genres', []) if g.get('name')],
			runtime_minutes=data.get('runtime') or None,
			rating=data.get('vote_average'),
			popularity=data.get('popularity'),
		)

	async def get_person_credits(self, person_id: int) -> PersonCredits:
		"""Combined movie filmography (cast and crew) of a person."""
		data = await self._aget(f'/person/{person_id}/movie_credits')
		return PersonCredits(
			cast=[self._credit_entry(item) for item in data.get('cast', []) if item.get('id') is not None],
			crew=[self._credit_entry(item) for item in data.get('crew', []) if item.get('id') is not None],
		)

	async def get_movie_credits(self, movie_id: int, max_cast: int = 15) -> MovieCredits:
		"""Directors and top-billed cast of a movie."""
		data = await self._aget(f'/movie/{movie_id}/credits')
		cast = sorted(data.get('cast', []), key=lambda c: c.get('order', 999))
		return MovieCredits(
			directors=[c['name'] for c in data.get('crew', []) if c.get('job') == 'Director' and c.get('name')],
			cast=[c['name'] for c in cast[:max_cast] if c.get('name')],
		)

	@staticmethod
	def _credit_entry(item: Dict[str, Any]) -> CreditEntry:
		return CreditEntry(
			id=int(item['id']),
			title=item.get('title') or item.get('original_title') or '',
			release_date=item.get('release_date') or None,
			popularity=item.get('popularity'),
		)
