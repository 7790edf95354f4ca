"""
Tests for the TMDB client: request shape, record mapping and error translation.
"""

import asyncio

import pytest
import requests

from hintsearch.errors import ProviderError
from hintsearch.tmdb_client import TMDBClient, build_image_url, format_runtime


class FakeResponse:
	def __init__(self, payload, status_code=200):
		self._payload = payload
		self.status_code = status_code
		self.ok = status_code < 400
		self.reason = "OK" if self.ok else "Not Found"

	def json(self):
		return self._payload


class FakeSession:
	def __init__(self, routes):
		self.routes = routes  # path suffix -> payload or Exception
		self.requests = []

	def get(self, url, params=None, timeout=None):
		self.requests.append((url, params))
		for suffix, payload in self.routes.items():
			if url.endswith(suffix):
				if isinstance(payload, Exception):
					raise payload
				if isinstance(payload, FakeResponse):
					return payload
				return FakeResponse(payload)
		return FakeResponse({}, 404)


def client(routes, api_key="key"):
	return TMDBClient(api_key=api_key, base_url="https://tmdb.example/3", session=FakeSession(routes))


def test_format_runtime_and_image_url():
	assert format_runtime(148) == "2h 28m"
	assert format_runtime(120) == "2h"
	assert format_runtime(45) == "45m"
	assert format_runtime(None) is None
	assert build_image_url(None) is None
	assert build_image_url("/abc.jpg").endswith("/w500/abc.jpg")


def test_search_by_title_maps_results():
	tmdb = client({"/search/movie": {"results": [
		{"id": 670, "title": "Oldboy", "release_date": "2003-11-21", "popularity": 30.1},
		{"id": 87516, "original_title": "Oldboy", "release_date": ""},
		{"title": "No id"},
	]}})
	results = asyncio.run(tmdb.search_by_title("Oldboy"))
	assert [r.id for r in results] == [670, 87516]
	assert results[0].year == 2003
	assert results[1].release_date is None
	url, params = tmdb.session.requests[0]
	assert url == "https://tmdb.example/3/search/movie"
	assert params["query"] == "Oldboy"
	assert params["api_key"] == "key"


def test_details_and_credits():
	tmdb = client({
		"/movie/670": {"id": 670, "title": "Oldboy", "runtime": 120, "genres": [{"id": 18, "name": "Drama"}], "vote_average": 8.3},
		"/movie/670/credits": {
			"cast": [{"name": "Yoo Ji-tae", "order": 1}, {"name": "Choi Min-sik", "order": 0}],
			"crew": [{"name": "Park Chan-wook", "job": "Director"}, {"name": "Someone", "job": "Editor"}],
		},
		"/person/31/movie_credits": {
			"cast": [{"id": 13, "title": "Forrest Gump", "release_date": "1994-07-06", "popularity": 50.0}],
			"crew": [{"id": 9, "title": "That Thing You Do!"}],
		},
	})
	movie = asyncio.run(tmdb.get_details(670))
	assert movie.genres == ["Drama"]
	assert movie.runtime_minutes == 120
	assert movie.rating == 8.3

	credits = asyncio.run(tmdb.get_movie_credits(670))
	assert credits.directors == ["Park Chan-wook"]
	assert credits.cast == ["Choi Min-sik", "Yoo Ji-tae"]

	filmography = asyncio.run(tmdb.get_person_credits(31))
	assert [e.id for e in filmography.cast] == [13]
	assert [e.id for e in filmography.crew] == [9]


def test_errors_become_provider_errors():
	with pytest.raises(ProviderError):
		asyncio.run(client({}, api_key="").search_by_title("Oldboy"))

	with pytest.raises(ProviderError) as exc:
		asyncio.run(client({}).get_details(1))
	assert exc.value.status_code == 404

	with pytest.raises(ProviderError):
		asyncio.run(client({"/search/person": requests.Timeout("slow")}).search_by_person("Tom Hanks"))
