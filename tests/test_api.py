"""
Tests for the FastAPI surface, with the coordinator factory swapped for fakes.
"""

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

import api
from conftest import FakeAI, FakeCatalog, FakeIngestionService, FakeProvider, details, hit, movie
from hintsearch.coordinator import SearchCoordinator
from hintsearch.hint_extractor import HintExtractor
from hintsearch.models import AISuggestion


@pytest.fixture
def client(monkeypatch):
	catalog = FakeCatalog([movie(27205, "Inception", 2010, 8.2, director="Christopher Nolan")])
	provider = FakeProvider(
		titles={"interstellar": [hit(157336, "Interstellar", "2014-11-05")]},
		details={157336: details(157336, "Interstellar", "2014-11-05")},
	)
	ai = FakeAI([AISuggestion("Interstellar", 2014, 157336, reason="Also Nolan")])

	def factory():
		return SearchCoordinator(
			catalog=catalog,
			provider=provider,
			ingestion_service=FakeIngestionService(scores={157336: 8.7}),
			ai_discovery=ai,
			hint_extractor=HintExtractor(known_directors=["christopher nolan"]),
		)

	monkeypatch.setattr(api, "FACTORY", factory)
	monkeypatch.setattr(api, "CATALOG_SIZE", 1)
	return TestClient(api.app)


def test_health(client):
	body = client.get("/health").json()
	assert body["status"] == "ok"
	assert body["engine_ready"] is True
	assert body["catalog_size"] == 1


def test_search_local_only(client):
	response = client.get("/search", params={"q": "Inception"})
	assert response.status_code == 200
	body = response.json()
	assert [r["id"] for r in body["results"]] == [27205]
	assert body["results"][0]["source"] == "local"
	assert body["ai_results"] == []
	assert body["cancelled"] is False


def test_search_with_director_hint_ingests(client):
	body = client.get("/search", params={"q": "movies directed by christopher nolan"}).json()

	assert [r["id"] for r in body["results"]] == [157336, 27205]
	assert body["results"][0]["source"] == "ingested"
	assert body["results"][0]["match_reason"] == "Also Nolan"
	assert body["hints"]["director"] == "Christopher Nolan"
	assert body["newly_ingested_count"] == 1


def test_search_with_ai_disabled(client):
	body = client.get("/search", params={"q": "nothing here", "enable_ai": "false"}).json()
	assert body["results"] == []


def test_stream_emits_progress_then_final(client):
	response = client.get("/search/stream", params={"q": "Inception"})
	assert response.status_code == 200
	assert response.headers["content-type"].startswith("application/x-ndjson")
	lines = [json.loads(line) for line in response.text.splitlines() if line.strip()]

	assert [line["type"] for line in lines] == ["progress", "progress", "progress", "final"]
	assert lines[0]["results"] == []
	assert [r["id"] for r in lines[1]["results"]] == [27205]
	assert [r["id"] for r in lines[-1]["response"]["results"]] == [27205]


def test_search_before_startup_returns_empty(monkeypatch):
	monkeypatch.setattr(api, "FACTORY", None)
	body = TestClient(api.app).get("/search", params={"q": "Inception"}).json()
	assert body["results"] == []


def test_stream_disconnect_cancels_the_search(monkeypatch):
	ai = FakeAI([AISuggestion("Interstellar", 2014, 157336)])
	coordinator = SearchCoordinator(
		catalog=FakeCatalog([]),
		provider=FakeProvider(),
		ingestion_service=FakeIngestionService(),
		ai_discovery=ai,
	)
	monkeypatch.setattr(api, "FACTORY", lambda: coordinator)

	async def scenario():
		ai.gate = asyncio.Event()  # never opened: the search stays inside AI discovery
		response = await api.search_stream(q="space movie", enable_ai=True)
		body = response.body_iterator
		first = json.loads(await body.__anext__())
		while not ai.calls:
			await asyncio.sleep(0)
		await body.aclose()
		return first

	first = asyncio.run(scenario())

	assert first == {"type": "progress", "results": []}
	assert len(ai.calls) == 1
	assert not coordinator.is_searching
