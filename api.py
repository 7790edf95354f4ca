"""
FastAPI server exposing the hint-aware discovery API.
Endpoints:
- GET /health: basic health check
- GET /search?q=...&enable_ai=true: runs a full search and returns the final response
- GET /search/stream?q=...: streams every progress snapshot as NDJSON, then the final response

Run: python api.py  (or: uvicorn api:app --reload)

Startup loads the local catalog and builds the reference collaborators once;
each request gets its own SearchCoordinator so concurrent callers never supersede each other.
"""

# Import standard libraries for scheduling and timing
import asyncio  # queue between the coordinator callback and the stream
import json  # NDJSON lines
import time  # measure startup and request latencies
from typing import Any, Callable, Dict, List, Optional  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for response models
from fastapi import FastAPI, Query  # FastAPI primitives
from fastapi.responses import StreamingResponse  # chunked NDJSON output
from pydantic import BaseModel  # response schema definitions

# Import our internal modules
from hintsearch import config
from hintsearch.coordinator import SearchCoordinator, default_collaborators
from hintsearch.models import HintSet, SearchResponse, SearchResult

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger

# Instantiate the FastAPI application with metadata
app = FastAPI(title="Hint Search API", version="1.0.0")  # web app

# Globals that hold the coordinator factory and measured startup time
FACTORY: Optional[Callable[[], SearchCoordinator]] = None  # builds one coordinator per request
CATALOG_SIZE: int = 0  # movies in the local catalog at startup
STARTUP_TIME_S: float = 0.0  # measures how long startup took


# Pydantic model that describes a single result in responses
class ResultOut(BaseModel):
	id: int  # canonical (TMDB) id
	title: str  # display title
	source: str  # local | ai | ingested
	year: Optional[int] = None  # release year
	poster_url: Optional[str] = None  # optional poster image URL
	genres: Optional[List[str]] = None  # genre names
	runtime: Optional[str] = None  # e.g. "2h 28m"
	match_reason: Optional[str] = None  # why it matched
	ai_score: Optional[float] = None  # ranking signal
	vote_average: Optional[float] = None  # provider rating
	verified: bool = True  # False for unverifiable AI suggestions


# Pydantic model for the hints that drove the search
class HintsOut(BaseModel):
	director: Optional[str] = None
	actors: List[str] = []
	author: Optional[str] = None
	year: Optional[int] = None
	title_likely: Optional[str] = None


# Pydantic model for the complete search response payload
class SearchResponseOut(BaseModel):
	query: str  # original query string
	hints: Optional[HintsOut] = None  # extracted or supplied hints
	elapsed_ms: float  # server-side search time in ms
	local_results: List[ResultOut]
	ai_results: List[ResultOut]
	results: List[ResultOut]  # merged, deduplicated and ranked
	newly_ingested_count: int
	ai_cost_cents: Optional[float] = None
	cancelled: bool = False


def result_out(r: SearchResult) -> ResultOut:
	return ResultOut(
		id=r.canonical_id,
		title=r.title,
		source=r.source.value,
		year=r.year,
		poster_url=r.poster_url,
		genres=r.genres,
		runtime=r.runtime_display,
		match_reason=r.match_reason,
		ai_score=r.ai_score,
		vote_average=r.vote_average,
		verified=r.verified,
	)


def hints_out(h: Optional[HintSet]) -> Optional[HintsOut]:
	if h is None:
		return None
	return HintsOut(
		director=h.director,
		actors=list(h.actors),
		author=h.author,
		year=h.year,
		title_likely=h.title_likely,
	)


def response_out(resp: SearchResponse, elapsed_ms: float) -> SearchResponseOut:
	return SearchResponseOut(
		query=resp.query,
		hints=hints_out(resp.hints),
		elapsed_ms=round(elapsed_ms, 2),
		local_results=[result_out(r) for r in resp.local_results],
		ai_results=[result_out(r) for r in resp.ai_results],
		results=[result_out(r) for r in resp.all_results],
		newly_ingested_count=resp.newly_ingested_count,
		ai_cost_cents=resp.ai_cost_estimate,
		cancelled=resp.cancelled,
	)


# FastAPI startup hook to build the collaborators once
@app.on_event("startup")
async def startup_event():
	"""Load the catalog, build collaborators and log how long it took."""
	global FACTORY, CATALOG_SIZE, STARTUP_TIME_S  # refer to module-level globals
	start = time.time()  # start timer for startup latency
	config.configure_logging()

	logger.info("[API] Startup: loading catalog and building collaborators...")  # log intent
	collaborators = default_collaborators()
	CATALOG_SIZE = collaborators["catalog"].size()
	FACTORY = lambda: SearchCoordinator(**collaborators)  # noqa: E731

	STARTUP_TIME_S = time.time() - start  # elapsed seconds
	logger.info(f"[API] Startup complete in {STARTUP_TIME_S:.2f}s with {CATALOG_SIZE} local movies.")  # summary log


# Simple health endpoint for readiness checks
@app.get("/health")
async def health():
	"""Return minimal health info for liveness/readiness probes."""
	return {
		"status": "ok",  # constant indicator
		"engine_ready": FACTORY is not None,  # True if collaborators were built
		"catalog_size": CATALOG_SIZE,
		"startup_seconds": round(STARTUP_TIME_S, 2)  # startup latency
	}


# Main search endpoint that accepts a free-text query
@app.get("/search", response_model=SearchResponseOut)
async def search(
	q: str = Query(..., description="Natural language movie query"),
	enable_ai: bool = Query(True, description="Allow AI discovery and provider fallback"),
):
	"""Run a full discovery search and return the final merged response."""
	if FACTORY is None:  # collaborators must be ready to serve
		logger.warning("[API] Search requested but engine not initialized")  # guard log
		return response_out(SearchResponse.empty(q), 0.0)

	start = time.time()  # start timer
	logger.debug(f"[API] /search q='{q}' enable_ai={enable_ai}")  # debug log of input

	coordinator = FACTORY()
	resp = await coordinator.search(q, enable_ai=enable_ai)
	await coordinator.drain()  # background cache writes finish within the request
	elapsed_ms = (time.time() - start) * 1000  # compute ms
	logger.info(f"[API] /search served {len(resp.all_results)} results in {elapsed_ms:.2f} ms")  # summary

	return response_out(resp, elapsed_ms)


@app.get("/search/stream")
async def search_stream(
	q: str = Query(..., description="Natural language movie query"),
	enable_ai: bool = Query(True, description="Allow AI discovery and provider fallback"),
):
	"""
	Stream progress as newline-delimited JSON:
	{"type": "progress", "results": [...]} for every emission, then {"type": "final", "response": {...}}.
	"""
	async def events():
		start = time.time()
		if FACTORY is None:
			logger.warning("[API] Stream requested but engine not initialized")
			yield _line({"type": "final", "response": response_out(SearchResponse.empty(q), 0.0).model_dump(mode="json")})
			return

		coordinator = FACTORY()
		queue: asyncio.Queue = asyncio.Queue()
		task = asyncio.create_task(
			coordinator.search(q, enable_ai=enable_ai, on_progress=lambda results: queue.put_nowait(list(results)))
		)
		task.add_done_callback(lambda _: queue.put_nowait(None))  # end-of-stream marker

		emitted = 0
		try:
			while True:
				snapshot = await queue.get()
				if snapshot is None:
					break
				emitted += 1
				yield _line({"type": "progress", "results": [result_out(r).model_dump(mode="json") for r in snapshot]})
		finally:
			if not task.done():  # client went away mid-search
				logger.info(f"[API] /search/stream client disconnected; cancelling search for q='{q}'")
				task.cancel()
				await asyncio.gather(task, return_exceptions=True)

		resp = task.result()
		await coordinator.drain()
		elapsed_ms = (time.time() - start) * 1000
		logger.info(f"[API] /search/stream sent {emitted} snapshots and {len(resp.all_results)} results in {elapsed_ms:.2f} ms")
		yield _line({"type": "final", "response": response_out(resp, elapsed_ms).model_dump(mode="json")})

	return StreamingResponse(events(), media_type="application/x-ndjson")


def _line(payload: Dict[str, Any]) -> str:
	return json.dumps(payload) + "\n"


if __name__ == '__main__':
	import uvicorn  # ASGI server

	uvicorn.run("api:app", host="0.0.0.0", port=8000)
