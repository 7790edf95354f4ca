"""
AI discovery module.
Asks an OpenAI-compatible chat-completions endpoint for movies matching a query and its hints.
Tracks token cost against a daily budget; returned TMDB ids are suggestions only.
"""

import asyncio  # run blocking requests off the event loop
import json  # decode the model's JSON payload
import threading  # guard the budget ledger
import time  # response latency
from datetime import date, datetime, timezone  # daily budget window
from typing import List, Optional, Tuple  # type hints

import requests  # HTTP client
from pydantic import BaseModel, Field, ValidationError  # payload validation

from loguru import logger  # console logging

from . import config
from .errors import AIDiscoveryError
from .models import AIDiscoveryResult, AISuggestion, HintSet


SYSTEM_PROMPT = """You are a movie database expert. Your job is to identify specific movies based on user queries that may include:
- Actor names (e.g., "the Batman movie with Michael Keaton")
- Director names (e.g., "movies by Christopher Nolan")
- Years or decades (e.g., "that 80s horror movie")
- Plot descriptions (e.g., "the one where they go into dreams")

IMPORTANT RULES:
1. Return ONLY real movies that actually exist
2. Include the TMDB ID if you know it
3. Limit to {max_results} most relevant results
4. For remake queries, return ALL versions
5. Order by relevance to the query

Respond with ONLY a JSON object in this exact format:
{{
  "query_interpretation": "How you understood the query",
  "total_found": <number>,
  "movies": [
    {{
      "title": "Movie Title",
      "year": 1989,
      "tmdb_id": 268,
      "confidence": "high" | "medium" | "low",
      "reason": "Why this matches the query"
    }}
  ]
}}

If you're unsure about a TMDB ID, set it to null - we'll look it up.
If no movies match, return an empty movies array."""


# Wire models for the model's JSON answer
class SuggestionPayload(BaseModel):
	title: str
	year: Optional[int] = None
	tmdb_id: Optional[int] = None
	confidence: Optional[str] = None
	reason: Optional[str] = None


class DiscoveryPayload(BaseModel):
	movies: List[SuggestionPayload] = Field(default_factory=list)
	query_interpretation: Optional[str] = None
	total_found: Optional[int] = None


def build_user_prompt(query: str, hints: Optional[HintSet]) -> str:
	"""User message: the query plus every extracted hint."""
	prompt = f'Find movies matching: "{query}"'
	if hints is None:
		return prompt
	parts = []
	if hints.actors:
		parts.append(f"Actor(s): {', '.join(hints.actors)}")
	if hints.director:
		parts.append(f"Director: {hints.director}")
	if hints.author:
		parts.append(f"Author: {hints.author}")
	if hints.year is not None:
		parts.append(f"Year: {hints.year}")
	if hints.decade is not None:
		parts.append(f"Decade: {hints.decade}s")
	if hints.keywords:
		parts.append(f"Keywords: {', '.join(hints.keywords)}")
	if hints.plot_clues:
		parts.append(f"Plot clues: {'; '.join(hints.plot_clues)}")
	if hints.is_remake_hint:
		parts.append("Looking for a remake or newer version")
	if hints.title_likely:
		parts.append(f"Likely title: {hints.title_likely}")
	if parts:
		prompt += "\n\nExtracted hints:\n" + "\n".join(parts)
	return prompt


def calculate_cost_cents(prompt_tokens: int, completion_tokens: int) -> float:
	"""Token usage -> cost in cents."""
	input_cost = prompt_tokens / 1_000_000 * config.AI_INPUT_COST_PER_1M * 100.0
	output_cost = completion_tokens / 1_000_000 * config.AI_OUTPUT_COST_PER_1M * 100.0
	return input_cost + output_cost


class AIBudget:
	"""
	Daily spend ledger (UTC days). Requests are refused once the day's spend reaches the budget.
	"""

	def __init__(self, daily_budget_cents: float = config.AI_DAILY_BUDGET_CENTS):
		self.daily_budget_cents = daily_budget_cents
		self._day: date = datetime.now(timezone.utc).date()
		self.spent_cents = 0.0
		self.requests = 0
		self._lock = threading.Lock()

	def _roll(self) -> None:
		today = datetime.now(timezone.utc).date()
		if today != self._day:
			self._day = today
			self.spent_cents = 0.0
			self.requests = 0

	def can_make_request(self) -> Tuple[bool, str]:
		with self._lock:
			self._roll()
			if self.spent_cents >= self.daily_budget_cents:
				return False, f"daily AI budget exhausted ({self.spent_cents:.2f}/{self.daily_budget_cents:.2f} cents)"
			return True, "ok"

	def record(self, cost_cents: float) -> None:
		with self._lock:
			self._roll()
			self.spent_cents += cost_cents
			self.requests += 1

	@property
	def remaining_cents(self) -> float:
		return max(0.0, self.daily_budget_cents - self.spent_cents)


class AIDiscoveryService:
	"""
	OpenAI-compatible discovery client.
	"""

	def __init__(
		self,
		api_key: str = config.OPENAI_API_KEY,
		base_url: str = config.OPENAI_BASE_URL,
		model: str = config.OPENAI_MODEL,
		budget: Optional[AIBudget] = None,
		timeout: float = config.HTTP_TIMEOUT_S,
		session: Optional[requests.Session] = None,
	):
		self.api_key = api_key
		self.base_url = base_url.rstrip('/')
		self.model = model
		self.budget = budget or AIBudget()
		self.timeout = timeout
		self.session = session or requests.Session()

	async def discover(self, query: str, hints: Optional[HintSet]) -> AIDiscoveryResult:
		"""Ask the model for matching movies. Raises AIDiscoveryError on any failure."""
		allowed, reason = self.budget.can_make_request()
		if not allowed:
			raise AIDiscoveryError(AIDiscoveryError.OVER_BUDGET, reason)
		if not self.api_key:
			raise AIDiscoveryError(AIDiscoveryError.NOT_CONFIGURED, "OpenAI API key not configured")
		logger.info(f"[AIDiscovery] Query: '{query}' | hints={hints}")
		return await asyncio.to_thread(self._discover_blocking, query, hints)

	def _discover_blocking(self, query: str, hints: Optional[HintSet]) -> AIDiscoveryResult:
		body = {
			'model': self.model,
			'messages': [
				{'role': 'system', 'content': SYSTEM_PROMPT.format(max_results=config.AI_MAX_RESULTS)},
				{'role': 'user', 'content': build_user_prompt(query, hints)},
			],
			'response_format': {'type': 'json_object'},
			'temperature': config.AI_TEMPERATURE,
			'max_tokens': config.AI_MAX_TOKENS,
		}
		start = time.time()
		try:
			response = self.session.post(
				f"{self.base_url}/chat/completions",
				json=body,
				headers={'Authorization': f"Bearer {self.api_key}"},
				timeout=self.timeout,
			)
		except requests.RequestException as e:
			raise AIDiscoveryError(AIDiscoveryError.API_ERROR, str(e)) from e
		elapsed_ms = (time.time() - start) * 1000
		if response.status_code == 429:
			raise AIDiscoveryError(AIDiscoveryError.RATE_LIMITED, "AI provider rate limit hit")
		if not response.ok:
			raise AIDiscoveryError(AIDiscoveryError.API_ERROR, f"HTTP {response.status_code}: {response.text[:300]}")

		try:
			completion = response.json()
			content = completion['choices'][0]['message']['content']
			usage = completion.get('usage', {})
			payload = DiscoveryPayload.model_validate(json.loads(content))
		except (ValueError, KeyError, IndexError, TypeError, ValidationError) as e:
			raise AIDiscoveryError(AIDiscoveryError.DECODING_ERROR, str(e)) from e

		prompt_tokens = int(usage.get('prompt_tokens', 0))
		completion_tokens = int(usage.get('completion_tokens', 0))
		cost_cents = calculate_cost_cents(prompt_tokens, completion_tokens)
		self.budget.record(cost_cents)
		logger.info(
			f"[AIDiscovery] {len(payload.movies)} movies | tokens {prompt_tokens} in / {completion_tokens} out "
			f"| cost ${cost_cents / 100:.4f} | {elapsed_ms:.0f} ms"
		)
		for movie in payload.movies:
			logger.debug(f"[AIDiscovery]   - {movie.title} ({movie.year}) [tentative id {movie.tmdb_id}]")

		return AIDiscoveryResult(
			movies=[
				AISuggestion(
					title=m.title,
					year=m.year,
					tentative_id=m.tmdb_id,
					confidence=m.confidence,
					reason=m.reason,
				)
				for m in payload.movies
			],
			query_interpretation=payload.query_interpretation,
			total_found=payload.total_found,
			cost_cents=cost_cents,
			prompt_tokens=prompt_tokens,
			completion_tokens=completion_tokens,
		)
