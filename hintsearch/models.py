"""
Data models for the hint-aware movie discovery pipeline.
Defines the value types shared by the search stages, the collaborators and the API.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field, replace  # auto-generates __init__, __repr__, etc.
# Enum for provenance and progress stages
from enum import Enum  # string-valued enums serialize cleanly
# Import typing helpers for precise and self-documenting types
from typing import Any, List, Optional, Set, Tuple  # lists, optional values, and fixed-size tuples


class ResultSource(str, Enum):
	"""Where a search result came from; also a confidence signal for callers."""
	LOCAL = "local"  # already in the local catalog
	AI_DISCOVERED = "ai"  # suggested by AI, shown but not (yet) enriched
	AI_INGESTED = "ingested"  # suggested by AI, verified and fully ingested


@dataclass(frozen=True)
class HintSet:
	"""
	Structured clues extracted once per query.
	Actors are ordered by priority: the first one is the most specific.
	"""
	director: Optional[str] = None  # director name as typed/extracted
	actors: Tuple[str, ...] = ()  # actor names, priority order
	author: Optional[str] = None  # book author for adaptations
	year: Optional[int] = None  # explicit release year
	title_likely: Optional[str] = None  # probable title when the query looks like one
	decade: Optional[int] = None  # e.g. 1980 for "80s"; prompt-only
	keywords: Tuple[str, ...] = ()  # genre keywords; prompt-only
	plot_clues: Tuple[str, ...] = ()  # short plot fragments; prompt-only
	is_remake_hint: bool = False  # "the new one", "remake"...; prompt-only

	@property
	def has_hints(self) -> bool:
		"""True iff a director, actor, author or year is known (title_likely never counts)."""
		return bool(self.director or self.actors or self.author or self.year is not None)

	@property
	def primary_actor(self) -> Optional[str]:
		return self.actors[0] if self.actors else None

	def comprehensive_key(self) -> Optional[Tuple[str, str]]:
		"""(type, value) pair identifying an exhaustive AI search for this hint set."""
		if self.director:
			return ("director", self.director)
		if self.actors:
			return ("actor", self.actors[0])
		if self.author:
			return ("author", self.author)
		return None

	@classmethod
	def title_only(cls, text: str) -> "HintSet":
		"""Synthesize a hint set that only carries a likely title."""
		return cls(title_likely=text.strip() or None)


@dataclass
class SearchResult:
	"""
	The unit returned to callers.
	canonical_id is always a provider-verified id, except for explicitly
	unverified AI suggestions (verified=False), which are never ingested.
	"""
	canonical_id: int  # trusted catalog identifier
	title: str  # display title
	source: ResultSource  # provenance
	year: Optional[int] = None  # release year
	poster_url: Optional[str] = None  # full poster image URL
	genres: Optional[List[str]] = None  # genre names
	runtime_display: Optional[str] = None  # e.g. "2h 28m"
	match_reason: Optional[str] = None  # human-readable justification
	ai_score: Optional[float] = None  # ranking signal (0..10), takes precedence
	vote_average: Optional[float] = None  # provider rating (0..10)
	verified: bool = True  # False only for surfaced-but-unverifiable AI suggestions

	def upgraded(self, **changes: Any) -> "SearchResult":
		"""Return a copy with the given fields replaced."""
		return replace(self, **changes)


@dataclass
class SearchResponse:
	"""Final return value of a search call."""
	query: str
	hints: Optional[HintSet]
	local_results: List[SearchResult]
	ai_results: List[SearchResult]
	all_results: List[SearchResult]  # deduplicated + sorted
	newly_ingested_count: int = 0
	ai_cost_estimate: Optional[float] = None  # cents
	cancelled: bool = False  # True when a newer search superseded this one

	@classmethod
	def empty(cls, query: str, hints: Optional[HintSet] = None, cancelled: bool = False) -> "SearchResponse":
		return cls(query=query, hints=hints, local_results=[], ai_results=[], all_results=[], cancelled=cancelled)


@dataclass
class SearchSession:
	"""
	Internal state of one search call; the generation number is the cancellation token.
	The results list is owned exclusively by this session's task tree.
	"""
	query: str
	generation: int
	hints: Optional[HintSet] = None
	cancelled: bool = False
	local_results: List[SearchResult] = field(default_factory=list)
	results: List[SearchResult] = field(default_factory=list)  # running AI/fallback results
	enrichment_tasks: Set[Any] = field(default_factory=set)  # detached phase-2 asyncio tasks
	newly_ingested: int = 0

	def cancel(self) -> None:
		self.cancelled = True


class ProgressStage(str, Enum):
	"""State values rendered by progress indicators."""
	IDLE = "idle"
	SEARCHING_LOCAL = "searching_local"
	LOCAL_COMPLETE = "local_complete"
	SEARCHING_AI = "searching_ai"
	AI_COMPLETE = "ai_complete"
	INGESTING = "ingesting"
	FALLBACK = "fallback"
	COMPLETE = "complete"
	ERROR = "error"


@dataclass(frozen=True)
class SearchProgress:
	stage: ProgressStage = ProgressStage.IDLE
	count: int = 0  # results found by the stage
	new_count: int = 0  # newly ingested by the stage
	current: int = 0  # item being processed (1-based)
	total: int = 0  # items to process
	message: Optional[str] = None  # error text for ERROR


# ---------------------------------------------------------------------------
# Collaborator record types
# ---------------------------------------------------------------------------

@dataclass
class CatalogMovie:
	"""
	A lightweight movie record held by the local catalog.
	Director and actors are kept so the catalog can answer people queries.
	"""
	id: int  # TMDB id
	title: str  # display title
	year: Optional[int] = None  # release year
	poster_url: Optional[str] = None  # full poster URL
	genres: List[str] = field(default_factory=list)  # canonical genre names
	runtime_display: Optional[str] = None  # e.g. "1h 44m"
	ai_score: Optional[float] = None  # aggregate score (0..10)
	vote_average: Optional[float] = None  # TMDB rating (0..10)
	director: Optional[str] = None  # director name
	actors: List[str] = field(default_factory=list)  # billed cast, in order
	popularity: Optional[float] = None  # TMDB popularity


@dataclass
class ProviderMovie:
	"""A title-search hit from the canonical provider."""
	id: int
	title: str
	release_date: Optional[str] = None  # "YYYY-MM-DD"
	popularity: Optional[float] = None
	vote_average: Optional[float] = None

	@property
	def year(self) -> Optional[int]:
		return year_from_date(self.release_date)


@dataclass
class ProviderPerson:
	id: int
	name: str
	known_for_department: Optional[str] = None


@dataclass
class MovieDetails:
	"""Lightweight display data for a single movie."""
	id: int
	title: str
	poster_path: Optional[str] = None
	release_date: Optional[str] = None
	genres: List[str] = field(default_factory=list)
	runtime_minutes: Optional[int] = None
	rating: Optional[float] = None
	popularity: Optional[float] = None

	@property
	def year(self) -> Optional[int]:
		return year_from_date(self.release_date)


@dataclass
class CreditEntry:
	"""One movie in a person's filmography."""
	id: int
	title: str
	release_date: Optional[str] = None
	popularity: Optional[float] = None


@dataclass
class PersonCredits:
	cast: List[CreditEntry] = field(default_factory=list)
	crew: List[CreditEntry] = field(default_factory=list)


@dataclass
class MovieCredits:
	"""Directors and billed cast of a single movie."""
	directors: List[str] = field(default_factory=list)
	cast: List[str] = field(default_factory=list)


@dataclass
class AISuggestion:
	"""A movie suggested by AI discovery; tentative_id is untrusted."""
	title: str
	year: Optional[int] = None
	tentative_id: Optional[int] = None
	confidence: Optional[str] = None  # "high" | "medium" | "low"
	reason: Optional[str] = None  # why it matches the query


@dataclass
class AIDiscoveryResult:
	movies: List[AISuggestion] = field(default_factory=list)
	query_interpretation: Optional[str] = None
	total_found: Optional[int] = None
	cost_cents: Optional[float] = None
	prompt_tokens: int = 0
	completion_tokens: int = 0


def year_from_date(release_date: Optional[str]) -> Optional[int]:
	"""Extract the year from a "YYYY-MM-DD" date string, or None."""
	if not release_date or len(release_date) < 4:
		return None
	try:
		return int(release_date[:4])
	except ValueError:
		return None
