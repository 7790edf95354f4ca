"""
Hint extraction module.
Extracts structured hints (director, actors, author, year, likely title) from free-text queries.
Known names from the local catalog sharpen people matching through fuzzy search.
"""

import re  # regex for pattern-based extraction
from typing import Dict, Iterable, List, Optional, Set  # type annotations

from rapidfuzz import process, fuzz  # fuzzy matching utilities

from loguru import logger  # console logging

from . import config
from .models import HintSet  # structured hint representation


class HintExtractor:
	"""
	Parses natural language queries into a HintSet.
	Uses phrase patterns for people ("directed by", "starring"), regex for years/decades,
	and fuzzy matching against known catalog names to normalize spelling.
	"""

	# Pre-compiled regex patterns for date expressions
	RE_YEAR = re.compile(r"\b(19\d{2}|20[0-2]\d|2030)\b")  # single year like 1995
	RE_DECADE = re.compile(r"\b(?:19|20)?(\d)0'?s\b", re.I)  # 80s, 1990s, '70s
	DECADE_WORDS = {
		"fifties": 1950, "sixties": 1960, "seventies": 1970,
		"eighties": 1980, "nineties": 1990,
	}

	# People patterns; group 1 is the name
	NAME = r"([a-z][a-z'.-]*(?:\s+[a-z][a-z'.-]*){0,3})"
	ACTOR_PATTERNS = [
		re.compile(r"\bwith\s+" + NAME),
		re.compile(r"\bstarring\s+" + NAME),
		re.compile(r"\bstars\s+" + NAME),
		re.compile(r"\bfeaturing\s+" + NAME),
		re.compile(r"\bactor\s+" + NAME),
		re.compile(r"\bhas\s+" + NAME + r"\s+in\s+it\b"),
	]
	# Name comes before the phrase, so the capture may start with unrelated words
	TRAILING_ACTOR_PATTERNS = [
		re.compile(NAME + r"\s+is\s+in\s+it\b"),
		re.compile(NAME + r"\s+in\s+it\b"),
	]
	DIRECTOR_PATTERNS = [
		re.compile(r"\bdirected\s+by\s+" + NAME),
		re.compile(r"\bby\s+director\s+" + NAME),
		re.compile(r"\bdirector\s+" + NAME),
	]
	# Only trusted when the name resolves to a known director
	LOOSE_DIRECTOR_PATTERNS = [
		re.compile(r"\ba\s+" + NAME + r"\s+(?:film|movie)\b"),
		re.compile(r"\bby\s+" + NAME),
	]
	AUTHOR_PATTERNS = [
		re.compile(r"\bby\s+(?:the\s+)?author\s+" + NAME),
		re.compile(r"\bthe\s+author\s+" + NAME),
		re.compile(r"\b(?:books?|novels?)\s+by\s+(?:the\s+)?(?:author\s+)?" + NAME),
		re.compile(r"\b(?:based\s+on|book|novel).*written\s+by\s+" + NAME),
	]
	TITLE_PATTERNS = [
		re.compile(r"\bthe movie\s+(.+)", re.I),
		re.compile(r"\bfind\s+(.+)", re.I),
		re.compile(r"\bsearch for\s+(.+)", re.I),
		re.compile(r"\blook up\s+(.+)", re.I),
	]

	# Trailing words that end a captured name
	STOP_WORDS: Set[str] = {
		"from", "in", "and", "or", "the", "a", "an", "of", "with", "movie", "movies",
		"film", "films", "about", "where", "that", "who", "directed", "starring", "by",
		"is", "it", "was", "plays", "made", "before", "after", "set", "on",
	}

	# Words that introduce a name; anything before them is not part of it
	NAME_MARKERS: Set[str] = {"with", "starring", "featuring", "by", "directed", "actor", "has"}

	# Single-word director surnames that are safe to recognize without a phrase
	KNOWN_DIRECTOR_SURNAMES: Dict[str, str] = {
		"spielberg": "Steven Spielberg", "scorsese": "Martin Scorsese",
		"tarantino": "Quentin Tarantino", "kubrick": "Stanley Kubrick",
		"hitchcock": "Alfred Hitchcock", "nolan": "Christopher Nolan",
		"fincher": "David Fincher", "coppola": "Francis Ford Coppola",
		"villeneuve": "Denis Villeneuve", "zemeckis": "Robert Zemeckis",
		"peele": "Jordan Peele", "gerwig": "Greta Gerwig", "coogler": "Ryan Coogler",
		"waititi": "Taika Waititi", "del toro": "Guillermo del Toro",
	}

	# Genre keyword groups (canonical -> trigger words)
	GENRE_KEYWORDS: Dict[str, List[str]] = {
		"horror": ["scary", "horror", "terrifying", "haunted", "possessed", "demon", "ghost", "zombie", "vampire", "slasher"],
		"comedy": ["funny", "comedy", "hilarious", "comedic", "humor"],
		"action": ["action", "explosions", "chase", "fight", "battles", "stunts"],
		"drama": ["drama", "emotional", "moving", "touching", "serious"],
		"romance": ["romance", "romantic", "love story", "relationship"],
		"sci-fi": ["sci-fi", "science fiction", "space", "alien", "futuristic", "robot", "spaceship"],
		"thriller": ["thriller", "suspense", "tense", "twist"],
		"mystery": ["mystery", "detective", "whodunit", "investigation"],
	}

	REMAKE_INDICATORS = [
		"remake", "reboot", "new version", "modern version", "not the original",
		"the new one", "recent one", "the newer", "updated version",
	]

	PLOT_ACTION_WORDS: Set[str] = {
		"escapes", "discovers", "finds", "travels", "fights", "falls", "meets", "saves",
		"kills", "dies", "transforms", "becomes", "hunts", "chases", "investigates",
		"solves", "steals", "robs", "kidnaps", "rescues", "betrays", "reveals", "hides", "runs",
	}

	def __init__(self, known_actors: Optional[Iterable[str]] = None, known_directors: Optional[Iterable[str]] = None):
		# Lowercased known names for efficient membership and fuzzy matching reference
		self.known_actors = {a.strip().lower() for a in (known_actors or []) if a and a.strip()}
		self.known_directors = {d.strip().lower() for d in (known_directors or []) if d and d.strip()}
		# Pre-build lists for fuzzy search to avoid recreating on each parse
		self._actor_list = sorted(self.known_actors)
		self._director_list = sorted(self.known_directors)
		logger.debug(f"[Hints] Initialized with {len(self._actor_list)} actors, {len(self._director_list)} directors")

	def extract(self, text: str) -> Optional[HintSet]:
		"""Main entry: produce a HintSet from a raw string, or None when nothing was recognized."""
		if not text or not text.strip():  # empty input guard
			raise ValueError("Query cannot be empty")

		q = " ".join(text.strip().lower().split())  # normalize spaces and casing
		logger.debug(f"[Hints] Input query: '{text}' -> normalized: '{q}'")

		director = self._extract_director(q)
		actors = [a for a in self._extract_actors(q) if not director or a.lower() != director.lower()]
		author = self._extract_author(q)
		if author and director and author.lower() == director.lower():
			director = None  # "book by X" is an author, not a director

		hints = HintSet(
			director=director,
			actors=tuple(actors),
			author=author,
			year=self._extract_year(q),
			title_likely=self._extract_title(text.strip()),
			decade=self._extract_decade(q),
			keywords=tuple(self._extract_keywords(q)),
			plot_clues=tuple(self._extract_plot_clues(q)),
			is_remake_hint=any(ind in q for ind in self.REMAKE_INDICATORS),
		)
		logger.debug(
			f"[Hints] Extracted | director={hints.director} | actors={list(hints.actors)} | author={hints.author} "
			f"| year={hints.year} | title={hints.title_likely} | keywords={list(hints.keywords)}"
		)
		if not (hints.has_hints or hints.title_likely or hints.decade or hints.keywords or hints.plot_clues or hints.is_remake_hint):
			return None
		return hints

	def _extract_year(self, q: str) -> Optional[int]:
		m = self.RE_YEAR.search(q)
		return int(m.group(0)) if m else None

	def _extract_decade(self, q: str) -> Optional[int]:
		for word, decade in self.DECADE_WORDS.items():
			if word in q:
				return decade
		m = self.RE_DECADE.search(q)
		if not m:
			return None
		digit = int(m.group(1))
		# 00-20s -> 2000s, 30-90s -> 1900s
		return (2000 if digit <= 2 else 1900) + digit * 10

	def _clean_name(self, raw: str, trailing: bool = False) -> Optional[str]:
		"""
		Trim a captured name to the part between marker words, then strip stop words off both ends.
		trailing=True when the name was captured before its phrase ("X in it").
		"""
		parts = raw.split()
		markers = [i for i, p in enumerate(parts) if p in self.NAME_MARKERS]
		if markers and trailing:
			parts = parts[markers[-1] + 1:]  # "oldboy with tom hanks" -> "tom hanks"
		elif markers:
			parts = parts[:markers[0]]  # "jordan peele with tom" -> "jordan peele"
		while parts and parts[-1] in self.STOP_WORDS:
			parts.pop()
		while parts and parts[0] in self.STOP_WORDS:
			parts.pop(0)
		if not parts or len(" ".join(parts)) <= 2:
			return None
		return " ".join(parts)

	def _resolve(self, name: str, known: List[str]) -> Optional[str]:
		"""Map a candidate to its known spelling when fuzzy matching is confident."""
		if not known:
			return None
		best = process.extractOne(name, known, scorer=fuzz.WRatio)
		if best and best[1] >= config.NAME_MATCH_THRESHOLD:
			logger.debug(f"[Hints] Fuzzy name match: '{name}' -> '{best[0]}' (score={best[1]:.1f})")
			return best[0]
		return None

	def _extract_director(self, q: str) -> Optional[str]:
		for pattern in self.DIRECTOR_PATTERNS:
			m = pattern.search(q)
			if m:
				name = self._clean_name(m.group(1))
				if name:
					return _display_name(self._resolve(name, self._director_list) or name)

		# Loose phrases only count when the name is a known director
		for pattern in self.LOOSE_DIRECTOR_PATTERNS:
			for m in pattern.finditer(q):
				name = self._clean_name(m.group(1))
				if not name:
					continue
				known = self._resolve(name, self._director_list) or self.KNOWN_DIRECTOR_SURNAMES.get(name)
				if known:
					return _display_name(known)

		# Known surnames anywhere in the query (multi-word first)
		for surname in sorted(self.KNOWN_DIRECTOR_SURNAMES, key=len, reverse=True):
			if re.search(rf"\b{re.escape(surname)}\b", q):
				return self.KNOWN_DIRECTOR_SURNAMES[surname]

		# Exact known director names from the catalog
		for name in self._director_list:
			if len(name) > 3 and name in q:
				return _display_name(name)
		return None

	def _extract_actors(self, q: str) -> List[str]:
		actors: List[str] = []  # ordered, first = most specific

		def add(name: str) -> None:
			display = _display_name(name)
			if display.lower() not in {a.lower() for a in actors}:
				actors.append(display)

		patterns = [(p, False) for p in self.ACTOR_PATTERNS] + [(p, True) for p in self.TRAILING_ACTOR_PATTERNS]
		for pattern, trailing in patterns:
			for m in pattern.finditer(q):
				name = self._clean_name(m.group(1), trailing=trailing)
				if not name:
					continue
				add(self._resolve(name, self._actor_list) or name)
				logger.debug(f"[Hints] Pattern actor match: '{m.group(0)}' -> '{name}'")

		# Bonus: exact substrings of known actors, which helps when the full name appears verbatim
		for name in self._actor_list[:10000]:  # cap for performance
			if len(name) > 3 and re.search(rf"\b{re.escape(name)}\b", q):
				add(name)
		return actors

	def _extract_author(self, q: str) -> Optional[str]:
		for pattern in self.AUTHOR_PATTERNS:
			m = pattern.search(q)
			if m:
				name = self._clean_name(m.group(1))
				if name:
					return _display_name(name)
		return None

	def _extract_keywords(self, q: str) -> List[str]:
		keywords = []
		for genre, words in self.GENRE_KEYWORDS.items():
			if any(re.search(rf"\b{re.escape(w)}\b", q) for w in words):
				keywords.append(genre)
		return keywords

	def _extract_plot_clues(self, q: str) -> List[str]:
		words = [w.strip(".,!?;:\"'") for w in q.split()]
		clues: List[str] = []
		for index, word in enumerate(words):
			if word in self.PLOT_ACTION_WORDS:
				context = " ".join(words[max(0, index - 2):index + 3])
				if context not in clues:
					clues.append(context)
		return clues

	def _extract_title(self, text: str) -> Optional[str]:
		# Short utterances are probably just a title
		words = text.split()
		if len(words) <= 4:
			return text
		for pattern in self.TITLE_PATTERNS:
			m = pattern.search(text)
			if m:
				title = m.group(1).strip()
				if len(title.split()) <= 6:
					return title
		return None


def _display_name(name: str) -> str:
	"""Title-case a lowercased name ("jordan peele" -> "Jordan Peele")."""
	if name != name.lower():
		return name  # already carries its own casing
	return " ".join(part.capitalize() for part in name.split())
