"""
Data loading and preprocessing module.
Handles reading and writing local catalog records as JSON Lines and normalizing their fields.
"""

# Standard libs for JSON parsing, typing, and paths
import json  # read/write JSON lines
from dataclasses import asdict  # dataclass -> dict for serialization
from typing import Dict, Iterable, List, Optional  # type hints
from pathlib import Path  # filesystem-safe paths

# Import our CatalogMovie data class used across the project
from .models import CatalogMovie  # structured movie record

# Console logging
from loguru import logger  # console logger


class DataLoader:
	"""
	Handles loading, normalizing and persisting local catalog records.
	"""

	# Genre synonym mapping: common phrasings -> single standard name
	GENRE_SYNONYMS = {
		'sci-fi': 'Science Fiction',  # map hyphenated to canonical
		'sci fi': 'Science Fiction',  # map spaced form
		'science-fiction': 'Science Fiction',  # map with dash
		'science fiction': 'Science Fiction',  # map with space
		'scifi': 'Science Fiction',  # common variant
		'horror': 'Horror',
		'thriller': 'Thriller',
		'comedy': 'Comedy',
		'drama': 'Drama',
		'action': 'Action',
		'adventure': 'Adventure',
		'romance': 'Romance',
		'fantasy': 'Fantasy',
		'mystery': 'Mystery',
		'crime': 'Crime',
		'war': 'War',
		'western': 'Western',
		'animation': 'Animation',
		'animated': 'Animation',
		'documentary': 'Documentary',
		'family': 'Family',
		'music': 'Music',
		'musical': 'Music',
		'history': 'History',
		'tv movie': 'TV Movie',
	}

	def __init__(self):
		"""Initialize the data loader and expose the synonyms mapping."""
		self.genre_synonyms = self.GENRE_SYNONYMS  # store mapping for reuse

	def load_movies_from_jsonl(self, filepath: str) -> List[CatalogMovie]:
		"""
		Load catalog records from a JSON Lines file where each line is one JSON object.
		Returns a list of CatalogMovie objects; malformed lines are skipped.
		"""
		movies = []  # accumulator for parsed records
		filepath = Path(filepath)  # normalize path

		# Validate the file presence early to give clear error messages
		if not filepath.exists():
			raise FileNotFoundError(f"Movie data file not found: {filepath}")

		logger.info(f"[DataLoader] Loading movies from {filepath}...")  # log action

		# Open the file and read line-by-line to handle large catalogs efficiently
		with open(filepath, 'r', encoding='utf-8') as f:
			for line_num, line in enumerate(f, 1):  # keep track of line number for diagnostics
				if not line.strip():
					continue  # blank line
				try:
					data = json.loads(line.strip())  # parse JSON object per line
					movies.append(self.parse_movie_data(data))  # convert dict -> CatalogMovie
				except json.JSONDecodeError as e:
					logger.warning(f"[DataLoader] Skipping invalid JSON at line {line_num}: {e}")  # malformed line
					continue
				except (TypeError, ValueError) as e:
					logger.warning(f"[DataLoader] Error parsing movie at line {line_num}: {e}")  # bad field
					continue

		logger.info(f"[DataLoader] Successfully loaded {len(movies)} movies.")  # summary
		return movies

	def write_movies_to_jsonl(self, filepath: str, movies: Iterable[CatalogMovie]) -> int:
		"""Write records to a JSON Lines file (atomically via a temp file). Returns the count written."""
		filepath = Path(filepath)
		filepath.parent.mkdir(parents=True, exist_ok=True)  # ensure directory
		tmp_path = filepath.with_suffix(filepath.suffix + '.tmp')
		count = 0
		with open(tmp_path, 'w', encoding='utf-8') as f:
			for movie in movies:
				f.write(json.dumps(asdict(movie), ensure_ascii=False) + '\n')
				count += 1
		tmp_path.replace(filepath)  # swap in the new file
		logger.debug(f"[DataLoader] Wrote {count} movies to {filepath}")
		return count

	def parse_movie_data(self, data: Dict) -> CatalogMovie:
		"""
		Convert a raw dictionary (from file) into a strongly-typed CatalogMovie.
		Accepts both the catalog's own field names and TMDB-style ones.
		"""
		movie_id = data.get('id', data.get('tmdb_id'))
		if movie_id is None or str(movie_id).strip() == '':
			raise ValueError("movie record has no id")

		genres = self._parse_comma_separated(data.get('genres', []))  # list of genres
		actors = self._parse_comma_separated(data.get('actors', []))  # billed cast

		return CatalogMovie(
			id=int(movie_id),  # ids are TMDB integers
			title=str(data.get('title', '')).strip(),  # keep display casing
			year=self._optional_int(data.get('year')),
			poster_url=data.get('poster_url') or data.get('url'),  # prefer 'poster_url' then 'url'
			genres=[self._normalize_genre(g) for g in genres if g],
			runtime_display=data.get('runtime_display') or None,
			ai_score=self._optional_float(data.get('ai_score')),
			vote_average=self._optional_float(data.get('vote_average', data.get('rating'))),
			director=(str(data['director']).strip() or None) if data.get('director') else None,
			actors=actors,
			popularity=self._optional_float(data.get('popularity')),
		)

	def _parse_comma_separated(self, value) -> List[str]:
		"""
		Normalize a value that may be None, a list, or a comma-separated string
		into a list of clean strings.
		"""
		if value is None:  # missing field
			return []
		if isinstance(value, list):  # already a list
			return [str(item).strip() for item in value if item]
		if isinstance(value, str):  # comma-separated string
			return [item.strip() for item in value.split(',') if item.strip()]
		return []  # any other type becomes empty

	def _optional_int(self, value) -> Optional[int]:
		if value in (None, '', 0, '0'):
			return None
		return int(value)

	def _optional_float(self, value) -> Optional[float]:
		if value in (None, ''):
			return None
		return float(value)

	def _normalize_genre(self, genre: str) -> str:
		"""
		Map a raw genre to its canonical form using synonyms; fall back to Title Case.
		"""
		genre_lower = genre.strip().lower()  # prepare for lookup
		if genre_lower in self.genre_synonyms:
			return self.genre_synonyms[genre_lower]
		return genre.strip().title()

	def get_all_actors(self, movies: List[CatalogMovie]) -> List[str]:
		"""Return a sorted list of all unique actor names in the catalog."""
		actors = set()
		for movie in movies:
			actors.update(movie.actors)
		return sorted(actors)

	def get_all_directors(self, movies: List[CatalogMovie]) -> List[str]:
		"""Return a sorted list of all unique director names in the catalog."""
		return sorted({movie.director for movie in movies if movie.director})
