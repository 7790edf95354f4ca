"""
Ranking module.
Deduplicates result sets by canonical id and orders them by AI score.
"""

from itertools import chain
from typing import Iterable, List, Sequence

from .models import SearchResult


def score_of(result: SearchResult) -> float:
	"""Ranking key: ai_score, with a missing score treated as 0."""
	return result.ai_score if result.ai_score is not None else 0.0


class ResultMerger:
	"""
	Merges incremental result sets so every emission is a deduplicated, ranked view.
	Ties keep their incoming order (local first), since Python's sort is stable.
	"""

	def merge(self, local: Sequence[SearchResult], additional: Iterable[SearchResult]) -> List[SearchResult]:
		"""
		Start from local, append each additional item whose id is not present yet,
		then sort by ai_score descending.
		"""
		merged: List[SearchResult] = []
		seen = set()
		for result in chain(local, additional):
			if result.canonical_id in seen:
				continue
			seen.add(result.canonical_id)
			merged.append(result)
		return self.sort_by_score(merged)

	def sort_by_score(self, results: Iterable[SearchResult]) -> List[SearchResult]:
		return sorted(results, key=score_of, reverse=True)

	def replace_by_id(self, results: List[SearchResult], updated: SearchResult) -> bool:
		"""
		Replace the entry with the same canonical id in place.
		Returns False (and changes nothing) when the id is absent, so an upgrade never inserts.
		"""
		for index, existing in enumerate(results):
			if existing.canonical_id == updated.canonical_id:
				results[index] = updated
				return True
		return False
