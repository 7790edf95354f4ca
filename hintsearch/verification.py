"""
Identity verification module.
Resolves a trusted TMDB id for an AI-suggested (title, year) pair; AI-provided ids are never trusted.
"""

from typing import List, Optional

from loguru import logger

from .interfaces import CanonicalProviderProtocol
from .models import ProviderMovie


def normalize_title(title: str) -> str:
	return " ".join(title.strip().lower().split())


def years_compatible(a: Optional[int], b: Optional[int]) -> bool:
	"""A missing year on either side never disqualifies a match."""
	return a is None or b is None or a == b


class IdentityVerifier:
	"""
	Selects a provider match for a suggested title, in order:
	1. exact or substring match (either direction) on normalized titles with compatible years
	2. the provider's first result, if its first two words equal the query's first two words
	   (a one-word title also needs a compatible year)
	3. nothing
	"""

	def __init__(self, provider: CanonicalProviderProtocol):
		self.provider = provider

	async def verify(self, title: str, year: Optional[int] = None, tentative_id: Optional[int] = None) -> Optional[int]:
		"""Return the verified canonical id, or None when verification fails."""
		if not title or not title.strip():
			return None
		try:
			candidates = await self.provider.search_by_title(title)
		except Exception as e:
			logger.warning(f"[Verifier] Title search for '{title}' failed: {e}")
			return None

		match = self.select(title, year, candidates)
		if match is None:
			logger.info(f"[Verifier] Could not verify '{title}' ({year}); AI id {tentative_id} stays unverified")
			return None

		if tentative_id is not None and tentative_id != match.id:
			logger.info(f"[Verifier] Corrected AI id for '{title}': {tentative_id} -> {match.id}")
		else:
			logger.debug(f"[Verifier] Verified '{title}' ({year}) -> {match.id}")
		return match.id

	def select(self, title: str, year: Optional[int], candidates: List[ProviderMovie]) -> Optional[ProviderMovie]:
		query = normalize_title(title)
		for candidate in candidates:
			name = normalize_title(candidate.title)
			if not name:
				continue
			title_ok = name == query or query in name or name in query
			if title_ok and years_compatible(year, candidate.year):
				return candidate

		# Weak fuzzy fallback on the first result only
		if candidates:
			first = candidates[0]
			if normalize_title(first.title).split()[:2] == query.split()[:2]:
				if len(query.split()) < 2 and not years_compatible(year, first.year):
					# a one-word title already failed the year check above
					logger.debug(f"[Verifier] Rejected '{first.title}' ({first.year}) for '{title}' ({year}): year mismatch")
					return None
				if not years_compatible(year, first.year):
					logger.debug(f"[Verifier] Two-word fallback ignores year: '{title}' ({year}) -> '{first.title}' ({first.year})")
				else:
					logger.debug(f"[Verifier] Two-word fallback match: '{title}' -> '{first.title}'")
				return first
		return None
