"""
Exception types raised by the reference collaborators.
The search core treats every one of them as a transient, non-fatal failure.
"""


class DiscoveryError(Exception):
	"""Base class for collaborator failures."""


class ProviderError(DiscoveryError):
	"""The canonical metadata provider (TMDB) failed or returned an error status."""

	def __init__(self, message: str, status_code: int = 0):
		super().__init__(message)
		self.status_code = status_code


class AIDiscoveryError(DiscoveryError):
	"""The AI discovery service could not produce suggestions."""

	NOT_CONFIGURED = "not_configured"
	API_ERROR = "api_error"
	DECODING_ERROR = "decoding_error"
	RATE_LIMITED = "rate_limited"
	OVER_BUDGET = "over_budget"

	def __init__(self, kind: str, message: str = ""):
		super().__init__(f"{kind}: {message}" if message else kind)
		self.kind = kind


class IngestionError(DiscoveryError):
	"""Full ingestion or enrichment of a movie failed."""


class CacheError(DiscoveryError):
	"""The comprehensive-search cache could not be read or written."""
