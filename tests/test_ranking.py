"""
Unit tests for ResultMerger: dedup by canonical id, ranking by ai_score, in-place upgrades.
Run: pytest tests/test_ranking.py
"""

from hintsearch.models import ResultSource, SearchResult
from hintsearch.ranking import ResultMerger, score_of


def result(id, score=None, source=ResultSource.LOCAL, title=None):
	return SearchResult(canonical_id=id, title=title or f"Movie {id}", source=source, ai_score=score)


def test_merge_prefers_local_entry():
	local = [result(1, 5.0, title="Local copy")]
	additional = [result(1, 9.0, ResultSource.AI_DISCOVERED, title="AI copy"), result(2, 6.0, ResultSource.AI_DISCOVERED)]
	merged = ResultMerger().merge(local, additional)
	assert [r.canonical_id for r in merged] == [2, 1]
	assert merged[1].title == "Local copy"
	assert merged[1].source == ResultSource.LOCAL


def test_merge_never_repeats_an_id():
	local = [result(1), result(1), result(2)]
	additional = [result(2), result(3), result(3)]
	ids = [r.canonical_id for r in ResultMerger().merge(local, additional)]
	assert sorted(ids) == [1, 2, 3]
	assert len(ids) == len(set(ids))


def test_missing_score_ranks_as_zero():
	merged = ResultMerger().merge([result(1, None), result(2, -1.0)], [result(3, 0.5)])
	assert [r.canonical_id for r in merged] == [3, 1, 2]
	assert score_of(result(9)) == 0.0


def test_ties_keep_local_first():
	merged = ResultMerger().merge([result(1, 7.0)], [result(2, 7.0, ResultSource.AI_DISCOVERED)])
	assert [r.canonical_id for r in merged] == [1, 2]


def test_merge_of_empty_inputs():
	assert ResultMerger().merge([], []) == []


def test_replace_by_id_never_inserts():
	merger = ResultMerger()
	results = [result(1, 1.0), result(2, 2.0)]
	assert merger.replace_by_id(results, result(2, 9.0, ResultSource.AI_INGESTED))
	assert results[1].ai_score == 9.0
	assert results[1].source == ResultSource.AI_INGESTED
	assert not merger.replace_by_id(results, result(3, 5.0))
	assert [r.canonical_id for r in results] == [1, 2]
