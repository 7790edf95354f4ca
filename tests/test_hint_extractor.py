"""
Unit tests for HintExtractor: people patterns, fuzzy name resolution, years, decades, titles and prompt extras.
"""

import pytest

from hintsearch.hint_extractor import HintExtractor


@pytest.fixture
def extractor():
	return HintExtractor(
		known_actors=["tom hanks", "keanu reeves", "tom cruise"],
		known_directors=["wes craven", "jordan peele", "christopher nolan"],
	)


def test_director_patterns(extractor):
	assert extractor.extract("movies directed by jordan peele").director == "Jordan Peele"
	assert extractor.extract("horror by wes cravin").director == "Wes Craven"  # misspelled on purpose
	assert extractor.extract("something by spielberg").director == "Steven Spielberg"
	assert extractor.extract("a nolan film about time").director == "Christopher Nolan"


def test_actor_patterns(extractor):
	assert extractor.extract("90s with tom hanks").actors == ("Tom Hanks",)
	assert extractor.extract("starring keanu reeves").actors == ("Keanu Reeves",)
	assert extractor.extract("featuring tom cruise").actors == ("Tom Cruise",)
	assert extractor.extract("keanu reeves in it").actors == ("Keanu Reeves",)


def test_name_does_not_swallow_title_words(extractor):
	hints = extractor.extract("oldboy with tom hanks in it")
	assert hints.actors == ("Tom Hanks",)


def test_unknown_names_keep_their_spelling(extractor):
	hints = extractor.extract("that movie starring choi min-sik")
	assert hints.actors == ("Choi Min-sik",)


def test_author_is_not_a_director(extractor):
	hints = extractor.extract("movie based on the book by stephen king")
	assert hints.author == "Stephen King"
	assert hints.director is None
	assert hints.has_hints


def test_years_and_decades(extractor):
	hints = extractor.extract("space movie from 1999")
	assert hints.year == 1999
	assert "sci-fi" in hints.keywords
	assert extractor.extract("eighties horror flick").decade == 1980
	assert extractor.extract("comedy films in the 80s").decade == 1980
	assert extractor.extract("funny films from the 2010s").decade == 2010


def test_decade_alone_is_not_a_hint(extractor):
	hints = extractor.extract("scary movies from the 70s please")
	assert hints.decade == 1970
	assert not hints.has_hints
	assert hints.comprehensive_key() is None


def test_short_query_is_a_likely_title(extractor):
	hints = extractor.extract("Oldboy")
	assert hints.title_likely == "Oldboy"
	assert not hints.has_hints
	assert extractor.extract("can you find the movie the prestige please").title_likely == "the prestige please"


def test_plot_clues_and_remake(extractor):
	hints = extractor.extract("the one where the guy escapes from prison")
	assert hints.plot_clues == ("the guy escapes from prison",)
	assert extractor.extract("the new one with keanu reeves").is_remake_hint


def test_comprehensive_key_priority(extractor):
	hints = extractor.extract("directed by jordan peele with tom hanks")
	assert hints.comprehensive_key() == ("director", "Jordan Peele")
	assert extractor.extract("starring tom hanks").comprehensive_key() == ("actor", "Tom Hanks")


def test_empty_query_raises(extractor):
	with pytest.raises(ValueError):
		extractor.extract("   ")


def test_nothing_recognized_returns_none(extractor):
	assert extractor.extract("please show me something good tonight okay") is None
