"""Tests for fuzzy title matching."""

from dataclasses import dataclass

import pytest

from wishlist.services.similarity import (
    all_above_threshold,
    best_match,
    closest_span,
    levenshtein,
    score,
)


@dataclass
class Titled:
    title: str


class TestLevenshtein:
    """Tests for the edit distance helper."""

    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("", "", 0),
            ("abc", "", 3),
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
        ],
    )
    def test_known_distances(self, a: str, b: str, expected: int) -> None:
        assert levenshtein(a, b) == expected
        assert levenshtein(b, a) == expected


class TestScore:
    """Tests for score()."""

    def test_identical_after_normalization(self) -> None:
        assert score("  Dune ", "dune") == 1.0

    def test_empty_vs_nonempty_is_zero(self) -> None:
        assert score("", "Dune") == 0.0
        assert score("Dune", "   ") == 0.0

    def test_both_empty_is_one(self) -> None:
        assert score("", "") == 1.0

    def test_symmetric(self) -> None:
        pairs = [("Dune Part 2", "Dune: Part Two"), ("Inception", "Interstellar"), ("a", "abc")]
        for a, b in pairs:
            assert score(a, b) == score(b, a)

    def test_in_unit_interval(self) -> None:
        for a, b in [("abc", "xyz"), ("Jade Palace", "Jade Palace Restaurant"), ("x", "y")]:
            assert 0.0 <= score(a, b) <= 1.0

    def test_normalized_by_longer_string(self) -> None:
        # "dune" -> "dunes" is one insertion over five characters
        assert score("Dune", "Dunes") == pytest.approx(0.8)


class TestBestMatch:
    """Tests for best_match()."""

    def test_returns_none_below_threshold(self) -> None:
        assert best_match("Inception", ["Barbie", "Oppenheimer"], 0.6) is None

    def test_picks_highest_score(self) -> None:
        candidates = ["Dune", "Dune Part Two", "Dunkirk"]
        assert best_match("dune part 2", candidates, 0.6) == "Dune Part Two"

    def test_result_clears_threshold(self) -> None:
        candidates = ["The Jade Palace", "Jade Garden"]
        match = best_match("Jade Palace", candidates, 0.6)
        assert match is not None
        assert score("Jade Palace", match) >= 0.6

    def test_tie_keeps_first_seen(self) -> None:
        candidates = [Titled("Dune"), Titled("dune")]
        match = best_match("DUNE", candidates, 0.6, key=lambda c: c.title)
        assert match is candidates[0]

    def test_key_extracts_title(self) -> None:
        candidates = [Titled("Barbie"), Titled("Dune: Part Two")]
        match = best_match("Dune Part Two", candidates, 0.6, key=lambda c: c.title)
        assert match is candidates[1]

    def test_empty_candidates(self) -> None:
        assert best_match("anything", [], 0.6) is None


class TestAllAboveThreshold:
    """Tests for all_above_threshold()."""

    def test_returns_every_candidate_over_threshold(self) -> None:
        candidates = ["Dune", "dune ", "Dunes", "Barbie"]
        assert set(all_above_threshold("Dune", candidates, 0.8)) == {"Dune", "dune ", "Dunes"}

    def test_threshold_is_inclusive(self) -> None:
        # score("Dune", "Dunes") is exactly 0.8
        assert all_above_threshold("Dune", ["Dunes"], 0.8) == ["Dunes"]

    def test_nothing_matches(self) -> None:
        assert all_above_threshold("Dune", ["Barbie", "Oppenheimer"], 0.8) == []


class TestClosestSpan:
    """Tests for closest_span()."""

    def test_single_word_reference(self) -> None:
        assert closest_span("jade", "Try Jade Palace") == "Jade"

    def test_multi_word_reference(self) -> None:
        assert closest_span("jade palace", "Try Jade Palace") == "Jade Palace"

    def test_whole_title_when_query_is_longer(self) -> None:
        assert closest_span("Watch Dune Part Two tonight", "Dune") == "Dune"

    def test_whole_title_wins_when_it_scores_best(self) -> None:
        assert closest_span("Watch Dune Part 2", "Watch Dune Part Two") == "Watch Dune Part Two"

    def test_partial_reference_clears_match_threshold(self) -> None:
        title = "Try Jade Palace"
        assert score("jade", title) < 0.6
        assert score("jade", closest_span("jade", title)) >= 0.6
