"""Unit tests for incidentfusion.utils.text.

Covers:
- normalize_for_similarity: case, punctuation, whitespace
- text_similarity: Jaccard over token sets, empty inputs
- sanitize_text / truncate_text: coercion and length limits
"""

from __future__ import annotations

import pytest

from incidentfusion.utils.text import (
    normalize_for_similarity,
    normalize_text,
    sanitize_text,
    text_similarity,
    token_set,
    truncate_text,
)


class TestNormalizeForSimilarity:
    def test_lowercases_and_strips_punctuation(self):
        """Case and punctuation must not affect the normalized form."""
        assert normalize_for_similarity("Traffic JAM, on 101!!") == "traffic jam on 101"

    def test_collapses_whitespace(self):
        """Runs of whitespace collapse to single spaces and ends are trimmed."""
        assert normalize_for_similarity("  power \t out\n\nagain ") == "power out again"

    def test_token_set_of_blank_text_is_empty(self):
        assert token_set("   ...  ") == set()


class TestTextSimilarity:
    def test_identical_texts_score_one(self):
        assert text_similarity("Road closed", "road closed.") == pytest.approx(1.0)

    def test_paraphrase_scores_by_jaccard(self):
        """'the' is the only extra token: 5 shared of 6 total."""
        score = text_similarity("Traffic jam on the 101 south", "Traffic jam on 101 south")
        assert score == pytest.approx(5 / 6)

    def test_disjoint_texts_score_zero(self):
        assert text_similarity("fireworks downtown", "water main break") == 0.0

    def test_both_empty_scores_zero(self):
        """Two texts without tokens have an empty union and score 0.0, not 1.0."""
        assert text_similarity("", "!!!") == 0.0

    def test_one_empty_scores_zero(self):
        assert text_similarity("", "power outage") == 0.0

    def test_symmetric(self):
        a, b = "Huge crowd at the parade", "parade crowd is huge today"
        assert text_similarity(a, b) == text_similarity(b, a)

    def test_duplicate_tokens_counted_once(self):
        assert text_similarity("fire fire fire", "fire") == pytest.approx(1.0)


class TestSanitizeText:
    def test_non_string_yields_empty(self):
        assert sanitize_text(None) == ""
        assert sanitize_text(42) == ""

    def test_truncates_to_limit(self):
        assert len(sanitize_text("x" * 900)) == 500
        assert sanitize_text("abcdef", max_chars=3) == "abc"

    def test_strips_control_characters(self):
        assert sanitize_text("stop\x00 sign\x07") == "stop sign"

    def test_normalize_text_collapses_whitespace(self):
        assert normalize_text("a   b\n c") == "a b c"

    def test_truncate_text_is_hard_slice(self):
        assert truncate_text("abcdef", 4) == "abcd"
        assert truncate_text("ab", 4) == "ab"
