"""Tests for shared utility functions."""

from src.utils import contains_term, normalize_message, tokenize


class TestNormalizeMessage:
    def test_lowercases(self):
        assert normalize_message("WHERE Is My Order") == "where is my order"

    def test_strips_punctuation(self):
        assert normalize_message("Where is my order?!") == "where is my order"

    def test_collapses_whitespace(self):
        assert normalize_message("cancel   it \n please") == "cancel it please"

    def test_strips_outer_whitespace(self):
        assert normalize_message("  hello  ") == "hello"

    def test_keeps_hyphenated_ids(self):
        assert normalize_message("Track ORD-12345.") == "track ord-12345"

    def test_same_text_different_punctuation_is_equal(self):
        assert normalize_message("This is ridiculous!!") == normalize_message("this is ridiculous")


class TestTokenize:
    def test_splits_words(self):
        assert tokenize("Cancel my order, please") == ["cancel", "my", "order", "please"]

    def test_keeps_apostrophes(self):
        assert tokenize("I don't want it") == ["i", "don't", "want", "it"]

    def test_empty(self):
        assert tokenize("  ?! ") == []


class TestContainsTerm:
    def test_whole_word(self):
        assert contains_term("can you help me", "help")

    def test_not_inside_other_word(self):
        assert not contains_term("that was helpful", "help")

    def test_phrase(self):
        assert contains_term("i am fed up with this", "fed up")

    def test_at_boundaries(self):
        assert contains_term("no", "no")
        assert not contains_term("nothing", "no")
