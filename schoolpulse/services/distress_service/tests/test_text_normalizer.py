"""Tests for TextNormalizer - phrase and text must normalize identically."""
import pytest

from schoolpulse.services.distress_service.text_normalizer import (
    TextNormalizer,
    normalize_text,
)


@pytest.fixture
def normalizer():
    return TextNormalizer()


class TestPunctuation:

    def test_apostrophes_removed(self, normalizer):
        assert normalizer.normalize("Can't Do THIS!") == "cant do this"

    def test_curly_apostrophe_removed(self, normalizer):
        assert normalizer.normalize("don’t belong") == "dont belong"

    def test_hyphen_becomes_space(self, normalizer):
        assert normalizer.normalize("self-harm") == "self harm"

    def test_whitespace_collapsed(self, normalizer):
        assert normalizer.normalize("   a  lot \n of   space ") == "a lot of space"


class TestUnicode:

    def test_lithuanian_diacritics_folded(self, normalizer):
        assert normalizer.normalize("Savižudybė") == "savizudybe"

    def test_circled_letters(self, normalizer):
        assert "kill" in normalizer.normalize("I want to ⓚⓘⓛⓛ myself")

    def test_fullwidth_letters(self, normalizer):
        assert normalizer.normalize("ｓａｄ") == "sad"

    def test_zero_width_characters_stripped(self, normalizer):
        assert normalizer.normalize("ki\u200bll my\u200dself") == "kill myself"


class TestLeetspeak:

    def test_digits_inside_words(self, normalizer):
        assert normalizer.normalize("K1LL myself") == "kill myself"

    def test_symbol_at_word_start(self, normalizer):
        assert normalizer.normalize("$uicide") == "suicide"

    def test_standalone_numbers_untouched(self, normalizer):
        assert normalizer.normalize("I have 3 classes") == "i have 3 classes"


class TestEdgeCases:

    def test_empty_string(self, normalizer):
        assert normalizer.normalize("") == ""

    def test_convenience_function(self):
        assert normalize_text("Hopeless!!") == "hopeless"
