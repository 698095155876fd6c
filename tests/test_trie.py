# tests/test_trie.py
# unit tests for PrefixDictionary completions, fuzzy fallback and file loading

import pytest

from bilingual_autocompleter.core.edit_distance import bounded_distance, capped_distance
from bilingual_autocompleter.core.errors import AssetFormatError
from bilingual_autocompleter.core.protocols import DictionaryEntry, DictionaryIndexProtocol
from bilingual_autocompleter.core.trie import (
    DEFAULT_FREQUENCY,
    FuzzyConfig,
    PrefixDictionary,
    parse_dictionary_line,
)


@pytest.fixture
def small():
    return PrefixDictionary.load({"hello": 50, "help": 40, "held": 30, "world": 10})


def test_completions_highest_frequency_first(small):
    words = [e.word for e in small.completions("hel", 3)]
    assert words == ["hello", "help", "held"]


def test_completions_carry_frequency(small):
    assert small.completions("hel", 1) == [DictionaryEntry("hello", 50)]


def test_every_completion_starts_with_prefix(small):
    for prefix in ("h", "he", "hel", "hell", "w"):
        assert all(e.word.startswith(prefix) for e in small.completions(prefix, 10))


def test_ties_broken_lexicographically():
    idx = PrefixDictionary.load({"bat": 5, "bad": 5, "ban": 5, "bar": 9})
    assert [e.word for e in idx.completions("ba", 4)] == ["bar", "bad", "ban", "bat"]


def test_word_precedes_its_longer_extensions_on_tie():
    idx = PrefixDictionary.load({"he": 5, "hello": 5})
    assert [e.word for e in idx.completions("he", 2)] == ["he", "hello"]


def test_completions_are_deterministic(small):
    assert small.completions("he", 10) == small.completions("he", 10)


def test_unknown_or_empty_prefix_and_zero_limit(small):
    assert small.completions("xyz", 5) == []
    assert small.completions("", 5) == []
    assert small.completions("hel", 0) == []


def test_limit_truncates(small):
    assert len(small.completions("h", 2)) == 2


def test_duplicate_word_last_frequency_wins():
    idx = PrefixDictionary.load([("cat", 1), ("cat", 7)])
    assert idx.frequency("cat") == 7
    assert len(idx) == 1


def test_introspection(small):
    assert "help" in small
    assert "hel" not in small
    assert small.frequency("hel") == 0
    assert small.frequency("world") == 10
    assert len(small) == 4
    assert [e.word for e in small.words()] == ["held", "hello", "help", "world"]


def test_kannada_completions():
    idx = PrefixDictionary.from_entries({"ನಮಸ್ಕಾರ": 5000, "ನಮ್ಮ": 4500, "ನಾನು": 6000})
    assert [e.word for e in idx.completions("ನಮ", 5)] == ["ನಮಸ್ಕಾರ", "ನಮ್ಮ"]
    assert [e.word for e in idx.completions("ನ", 5)] == ["ನಾನು", "ನಮಸ್ಕಾರ", "ನಮ್ಮ"]


def test_empty_index():
    idx = PrefixDictionary()
    assert len(idx) == 0
    assert idx.completions("a", 5) == []
    assert idx.fuzzy_completions("abc", 5) == []


# fuzzy ------------------------------------------------------------------------

def test_fuzzy_fills_in_near_misses():
    idx = PrefixDictionary.load({"hello": 50, "help": 40, "helmet": 5})
    words = [e.word for e in idx.fuzzy_completions("helo", 5)]
    assert words == ["hello", "help"]


def test_fuzzy_discounts_frequency():
    idx = PrefixDictionary.load({"hello": 50})
    (entry,) = idx.fuzzy_matches("helo")
    assert entry.word == "hello"
    assert entry.frequency == 35


def test_exact_results_come_before_fuzzy_hits():
    idx = PrefixDictionary.load({"cart": 10, "card": 100, "care": 50, "cat": 500})
    words = [e.word for e in idx.fuzzy_completions("car", 5)]
    assert words == ["card", "care", "cart", "cat"]


def test_fuzzy_needs_minimum_prefix_length():
    idx = PrefixDictionary.load({"hello": 50})
    assert idx.fuzzy_completions("hx", 5) == []


def test_fuzzy_skipped_when_exact_fills_limit(small):
    assert small.fuzzy_completions("hel", 2) == small.completions("hel", 2)


def test_fuzzy_disabled_with_zero_distance():
    idx = PrefixDictionary.load({"hello": 50}, fuzzy=FuzzyConfig(max_distance=0))
    assert idx.fuzzy_completions("helo", 5) == []


def test_fuzzy_results_within_two_edits():
    words = {"kitten": 5, "sitten": 4, "sitting": 3, "mitten": 9, "kitchen": 7, "bitter": 2}
    idx = PrefixDictionary.load(words, fuzzy=FuzzyConfig(max_distance=2))
    for e in idx.fuzzy_completions("kitte", 10):
        assert e.word.startswith("kitte") or capped_distance("kitte", e.word) <= 2


def test_fuzzy_config_validation():
    with pytest.raises(ValueError):
        FuzzyConfig(max_distance=3)
    with pytest.raises(ValueError):
        FuzzyConfig(min_prefix_length=0)


# loading ------------------------------------------------------------------------

def test_from_file_parses_and_defaults(tmp_path):
    path = tmp_path / "dict.txt"
    path.write_text(
        "# comment line\n"
        "\n"
        "apple\t10\n"
        "apricot\n"
        "banana\tabc\n"
        "cherry\t-5\n"
        "\t5\n",
        encoding="utf-8",
    )
    idx = PrefixDictionary.from_file(str(path))
    assert len(idx) == 4
    assert idx.frequency("apple") == 10
    assert idx.frequency("apricot") == DEFAULT_FREQUENCY
    assert idx.frequency("banana") == DEFAULT_FREQUENCY
    assert idx.frequency("cherry") == DEFAULT_FREQUENCY
    assert "5" not in idx


def test_from_file_missing_raises(tmp_path):
    with pytest.raises(OSError):
        PrefixDictionary.from_file(str(tmp_path / "missing.txt"))


def test_parse_dictionary_line():
    assert parse_dictionary_line(1, "# x") is None
    assert parse_dictionary_line(1, "   \n") is None
    assert parse_dictionary_line(1, "word\t12\n") == DictionaryEntry("word", 12)
    with pytest.raises(AssetFormatError):
        parse_dictionary_line(3, "\t12\n")


# edit distance -------------------------------------------------------------------

def test_capped_distance_without_cap():
    assert capped_distance("kitten", "sitting") == 3
    assert capped_distance("", "abc") == 3
    assert capped_distance("same", "same") == 0


def test_capped_distance_reports_cap_plus_one():
    assert capped_distance("kitten", "sitting", 1) == 2
    assert capped_distance("a", "abcdef", 2) == 3
    # same length, every row past the cap
    assert capped_distance("abcd", "wxyz", 1) == 2
    assert capped_distance("abcd", "wxyz", 4) == 4
    assert capped_distance("ನಮ್ಮ", "ನಮ", 1) == 2


def test_bounded_distance_infinite_for_large_length_gap():
    assert bounded_distance("a", "abcde") == float("inf")
    assert bounded_distance("help", "hello") == 2


def test_prefix_dictionary_is_a_dictionary_index(small):
    assert isinstance(small, DictionaryIndexProtocol)
    assert not isinstance(object(), DictionaryIndexProtocol)
