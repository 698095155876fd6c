# tests/test_script_detector.py
import pytest

from bilingual_autocompleter.core.script_detector import (
    KeyboardLayout,
    Language,
    LanguageContext,
    SuggestionSplit,
    contains_kannada,
    detect,
    detect_context_language,
    expected_language,
    suggestion_split,
)


@pytest.mark.parametrize("text, expected", [
    ("hello", Language.ENGLISH),
    ("ನಮಸ್ಕಾರ", Language.KANNADA),
    ("", Language.ENGLISH),
    (None, Language.ENGLISH),
    ("123 !!", Language.ENGLISH),
    ("ನಮಸ್ಕಾರ hi", Language.KANNADA),
    ("ab ನಮ", Language.MIXED),
])
def test_detect(text, expected):
    assert detect(text) is expected


def test_contains_kannada():
    assert contains_kannada("hi ನ")
    assert not contains_kannada("hello")
    assert not contains_kannada("")


def test_context_language_majority():
    assert detect_context_language(["hello", "world", "ನಮಸ್ಕಾರ"]) is Language.ENGLISH
    assert detect_context_language(["ನಾನು", "ನಮ್ಮ", "ok"]) is Language.KANNADA
    assert detect_context_language(["ನಾನು", "ok"]) is Language.MIXED
    assert detect_context_language([]) is Language.ENGLISH


def test_language_context_window():
    ctx = LanguageContext(size=2)
    ctx.add_word("ನಾನು")
    ctx.add_word("hello")
    ctx.add_word("world")
    assert len(ctx) == 2
    assert ctx.current() is Language.ENGLISH
    ctx.clear()
    assert ctx.current() is Language.ENGLISH


@pytest.mark.parametrize("layout, split", [
    (KeyboardLayout.QWERTY, SuggestionSplit(0, 5)),
    (KeyboardLayout.PHONETIC, SuggestionSplit(3, 2)),
    (KeyboardLayout.STANDARD, SuggestionSplit(5, 0)),
    (KeyboardLayout.CUSTOM, SuggestionSplit(5, 0)),
])
def test_suggestion_split(layout, split):
    assert suggestion_split(layout) == split


def test_suggestion_split_scales_with_strip_width():
    split = suggestion_split(KeyboardLayout.PHONETIC, 10)
    assert split == SuggestionSplit(6, 4)
    assert suggestion_split(KeyboardLayout.PHONETIC, 3).total == 3
    assert suggestion_split(KeyboardLayout.QWERTY, 0).total == 0


def test_layout_from_name():
    assert KeyboardLayout.from_name("kannada_phonetic") is KeyboardLayout.PHONETIC
    assert KeyboardLayout.from_name("STANDARD") is KeyboardLayout.STANDARD
    assert KeyboardLayout.from_name("dvorak") is KeyboardLayout.QWERTY
    assert KeyboardLayout.from_name(None) is KeyboardLayout.QWERTY
    assert expected_language(KeyboardLayout.STANDARD) is Language.KANNADA
