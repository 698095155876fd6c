# script_detector.py
# Script/language detection for Kannada + English input and the layout tables
# that decide how many suggestions of each script the strip shows.

from __future__ import annotations

from collections import deque
from enum import Enum
from typing import Iterable, NamedTuple, Optional

# Kannada Unicode block
KANNADA_START = 0x0C80
KANNADA_END = 0x0CFF

DOMINANCE_RATIO = 0.7   # share of script letters needed for a clear verdict
STRIP_WIDTH = 5         # default number of suggestion slots


class Language(Enum):
    ENGLISH = "en"
    KANNADA = "kn"
    MIXED = "mix"   # code-switching, e.g. Kanglish

    @property
    def is_kannada(self) -> bool:
        return self in (Language.KANNADA, Language.MIXED)

    @property
    def is_english(self) -> bool:
        return self in (Language.ENGLISH, Language.MIXED)


class KeyboardLayout(Enum):
    """Layouts the engine knows about, valued by their layout-set name."""

    PHONETIC = "kannada_phonetic"   # Latin keystrokes transliterated to Kannada
    STANDARD = "kannada"            # Inscript-like Kannada layout
    CUSTOM = "kannada_custom"       # Kannada layout with vowel modifiers
    QWERTY = "qwerty"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "KeyboardLayout":
        """Resolve a layout-set name or enum name; unknown names map to QWERTY."""
        if not name:
            return cls.QWERTY
        key = name.strip().lower()
        for layout in cls:
            if key in (layout.value, layout.name.lower()):
                return layout
        return cls.QWERTY

    @property
    def is_kannada_layout(self) -> bool:
        return self is not KeyboardLayout.QWERTY

    @property
    def is_phonetic(self) -> bool:
        return self is KeyboardLayout.PHONETIC


class SuggestionSplit(NamedTuple):
    kannada: int
    english: int

    @property
    def total(self) -> int:
        return self.kannada + self.english


_EXPECTED_LANGUAGE = {
    KeyboardLayout.QWERTY: Language.ENGLISH,
    KeyboardLayout.PHONETIC: Language.MIXED,
    KeyboardLayout.STANDARD: Language.KANNADA,
    KeyboardLayout.CUSTOM: Language.KANNADA,
}

# (kannada, english) slots for a strip of STRIP_WIDTH
_SPLITS = {
    KeyboardLayout.QWERTY: SuggestionSplit(0, 5),
    KeyboardLayout.PHONETIC: SuggestionSplit(3, 2),
    KeyboardLayout.STANDARD: SuggestionSplit(5, 0),
    KeyboardLayout.CUSTOM: SuggestionSplit(5, 0),
}


def is_kannada_char(ch: str) -> bool:
    return KANNADA_START <= ord(ch) <= KANNADA_END


def is_latin_char(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def contains_kannada(text: str) -> bool:
    return any(is_kannada_char(ch) for ch in text or "")


def detect(text: Optional[str]) -> Language:
    """
    Classify text by the share of Kannada vs Latin letters.
    Spaces, digits and punctuation are ignored. Empty or ambiguous
    input defaults to ENGLISH.
    """
    if not text:
        return Language.ENGLISH

    kannada = latin = 0
    for ch in text:
        if is_kannada_char(ch):
            kannada += 1
        elif is_latin_char(ch):
            latin += 1

    total = kannada + latin
    if total == 0:
        return Language.ENGLISH
    if kannada / total > DOMINANCE_RATIO:
        return Language.KANNADA
    if latin / total > DOMINANCE_RATIO:
        return Language.ENGLISH
    if kannada and latin:
        return Language.MIXED
    return Language.ENGLISH


def detect_context_language(words: Iterable[Optional[str]]) -> Language:
    """Majority vote over recent words; a draw reads as MIXED."""
    kannada = english = 0
    seen = False
    for word in words:
        if not word:
            continue
        seen = True
        lang = detect(word)
        if lang is Language.KANNADA:
            kannada += 1
        elif lang is Language.ENGLISH:
            english += 1
    if not seen:
        return Language.ENGLISH
    if kannada > english:
        return Language.KANNADA
    if english > kannada:
        return Language.ENGLISH
    return Language.MIXED


def expected_language(layout: KeyboardLayout) -> Language:
    return _EXPECTED_LANGUAGE.get(layout, Language.ENGLISH)


def suggestion_split(layout: KeyboardLayout, total: int = STRIP_WIDTH) -> SuggestionSplit:
    """
    How many Kannada and English suggestions to show for a layout.
    The base table is defined for a strip of 5; other widths are scaled
    and the two counts always add up to `total`.
    """
    base = _SPLITS.get(layout, _SPLITS[KeyboardLayout.QWERTY])
    total = max(0, int(total))
    if total == base.total:
        return base
    kannada = int(round(base.kannada * total / base.total))
    return SuggestionSplit(kannada, total - kannada)


class LanguageContext:
    """Rolling history of committed words used to guess the current language."""

    MAX_HISTORY = 10

    def __init__(self, size: int = MAX_HISTORY):
        self._history: deque = deque(maxlen=size)

    def add_word(self, word: Optional[str]) -> None:
        if word:
            self._history.append(word)

    def current(self) -> Language:
        return detect_context_language(self._history)

    def clear(self) -> None:
        self._history.clear()

    def __len__(self) -> int:
        return len(self._history)
