# bilingual_autocompleter/core/protocols.py
"""
Protocol interfaces for the components the PredictionEngine composes.

These are intentionally small: they describe only the methods the engine and
the tests rely on, so a stub (or an alternative backend) can stand in for the
trie, n-gram model or learning store.
Keep this file stable.
"""

from __future__ import annotations

from typing import Callable, Dict, List, NamedTuple, Optional, Protocol, Sequence, runtime_checkable

from typing_extensions import TypedDict


# Typed structures used across components ------------------------------------

class DictionaryEntry(NamedTuple):
    """A (word, frequency) pair as stored in a prefix dictionary."""
    word: str
    frequency: int


class WordScore(NamedTuple):
    """Scored next-word candidate returned by the n-gram model."""
    word: str
    score: float


class LearnedScore(NamedTuple):
    """Row returned by learning-store queries."""
    word: str
    score: float
    frequency: int
    last_used_at: float


class SuggestionDict(TypedDict):
    """
    Serialisable view of a Suggestion, e.g.
      {"word": "hello", "score": 412.5, "source": "dict", "script": "en"}
    """
    word: str
    score: float
    source: str
    script: str


Transliterator = Callable[[str], str]


# Protocols ------------------------------------------------------------------

@runtime_checkable
class DictionaryIndexProtocol(Protocol):
    """Read-only prefix lookup over a frozen word list."""

    def completions(self, prefix: str, limit: int) -> List[DictionaryEntry]:
        ...

    def fuzzy_completions(self, prefix: str, limit: int) -> List[DictionaryEntry]:
        ...

    def frequency(self, word: str) -> int:
        ...

    def __len__(self) -> int:
        ...


class NgramProtocol(Protocol):
    """Next-word model keyed on one or two previous words."""

    def predict(self, context1: Optional[str], context2: Optional[str], limit: int) -> List[WordScore]:
        ...

    @property
    def bigram_count(self) -> int:
        ...

    @property
    def trigram_count(self) -> int:
        ...


class LearningStoreProtocol(Protocol):
    """Per-user adaptive vocabulary with write-through updates."""

    def add_word(self, word: str) -> None:
        ...

    def add_bigram(self, word1: str, word2: str) -> None:
        ...

    def add_trigram(self, word1: str, word2: str, word3: str) -> None:
        ...

    def suggestions(self, prefix: str, limit: int) -> Sequence[LearnedScore]:
        ...

    def bigram_suggestions(self, prev: str, limit: int) -> Sequence[LearnedScore]:
        ...

    def trigram_suggestions(self, prev2: str, prev1: str, limit: int) -> Sequence[LearnedScore]:
        ...

    def prune_old_entries(self) -> Dict[str, int]:
        ...

    def clear_all(self) -> None:
        ...

    def close(self) -> None:
        ...
