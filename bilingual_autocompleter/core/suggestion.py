# suggestion.py
# Suggestion value type and the Source tag shared by scorer, ranker and engine.

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from bilingual_autocompleter.core.protocols import SuggestionDict
from bilingual_autocompleter.core.script_detector import Language, contains_kannada, detect


class Source(Enum):
    """
    Where a suggestion came from.
    priority gives the total order used when the same word arrives from
    several sources: EXACT_MATCH > USER_LEARNED > NGRAM > FREQUENCY > DICTIONARY.
    """

    DICTIONARY = "dict"
    FREQUENCY = "freq"
    NGRAM = "ngram"
    USER_LEARNED = "user"
    EXACT_MATCH = "exact"

    @property
    def priority(self) -> int:
        return _PRIORITY[self]

    @property
    def tag(self) -> str:
        return self.value


_PRIORITY = {
    Source.DICTIONARY: 0,
    Source.FREQUENCY: 1,
    Source.NGRAM: 2,
    Source.USER_LEARNED: 3,
    Source.EXACT_MATCH: 4,
}


def higher_priority(a: Source, b: Source) -> Source:
    return a if a.priority >= b.priority else b


@dataclass(frozen=True)
class Suggestion:
    """
    A single ranked candidate for the suggestion strip.
    script is derived from the word when not given.
    """

    word: str
    score: float
    source: Source = Source.DICTIONARY
    script: Optional[Language] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.word:
            raise ValueError("Suggestion word cannot be empty")
        if self.script is None:
            object.__setattr__(self, "script", detect(self.word))

    @property
    def is_kannada(self) -> bool:
        """True when the word carries any Kannada codepoint."""
        return contains_kannada(self.word)

    def with_score(self, score: float) -> "Suggestion":
        return replace(self, score=float(score))

    def to_dict(self) -> SuggestionDict:
        return {
            "word": self.word,
            "score": round(float(self.score), 4),
            "source": self.source.tag,
            "script": self.script.value if self.script else Language.ENGLISH.value,
        }

    def __str__(self) -> str:
        return f"Suggestion(word={self.word!r}, score={self.score:.2f}, source={self.source.tag})"
