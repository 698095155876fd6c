# bilingual_autocompleter/core/suggestion_ranker.py
"""
SuggestionRanker - fuse candidates from every source into one ordered strip.

rank():
 - merge duplicates by word: scores are summed, the highest-priority source is kept
 - multiply by the source weight (dictionary 1.0, frequency 1.0, ngram 1.5,
   user 2.0, exact 3.0)
 - boost an exact typed match by the exact weight, a prefix match by prefix_boost
 - stable sort by score, so equal scores keep their first-seen order

filter_by_language():
 - "show N Kannada and M English" policy with backfill, so the strip is never
   shorter than the number of candidates available
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional

from bilingual_autocompleter.core.suggestion import Source, Suggestion, higher_priority

logger = logging.getLogger(__name__)

_DEFAULT_SOURCE_WEIGHTS: Dict[Source, float] = {
    Source.DICTIONARY: 1.0,
    Source.FREQUENCY: 1.0,
    Source.NGRAM: 1.5,
    Source.USER_LEARNED: 2.0,
    Source.EXACT_MATCH: 3.0,
}


@dataclass(frozen=True)
class RankerConfig:
    """
    Source weights and typed-match boosts.
    exact_boost defaults to the EXACT_MATCH source weight.
    """
    source_weights: Mapping[Source, float] = field(default_factory=lambda: dict(_DEFAULT_SOURCE_WEIGHTS))
    prefix_boost: float = 1.3
    exact_boost: Optional[float] = None

    def weight(self, source: Source) -> float:
        return float(self.source_weights.get(source, _DEFAULT_SOURCE_WEIGHTS[source]))

    @property
    def exact_multiplier(self) -> float:
        if self.exact_boost is not None:
            return float(self.exact_boost)
        return self.weight(Source.EXACT_MATCH)


def _by_score(suggestions: Iterable[Suggestion]) -> List[Suggestion]:
    # sorted() is stable, equal scores keep their incoming order
    return sorted(suggestions, key=lambda s: -s.score)


class SuggestionRanker:
    """
    Multi-source ranker.

    Public API:
      - rank(candidates, typed, limit)
      - filter_by_language(ranked, kannada_quota, english_quota)
    """

    def __init__(self, config: Optional[RankerConfig] = None):
        self.cfg = config or RankerConfig()

    @staticmethod
    def merge(candidates: Iterable[Suggestion]) -> List[Suggestion]:
        """Collapse duplicate words, summing scores and keeping the stronger source."""
        merged: Dict[str, Suggestion] = {}
        for s in candidates:
            prev = merged.get(s.word)
            if prev is None:
                merged[s.word] = s
            else:
                merged[s.word] = replace(prev, score=prev.score + s.score,
                                         source=higher_priority(prev.source, s.source))
        return list(merged.values())

    def final_score(self, s: Suggestion, typed: Optional[str]) -> float:
        multiplier = self.cfg.weight(s.source)
        if typed:
            word_l, typed_l = s.word.lower(), typed.lower()
            if word_l == typed_l:
                multiplier *= self.cfg.exact_multiplier
            elif word_l.startswith(typed_l):
                multiplier *= self.cfg.prefix_boost
        return s.score * multiplier

    def rank(self, candidates: Iterable[Suggestion], typed: Optional[str], limit: int) -> List[Suggestion]:
        if limit <= 0:
            return []
        merged = self.merge(candidates)
        if not merged:
            return []
        scored = [s.with_score(self.final_score(s, typed)) for s in merged]
        ranked = _by_score(scored)
        logger.debug("ranked %d candidates for %r", len(ranked), typed)
        return ranked[:limit]

    def filter_by_language(self, ranked: Iterable[Suggestion], kannada_quota: int,
                           english_quota: int) -> List[Suggestion]:
        """
        Take up to kannada_quota Kannada-script words and english_quota others,
        then backfill from the leftovers of both until the combined quota is met.
        """
        kannada: List[Suggestion] = []
        english: List[Suggestion] = []
        for s in ranked:
            (kannada if s.is_kannada else english).append(s)
        if not kannada and not english:
            return []

        kannada = _by_score(kannada)
        english = _by_score(english)
        kq, eq = max(0, kannada_quota), max(0, english_quota)

        result = kannada[:kq] + english[:eq]
        remaining = (kq + eq) - len(result)
        if remaining > 0:
            leftovers = _by_score(kannada[kq:] + english[eq:])
            result.extend(leftovers[:remaining])
        return _by_score(result)
