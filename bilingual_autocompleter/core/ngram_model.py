# ngram_model.py
# Bigram/trigram next-word model built from frequency tables.

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from bilingual_autocompleter.core.errors import AssetFormatError
from bilingual_autocompleter.core.protocols import WordScore
from bilingual_autocompleter.utils.logger_utils import Log

Word = str
BigramKey = Word
TrigramKey = Tuple[Word, Word]


@dataclass(frozen=True)
class NgramConfig:
    """
    Knobs for combining trigram and bigram evidence.
    """
    topn: int = 5
    trigram_weight: float = 1.5
    bigram_weight: float = 1.0
    default_frequency: int = 1  # used when an asset line has no count column


def _fold(word: str) -> str:
    return word.strip().lower()


class NgramModel:
    """
    Next-word prediction from one or two previous words:
      - bigram table:  prev -> Counter(next)
      - trigram table: (prev2, prev1) -> Counter(next)
      - keys and next words are case-folded
      - predict() merges trigram and bigram evidence, trigram weighted higher

    Tables are loaded once from tab-separated files and only read afterwards.
    add_bigram()/add_trigram() overwrite a count and exist for loading and tests.
    """

    def __init__(self, config: Optional[NgramConfig] = None) -> None:
        self.cfg = config or NgramConfig()
        self._bigrams: Dict[BigramKey, Counter] = defaultdict(Counter)
        self._trigrams: Dict[TrigramKey, Counter] = defaultdict(Counter)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------
    def add_bigram(self, word1: str, word2: str, frequency: int) -> None:
        if not word1 or not word2:
            return
        self._bigrams[_fold(word1)][_fold(word2)] = int(frequency)

    def add_trigram(self, word1: str, word2: str, word3: str, frequency: int) -> None:
        if not word1 or not word2 or not word3:
            return
        self._trigrams[(_fold(word1), _fold(word2))][_fold(word3)] = int(frequency)

    def clear(self) -> None:
        self._bigrams.clear()
        self._trigrams.clear()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def _parse(self, line_no: int, raw: str, n: int) -> Optional[Tuple[List[str], int]]:
        """Split one n-gram line into (words, frequency); None for comments/blank lines."""
        line = raw.strip()
        if not line or line.startswith("#"):
            return None
        parts = [p.strip() for p in line.split("\t")]
        if len(parts) < n:
            raise AssetFormatError(line_no, raw, f"expected at least {n} columns")
        words = parts[:n]
        if not all(words):
            raise AssetFormatError(line_no, raw, "empty word")
        frequency = self.cfg.default_frequency
        if len(parts) > n and parts[n]:
            try:
                frequency = int(parts[n])
            except ValueError:
                raise AssetFormatError(line_no, raw, "non-numeric frequency")
        return words, frequency

    def _read(self, path: str, n: int) -> Iterator[Tuple[List[str], int]]:
        skipped = 0
        with open(path, "r", encoding="utf-8-sig") as fh:
            for line_no, raw in enumerate(fh, 1):
                try:
                    parsed = self._parse(line_no, raw, n)
                except AssetFormatError as e:
                    skipped += 1
                    Log.write(f"[NgramModel] skipped {path} {e}", level="DEBUG")
                    continue
                if parsed is not None:
                    yield parsed
        if skipped:
            Log.write(f"[NgramModel] {path}: skipped {skipped} malformed lines", level="WARNING")

    def load_bigrams(self, path: str) -> int:
        """Load `word1<TAB>word2<TAB>[frequency]` lines. Returns accepted line count."""
        count = 0
        for (w1, w2), freq in self._read(path, 2):
            self.add_bigram(w1, w2, freq)
            count += 1
        Log.write(f"[NgramModel] loaded {count} bigrams from {path}")
        return count

    def load_trigrams(self, path: str) -> int:
        """Load `word1<TAB>word2<TAB>word3<TAB>[frequency]` lines. Returns accepted line count."""
        count = 0
        for (w1, w2, w3), freq in self._read(path, 3):
            self.add_trigram(w1, w2, w3, freq)
            count += 1
        Log.write(f"[NgramModel] loaded {count} trigrams from {path}")
        return count

    # ------------------------------------------------------------------
    # Prediction (public API)
    # ------------------------------------------------------------------
    @staticmethod
    def _top(scores: Dict[Word, float], n: int) -> List[WordScore]:
        ranked = sorted(scores.items(), key=lambda x: (-x[1], x[0]))
        return [WordScore(w, s) for w, s in ranked[:n]]

    def bigram_predictions(self, prev: Optional[str], limit: Optional[int] = None) -> List[WordScore]:
        n = self.cfg.topn if limit is None else limit
        if not prev or n <= 0:
            return []
        counter = self._bigrams.get(_fold(prev))
        if not counter:
            return []
        return self._top({w: float(c) for w, c in counter.items()}, n)

    def trigram_predictions(self, prev2: Optional[str], prev1: Optional[str],
                            limit: Optional[int] = None) -> List[WordScore]:
        n = self.cfg.topn if limit is None else limit
        if not prev2 or not prev1 or n <= 0:
            return []
        counter = self._trigrams.get((_fold(prev2), _fold(prev1)))
        if not counter:
            return []
        return self._top({w: float(c) for w, c in counter.items()}, n)

    def predict(self, context1: Optional[str], context2: Optional[str],
                limit: Optional[int] = None) -> List[WordScore]:
        """
        Next-word candidates after `context1 context2` (context2 is the most
        recent word). Trigram counts are weighted by trigram_weight, bigram
        counts on context2 by bigram_weight, and a word found by both gets
        the sum.
        """
        n = self.cfg.topn if limit is None else limit
        if n <= 0:
            return []

        scores: Dict[Word, float] = defaultdict(float)
        if context1 and context2:
            counter = self._trigrams.get((_fold(context1), _fold(context2)))
            if counter:
                for w, c in counter.items():
                    scores[w] += c * self.cfg.trigram_weight
        if context2:
            counter = self._bigrams.get(_fold(context2))
            if counter:
                for w, c in counter.items():
                    scores[w] += c * self.cfg.bigram_weight
        return self._top(scores, n)

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    def contains_bigram(self, word1: str, word2: str) -> bool:
        counter = self._bigrams.get(_fold(word1 or ""))
        return bool(counter) and _fold(word2 or "") in counter

    def bigram_frequency(self, word1: str, word2: str) -> int:
        counter = self._bigrams.get(_fold(word1 or ""))
        if not counter:
            return 0
        return counter.get(_fold(word2 or ""), 0)

    def trigram_frequency(self, word1: str, word2: str, word3: str) -> int:
        counter = self._trigrams.get((_fold(word1 or ""), _fold(word2 or "")))
        if not counter:
            return 0
        return counter.get(_fold(word3 or ""), 0)

    @property
    def bigram_count(self) -> int:
        return sum(len(c) for c in self._bigrams.values())

    @property
    def trigram_count(self) -> int:
        return sum(len(c) for c in self._trigrams.values())
