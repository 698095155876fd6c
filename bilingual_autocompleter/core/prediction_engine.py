# bilingual_autocompleter/core/prediction_engine.py
"""
PredictionEngine - owns every prediction component and exposes the keyboard API.

Purpose:
 - Load both dictionaries, the n-gram tables and the learning store on one
   background worker, then flip to READY.
 - get_suggestions(typed, layout): gather candidates from the Kannada and English
   dictionaries, the n-gram model and the learning store (context candidates are
   filtered to the typed prefix), score them with FeatureScorer, fuse and
   script-balance them with SuggestionRanker, pin an abbreviation expansion first.
 - get_next_word_predictions(layout): n-gram + learned bigram/trigram lookups
   from the last two committed words.
 - on_word_committed(word): roll the 3-word context window, write through to
   the learning store, drop cached results.
 - Keep an LRU of recent results keyed on (typed, layout).

State machine: UNINITIALIZED -> LOADING -> READY -> SHUTDOWN (terminal).
Before READY and after SHUTDOWN every query returns [].
"""

from __future__ import annotations

import os
import sqlite3
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from bilingual_autocompleter.core.abbreviations import AbbreviationExpander
from bilingual_autocompleter.core.feature_scorer import FeatureScorer, ScorerWeights
from bilingual_autocompleter.core.input_normalizer import InputNormalizer
from bilingual_autocompleter.core.learning_store import (
    MEMORY_DB,
    LearningConfig,
    LearningStore,
    recency_boost,
)
from bilingual_autocompleter.core.ngram_model import NgramModel
from bilingual_autocompleter.core.protocols import (
    DictionaryIndexProtocol,
    LearnedScore,
    LearningStoreProtocol,
    NgramProtocol,
    Transliterator,
    WordScore,
)
from bilingual_autocompleter.core.script_detector import (
    KeyboardLayout,
    Language,
    LanguageContext,
    detect,
    suggestion_split,
)
from bilingual_autocompleter.core.suggestion import Source, Suggestion
from bilingual_autocompleter.core.suggestion_ranker import RankerConfig, SuggestionRanker
from bilingual_autocompleter.core.trie import FuzzyConfig, PrefixDictionary
from bilingual_autocompleter.utils.cache_utils import LRUCache
from bilingual_autocompleter.utils.logger_utils import Log

PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.path.join(PACKAGE_DIR, "data")

EXPANSION_SCORE = 1_000_000.0
CONTEXT_WINDOW = 3

LayoutLike = Union[KeyboardLayout, str]
OnReady = Callable[[bool], None]


def _asset(name: str) -> str:
    return os.path.join(DATA_DIR, name)


@dataclass(frozen=True)
class EngineConfig:
    """
    Asset locations and tuning for one engine.
    Asset paths default to the bundled sample files; None skips that asset.
    """
    english_dictionary: Optional[str] = field(default_factory=lambda: _asset("english_base.txt"))
    kannada_dictionary: Optional[str] = field(default_factory=lambda: _asset("kannada_base.txt"))
    bigrams: Optional[str] = field(default_factory=lambda: _asset("english_bigrams.txt"))
    trigrams: Optional[str] = field(default_factory=lambda: _asset("english_trigrams.txt"))
    abbreviations: Optional[str] = None  # JSON file of user abbreviations
    db_path: Optional[str] = MEMORY_DB   # None runs without a learning store
    max_suggestions: int = 5
    cache_size: int = 100
    fuzzy_enabled: bool = True
    fuzzy: FuzzyConfig = field(default_factory=FuzzyConfig)
    ranker: RankerConfig = field(default_factory=RankerConfig)
    learning: LearningConfig = field(default_factory=LearningConfig)
    weights: ScorerWeights = field(default_factory=ScorerWeights)

    @classmethod
    def without_assets(cls, **overrides) -> "EngineConfig":
        """Config with no asset files, for hosts that inject their own indexes."""
        base = dict(english_dictionary=None, kannada_dictionary=None, bigrams=None, trigrams=None)
        base.update(overrides)
        return cls(**base)


class EngineState(Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    SHUTDOWN = "shutdown"


# (word, frequency, source, extract_features kwargs)
_Raw = Tuple[str, int, Source, Dict[str, float]]


class PredictionEngine:
    """
    Orchestrates the bilingual prediction pipeline.

    Public API:
      - initialize_async(on_ready=None) -> Future[bool], initialize() -> bool
      - get_suggestions(typed, layout) -> List[Suggestion]
      - get_next_word_predictions(layout) -> List[Suggestion]
      - on_word_committed(word)
      - reset_context()
      - shutdown()
      - state, is_ready, context(), context_language()

    Pre-built components may be injected (english_index, kannada_index, ngram,
    learning_store); injected components replace the matching asset load.
    """

    def __init__(self,
                 config: Optional[EngineConfig] = None,
                 *,
                 transliterator: Optional[Transliterator] = None,
                 english_index: Optional[DictionaryIndexProtocol] = None,
                 kannada_index: Optional[DictionaryIndexProtocol] = None,
                 ngram: Optional[NgramProtocol] = None,
                 learning_store: Optional[LearningStoreProtocol] = None,
                 clock: Callable[[], float] = time.time):
        self.config = config or EngineConfig()
        self._clock = clock

        # Stateless helpers
        self.normalizer = InputNormalizer(transliterator)
        self.scorer = FeatureScorer(self.config.weights)
        self.ranker = SuggestionRanker(self.config.ranker)
        self.expander = AbbreviationExpander()

        # Injected components (used instead of loading assets)
        self._injected = {
            "english": english_index,
            "kannada": kannada_index,
            "ngram": ngram,
            "store": learning_store,
        }

        # Published by the loader under _state_lock
        self._english: DictionaryIndexProtocol = PrefixDictionary()
        self._kannada: DictionaryIndexProtocol = PrefixDictionary()
        self._ngram: NgramProtocol = NgramModel()
        self._store: Optional[LearningStoreProtocol] = None

        # State
        self._state = EngineState.UNINITIALIZED
        self._state_lock = threading.Lock()
        self._stop = threading.Event()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="engine-loader")
        self._loader_thread: Optional[int] = None
        self._future: Optional[Future] = None

        # Context + cache
        self._window: deque = deque(maxlen=CONTEXT_WINDOW)
        self._context_lock = threading.Lock()
        self._generation = 0  # bumped whenever cached results go stale
        self._language = LanguageContext()
        self._cache: LRUCache[Tuple[Suggestion, ...]] = LRUCache(self.config.cache_size)

    # -------------------------
    # Lifecycle
    # -------------------------
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is EngineState.READY

    @property
    def learning_store(self) -> Optional[LearningStoreProtocol]:
        return self._store

    def initialize_async(self, on_ready: Optional[OnReady] = None) -> Future:
        """
        Start loading on the background worker. The future resolves to True
        once the engine is READY. Calling it again returns the first future.
        """
        with self._state_lock:
            if self._state is not EngineState.SHUTDOWN:
                if self._future is None:
                    self._state = EngineState.LOADING
                    self._future = self._executor.submit(self._load, on_ready)
                return self._future

        # the callback may call back into the engine, so it runs without the lock
        done: Future = Future()
        done.set_result(False)
        if on_ready:
            self._notify(on_ready, False)
        return done

    def initialize(self) -> bool:
        """Blocking form of initialize_async()."""
        return self.initialize_async().result()

    @staticmethod
    def _notify(on_ready: OnReady, success: bool) -> None:
        try:
            on_ready(success)
        except Exception as e:
            Log.write(f"[Engine] on_ready callback failed: {e}", level="ERROR")

    def _load_dictionary(self, path: Optional[str], label: str) -> DictionaryIndexProtocol:
        injected = self._injected[label]
        if injected is not None:
            return injected
        if not path:
            Log.write(f"[Engine] no {label} dictionary configured", level="DEBUG")
            return PrefixDictionary(fuzzy=self.config.fuzzy)
        try:
            return PrefixDictionary.from_file(path, fuzzy=self.config.fuzzy)
        except (OSError, UnicodeDecodeError) as e:
            Log.write(f"[Engine] failed to load {label} dictionary {path}: {e}", level="ERROR")
            return PrefixDictionary(fuzzy=self.config.fuzzy)

    def _load_ngrams(self) -> NgramProtocol:
        injected = self._injected["ngram"]
        if injected is not None:
            return injected
        model = NgramModel()
        for path, loader in ((self.config.bigrams, model.load_bigrams),
                             (self.config.trigrams, model.load_trigrams)):
            if not path:
                continue
            try:
                loader(path)
            except (OSError, UnicodeDecodeError) as e:
                Log.write(f"[Engine] failed to load n-grams {path}: {e}", level="ERROR")
        return model

    def _open_store(self) -> Optional[LearningStoreProtocol]:
        injected = self._injected["store"]
        if injected is not None:
            return injected
        if self.config.db_path is None:
            return None
        try:
            return LearningStore(self.config.db_path, self.config.learning, clock=self._clock)
        except (OSError, sqlite3.Error) as e:
            Log.write(f"[Engine] could not open learning store {self.config.db_path}: {e}", level="ERROR")
            return None

    def _load(self, on_ready: Optional[OnReady]) -> bool:
        self._loader_thread = threading.get_ident()
        english = kannada = None
        ngram = None
        store = None
        with Log.time_block("Engine.load"):
            # (loader, empty fallback) pairs; the stop flag is checked between assets
            steps = (
                (lambda: self._load_dictionary(self.config.english_dictionary, "english"), PrefixDictionary),
                (lambda: self._load_dictionary(self.config.kannada_dictionary, "kannada"), PrefixDictionary),
                (self._load_ngrams, NgramModel),
                (self._open_store, lambda: None),
            )
            results = []
            for step, fallback in steps:
                if self._stop.is_set():
                    break
                try:
                    results.append(step())
                except Exception as e:
                    Log.write(f"[Engine] load step failed: {e}", level="ERROR")
                    results.append(fallback())
            if len(results) == len(steps):
                english, kannada, ngram, store = results
            if self.config.abbreviations and not self._stop.is_set():
                self.expander.load_custom(self.config.abbreviations)

        with self._state_lock:
            ok = ngram is not None and self._state is EngineState.LOADING and not self._stop.is_set()
            if ok:
                self._english, self._kannada, self._ngram, self._store = english, kannada, ngram, store
                self._state = EngineState.READY
        if not ok and store is not None:
            store.close()

        if ok:
            Log.write(f"[Engine] ready: english={len(english)} kannada={len(kannada)} "
                      f"bigrams={ngram.bigram_count} trigrams={ngram.trigram_count} "
                      f"store={'on' if store else 'off'}")
        else:
            Log.write("[Engine] load aborted by shutdown", level="WARNING")
        if on_ready:
            self._notify(on_ready, ok)
        return ok

    def shutdown(self) -> None:
        """Stop the loader, close the learning store, drop caches. Terminal."""
        with self._state_lock:
            if self._state is EngineState.SHUTDOWN:
                return
            self._state = EngineState.SHUTDOWN
            store, self._store = self._store, None
        self._stop.set()
        # the loader thread itself may call shutdown from on_ready
        self._executor.shutdown(wait=threading.get_ident() != self._loader_thread)
        if store is not None:
            store.close()
        self._cache.clear()
        with self._context_lock:
            self._window.clear()
            self._language.clear()
        Log.write("[Engine] shut down")

    # -------------------------
    # Context
    # -------------------------
    def context(self) -> Tuple[str, ...]:
        """Committed-word window, oldest first."""
        with self._context_lock:
            return tuple(self._window)

    def context_language(self) -> Language:
        with self._context_lock:
            return self._language.current()

    def _previous(self) -> Tuple[Optional[str], Optional[str]]:
        """(second previous, previous) committed words."""
        with self._context_lock:
            words = list(self._window)
        prev1 = words[-1] if words else None
        prev2 = words[-2] if len(words) >= 2 else None
        return prev2, prev1

    def on_word_committed(self, word: Optional[str]) -> None:
        if self._state is EngineState.SHUTDOWN or not word or not word.strip():
            return
        word = word.strip()
        with self._context_lock:
            self._window.append(word)
            window = list(self._window)
            self._language.add_word(word)
            self._generation += 1

        store = self._store
        if store is not None:
            store.add_word(word)
            if len(window) >= 2:
                store.add_bigram(window[-2], window[-1])
            if len(window) >= 3:
                store.add_trigram(window[-3], window[-2], window[-1])
        self._cache.clear()

    def reset_context(self) -> None:
        with self._context_lock:
            self._window.clear()
            self._language.clear()
            self._generation += 1
        self._cache.clear()

    def clear_cache(self) -> None:
        with self._context_lock:
            self._generation += 1
        self._cache.clear()

    def _generation_now(self) -> int:
        with self._context_lock:
            return self._generation

    # -------------------------
    # Candidate gathering
    # -------------------------
    def _dictionary_candidates(self, index: DictionaryIndexProtocol, prefix: str, limit: int) -> List[_Raw]:
        if limit <= 0 or not prefix:
            return []
        if self.config.fuzzy_enabled:
            entries = index.fuzzy_completions(prefix, limit)
        else:
            entries = index.completions(prefix, limit)
        return [(e.word, e.frequency, Source.DICTIONARY, {}) for e in entries]

    def _corpus_frequency(self, word: str) -> int:
        return max(self._english.frequency(word), self._kannada.frequency(word))

    def _learned_candidates(self, rows: Sequence[LearnedScore], now: float,
                            context: bool = False) -> List[_Raw]:
        top = max((r.score for r in rows), default=0.0) or 1.0
        out: List[_Raw] = []
        for r in rows:
            extra = {
                "user_frequency": r.frequency,
                "recency": recency_boost(r.last_used_at, now, self.config.learning.recency_window_days,
                                         self.config.learning.min_recency),
            }
            if context:
                extra["context_score"] = r.score / top
            out.append((r.word, r.frequency, Source.USER_LEARNED, extra))
        return out

    def _ngram_candidates(self, predictions: Sequence[WordScore]) -> List[_Raw]:
        top = max((p.score for p in predictions), default=0.0) or 1.0
        return [(p.word, self._corpus_frequency(p.word), Source.NGRAM, {"context_score": p.score / top})
                for p in predictions]

    def _context_candidates(self, store: Optional[LearningStoreProtocol], limit: int, now: float) -> List[_Raw]:
        prev2, prev1 = self._previous()
        if not prev1:
            return []
        raw = self._ngram_candidates(self._ngram.predict(prev2, prev1, limit))
        if store is not None:
            raw += self._learned_candidates(store.bigram_suggestions(prev1, limit), now, context=True)
            if prev2:
                raw += self._learned_candidates(store.trigram_suggestions(prev2, prev1, limit), now,
                                                context=True)
        return raw

    def _score(self, raw: Sequence[_Raw], typed: Optional[str]) -> List[Suggestion]:
        features = [self.scorer.extract_features(word, typed, freq, source, **extra)
                    for word, freq, source, extra in raw]
        scores = self.scorer.calculate_scores(features)
        return [Suggestion(word, score, source)
                for (word, _, source, _), score in zip(raw, scores)]

    # -------------------------
    # Suggest API (hot-path)
    # -------------------------
    def get_suggestions(self, typed: Optional[str], layout: LayoutLike = KeyboardLayout.QWERTY) -> List[Suggestion]:
        """
        Ranked, script-balanced completions for the word being typed.
        Returns [] before READY, after shutdown, or for empty input.
        """
        if self._state is not EngineState.READY or not typed:
            return []
        layout = layout if isinstance(layout, KeyboardLayout) else KeyboardLayout.from_name(layout)

        key = (typed, layout)
        generation = self._generation_now()
        try:
            cached = self._cache.get(key)
        except Exception as e:
            Log.write(f"[Engine] cache read failed: {e}", level="WARNING")
            cached = None
        if cached is not None:
            return list(cached)

        start = time.perf_counter()
        prefix = self.normalizer.normalize(typed, layout)
        if not prefix:
            return []
        latin_prefix = typed.lower()
        cmp_prefix = self.normalizer.for_comparison(prefix)

        limit = self.config.max_suggestions
        split = suggestion_split(layout, limit)
        store = self._store
        now = float(self._clock())

        raw: List[_Raw] = []
        raw += self._dictionary_candidates(self._kannada, prefix, split.kannada * 2)
        raw += self._dictionary_candidates(self._english, latin_prefix, split.english * 2)
        if store is not None:
            raw += self._learned_candidates(store.suggestions(prefix, limit), now)

        # context candidates only count when they continue what was typed
        for item in self._context_candidates(store, limit * 2, now):
            word_l = item[0].lower()
            if word_l.startswith(cmp_prefix) or word_l.startswith(latin_prefix):
                raw.append(item)

        ranked = self.ranker.rank(self._score(raw, prefix), prefix, limit * 2)
        result = self.ranker.filter_by_language(ranked, split.kannada, split.english)

        expansion = self.expander.expansion(prefix, detect(prefix))
        if expansion:
            pinned = Suggestion(expansion, EXPANSION_SCORE, Source.EXACT_MATCH)
            result = [pinned] + [s for s in result if s.word != expansion]
        result = result[:limit]

        # a commit during this query invalidates what was gathered; the check and
        # the put share the context lock so a later commit's clear still removes it
        with self._context_lock:
            if generation == self._generation:
                try:
                    self._cache.put(key, tuple(result))
                except Exception as e:
                    Log.write(f"[Engine] cache write failed: {e}", level="WARNING")
        Log.metric("engine.suggest_latency", round(time.perf_counter() - start, 6), "s")
        return result

    def get_next_word_predictions(self, layout: LayoutLike = KeyboardLayout.QWERTY) -> List[Suggestion]:
        """Predictions for the next word from the committed context; ignores any partial prefix."""
        if self._state is not EngineState.READY:
            return []
        layout = layout if isinstance(layout, KeyboardLayout) else KeyboardLayout.from_name(layout)

        limit = self.config.max_suggestions
        raw = self._context_candidates(self._store, limit * 2, float(self._clock()))
        if not raw:
            return []
        split = suggestion_split(layout, limit)
        ranked = self.ranker.rank(self._score(raw, None), None, limit * 2)
        return self.ranker.filter_by_language(ranked, split.kannada, split.english)[:limit]
