# bilingual_autocompleter/core/feature_scorer.py
"""
FeatureScorer - turns a (candidate, typed prefix) pair into a base score.

Features per candidate:
 - exact match (case-insensitive) and prefix match with match ratio len(typed)/len(word)
 - bounded edit distance (infinite once the lengths differ by more than 3)
 - corpus frequency, recency, context fit, user-learned frequency

Score (all terms scaled by their weight):
    exact*1000 + prefix*ratio*100 + freq*ln(f+1)*10 + recency*r*50
    + context*c*100 + user*ln(uf+1)*20
then a 1/ratio penalty when the word is more than 3x longer than what was
typed, then an edit-distance discount max(0.3, 1 - d*0.2).

calculate_scores() is the batch form. Large batches go through NumPy, small
ones through a plain loop; both give the same numbers.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, fields, replace
from typing import Dict, List, Optional, Sequence

import numpy as np

from bilingual_autocompleter.core.edit_distance import bounded_distance
from bilingual_autocompleter.core.suggestion import Source

logger = logging.getLogger(__name__)

MIN_WEIGHT = 0.1
MAX_LENGTH_DELTA = 3        # edit distance is not computed past this length gap
LENGTH_RATIO_LIMIT = 3.0
DISTANCE_STEP = 0.2
DISTANCE_FLOOR = 0.3
VECTORIZE_THRESHOLD = 16    # batches larger than this use NumPy

# term scales
EXACT_SCALE = 1000.0
PREFIX_SCALE = 100.0
FREQUENCY_SCALE = 10.0
RECENCY_SCALE = 50.0
CONTEXT_SCALE = 100.0
USER_SCALE = 20.0

# accepted short names for update_weight()
_ALIASES = {"user": "user_learned", "freq": "frequency"}


@dataclass(frozen=True)
class ScorerWeights:
    prefix: float = 2.0
    exact: float = 5.0
    frequency: float = 1.0
    recency: float = 1.5
    context: float = 2.5
    user_learned: float = 3.0

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, max(MIN_WEIGHT, float(getattr(self, f.name))))

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class SuggestionFeatures:
    """Per (candidate, query) features. Never persisted."""
    word: str
    typed: str = ""
    is_exact_match: bool = False
    is_prefix_match: bool = False
    prefix_match_ratio: float = 0.0
    edit_distance: float = 0
    frequency: int = 0
    recency_score: float = 0.0
    word_length: int = 0
    typed_length: int = 0
    has_context_match: bool = False
    context_score: float = 0.0
    is_user_learned: bool = False
    user_frequency: int = 0

    @property
    def length_ratio(self) -> float:
        if self.typed_length <= 0:
            return 0.0
        return self.word_length / self.typed_length


class FeatureScorer:
    """
    Feature extraction and weighted scoring.

    Weights are held in an immutable ScorerWeights value that is swapped on
    update, so scoring threads always see a consistent set.
    """

    def __init__(self, weights: Optional[ScorerWeights] = None):
        self.weights = weights or ScorerWeights()

    # ---------------------------
    # Features
    # ---------------------------
    def extract_features(self,
                         candidate: str,
                         typed: Optional[str],
                         frequency: int,
                         source: Source,
                         *,
                         user_frequency: int = 0,
                         recency: float = 0.0,
                         context_score: Optional[float] = None) -> SuggestionFeatures:
        f = SuggestionFeatures(word=candidate, typed=typed or "")
        f.frequency = max(0, int(frequency))
        f.word_length = len(candidate)
        f.typed_length = len(typed) if typed else 0
        f.recency_score = float(recency)
        f.is_user_learned = source is Source.USER_LEARNED
        if f.is_user_learned:
            f.user_frequency = int(user_frequency) or f.frequency
        else:
            f.user_frequency = int(user_frequency)

        if context_score is not None:
            f.has_context_match = True
            f.context_score = float(context_score)

        if typed:
            word_l = candidate.lower()
            typed_l = typed.lower()
            f.is_exact_match = word_l == typed_l
            f.is_prefix_match = word_l.startswith(typed_l)
            if f.is_prefix_match and word_l:
                f.prefix_match_ratio = len(typed_l) / len(word_l)
            f.edit_distance = bounded_distance(word_l, typed_l, MAX_LENGTH_DELTA)
        return f

    # ---------------------------
    # Scoring
    # ---------------------------
    def calculate_score(self, f: SuggestionFeatures) -> float:
        w = self.weights
        score = 0.0
        if f.is_exact_match:
            score += w.exact * EXACT_SCALE
        if f.is_prefix_match:
            score += w.prefix * f.prefix_match_ratio * PREFIX_SCALE
        score += w.frequency * math.log(f.frequency + 1) * FREQUENCY_SCALE
        score += w.recency * f.recency_score * RECENCY_SCALE
        if f.has_context_match:
            score += w.context * f.context_score * CONTEXT_SCALE
        if f.is_user_learned:
            score += w.user_learned * math.log(f.user_frequency + 1) * USER_SCALE

        ratio = f.length_ratio
        if ratio > LENGTH_RATIO_LIMIT:
            score *= 1.0 / ratio

        if f.edit_distance > 0:
            score *= max(DISTANCE_FLOOR, 1.0 - f.edit_distance * DISTANCE_STEP)
        return score

    def calculate_scores(self, features: Sequence[SuggestionFeatures]) -> List[float]:
        if len(features) <= VECTORIZE_THRESHOLD:
            return [self.calculate_score(f) for f in features]

        w = self.weights
        exact = np.array([f.is_exact_match for f in features], dtype=float)
        prefix = np.array([f.prefix_match_ratio if f.is_prefix_match else 0.0 for f in features], dtype=float)
        freq = np.array([f.frequency for f in features], dtype=float)
        rec = np.array([f.recency_score for f in features], dtype=float)
        ctx = np.array([f.context_score if f.has_context_match else 0.0 for f in features], dtype=float)
        user = np.array([math.log(f.user_frequency + 1) if f.is_user_learned else 0.0 for f in features],
                        dtype=float)
        ratio = np.array([f.length_ratio for f in features], dtype=float)
        dist = np.array([f.edit_distance for f in features], dtype=float)

        scores = (w.exact * EXACT_SCALE * exact
                  + w.prefix * prefix * PREFIX_SCALE
                  + w.frequency * np.log(freq + 1.0) * FREQUENCY_SCALE
                  + w.recency * rec * RECENCY_SCALE
                  + w.context * ctx * CONTEXT_SCALE
                  + w.user_learned * user * USER_SCALE)

        long_words = ratio > LENGTH_RATIO_LIMIT
        scores = np.where(long_words, scores / np.where(long_words, ratio, 1.0), scores)

        penalty = np.maximum(DISTANCE_FLOOR, 1.0 - dist * DISTANCE_STEP)
        scores = np.where(dist > 0, scores * penalty, scores)
        return scores.tolist()

    def score(self, candidate: str, typed: Optional[str], frequency: int, source: Source, **kwargs) -> float:
        """extract_features + calculate_score in one call."""
        return self.calculate_score(self.extract_features(candidate, typed, frequency, source, **kwargs))

    # ---------------------------
    # Weights
    # ---------------------------
    def update_weight(self, name: str, delta: float) -> ScorerWeights:
        """
        Adjust one weight by `delta` (clamped to MIN_WEIGHT).
        Names: prefix, exact, frequency, recency, context, user_learned.
        """
        key = _ALIASES.get(name, name)
        current = self.weights.as_dict()
        if key not in current:
            raise ValueError(f"unknown weight {name!r}; expected one of {sorted(current)}")
        self.weights = replace(self.weights, **{key: current[key] + float(delta)})
        logger.debug("weight %s -> %.2f", key, getattr(self.weights, key))
        return self.weights

    def weights_info(self) -> str:
        w = self.weights
        return (f"Weights: prefix={w.prefix:.2f} exact={w.exact:.2f} freq={w.frequency:.2f} "
                f"recency={w.recency:.2f} context={w.context:.2f} user={w.user_learned:.2f}")
