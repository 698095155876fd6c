"""
bilingual_autocompleter.core

The prediction engine behind the bilingual (Kannada + English) keyboard.
Contains:
 - frozen prefix dictionaries with typo-tolerant completion (PrefixDictionary)
 - bigram/trigram next-word model (NgramModel)
 - persistent per-user vocabulary (LearningStore)
 - feature scoring and multi-source ranking (FeatureScorer, SuggestionRanker)
 - script detection, layout tables, abbreviations and input normalisation
 - the orchestrator that ties them together (PredictionEngine)
"""

from .abbreviations import AbbreviationExpander
from .feature_scorer import FeatureScorer, ScorerWeights, SuggestionFeatures
from .input_normalizer import InputNormalizer
from .learning_store import LearningConfig, LearningStore
from .ngram_model import NgramModel
from .prediction_engine import EngineConfig, EngineState, PredictionEngine
from .script_detector import KeyboardLayout, Language, LanguageContext
from .suggestion import Source, Suggestion
from .suggestion_ranker import RankerConfig, SuggestionRanker
from .trie import FuzzyConfig, PrefixDictionary

__all__ = [
    "AbbreviationExpander",
    "EngineConfig",
    "EngineState",
    "FeatureScorer",
    "FuzzyConfig",
    "InputNormalizer",
    "KeyboardLayout",
    "Language",
    "LanguageContext",
    "LearningConfig",
    "LearningStore",
    "NgramModel",
    "PredictionEngine",
    "PrefixDictionary",
    "RankerConfig",
    "ScorerWeights",
    "Source",
    "Suggestion",
    "SuggestionFeatures",
    "SuggestionRanker",
]
