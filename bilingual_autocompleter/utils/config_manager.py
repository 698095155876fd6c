# config_manager.py - JSON config manager

import copy
import json
import os

from bilingual_autocompleter.core.feature_scorer import ScorerWeights
from bilingual_autocompleter.core.learning_store import LearningConfig
from bilingual_autocompleter.core.prediction_engine import EngineConfig
from bilingual_autocompleter.core.trie import FuzzyConfig
from bilingual_autocompleter.utils.logger_utils import Log

_ENGINE_DEFAULTS = EngineConfig()

DEFAULTS = {
    "english_dictionary": _ENGINE_DEFAULTS.english_dictionary,
    "kannada_dictionary": _ENGINE_DEFAULTS.kannada_dictionary,
    "bigrams": _ENGINE_DEFAULTS.bigrams,
    "trigrams": _ENGINE_DEFAULTS.trigrams,
    "abbreviations": "",
    "db_path": "user_learning.db",
    "layout": "qwerty",
    "max_suggestions": 5,
    "cache_size": 100,
    "fuzzy_enabled": True,
    "fuzzy_max_distance": 1,
    "fuzzy_min_prefix_length": 3,
    "prune_age_days": 90,
    "log_file": "logs/autocompleter.log",
    "log_level": "INFO",
    "weights": ScorerWeights().as_dict(),
}

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def _coerce(current, val):
    """Convert a CLI string to the type of the current value."""
    if isinstance(current, bool):
        s = str(val).strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        raise ValueError(f"not a boolean: {val!r}")
    if isinstance(current, (int, float)):
        return type(current)(val)
    return str(val)


class Config:
    def __init__(self, path="config.json"):
        self.path = path
        self.data = copy.deepcopy(DEFAULTS)
        self._load()

    def _load(self):
        if os.path.exists(self.path):
            try:
                with open(self.path, "r", encoding="utf8") as f:
                    loaded = json.load(f)
            except (OSError, ValueError) as e:
                Log.write(f"[Config] could not read {self.path}, using defaults: {e}", level="WARNING")
                return
            if not isinstance(loaded, dict):
                Log.write(f"[Config] {self.path} is not a JSON object, using defaults", level="WARNING")
                return
            for k, v in loaded.items():
                if k not in self.data:
                    Log.write(f"[Config] ignoring unknown option {k!r}", level="WARNING")
                    continue
                if k == "weights" and isinstance(v, dict):
                    self.data["weights"].update({wk: wv for wk, wv in v.items() if wk in DEFAULTS["weights"]})
                else:
                    self.data[k] = v
        else:
            self.save()

    def save(self):
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        with open(self.path, "w", encoding="utf8") as f:
            json.dump(self.data, f, indent=2, ensure_ascii=False)

    def get(self, key, default=None):
        return self.data.get(key, default)

    def show(self):
        for k, v in self.data.items():
            print(f"{k:24} = {v}")

    def set(self, key, val):
        """
        Set an option and persist it. Weights use dotted keys, e.g.
        set("weights.context", "3.0"). Returns False for unknown keys.
        """
        if key.startswith("weights."):
            name = key.split(".", 1)[1]
            if name not in self.data["weights"]:
                return False
            self.data["weights"][name] = float(val)
        elif key not in self.data or isinstance(self.data[key], dict):
            return False
        else:
            self.data[key] = _coerce(self.data[key], val)
        self.save()
        return True

    def engine_config(self) -> EngineConfig:
        """Build the EngineConfig the options describe. Empty asset paths mean "skip"."""
        d = self.data
        return EngineConfig(
            english_dictionary=d.get("english_dictionary") or None,
            kannada_dictionary=d.get("kannada_dictionary") or None,
            bigrams=d.get("bigrams") or None,
            trigrams=d.get("trigrams") or None,
            abbreviations=d.get("abbreviations") or None,
            db_path=d.get("db_path") or None,
            max_suggestions=int(d.get("max_suggestions", 5)),
            cache_size=int(d.get("cache_size", 100)),
            fuzzy_enabled=bool(d.get("fuzzy_enabled", True)),
            fuzzy=self._fuzzy_config(),
            learning=LearningConfig(prune_age_days=float(d.get("prune_age_days", 90))),
            weights=ScorerWeights(**d.get("weights", {})),
        )

    def _fuzzy_config(self) -> FuzzyConfig:
        d = self.data
        try:
            return FuzzyConfig(max_distance=int(d.get("fuzzy_max_distance", 1)),
                               min_prefix_length=int(d.get("fuzzy_min_prefix_length", 3)))
        except (TypeError, ValueError) as e:
            Log.write(f"[Config] invalid fuzzy settings, using defaults: {e}", level="WARNING")
            return FuzzyConfig()
