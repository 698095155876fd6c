# abbreviations.py
# Shorthand -> phrase expansion ("btw" -> "by the way").
# - user-defined entries override the built-in tables
# - Latin tokens match case-insensitively, Kannada tokens match exactly

from __future__ import annotations

import json
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from bilingual_autocompleter.core.script_detector import Language, contains_kannada
from bilingual_autocompleter.utils.logger_utils import Log

ENGLISH_ABBREVIATIONS: Mapping[str, str] = MappingProxyType({
    "btw": "by the way",
    "brb": "be right back",
    "lol": "laugh out loud",
    "omg": "oh my god",
    "idk": "I don't know",
    "imo": "in my opinion",
    "imho": "in my humble opinion",
    "tbh": "to be honest",
    "afaik": "as far as I know",
    "asap": "as soon as possible",
    "fyi": "for your information",
    "aka": "also known as",
    "atm": "at the moment",
    "eta": "estimated time of arrival",
    "rn": "right now",
    "dm": "direct message",
    "irl": "in real life",
    "ttyl": "talk to you later",
    "gtg": "got to go",
    "nvm": "never mind",
    "pls": "please",
    "plz": "please",
    "thx": "thanks",
    "ty": "thank you",
    "np": "no problem",
    "yw": "you're welcome",
    "msg": "message",
    "pic": "picture",
    "ppl": "people",
    "smh": "shaking my head",
    "wbu": "what about you",
    "hbu": "how about you",
    "jk": "just kidding",
    "bc": "because",
    "cuz": "because",
    "ofc": "of course",
})

KANNADA_ABBREVIATIONS: Mapping[str, str] = MappingProxyType({
    "ನಮ": "ನಮಸ್ಕಾರ",
    "ಧನ್ಯ": "ಧನ್ಯವಾದ",
    "ದಯ": "ದಯವಿಟ್ಟು",
    "ಕ್ಷಮ": "ಕ್ಷಮಿಸಿ",
})


def _key(token: str) -> str:
    """Lookup key: case-folded for Latin tokens, unchanged for Kannada."""
    token = token.strip()
    return token if contains_kannada(token) else token.lower()


class AbbreviationExpander:
    """
    Built-in English/Kannada tables plus a user-defined table.

    Public API:
      - expansion(token, language)
      - add_custom(abbr, expansion), remove_custom(abbr), clear_custom(), custom()
      - is_abbreviation(token), len(expander)
      - load_custom(path), save_custom(path)
    """

    def __init__(self, custom: Optional[Mapping[str, str]] = None):
        self._custom: Dict[str, str] = {}
        for abbr, expansion in (custom or {}).items():
            self.add_custom(abbr, expansion)

    def expansion(self, token: Optional[str], language: Language = Language.ENGLISH) -> Optional[str]:
        if not token or not token.strip():
            return None
        key = _key(token)
        if key in self._custom:
            return self._custom[key]
        table = KANNADA_ABBREVIATIONS if language is Language.KANNADA else ENGLISH_ABBREVIATIONS
        return table.get(key)

    def is_abbreviation(self, token: Optional[str]) -> bool:
        if not token or not token.strip():
            return False
        key = _key(token)
        return key in self._custom or key in ENGLISH_ABBREVIATIONS or key in KANNADA_ABBREVIATIONS

    # custom table ---------------------------------------------------------
    def add_custom(self, abbr: str, expansion: str) -> bool:
        """Returns False (and stores nothing) for an empty abbreviation or expansion."""
        if not abbr or not abbr.strip() or not expansion or not expansion.strip():
            return False
        self._custom[_key(abbr)] = expansion.strip()
        return True

    def remove_custom(self, abbr: str) -> bool:
        if not abbr:
            return False
        return self._custom.pop(_key(abbr), None) is not None

    def clear_custom(self) -> None:
        self._custom.clear()

    def custom(self) -> Dict[str, str]:
        """Copy of the user-defined table."""
        return dict(self._custom)

    def load_custom(self, path: str) -> int:
        """
        Merge a JSON object of abbr -> expansion into the user table.
        An unreadable or malformed file is logged and ignored. Returns entries added.
        """
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            Log.write(f"[Abbreviations] could not load {path}: {e}", level="WARNING")
            return 0
        if not isinstance(data, dict):
            Log.write(f"[Abbreviations] {path}: expected a JSON object", level="WARNING")
            return 0

        added = 0
        for abbr, expansion in data.items():
            if isinstance(expansion, str) and self.add_custom(str(abbr), expansion):
                added += 1
        Log.write(f"[Abbreviations] loaded {added} custom abbreviations from {path}")
        return added

    def save_custom(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(self._custom, fh, indent=2, ensure_ascii=False)

    def __len__(self) -> int:
        return len(ENGLISH_ABBREVIATIONS) + len(KANNADA_ABBREVIATIONS) + len(self._custom)
