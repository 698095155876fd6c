# input_normalizer.py
# Canonicalise typed text before lookup.
# - phonetic layout: transliterate Latin keystrokes, then NFC
# - Kannada layouts: NFC, so composed and decomposed vowel signs compare equal
# - QWERTY: lowercase

import unicodedata
from typing import Optional

from bilingual_autocompleter.core.protocols import Transliterator
from bilingual_autocompleter.core.script_detector import KeyboardLayout


def identity(text: str) -> str:
    return text


class InputNormalizer:
    def __init__(self, transliterator: Optional[Transliterator] = None):
        self.transliterator: Transliterator = transliterator or identity

    def normalize(self, text: Optional[str], layout: KeyboardLayout) -> str:
        if not text:
            return ""
        if layout is KeyboardLayout.PHONETIC:
            return unicodedata.normalize("NFC", self.transliterator(text))
        if layout in (KeyboardLayout.STANDARD, KeyboardLayout.CUSTOM):
            return unicodedata.normalize("NFC", text)
        if layout is KeyboardLayout.QWERTY:
            return text.lower()
        return text

    @staticmethod
    def for_comparison(text: Optional[str]) -> str:
        return (text or "").lower()
