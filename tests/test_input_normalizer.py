# tests/test_input_normalizer.py

from bilingual_autocompleter.core.input_normalizer import InputNormalizer
from bilingual_autocompleter.core.script_detector import KeyboardLayout


def test_qwerty_lowercases():
    assert InputNormalizer().normalize("HeLLo", KeyboardLayout.QWERTY) == "hello"


def test_kannada_layouts_apply_nfc():
    # vowel sign E followed by the length mark composes to vowel sign EE
    n = InputNormalizer()
    assert n.normalize("\u0c95\u0cc6\u0cd5", KeyboardLayout.STANDARD) == "\u0c95\u0cc7"
    assert n.normalize("ನಮ", KeyboardLayout.CUSTOM) == "ನಮ"


def test_phonetic_uses_transliterator():
    n = InputNormalizer(transliterator=lambda s: {"nama": "ನಮ"}.get(s, s))
    assert n.normalize("nama", KeyboardLayout.PHONETIC) == "ನಮ"


def test_phonetic_without_transliterator_is_passthrough():
    assert InputNormalizer().normalize("Nama", KeyboardLayout.PHONETIC) == "Nama"


def test_empty_input():
    n = InputNormalizer()
    assert n.normalize("", KeyboardLayout.QWERTY) == ""
    assert n.normalize(None, KeyboardLayout.PHONETIC) == ""
    assert n.for_comparison(None) == ""
    assert n.for_comparison("ABC") == "abc"
