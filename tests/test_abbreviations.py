# tests/test_abbreviations.py
import json

from bilingual_autocompleter.core.abbreviations import AbbreviationExpander
from bilingual_autocompleter.core.script_detector import Language


def test_builtin_english_is_case_insensitive():
    ex = AbbreviationExpander()
    assert ex.expansion("btw") == "by the way"
    assert ex.expansion("BTW") == "by the way"
    assert ex.expansion("hello") is None
    assert ex.expansion("") is None


def test_builtin_kannada():
    ex = AbbreviationExpander()
    assert ex.expansion("ನಮ", Language.KANNADA) == "ನಮಸ್ಕಾರ"
    assert ex.expansion("ನಮ", Language.ENGLISH) is None
    assert ex.is_abbreviation("ಧನ್ಯ")


def test_custom_overrides_builtin():
    ex = AbbreviationExpander({"btw": "between"})
    assert ex.expansion("btw") == "between"
    assert ex.remove_custom("BTW")
    assert ex.expansion("btw") == "by the way"
    assert not ex.remove_custom("btw")


def test_add_custom_rejects_empty():
    ex = AbbreviationExpander()
    assert not ex.add_custom("", "x")
    assert not ex.add_custom("x", "  ")
    assert ex.custom() == {}


def test_custom_applies_for_any_language():
    ex = AbbreviationExpander()
    ex.add_custom("blr", "Bengaluru")
    assert ex.expansion("blr", Language.KANNADA) == "Bengaluru"
    ex.clear_custom()
    assert ex.expansion("blr") is None


def test_len_counts_all_tables():
    ex = AbbreviationExpander()
    base = len(ex)
    ex.add_custom("omw", "on my way")
    assert len(ex) == base + 1


def test_save_and_load_roundtrip(tmp_path):
    path = tmp_path / "abbr.json"
    ex = AbbreviationExpander({"omw": "on my way", "ಹೋ": "ಹೋಗೋಣ"})
    ex.save_custom(str(path))

    loaded = AbbreviationExpander()
    assert loaded.load_custom(str(path)) == 2
    assert loaded.custom() == ex.custom()


def test_load_custom_bad_files(tmp_path):
    ex = AbbreviationExpander()
    assert ex.load_custom(str(tmp_path / "missing.json")) == 0

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert ex.load_custom(str(broken)) == 0

    wrong = tmp_path / "list.json"
    wrong.write_text(json.dumps(["btw"]), encoding="utf-8")
    assert ex.load_custom(str(wrong)) == 0

    mixed = tmp_path / "mixed.json"
    mixed.write_text(json.dumps({"ok": "okay", "num": 3, "": "x"}), encoding="utf-8")
    assert ex.load_custom(str(mixed)) == 1
