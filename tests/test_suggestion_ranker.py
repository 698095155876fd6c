# tests/test_suggestion_ranker.py
import pytest

from bilingual_autocompleter.core.suggestion import Source, Suggestion
from bilingual_autocompleter.core.suggestion_ranker import RankerConfig, SuggestionRanker


@pytest.fixture
def ranker():
    return SuggestionRanker()


def test_duplicates_merge_and_keep_strongest_source(ranker):
    out = ranker.rank([
        Suggestion("hello", 10.0, Source.DICTIONARY),
        Suggestion("hello", 5.0, Source.USER_LEARNED),
    ], None, 5)
    assert len(out) == 1
    assert out[0].source is Source.USER_LEARNED
    # (10 + 5) * user weight 2.0
    assert out[0].score == pytest.approx(30.0)


def test_words_are_unique_after_rank(ranker):
    cands = [Suggestion(w, 1.0, Source.NGRAM) for w in ("a1", "b1", "a1", "c1", "b1")]
    words = [s.word for s in ranker.rank(cands, None, 10)]
    assert sorted(words) == ["a1", "b1", "c1"]


def test_exact_and_prefix_boosts(ranker):
    out = ranker.rank([
        Suggestion("world", 10.0),
        Suggestion("help", 10.0),
        Suggestion("hel", 10.0),
    ], "hel", 5)
    assert [s.word for s in out] == ["hel", "help", "world"]
    assert [s.score for s in out] == pytest.approx([30.0, 13.0, 10.0])


def test_source_weights_are_configurable():
    cfg = RankerConfig(source_weights={Source.NGRAM: 10.0})
    r = SuggestionRanker(cfg)
    out = r.rank([Suggestion("a", 5.0, Source.NGRAM), Suggestion("b", 20.0, Source.DICTIONARY)], None, 2)
    assert [s.word for s in out] == ["a", "b"]
    assert cfg.exact_multiplier == 3.0


def test_rank_limit_and_empty(ranker):
    cands = [Suggestion(f"w{i}", float(i)) for i in range(10)]
    assert len(ranker.rank(cands, None, 3)) == 3
    assert ranker.rank([], "x", 3) == []
    assert ranker.rank(cands, None, 0) == []


def _mixed():
    kannada = [Suggestion(w, s) for w, s in (("ನಮಸ್ಕಾರ", 90), ("ನಮ್ಮ", 80), ("ನಾನು", 70), ("ನೀವು", 60))]
    english = [Suggestion(w, s) for w, s in (("hello", 95), ("help", 85), ("held", 75), ("hero", 65))]
    return kannada + english


def test_filter_by_language_quotas(ranker):
    out = ranker.filter_by_language(_mixed(), 3, 2)
    assert len(out) == 5
    assert sum(s.is_kannada for s in out) == 3
    assert [s.word for s in out] == ["hello", "ನಮಸ್ಕಾರ", "help", "ನಮ್ಮ", "ನಾನು"]


def test_filter_by_language_backfills(ranker):
    ranked = [Suggestion("ನಮಸ್ಕಾರ", 50)] + [Suggestion(f"word{i}", 40 - i) for i in range(5)]
    out = ranker.filter_by_language(ranked, 3, 2)
    assert len(out) == 5
    assert sum(s.is_kannada for s in out) == 1


def test_filter_by_language_english_only_layout(ranker):
    out = ranker.filter_by_language(_mixed(), 0, 5)
    assert len(out) == 5
    # four English words, the fifth slot is backfilled with the best Kannada word
    assert [s.word for s in out if not s.is_kannada] == ["hello", "help", "held", "hero"]
    assert [s.word for s in out if s.is_kannada] == ["ನಮಸ್ಕಾರ"]


def test_filter_by_language_short_input(ranker):
    assert ranker.filter_by_language([], 3, 2) == []
    assert len(ranker.filter_by_language([Suggestion("hi", 1.0)], 3, 2)) == 1


def test_suggestion_to_dict():
    assert Suggestion("hello", 412.51234, Source.NGRAM).to_dict() == {
        "word": "hello", "score": 412.5123, "source": "ngram", "script": "en",
    }
    assert Suggestion("ನಮಸ್ಕಾರ", 1, Source.USER_LEARNED).to_dict()["script"] == "kn"
