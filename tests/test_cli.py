# tests/test_cli.py
# CLI commands and line handling against a small engine, output captured by a Rich console

import io
import logging
from unittest.mock import patch

import pytest
from rich.console import Console

from bilingual_autocompleter import cli as cli_mod
from bilingual_autocompleter.cli import CLI
from bilingual_autocompleter.core.ngram_model import NgramModel
from bilingual_autocompleter.core.prediction_engine import EngineConfig, EngineState, PredictionEngine
from bilingual_autocompleter.core.script_detector import KeyboardLayout
from bilingual_autocompleter.core.trie import PrefixDictionary
from bilingual_autocompleter.utils.logger_utils import LOGGER_NAME


class Answers:
    """Stands in for Prompt.ask; raises EOFError when it runs out."""

    def __init__(self, *answers):
        self.answers = list(answers)

    def __call__(self, *args, **kwargs):
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


@pytest.fixture
def engine():
    ngram = NgramModel()
    ngram.add_bigram("good", "morning", 10)
    e = PredictionEngine(
        EngineConfig.without_assets(),
        english_index=PrefixDictionary.load({"good": 900, "morning": 400, "hello": 300}),
        kannada_index=PrefixDictionary.load({"ನಮಸ್ಕಾರ": 500}),
        ngram=ngram,
    )
    assert e.initialize()
    yield e
    e.shutdown()


def _cli(engine, *answers):
    out = io.StringIO()
    ui = CLI(engine, console=Console(file=out, width=120), ask=Answers(*answers))
    return ui, out


def test_process_line_commits_tokens_and_pick(engine):
    ui, out = _cli(engine, "1")
    committed = ui.process_line("good mor")
    assert committed == ["good", "morning"]
    assert engine.context() == ("good", "morning")
    assert "Committed" in out.getvalue()


def test_enter_keeps_typed_word(engine):
    ui, _ = _cli(engine, "")
    assert ui.process_line("hel") == ["hel"]


def test_typed_override(engine):
    ui, _ = _cli(engine, "help")
    assert ui.process_line("hel") == ["help"]


def test_expansion_commits_each_word(engine):
    ui, _ = _cli(engine, "1")
    assert ui.process_line("btw") == ["by", "the", "way"]


def test_no_suggestions(engine):
    ui, out = _cli(engine)
    assert ui.process_line("zzz") == ["zzz"]
    assert "no suggestions" in out.getvalue()


def test_layout_command(engine):
    ui, out = _cli(engine)
    ui.handle_command("/layout kannada_phonetic")
    assert ui.layout is KeyboardLayout.PHONETIC
    assert "kannada=3, english=2" in out.getvalue()
    ui.handle_command("/layout")
    assert "available" in out.getvalue()


def test_next_and_context_commands(engine):
    ui, out = _cli(engine)
    ui.handle_command("/next")
    assert "no next-word predictions" in out.getvalue()
    engine.on_word_committed("good")
    ui.handle_command("/next")
    ui.handle_command("/context")
    text = out.getvalue()
    assert "morning" in text
    assert "window: good" in text
    ui.handle_command("/reset")
    assert engine.context() == ()


def test_weights_command(engine):
    ui, out = _cli(engine)
    ui.handle_command("/weights context 1")
    assert engine.scorer.weights.context == pytest.approx(3.5)
    assert "context=3.50" in out.getvalue()
    ui.handle_command("/weights bogus 1")
    assert "unknown weight" in out.getvalue()
    ui.handle_command("/weights context")
    assert "Usage" in out.getvalue()


def test_abbr_command(engine):
    ui, out = _cli(engine)
    ui.handle_command("/abbr omw on my way")
    assert engine.expander.custom() == {"omw": "on my way"}
    assert engine.get_suggestions("omw")[0].word == "on my way"
    ui.handle_command("/abbr")
    assert "omw" in out.getvalue()
    ui.handle_command("/abbr -omw")
    assert engine.expander.custom() == {}
    ui.handle_command("/abbr -omw")
    assert "not found" in out.getvalue()


def test_store_commands(engine):
    ui, out = _cli(engine)
    engine.on_word_committed("hello")
    ui.handle_command("/prune")
    assert "Pruned" in out.getvalue()
    ui.handle_command("/clear")
    assert engine.learning_store.word_count() == 0
    assert engine.context() == ()


def test_store_commands_without_store():
    e = PredictionEngine(EngineConfig.without_assets(db_path=None))
    assert e.initialize()
    ui, out = _cli(e)
    ui.handle_command("/prune")
    ui.handle_command("/clear")
    assert out.getvalue().count("learning store disabled") == 2
    e.shutdown()


def test_unknown_and_quit(engine):
    ui, out = _cli(engine)
    ui.handle_command("/dance")
    assert "Unknown command:" in out.getvalue()
    ui.handle_command("/quit")
    assert not ui.running
    assert engine.state is EngineState.SHUTDOWN


def test_run_loop_until_eof(engine):
    ui, out = _cli(engine, "/context", "hello", "", "   ")
    ui.run()
    assert not ui.running
    assert engine.state is EngineState.SHUTDOWN
    assert "Committed" in out.getvalue()


@pytest.fixture
def clean_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()


def test_main_builds_engine_and_runs(tmp_path, monkeypatch, clean_logger):
    monkeypatch.chdir(tmp_path)
    with patch.object(cli_mod.CLI, "run") as run:
        assert cli_mod.main(["--db", ":memory:", "--layout", "kannada", "--log-level", "DEBUG"]) == 0
    run.assert_called_once()
    assert (tmp_path / "config.json").exists()
    assert (tmp_path / "logs" / "autocompleter.log").exists()


def test_main_reports_failed_start(tmp_path, monkeypatch, clean_logger):
    monkeypatch.chdir(tmp_path)
    with patch.object(cli_mod.PredictionEngine, "initialize", return_value=False), \
            patch.object(cli_mod.CLI, "run") as run:
        assert cli_mod.main(["--db", ":memory:"]) == 1
    run.assert_not_called()
