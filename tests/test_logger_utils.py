# tests/test_logger_utils.py
import logging

import pytest

from bilingual_autocompleter.utils.logger_utils import LOGGER_NAME, Log


@pytest.fixture
def logger():
    lg = logging.getLogger(LOGGER_NAME)
    level = lg.level
    yield lg
    for h in list(lg.handlers):
        lg.removeHandler(h)
        h.close()
    lg.setLevel(level)


def test_write_uses_named_logger(caplog):
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        Log.write("[Engine] ready")
        Log.write("[Engine] oops", level="ERROR")
    assert [r.levelname for r in caplog.records] == ["INFO", "ERROR"]
    assert caplog.records[0].getMessage() == "[Engine] ready"


def test_unknown_level_falls_back_to_info(caplog):
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        Log.write("hello", level="LOUD")
    assert caplog.records[0].levelno == logging.INFO


def test_metric_and_time_block_are_debug(caplog):
    with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
        Log.metric("engine.suggest_latency", 0.0012, "s")
        with Log.time_block("load") as t:
            pass
    messages = [r.getMessage() for r in caplog.records]
    assert messages[0] == "engine.suggest_latency: 0.0012s"
    assert messages[1].startswith("load done: ")
    assert all(r.levelno == logging.DEBUG for r in caplog.records)
    assert t.elapsed >= 0


def test_configure_attaches_one_file_handler(tmp_path, logger):
    path = str(tmp_path / "logs" / "run.log")
    assert Log.configure(path, "DEBUG") == path
    Log.configure(path, "DEBUG")
    handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    assert len(handlers) == 1
    Log.write("to file")
    handlers[0].flush()
    assert "to file" in (tmp_path / "logs" / "run.log").read_text(encoding="utf-8")
