# logger_utils.py - logging and metrics for the prediction engine

import logging
import os
import time
from typing import Optional, Union

# Directory where log files go when the file handler is enabled
LOG_DIR = "logs"
DEFAULT_LOG_PATH = os.path.join(LOG_DIR, "autocompleter.log")

LOGGER_NAME = "bilingual_autocompleter"
_FORMAT = "[%(asctime)s] %(levelname)-7s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_logger = logging.getLogger(LOGGER_NAME)


def _level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    # getLevelName returns "Level X" for unknown names
    return value if isinstance(value, int) else logging.INFO


class Log:
    """
    Small logging facade used across the engine.
    Everything funnels into the "bilingual_autocompleter" logger so the host
    application decides where messages end up. configure() attaches a file
    handler for standalone use (the CLI calls it).
    """

    @staticmethod
    def configure(path: Optional[str] = None, level: Union[str, int] = "INFO") -> str:
        """Attach a file handler (once per path). Returns the log path."""
        path = path or DEFAULT_LOG_PATH
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        target = os.path.abspath(path)
        for h in _logger.handlers:
            if isinstance(h, logging.FileHandler) and h.baseFilename == target:
                break
        else:
            handler = logging.FileHandler(path, encoding="utf-8")
            handler.setFormatter(logging.Formatter(_FORMAT, _DATEFMT))
            _logger.addHandler(handler)
        _logger.setLevel(_level(level))
        return path

    @staticmethod
    def write(msg: str, level: Union[str, int] = "INFO") -> None:
        """Log a message, e.g. Log.write("[Engine] ready")."""
        _logger.log(_level(level), msg)

    @staticmethod
    def metric(tag: str, value, unit: str = "") -> None:
        """
        Record a metric (timings, counts).
        Metrics go out at DEBUG so the per-keystroke path stays quiet.
        Example: engine.suggest_latency: 0.0012s
        """
        _logger.debug("%s: %s%s", tag, value, unit)

    @staticmethod
    def time_block(label: str) -> "_Timer":
        """
        Measure a block of code:
            with Log.time_block("Engine.load"):
                load_everything()
        """
        return _Timer(label)


class _Timer:
    """Context manager used by Log.time_block."""

    def __init__(self, label: str):
        self.label = label
        self.start = time.perf_counter()
        self.elapsed = 0.0

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.elapsed = round(time.perf_counter() - self.start, 3)
        Log.metric(f"{self.label} done", self.elapsed, "s")
