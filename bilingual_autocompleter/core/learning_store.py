# learning_store.py
# Persistent per-user vocabulary: words, bigrams and trigrams the user has
# committed, with a frequency count and a last-used timestamp.
#
# Storage is SQLite:
#  - every upsert is one transaction taken under a single write lock
#  - readers get their own connection per thread (WAL lets them run while
#    a write is in flight and they only ever see committed rows)
#  - an in-memory database cannot be shared between connections, so it uses
#    one connection guarded by the same lock
#  - recency_boost() is registered as an SQL function so ordering happens in
#    the query with the same formula Python uses

from __future__ import annotations

import math
import sqlite3
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from bilingual_autocompleter.core.protocols import LearnedScore
from bilingual_autocompleter.core.script_detector import detect
from bilingual_autocompleter.utils.logger_utils import Log

SECONDS_PER_DAY = 86400.0
SCHEMA_VERSION = 1
MEMORY_DB = ":memory:"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS words (
    word TEXT PRIMARY KEY COLLATE NOCASE,
    frequency INTEGER NOT NULL DEFAULT 1,
    last_used_at REAL NOT NULL,
    script TEXT NOT NULL DEFAULT 'en'
);
CREATE INDEX IF NOT EXISTS idx_words_frequency ON words(frequency DESC);
CREATE TABLE IF NOT EXISTS bigrams (
    word1 TEXT NOT NULL COLLATE NOCASE,
    word2 TEXT NOT NULL COLLATE NOCASE,
    frequency INTEGER NOT NULL DEFAULT 1,
    last_used_at REAL NOT NULL,
    PRIMARY KEY (word1, word2)
);
CREATE INDEX IF NOT EXISTS idx_bigrams_word1 ON bigrams(word1);
CREATE INDEX IF NOT EXISTS idx_bigrams_frequency ON bigrams(frequency DESC);
CREATE TABLE IF NOT EXISTS trigrams (
    word1 TEXT NOT NULL COLLATE NOCASE,
    word2 TEXT NOT NULL COLLATE NOCASE,
    word3 TEXT NOT NULL COLLATE NOCASE,
    frequency INTEGER NOT NULL DEFAULT 1,
    last_used_at REAL NOT NULL,
    PRIMARY KEY (word1, word2, word3)
);
CREATE INDEX IF NOT EXISTS idx_trigrams_context ON trigrams(word1, word2);
CREATE INDEX IF NOT EXISTS idx_trigrams_frequency ON trigrams(frequency DESC);
"""

_UPSERT_WORD = """
INSERT INTO words (word, frequency, last_used_at, script) VALUES (?, 1, ?, ?)
ON CONFLICT(word) DO UPDATE SET
    frequency = frequency + 1,
    last_used_at = excluded.last_used_at,
    script = excluded.script
"""

_UPSERT_BIGRAM = """
INSERT INTO bigrams (word1, word2, frequency, last_used_at) VALUES (?, ?, 1, ?)
ON CONFLICT(word1, word2) DO UPDATE SET
    frequency = frequency + 1,
    last_used_at = excluded.last_used_at
"""

_UPSERT_TRIGRAM = """
INSERT INTO trigrams (word1, word2, word3, frequency, last_used_at) VALUES (?, ?, ?, 1, ?)
ON CONFLICT(word1, word2, word3) DO UPDATE SET
    frequency = frequency + 1,
    last_used_at = excluded.last_used_at
"""

_SELECT_WORDS = """
SELECT word, frequency * recency_boost(last_used_at, ?) AS score, frequency, last_used_at
FROM words
WHERE word LIKE ? ESCAPE '\\'
ORDER BY score DESC, last_used_at DESC
LIMIT ?
"""

_SELECT_BIGRAMS = """
SELECT word2, frequency * recency_boost(last_used_at, ?) AS score, frequency, last_used_at
FROM bigrams
WHERE word1 = ?
ORDER BY score DESC, last_used_at DESC
LIMIT ?
"""

_SELECT_TRIGRAMS = """
SELECT word3, frequency * recency_boost(last_used_at, ?) * ? AS score, frequency, last_used_at
FROM trigrams
WHERE word1 = ? AND word2 = ?
ORDER BY score DESC, last_used_at DESC
LIMIT ?
"""


@dataclass(frozen=True)
class LearningConfig:
    """
    Scoring and retention knobs for the learning store.
    Ages are in whole days.
    """
    min_word_length: int = 2
    recency_window_days: float = 90.0
    min_recency: float = 0.1
    trigram_weight: float = 1.5
    prune_age_days: float = 90.0
    prune_min_word_frequency: int = 3    # words below this are prunable once old
    prune_min_ngram_frequency: int = 2   # bigrams/trigrams below this are prunable once old


def recency_boost(last_used_at: Optional[float], now: float,
                  window_days: float = 90.0, floor: float = 0.1) -> float:
    """
    Linear decay over `window_days`, never below `floor`:
        max(floor, 1 - age_days / window_days)
    Age is counted in whole days; future timestamps count as age 0.
    """
    if last_used_at is None:
        return floor
    age_days = max(0, math.floor((now - last_used_at) / SECONDS_PER_DAY))
    return max(floor, 1.0 - age_days / window_days)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class LearningStore:
    """
    Adaptive per-user vocabulary backed by SQLite.

    Public API:
      - add_word(word), add_bigram(w1, w2), add_trigram(w1, w2, w3)
      - suggestions(prefix, limit)
      - bigram_suggestions(prev, limit), trigram_suggestions(prev2, prev1, limit)
      - prune_old_entries(), clear_all(), close()

    Write failures are logged and dropped; read failures are logged and give
    an empty result. The clock is injectable for tests.
    """

    def __init__(self, db_path: str = MEMORY_DB, config: Optional[LearningConfig] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self.db_path = db_path
        self.cfg = config or LearningConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._closed = False
        self._shared = db_path == MEMORY_DB or db_path.startswith("file::memory:")

        self._writer = self._connect()
        self._connections.append(self._writer)
        self._init_schema()
        Log.write(f"[LearningStore] opened {db_path}")

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------
    def _recency_sql(self, last_used_at, now) -> float:
        return recency_boost(last_used_at, now, self.cfg.recency_window_days, self.cfg.min_recency)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30, check_same_thread=False,
                               uri=self.db_path.startswith("file:"))
        if not self._shared:
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA busy_timeout=30000")
        conn.create_function("recency_boost", 2, self._recency_sql, deterministic=True)
        return conn

    def _reader(self) -> sqlite3.Connection:
        """Connection for read queries on the calling thread."""
        if self._shared:
            return self._writer
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = self._connect()
            self._local.conn = conn
            with self._lock:
                self._connections.append(conn)
        return conn

    def _init_schema(self) -> None:
        with self._lock, self._writer:
            self._writer.executescript(_SCHEMA)
            row = self._writer.execute("SELECT version FROM schema_version").fetchone()
            if row is None:
                self._writer.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))

    def now(self) -> float:
        return float(self._clock())

    # ------------------------------------------------------------------
    # Write / read helpers
    # ------------------------------------------------------------------
    def _write(self, label: str, sql: str, params: tuple) -> int:
        """Run one statement in its own transaction. Returns affected rows, 0 on failure."""
        with self._lock:
            if self._closed:
                return 0
            try:
                with self._writer:
                    cur = self._writer.execute(sql, params)
                return cur.rowcount
            except sqlite3.Error as e:
                Log.write(f"[LearningStore] {label} failed: {e}", level="ERROR")
                return 0

    def _query(self, label: str, sql: str, params: tuple) -> list:
        if self._closed:
            return []
        try:
            if self._shared:
                with self._lock:
                    if self._closed:
                        return []
                    return self._writer.execute(sql, params).fetchall()
            return self._reader().execute(sql, params).fetchall()
        except sqlite3.Error as e:
            Log.write(f"[LearningStore] {label} failed: {e}", level="ERROR")
            return []

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------
    def add_word(self, word: str) -> None:
        word = (word or "").strip()
        if len(word) < self.cfg.min_word_length:
            return
        self._write("add_word", _UPSERT_WORD, (word, self.now(), detect(word).value))

    def add_bigram(self, word1: str, word2: str) -> None:
        word1, word2 = (word1 or "").strip(), (word2 or "").strip()
        if not word1 or not word2:
            return
        self._write("add_bigram", _UPSERT_BIGRAM, (word1, word2, self.now()))

    def add_trigram(self, word1: str, word2: str, word3: str) -> None:
        word1, word2, word3 = (word1 or "").strip(), (word2 or "").strip(), (word3 or "").strip()
        if not word1 or not word2 or not word3:
            return
        self._write("add_trigram", _UPSERT_TRIGRAM, (word1, word2, word3, self.now()))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @staticmethod
    def _rows(rows: list) -> List[LearnedScore]:
        return [LearnedScore(r[0], float(r[1]), int(r[2]), float(r[3])) for r in rows]

    def suggestions(self, prefix: str, limit: int) -> List[LearnedScore]:
        """Learned words starting with `prefix` (case-insensitive), best score first."""
        if not prefix or limit <= 0:
            return []
        rows = self._query("suggestions", _SELECT_WORDS,
                           (self.now(), _escape_like(prefix) + "%", int(limit)))
        return self._rows(rows)

    def bigram_suggestions(self, prev: str, limit: int) -> List[LearnedScore]:
        if not prev or limit <= 0:
            return []
        rows = self._query("bigram_suggestions", _SELECT_BIGRAMS, (self.now(), prev.strip(), int(limit)))
        return self._rows(rows)

    def trigram_suggestions(self, prev2: str, prev1: str, limit: int) -> List[LearnedScore]:
        if not prev2 or not prev1 or limit <= 0:
            return []
        rows = self._query("trigram_suggestions", _SELECT_TRIGRAMS,
                           (self.now(), self.cfg.trigram_weight, prev2.strip(), prev1.strip(), int(limit)))
        return self._rows(rows)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------
    def prune_old_entries(self) -> Dict[str, int]:
        """
        Delete entries that are both older than prune_age_days and rarely used.
        Returns deleted row counts per table.
        """
        cutoff = self.now() - self.cfg.prune_age_days * SECONDS_PER_DAY
        removed = {"words": 0, "bigrams": 0, "trigrams": 0}
        with self._lock:
            if self._closed:
                return removed
            try:
                with self._writer:
                    removed["words"] = self._writer.execute(
                        "DELETE FROM words WHERE last_used_at < ? AND frequency < ?",
                        (cutoff, self.cfg.prune_min_word_frequency)).rowcount
                    for table in ("bigrams", "trigrams"):
                        removed[table] = self._writer.execute(
                            f"DELETE FROM {table} WHERE last_used_at < ? AND frequency < ?",
                            (cutoff, self.cfg.prune_min_ngram_frequency)).rowcount
            except sqlite3.Error as e:
                Log.write(f"[LearningStore] prune failed: {e}", level="ERROR")
                return {"words": 0, "bigrams": 0, "trigrams": 0}
        Log.write(f"[LearningStore] pruned {removed}")
        return removed

    def clear_all(self) -> None:
        with self._lock:
            if self._closed:
                return
            try:
                with self._writer:
                    for table in ("words", "bigrams", "trigrams"):
                        self._writer.execute(f"DELETE FROM {table}")
            except sqlite3.Error as e:
                Log.write(f"[LearningStore] clear_all failed: {e}", level="ERROR")
                return
        Log.write("[LearningStore] cleared all learned data")

    def close(self) -> None:
        """Close every connection. Later calls are no-ops or return empty results."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for conn in self._connections:
                try:
                    conn.close()
                except sqlite3.Error as e:
                    Log.write(f"[LearningStore] close failed: {e}", level="WARNING")
            self._connections.clear()
        Log.write(f"[LearningStore] closed {self.db_path}")

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    def word_count(self) -> int:
        rows = self._query("word_count", "SELECT COUNT(*) FROM words", ())
        return int(rows[0][0]) if rows else 0

    def contains_word(self, word: str) -> bool:
        return self.word_frequency(word) > 0

    def word_frequency(self, word: str) -> int:
        if not word:
            return 0
        rows = self._query("word_frequency", "SELECT frequency FROM words WHERE word = ?", (word.strip(),))
        return int(rows[0][0]) if rows else 0

    def bigram_frequency(self, word1: str, word2: str) -> int:
        if not word1 or not word2:
            return 0
        rows = self._query("bigram_frequency",
                           "SELECT frequency FROM bigrams WHERE word1 = ? AND word2 = ?",
                           (word1.strip(), word2.strip()))
        return int(rows[0][0]) if rows else 0

    def trigram_frequency(self, word1: str, word2: str, word3: str) -> int:
        if not word1 or not word2 or not word3:
            return 0
        rows = self._query("trigram_frequency",
                           "SELECT frequency FROM trigrams WHERE word1 = ? AND word2 = ? AND word3 = ?",
                           (word1.strip(), word2.strip(), word3.strip()))
        return int(rows[0][0]) if rows else 0

    def __enter__(self) -> "LearningStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
