# trie.py
# Frozen prefix dictionary (trie) for frequency-ranked word completion.
#
# The trie is built once from a word list and never mutated afterwards:
#  - nodes live in one tuple (an arena) and refer to children by index
#  - children maps are read-only views, so a loaded index can be shared
#    between threads without locking
#  - every node also stores the best frequency found in its subtree, which
#    lets completions() walk best-first and stop after `limit` words instead
#    of collecting the whole subtree
# Traversal uses an explicit heap/stack, never recursion, so very long
# entries cannot blow the call stack.

from __future__ import annotations

import heapq
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Tuple, Union

from bilingual_autocompleter.core.edit_distance import capped_distance
from bilingual_autocompleter.core.errors import AssetFormatError
from bilingual_autocompleter.core.protocols import DictionaryEntry
from bilingual_autocompleter.utils.logger_utils import Log

DEFAULT_FREQUENCY = 1000  # used when a dictionary line has no usable frequency

EntryLike = Union[DictionaryEntry, Tuple[str, int]]

# heap entry kinds; a word sorts before the subtree that shares its text
_WORD = 0
_NODE = 1


@dataclass(frozen=True)
class FuzzyConfig:
    """
    Knobs for the typo-tolerant fallback.
    These are tuned heuristics, not derived constants.
    """
    max_distance: int = 1
    min_prefix_length: int = 3
    distance_discount: float = 0.3

    def __post_init__(self) -> None:
        if not 0 <= self.max_distance <= 2:
            raise ValueError("max_distance must be between 0 and 2")
        if self.min_prefix_length < 1:
            raise ValueError("min_prefix_length must be positive")
        if not 0.0 <= self.distance_discount <= 1.0:
            raise ValueError("distance_discount must be within [0, 1]")


class _Node(NamedTuple):
    children: Mapping[str, int]
    terminal: bool
    frequency: int
    best: int  # highest terminal frequency in this subtree, -1 when empty


# ---------------------------------------------------------------------------
# Asset parsing
# ---------------------------------------------------------------------------
def parse_dictionary_line(line_no: int, raw: str) -> Optional[DictionaryEntry]:
    """
    Parse one `word<TAB>frequency` line.
    Returns None for blank lines and comments. A missing, non-numeric or
    negative frequency falls back to DEFAULT_FREQUENCY.
    """
    line = raw.rstrip("\r\n")
    if not line.strip() or line.lstrip().startswith("#"):
        return None

    parts = line.split("\t")
    word = parts[0].strip()
    if not word:
        raise AssetFormatError(line_no, raw, "empty word")

    frequency = DEFAULT_FREQUENCY
    if len(parts) >= 2:
        try:
            frequency = int(parts[1].strip())
        except ValueError:
            frequency = DEFAULT_FREQUENCY
        if frequency < 0:
            frequency = DEFAULT_FREQUENCY
    return DictionaryEntry(word, frequency)


def read_dictionary(path: str) -> Iterator[DictionaryEntry]:
    """Stream entries from a UTF-8 dictionary file. Bad lines are skipped."""
    skipped = 0
    with open(path, "r", encoding="utf-8-sig") as fh:
        for line_no, raw in enumerate(fh, 1):
            try:
                entry = parse_dictionary_line(line_no, raw)
            except AssetFormatError as e:
                skipped += 1
                Log.write(f"[PrefixDictionary] skipped {path} {e}", level="DEBUG")
                continue
            if entry is not None:
                yield entry
    if skipped:
        Log.write(f"[PrefixDictionary] {path}: skipped {skipped} malformed lines", level="WARNING")


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------
def _build(entries: Iterable[EntryLike]) -> Tuple[Tuple[_Node, ...], Dict[str, int]]:
    """Build the arena in O(total characters). The last frequency seen for a word wins."""
    children: List[Dict[str, int]] = [{}]
    terminal: List[bool] = [False]
    freq: List[int] = [0]
    words: Dict[str, int] = {}

    for item in entries:
        word, frequency = item[0], int(item[1])
        if not word:
            continue
        idx = 0
        for ch in word:
            nxt = children[idx].get(ch)
            if nxt is None:
                nxt = len(children)
                children[idx][ch] = nxt
                children.append({})
                terminal.append(False)
                freq.append(0)
            idx = nxt
        terminal[idx] = True
        freq[idx] = frequency
        words[word] = frequency

    # children always get a larger index than their parent, so one reverse
    # sweep sees every child before its parent
    best = [-1] * len(children)
    for idx in range(len(children) - 1, -1, -1):
        b = freq[idx] if terminal[idx] else -1
        for child in children[idx].values():
            if best[child] > b:
                b = best[child]
        best[idx] = b

    nodes = tuple(
        _Node(MappingProxyType(children[i]), terminal[i], freq[i], best[i])
        for i in range(len(children))
    )
    return nodes, words


class PrefixDictionary:
    """
    Immutable, frequency-ranked prefix index for one script.

    Public API:
      - PrefixDictionary.load(entries) / PrefixDictionary.from_file(path)
      - completions(prefix, limit)
      - fuzzy_completions(prefix, limit)
      - fuzzy_matches(word)
      - frequency(word), `word in index`, len(index)
    """

    def __init__(self, entries: Union[Iterable[EntryLike], Mapping[str, int]] = (),
                 fuzzy: Optional[FuzzyConfig] = None) -> None:
        if isinstance(entries, Mapping):
            entries = entries.items()
        self.fuzzy_config = fuzzy or FuzzyConfig()
        self._nodes, words = _build(entries)
        self._entries: Tuple[DictionaryEntry, ...] = tuple(
            DictionaryEntry(w, f) for w, f in sorted(words.items())
        )
        by_length: Dict[int, List[DictionaryEntry]] = {}
        for entry in self._entries:
            by_length.setdefault(len(entry.word), []).append(entry)
        self._by_length: Mapping[int, Tuple[DictionaryEntry, ...]] = MappingProxyType(
            {n: tuple(group) for n, group in by_length.items()}
        )

    # constructors ---------------------------------------------------------
    @classmethod
    def load(cls, entries: Union[Iterable[EntryLike], Mapping[str, int]],
             fuzzy: Optional[FuzzyConfig] = None) -> "PrefixDictionary":
        return cls(entries, fuzzy=fuzzy)

    from_entries = load

    @classmethod
    def from_file(cls, path: str, fuzzy: Optional[FuzzyConfig] = None) -> "PrefixDictionary":
        """Load a `word<TAB>frequency` file. Raises OSError if the file cannot be read."""
        index = cls(read_dictionary(path), fuzzy=fuzzy)
        Log.write(f"[PrefixDictionary] loaded {len(index)} words from {path}")
        return index

    # lookup ---------------------------------------------------------------
    def _find(self, prefix: str) -> Optional[int]:
        idx = 0
        for ch in prefix:
            nxt = self._nodes[idx].children.get(ch)
            if nxt is None:
                return None
            idx = nxt
        return idx

    def completions(self, prefix: str, limit: int) -> List[DictionaryEntry]:
        """
        Words starting with `prefix`, highest frequency first, ties broken
        lexicographically. Unknown or empty prefixes give [].
        """
        if not prefix or limit <= 0:
            return []
        start = self._find(prefix)
        if start is None:
            return []

        out: List[DictionaryEntry] = []
        heap = [(-self._nodes[start].best, prefix, _NODE, start)]
        while heap and len(out) < limit:
            neg, text, kind, idx = heapq.heappop(heap)
            if kind == _WORD:
                out.append(DictionaryEntry(text, -neg))
                continue
            node = self._nodes[idx]
            if node.terminal:
                heapq.heappush(heap, (-node.frequency, text, _WORD, idx))
            for ch, child in node.children.items():
                heapq.heappush(heap, (-self._nodes[child].best, text + ch, _NODE, child))
        return out

    def fuzzy_matches(self, word: str, max_distance: Optional[int] = None) -> List[DictionaryEntry]:
        """
        Stored words within max_distance edits of `word` (excluding `word`
        itself), with frequency discounted by distance. Only length buckets
        within max_distance of len(word) are scanned.
        """
        cfg = self.fuzzy_config
        maxd = cfg.max_distance if max_distance is None else max_distance
        if not word or maxd < 1:
            return []

        matches: List[DictionaryEntry] = []
        n = len(word)
        for length in range(max(1, n - maxd), n + maxd + 1):
            for entry in self._by_length.get(length, ()):
                d = capped_distance(word, entry.word, maxd)
                if 0 < d <= maxd:
                    factor = max(0.0, 1.0 - d * cfg.distance_discount)
                    matches.append(DictionaryEntry(entry.word, int(round(entry.frequency * factor))))

        matches.sort(key=lambda e: (-e.frequency, e.word))
        return matches

    def fuzzy_completions(self, prefix: str, limit: int) -> List[DictionaryEntry]:
        """
        Exact completions, topped up with near matches when there are fewer
        than `limit` of them and the prefix is long enough.
        """
        exact = self.completions(prefix, limit)
        cfg = self.fuzzy_config
        if len(exact) >= limit or len(prefix or "") < cfg.min_prefix_length:
            return exact

        out = list(exact)
        seen = {e.word for e in exact}
        for entry in self.fuzzy_matches(prefix):
            if entry.word in seen:
                continue
            seen.add(entry.word)
            out.append(entry)
            if len(out) >= limit:
                break
        return out

    # introspection --------------------------------------------------------
    def frequency(self, word: str) -> int:
        """Frequency of an exact word, 0 if absent."""
        if not word:
            return 0
        idx = self._find(word)
        if idx is None or not self._nodes[idx].terminal:
            return 0
        return self._nodes[idx].frequency

    def words(self) -> Iterator[DictionaryEntry]:
        """All entries in lexicographic order."""
        return iter(self._entries)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def __contains__(self, word: object) -> bool:
        if not isinstance(word, str) or not word:
            return False
        idx = self._find(word)
        return idx is not None and self._nodes[idx].terminal

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PrefixDictionary(words={len(self)}, nodes={self.node_count})"
