# edit_distance.py
# Edit distances between what was typed and stored words.
# PrefixDictionary.fuzzy_matches calls capped_distance once per word in the
# nearby length buckets, so the cap lets it drop a word after the first row
# that is already out of reach. FeatureScorer uses bounded_distance for its
# typo penalty.

import math
from typing import Optional, Union

Distance = Union[int, float]


def capped_distance(a: str, b: str, cap: Optional[int] = None) -> int:
    """
    Levenshtein distance between a and b over code points, so Kannada vowel
    signs and viramas count as separate edits.
    With a cap, every distance above it comes back as cap + 1.
    """
    if a == b:
        return 0
    short, long_ = (a, b) if len(a) <= len(b) else (b, a)
    over = None if cap is None else cap + 1
    if over is not None and len(long_) - len(short) >= over:
        return over
    if not short:
        return len(long_)

    row = list(range(len(short) + 1))
    for i, lc in enumerate(long_, 1):
        diag, row[0] = row[0], i
        for j, sc in enumerate(short, 1):
            above = row[j]
            row[j] = min(above + 1, row[j - 1] + 1, diag + (lc != sc))
            diag = above
        if over is not None and min(row) >= over:
            return over
    return row[-1] if over is None else min(row[-1], over)


def bounded_distance(a: str, b: str, max_length_delta: int = 3) -> Distance:
    """Edit distance for scoring; math.inf once the lengths differ by more than max_length_delta."""
    if abs(len(a) - len(b)) > max_length_delta:
        return math.inf
    return capped_distance(a, b)
