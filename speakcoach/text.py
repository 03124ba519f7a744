"""Text normalization and Levenshtein distance used by the scorer."""

import math
from typing import List

# Characters removed before comparison; apostrophes and accented letters are kept
PUNCTUATION = set(".,/#!$%^&*;:{}=-_`~()")

_STRIP_TABLE = str.maketrans("", "", "".join(PUNCTUATION))


def normalize(text: str) -> str:
    """Lower-case, drop the punctuation set and trim.

    Internal whitespace runs are left alone; `tokenize` collapses them.
    """
    if not text:
        return ""
    return text.lower().translate(_STRIP_TABLE).strip()


def tokenize(text: str) -> List[str]:
    """Split already-normalized text into words."""
    return text.split()


def edit_distance(a: str, b: str) -> int:
    """Classic Levenshtein distance (insert/delete/substitute, unit cost).

    Works on code points, so "é" and "e" differ by one substitution.
    """
    n, m = len(a), len(b)
    if n == 0:
        return m
    if m == 0:
        return n

    # dp[i][j] = distance between a[:i] and b[:j]
    dp = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n + 1):
        dp[i][0] = i
    for j in range(m + 1):
        dp[0][j] = j

    for i in range(1, n + 1):
        for j in range(1, m + 1):
            if a[i - 1] == b[j - 1]:
                dp[i][j] = dp[i - 1][j - 1]
            else:
                dp[i][j] = 1 + min(
                    dp[i - 1][j],      # deletion
                    dp[i][j - 1],      # insertion
                    dp[i - 1][j - 1],  # substitution
                )
    return dp[n][m]


def round_half_up(value: float) -> int:
    """Round x.5 upward (built-in round() rounds half to even)."""
    return int(math.floor(value + 0.5))
