"""
Pronunciation scoring.

similarity_score() blends two views of how close the recognized text is to
the target phrase:

- word match (60%): share of spoken words that appear in the phrase,
- edit distance (40%): character-level closeness of the whole strings,
  which still credits near misses such as a dropped letter.

find_mismatches() flags the phrase words the learner most likely
mispronounced, using a prefix-aligned character overlap per word.
"""

from typing import List

from .models import ScoreBreakdown
from .text import PUNCTUATION, edit_distance, normalize, round_half_up, tokenize

WORD_MATCH_WEIGHT = 0.6
EDIT_DISTANCE_WEIGHT = 0.4

# Words this short ("a", "de", "is") are not judged
MIN_JUDGED_WORD_LENGTH = 3
MISMATCH_THRESHOLD = 0.7


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


def word_match_score(original_words: List[str], spoken_words: List[str]) -> int:
    """Percentage of spoken words found in the phrase (each occurrence counts)."""
    denominator = max(len(original_words), len(spoken_words))
    if denominator == 0:
        return 0
    vocabulary = set(original_words)
    matches = sum(1 for word in spoken_words if word in vocabulary)
    return min(100, round_half_up(matches / denominator * 100))


def edit_distance_score(original_norm: str, spoken_norm: str) -> int:
    """Character-level closeness of the two normalized strings, 0–100."""
    max_len = max(len(original_norm), len(spoken_norm))
    if max_len == 0:
        return 100
    distance = edit_distance(original_norm, spoken_norm)
    return round_half_up(100 * (max_len - distance) / max_len)


def score_breakdown(original: str, spoken: str) -> ScoreBreakdown:
    if not original or not spoken:
        return ScoreBreakdown()

    original_norm = normalize(original)
    spoken_norm = normalize(spoken)

    word_score = word_match_score(tokenize(original_norm), tokenize(spoken_norm))
    edit_score = edit_distance_score(original_norm, spoken_norm)
    final = _clamp(round_half_up(WORD_MATCH_WEIGHT * word_score + EDIT_DISTANCE_WEIGHT * edit_score))
    return ScoreBreakdown(word_match=word_score, edit_distance=edit_score, final=final)


def similarity_score(original: str, spoken: str) -> int:
    """Score 0–100 for how closely `spoken` reproduces `original`.

    Empty input on either side scores 0; identical phrases score 100.
    """
    return score_breakdown(original, spoken).final


def _normalize_word(word: str) -> str:
    return "".join(ch for ch in word if ch not in PUNCTUATION).lower()


def word_similarity(a: str, b: str) -> float:
    """Share of aligned positions (from the start) holding the same character."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    same = sum(1 for i in range(min(len(a), len(b))) if a[i] == b[i])
    return same / longest


def find_mismatches(original: str, spoken: str) -> List[str]:
    """Phrase words (normalized, in phrase order) that were likely mispronounced."""
    candidates = [
        word for word in (_normalize_word(token) for token in spoken.split())
        if len(word) >= MIN_JUDGED_WORD_LENGTH
    ]

    mismatches: List[str] = []
    for token in original.split():
        word = _normalize_word(token)
        if len(word) < MIN_JUDGED_WORD_LENGTH:
            continue
        best = max((word_similarity(word, candidate) for candidate in candidates), default=0.0)
        if best < MISMATCH_THRESHOLD:
            mismatches.append(word)
    return mismatches
