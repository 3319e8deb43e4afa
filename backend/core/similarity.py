"""
Similarity scoring between normalized exercise names.

The score blends two signals, each in [0, 1]:

- token containment: shared words over the word count of the shorter name,
  so "bench press" is fully contained in "incline bench press"
- normalized Levenshtein similarity over the whole string, which penalizes
  the extra words and catches typos ("benchpress", "bench pres")

Both inputs are expected to be normalized already (see backend.core.normalize).
"""
from typing import List, Tuple

from rapidfuzz.distance import Levenshtein

# Relative weight of token containment vs edit-distance similarity
TOKEN_WEIGHT = 0.5
EDIT_WEIGHT = 0.5


def token_containment(a: str, b: str) -> float:
    """Fraction of the shorter name's words that also appear in the other name."""
    tokens_a = set(a.split())
    tokens_b = set(b.split())
    if not tokens_a or not tokens_b:
        return 0.0
    shared = len(tokens_a & tokens_b)
    return shared / min(len(tokens_a), len(tokens_b))


def exercise_similarity(a: str, b: str) -> float:
    """
    Score two normalized exercise names in [0, 1].

    Symmetric, and 1.0 for identical names. Two empty names score 1.0;
    an empty name against a non-empty one scores 0.0.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    edit = Levenshtein.normalized_similarity(a, b)
    score = TOKEN_WEIGHT * token_containment(a, b) + EDIT_WEIGHT * edit
    return max(0.0, min(score, 1.0))


def rank_by_similarity(
    target: str,
    candidates: List[Tuple[int, str]],
    threshold: float = 0.0,
) -> List[Tuple[int, str, float]]:
    """
    Score (id, normalized_name) candidates against target.

    Returns (id, normalized_name, score) for every candidate scoring at least
    threshold, best first. Ties are ordered by name, then id.
    """
    scored = []
    for candidate_id, candidate_name in candidates:
        score = exercise_similarity(target, candidate_name)
        if score >= threshold:
            scored.append((candidate_id, candidate_name, score))
    scored.sort(key=lambda x: (-x[2], x[1], x[0]))
    return scored
