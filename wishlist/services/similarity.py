"""Fuzzy title matching used for duplicate detection and item lookup.

Scores are normalized Levenshtein similarity over lowercased, trimmed text:
1.0 for identical strings, 0.0 when one side is empty.
"""

from collections.abc import Callable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")


def _identity(value: Any) -> str:
    return value


def levenshtein(a: str, b: str) -> int:
    """Edit distance (insertions, deletions, substitutions) between two strings."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i]
        for j, char_b in enumerate(b, 1):
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + (char_a != char_b),  # substitution
                )
            )
        previous = current
    return previous[-1]


def score(a: str, b: str) -> float:
    """Similarity of two strings in [0, 1]. Symmetric."""
    left = a.strip().lower()
    right = b.strip().lower()

    if left == right:
        return 1.0
    if not left or not right:
        return 0.0

    return 1.0 - levenshtein(left, right) / max(len(left), len(right))


def best_match(
    query: str,
    candidates: Iterable[T],
    threshold: float,
    key: Callable[[T], str] = _identity,
) -> T | None:
    """Return the highest-scoring candidate at or above ``threshold``.

    Candidates are scanned in the order given; on a tie the first one seen
    wins. Returns None when nothing clears the threshold.
    """
    best: T | None = None
    best_score = 0.0

    for candidate in candidates:
        candidate_score = score(query, key(candidate))
        if candidate_score > best_score and candidate_score >= threshold:
            best = candidate
            best_score = candidate_score

    return best


def all_above_threshold(
    query: str,
    candidates: Iterable[T],
    threshold: float,
    key: Callable[[T], str] = _identity,
) -> list[T]:
    """Every candidate scoring at or above ``threshold``, in input order."""
    return [c for c in candidates if score(query, key(c)) >= threshold]


def closest_span(query: str, text: str) -> str:
    """The part of ``text`` that best matches ``query``.

    Considers the whole text and every run of consecutive words as long as
    the query, so a partial reference ("jade") can resolve against a longer
    title ("Try Jade Palace"). Returns the whole text when nothing scores higher.
    """
    words = text.split()
    width = len(query.split())
    best_span = text
    best_score = score(query, text)

    if 0 < width < len(words):
        for start in range(len(words) - width + 1):
            span = " ".join(words[start : start + width])
            span_score = score(query, span)
            if span_score > best_score:
                best_span = span
                best_score = span_score

    return best_span
