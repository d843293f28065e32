"""Bigram similarity scoring between two responses.

Uses the Dice coefficient over adjacent-character bigrams, with the same
normalization as the `string-similarity` package: whitespace is removed before
comparison. Text is also lower-cased.
"""

from __future__ import annotations

import re
from collections import Counter

_WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """Lower-case text and strip all whitespace."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub("", text).lower()


def bigrams(text: str) -> Counter[str]:
    """Build the multiset of adjacent-character pairs.

    Strings shorter than two characters have no bigrams.
    """
    return Counter(text[i : i + 2] for i in range(len(text) - 1))


def similarity(first: str | None, second: str | None) -> float:
    """Score how similar two texts are.

    Args:
        first: First text.
        second: Second text.

    Returns:
        Dice coefficient from 0.0 to 1.0. Identical texts (including two
        empty texts) score 1.0; a text with fewer than two characters scores
        0.0 against any different text.
    """
    a = normalize(first)
    b = normalize(second)

    if a == b:
        return 1.0
    if len(a) < 2 or len(b) < 2:
        return 0.0

    bigrams_a = bigrams(a)
    bigrams_b = bigrams(b)
    intersection = sum((bigrams_a & bigrams_b).values())
    total = sum(bigrams_a.values()) + sum(bigrams_b.values())
    return (2.0 * intersection) / total
