"""Text metric calculations for model responses.

Provides lexical statistics for a single response (character, word and
sentence counts, lexical diversity, average word length) and the differences
between two responses.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import numpy as np

from llm_compare.models import ModelResponse

_WORD_RE = re.compile(r"\w+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


@dataclass(frozen=True)
class TextMetrics:
    """Lexical statistics for one response.

    Attributes:
        char_count: Number of characters in the text.
        word_count: Number of words (runs of word characters).
        sentence_count: Number of non-blank segments between `.`, `!` and `?`.
        lexical_diversity: Distinct words as a percentage of all words.
        avg_word_length: Mean word length, rounded to 2 decimal places.
    """

    char_count: int = 0
    word_count: int = 0
    sentence_count: int = 0
    lexical_diversity: float = 0.0
    avg_word_length: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape used by the HTTP API."""
        return {
            "charCount": self.char_count,
            "wordCount": self.word_count,
            "sentenceCount": self.sentence_count,
            "lexicalDiversity": self.lexical_diversity,
            "avgWordLength": self.avg_word_length,
        }


@dataclass(frozen=True)
class MetricDifferences:
    """Absolute differences between the metrics of two responses.

    Attributes:
        time_ms: Difference in elapsed time in milliseconds.
        tokens: Difference in token usage, or None if either side is unknown.
        chars: Difference in character count.
        words: Difference in word count.
        sentences: Difference in sentence count.
    """

    time_ms: int
    tokens: int | None
    chars: int
    words: int
    sentences: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape used by the HTTP API."""
        return {
            "time": self.time_ms,
            "tokens": self.tokens,
            "charCount": self.chars,
            "wordCount": self.words,
            "sentenceCount": self.sentences,
        }


def tokenize_words(text: str | None) -> list[str]:
    """Split text into lower-cased words.

    Args:
        text: Raw text, may be empty or None.

    Returns:
        All maximal runs of Unicode word characters in the lower-cased text.
    """
    if not text:
        return []
    return _WORD_RE.findall(text.lower())


def split_sentences(text: str | None) -> list[str]:
    """Split text on runs of sentence terminators, dropping blank segments."""
    if not text:
        return []
    return [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def lexical_diversity(words: list[str]) -> float:
    """Calculate the share of distinct words as a percentage.

    Args:
        words: Tokenized words.

    Returns:
        Value from 0.0 to 100.0. Returns 0.0 for an empty list.
    """
    if not words:
        return 0.0
    return len(set(words)) / len(words) * 100


def average_word_length(words: list[str]) -> float:
    """Mean word length rounded to 2 decimal places, 0.0 for no words."""
    if not words:
        return 0.0
    return round(float(np.mean([len(w) for w in words])), 2)


def text_metrics(text: str | None) -> TextMetrics:
    """Compute lexical statistics for a response.

    Args:
        text: Response text. Empty or None yields all-zero metrics.

    Returns:
        TextMetrics for the text.
    """
    if not text:
        return TextMetrics()

    words = tokenize_words(text)
    return TextMetrics(
        char_count=len(text),
        word_count=len(words),
        sentence_count=len(split_sentences(text)),
        lexical_diversity=lexical_diversity(words),
        avg_word_length=average_word_length(words),
    )


def metric_differences(
    response_a: ModelResponse,
    metrics_a: TextMetrics,
    response_b: ModelResponse,
    metrics_b: TextMetrics,
) -> MetricDifferences:
    """Compute absolute differences between two responses.

    Token difference is None when either provider did not report usage.
    """
    if response_a.token_count is None or response_b.token_count is None:
        tokens = None
    else:
        tokens = abs(response_a.token_count - response_b.token_count)

    return MetricDifferences(
        time_ms=abs(response_a.elapsed_ms - response_b.elapsed_ms),
        tokens=tokens,
        chars=abs(metrics_a.char_count - metrics_b.char_count),
        words=abs(metrics_a.word_count - metrics_b.word_count),
        sentences=abs(metrics_a.sentence_count - metrics_b.sentence_count),
    )


def format_metrics_table(response: ModelResponse, metrics: TextMetrics) -> dict[str, str]:
    """Convert a response and its metrics to a flat dict for table display.

    Args:
        response: The provider response.
        metrics: Its text metrics.

    Returns:
        Dictionary with human-readable metric keys and values.
    """
    return {
        "Response Time": f"{response.elapsed_ms}ms",
        "Tokens Used": "N/A" if response.token_count is None else str(response.token_count),
        "Characters": str(metrics.char_count),
        "Words": str(metrics.word_count),
        "Sentences": str(metrics.sentence_count),
        "Lexical Diversity": f"{metrics.lexical_diversity:.1f}%",
        "Avg Word Length": f"{metrics.avg_word_length}",
    }
