# ABOUTME: Normalized edit-distance similarity between titles and author names.
# ABOUTME: Used for local deduplication and for judging how plausible a provider hit is.

import re
from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

# Anything that is not a letter, digit, or whitespace, in any script.
# \w also matches "_", which is punctuation here.
_NON_WORD_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_TITLE_THRESHOLD = 0.85
DEFAULT_AUTHOR_THRESHOLD = 0.70


def normalize_text(text: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace, trim."""
    text = _NON_WORD_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def similarity(a: str, b: str) -> float:
    """Similarity in [0.0, 1.0] from Levenshtein distance over normalized text.

    Identical normalized strings (including two empty ones) score 1.0;
    exactly one empty string scores 0.0.
    """
    left = normalize_text(a)
    right = normalize_text(b)
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    longest = max(len(left), len(right))
    return (longest - Levenshtein.distance(left, right)) / longest


@dataclass(frozen=True)
class MatchThresholds:
    """Minimum similarities for two records to count as the same book."""

    title: float = DEFAULT_TITLE_THRESHOLD
    author: float = DEFAULT_AUTHOR_THRESHOLD

    def matches(self, title_similarity: float, author_similarity: float | None = None) -> bool:
        """Title must clear its threshold; author only when there was one to compare."""
        if title_similarity < self.title:
            return False
        return author_similarity is None or author_similarity >= self.author
