"""Text processing utilities for IncidentFusion.

Pure functions for similarity scoring, normalization and truncation.
All functions are stateless with no I/O or external calls.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Set

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_for_similarity(text: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace.

    Args:
        text: Raw post text.

    Returns:
        Normalized string suitable for token comparison.
    """
    text = _PUNCTUATION_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def token_set(text: str) -> Set[str]:
    """Set of whitespace-delimited tokens of the normalized text."""
    normalized = normalize_for_similarity(text)
    return set(normalized.split()) if normalized else set()


def text_similarity(text_a: str, text_b: str) -> float:
    """Jaccard similarity of the normalized token sets of two texts.

    Two texts with no tokens at all score 0.0.

    Args:
        text_a: First text.
        text_b: Second text.

    Returns:
        Similarity in [0.0, 1.0].
    """
    tokens_a = token_set(text_a)
    tokens_b = token_set(text_b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def normalize_text(text: str) -> str:
    """Normalize Unicode text to NFC form, strip control characters and extra whitespace.

    Args:
        text: Input string.

    Returns:
        Normalized plain text string.
    """
    text = unicodedata.normalize("NFC", text)
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate_text(text: str, max_chars: int) -> str:
    """Hard-truncate text to at most ``max_chars`` characters."""
    return text[:max_chars]


def sanitize_text(value: object, max_chars: int = 500) -> str:
    """Coerce a collaborator-supplied value to trimmed, length-limited text.

    Args:
        value: Any value; non-strings yield an empty string.
        max_chars: Maximum character count.

    Returns:
        Normalized text of at most ``max_chars`` characters.
    """
    if not isinstance(value, str):
        return ""
    return truncate_text(normalize_text(value), max_chars)
