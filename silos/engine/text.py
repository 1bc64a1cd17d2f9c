"""Shared text utilities for the silo engine."""

from __future__ import annotations

import re
import unicodedata
from collections import Counter
from typing import Dict, Iterable, List

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_diacritics(text: str) -> str:
    """Return ``text`` without combining marks (``bebê`` becomes ``bebe``)."""

    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def normalize_text(text: str) -> str:
    """Lowercase, strip accents and replace anything non-alphanumeric with spaces."""

    lowered = strip_diacritics((text or "").lower())
    return _NON_ALNUM_RE.sub(" ", lowered)


def tokenize(text: str) -> List[str]:
    """Return normalized word tokens from the provided text."""

    return normalize_text(text).split()


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def term_frequencies(tokens: Iterable[str]) -> Counter[str]:
    """Return term frequencies for the tokens."""

    return Counter(tokens)


def extract_key_terms(
    text: str,
    top_n: int = 10,
    *,
    stopwords: Iterable[str] = (),
    min_length: int = 4,
) -> Dict[str, int]:
    """Return the ``top_n`` most frequent significant terms of ``text``.

    Tokens shorter than ``min_length`` and stopwords are dropped. Ties keep
    the order in which the terms first appear.
    """

    blocked = set(stopwords)
    tokens = [token for token in tokenize(text) if len(token) >= min_length and token not in blocked]
    return dict(term_frequencies(tokens).most_common(max(top_n, 0)))


def jaccard(set_a: Iterable[str], set_b: Iterable[str]) -> float:
    """Return Jaccard similarity for two iterables."""

    set_a = set(set_a)
    set_b = set(set_b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def calculate_overlap(terms_a: Dict[str, int], terms_b: Dict[str, int]) -> float:
    """Jaccard similarity of two term maps' keys, as a percentage."""

    return jaccard(terms_a.keys(), terms_b.keys()) * 100
