"""
Search token generation and matching for mod identities.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Set

import regex

# Words shorter than or equal to this are indexed whole.
SKIP_GRAPHEMES = 2

_WORD_SEPARATORS = re.compile(r"[_\-/]")
_QUERY_SEPARATORS = re.compile(r"[\s_\-/]+")
_GRAPHEME = regex.compile(r"\X")


def _graphemes(word: str) -> List[str]:
    return _GRAPHEME.findall(word)


def tokenize_identity(identity: str, skip_n: int = SKIP_GRAPHEMES) -> str:
    """
    Build the search string for ``identity`` (``"owner/name"``).

    The identity is split on ``_``, ``-`` and ``/``. Words of at most
    ``skip_n`` graphemes are emitted whole. Longer words contribute every
    proper suffix, and from grapheme position ``skip_n`` onwards the prefix
    ending at that position. The last prefix is the whole word. Every token
    is followed by a single space.

    >>> tokenize_identity("ab/cdef")
    'ab def cde ef cdef f '
    """
    parts: List[str] = []
    for word in _WORD_SEPARATORS.split(identity):
        clusters = _graphemes(word)
        if len(clusters) <= skip_n:
            parts.append(word)
            continue
        for i in range(1, len(clusters)):
            if i >= skip_n:
                parts.append("".join(clusters[: i + 1]))
            parts.append("".join(clusters[i:]))
    return "".join(f"{token} " for token in parts)


def search_terms(query: str) -> Set[str]:
    """Split a free-text query into lowercase terms."""
    return {term.casefold() for term in _QUERY_SEPARATORS.split(query) if term}


def matches_search(tokens: str, terms: Iterable[str]) -> bool:
    """
    True when any query term equals one of the entry's search tokens.
    Matching is case-insensitive.
    """
    token_set = {token.casefold() for token in tokens.split()}
    return any(term in token_set for term in terms)
