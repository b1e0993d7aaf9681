"""
LoreFlow Text Matching module.

Tokenisation and bounded fuzzy matching used when a query names no entity and
the adapter falls back to searching fact tags and believed content.
"""

import re
from typing import List, Iterable

from rapidfuzz.distance import Levenshtein

STOPWORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "of", "in", "on", "at", "to", "for",
    "is", "are", "was", "were", "be", "been", "has", "have", "had", "with",
    "that", "this", "these", "those", "from", "into", "about", "what", "who",
    "where", "when", "which", "why", "how", "does", "did", "you", "your",
    "know", "tell", "there", "their", "they", "them", "his", "her", "its",
    "not", "any", "anything", "some", "can", "could", "would", "should",
})

_NON_WORD = re.compile(r"[^\w]+")


def normalize(text: str) -> str:
    """Lowercase and collapse whitespace."""
    return " ".join(text.lower().split())


def content_words(text: str, min_length: int = 3) -> List[str]:
    """
    Split text into searchable words.

    Punctuation (including the ``|`` content separator) is stripped; words
    shorter than ``min_length`` and stopwords are dropped. Order is preserved
    and duplicates removed.

    Args:
        text: Text to split
        min_length: Minimum word length

    Returns:
        Lowercase words
    """
    words = []
    seen = set()
    for raw in text.lower().split():
        word = _NON_WORD.sub("", raw)
        if len(word) < min_length or word in STOPWORDS or word in seen:
            continue
        seen.add(word)
        words.append(word)
    return words


def query_terms(query: str, min_length: int = 3) -> List[str]:
    """
    Search terms for a query.

    The same length and stopword filter as ``content_words`` applies, so a
    query made only of short or stop words yields no terms.
    """
    return content_words(query, min_length)


def bounded_edit_distance(a: str, b: str, limit: int) -> int:
    """
    Levenshtein distance, giving up once it must exceed ``limit``.

    Returns:
        The distance, or ``limit + 1`` if it is larger than ``limit``
    """
    return Levenshtein.distance(a, b, score_cutoff=limit)


def fuzzy_match(term: str, word: str, short_length: int = 5, strict_distance: int = 1,
                loose_distance: int = 2) -> bool:
    """
    Decide whether two words refer to the same thing.

    A substring in either direction always matches. Otherwise two short words
    may differ by ``strict_distance`` edits; longer words by
    ``loose_distance`` edits, but only when first and last characters agree.
    """
    if not term or not word:
        return False
    if term in word or word in term:
        return True

    if len(term) <= short_length and len(word) <= short_length:
        limit = strict_distance
    else:
        if term[0] != word[0] or term[-1] != word[-1]:
            return False
        limit = loose_distance
    return bounded_edit_distance(term, word, limit) <= limit


def any_fuzzy_match(terms: Iterable[str], words: Iterable[str], **kwargs) -> bool:
    words = list(words)
    return any(fuzzy_match(term, word, **kwargs) for term in terms for word in words)
