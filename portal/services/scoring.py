"""
Relevance scoring and highlighting for the global search.

``calculate_score`` is a pure function of ``(text, query)``: it is safe
to call repeatedly and returns the same value for the same inputs.
"""
from __future__ import annotations

import re
from typing import Iterable

MAX_SCORE = 100.0
EXACT_SCORE = 100.0
PREFIX_SCORE = 90.0
TOKEN_PREFIX_SCORE = 80.0
TOKEN_CONTAINS_SCORE = 60.0
CONTAINS_SCORE = 50.0

MARK_OPEN = '<mark>'
MARK_CLOSE = '</mark>'


def calculate_score(text: str, query: str) -> float:
    """Score how well ``text`` matches ``query`` on a 0-100 scale.

    1. exact match -> 100
    2. text starts with the query -> 90
    3. for every (query token, text token) pair add 80 when the text token
       starts with the query token, else 60 when it contains it; the sum
       is returned (clamped to 100) when positive
    4. query is a substring of text -> 50
    5. otherwise 0

    Zero scores are returned as-is; callers decide whether to drop them.
    """
    text_lower = (text or '').lower()
    query_lower = (query or '').lower()
    if not query_lower:
        return 0.0

    if text_lower == query_lower:
        return EXACT_SCORE
    if text_lower.startswith(query_lower):
        return PREFIX_SCORE

    words = text_lower.split()
    query_words = query_lower.split()
    word_score = 0.0
    for query_word in query_words:
        for word in words:
            if word.startswith(query_word):
                word_score += TOKEN_PREFIX_SCORE
            elif query_word in word:
                word_score += TOKEN_CONTAINS_SCORE
    if word_score > 0:
        return min(word_score, MAX_SCORE)

    if query_lower in text_lower:
        return CONTAINS_SCORE
    return 0.0


def best_score(query: str, *weighted: tuple[str, float]) -> float:
    """Return the highest ``weight * calculate_score(text, query)`` over the pairs."""
    return max((calculate_score(text or '', query) * weight for text, weight in weighted), default=0.0)


def rank_results(results: Iterable[dict], limit: int) -> list[dict]:
    """Sort by ``score`` descending and keep the first ``limit``.

    ``sorted`` is stable, so equal scores keep their fetch order.
    """
    return sorted(results, key=lambda r: r['score'], reverse=True)[:max(0, limit)]


def highlight_text(text: str, query: str) -> str:
    """Wrap every occurrence of each query word in ``<mark>`` tags."""
    if not query or not text:
        return text
    words = [w for w in query.strip().split() if w]
    if not words:
        return text
    pattern = re.compile('(' + '|'.join(re.escape(w) for w in words) + ')', re.IGNORECASE)
    return pattern.sub(lambda m: f'{MARK_OPEN}{m.group(1)}{MARK_CLOSE}', text)
