"""Keyword extraction and keyword-overlap scoring."""

import string

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but",
        "in", "on", "at", "to", "for", "of",
        "with", "by", "is", "are", "was", "were",
        "be", "been", "have", "has", "had", "do",
        "does", "did", "will", "would", "should", "could",
        "how", "what", "where", "when", "why", "who",
    }
)

MIN_KEYWORD_LENGTH = 3


def extract_keywords(query: str) -> list[str]:
    """Extract meaningful lowercase keywords from a query.

    Tokens are split on whitespace, stripped of surrounding punctuation, and
    dropped when shorter than three characters or a stop word. Each keyword
    appears once, in order of first occurrence.
    """
    keywords: dict[str, None] = {}
    for word in query.lower().split():
        cleaned = word.strip(string.punctuation)
        if len(cleaned) >= MIN_KEYWORD_LENGTH and cleaned not in STOP_WORDS:
            keywords.setdefault(cleaned)
    return list(keywords)


def score_keywords(content: str, keywords: list[str]) -> float:
    """Fraction of ``keywords`` that occur in ``content`` (case-insensitive)."""
    if not keywords:
        return 0.0
    content = content.lower()
    matched = sum(1 for keyword in keywords if keyword in content)
    return matched / len(keywords)


def calculate_score(content: str, query: str) -> float:
    """Relevance of ``content`` to ``query`` in [0, 1]."""
    return score_keywords(content, extract_keywords(query))
