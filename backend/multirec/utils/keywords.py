"""Keyword extraction for content-based matching"""

import re
from typing import List, Optional

_WHITESPACE = re.compile(r"\s+")


def extract_keywords(
    title: Optional[str],
    description: Optional[str] = None,
    max_keywords: int = 10,
    description_words: int = 20,
    min_length: int = 4,
) -> List[str]:
    """
    Build a product's keyword bag from its title and description

    Words are lowercased, only the first `description_words` words of the
    description are used, short words are dropped and the first
    `max_keywords` distinct words are kept in order of appearance.
    """

    words = _WHITESPACE.split(title.lower()) if title else []
    if description:
        words += _WHITESPACE.split(description.lower())[:description_words]

    keywords: List[str] = []
    for word in words:
        if len(word) >= min_length and word not in keywords:
            keywords.append(word)
        if len(keywords) >= max_keywords:
            break

    return keywords
