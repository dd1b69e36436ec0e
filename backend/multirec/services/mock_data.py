"""Deterministic stand-in recommendations for when a store is unreachable

The lists are obviously fake (mock product ids and names) but stable for a
given user and limit, so a demo against a dead backend is repeatable.
"""

from typing import List

from ..domain import Candidate


def mock_collaborative(user_id: int, limit: int) -> List[Candidate]:
    return [
        Candidate(
            product_id=f"COLLAB-{i + 1}",
            score=float(limit - i),
            name=f"Collaborative Mock Product {i + 1}",
            price=round(19.99 + i, 2),
            category="Mock Category",
            extra={"mock": True},
        )
        for i in range(limit)
    ]


def mock_content(user_id: int, limit: int) -> List[Candidate]:
    return [
        Candidate(
            product_id=f"CONTENT-{100 + i + 1}",
            score=float(limit - i),
            name=f"Content-Based Mock Product {i + 1}",
            price=round(24.99 + i, 2),
            category="Fiction",
            author="Mock Author",
            extra={"mock": True},
        )
        for i in range(limit)
    ]


def mock_graph(user_id: int, limit: int) -> List[Candidate]:
    # Offset varies per user so different users see different fake lists
    start = (user_id % 50) * 3
    return [
        Candidate(
            product_id=f"GRAPH-{start + i + 1}",
            score=float(limit - i),
            name=f"Graph Mock Product {start + i + 1}",
            extra={"mock": True},
        )
        for i in range(limit)
    ]
