"""Collaborative Filtering Recommendation Algorithm"""

from collections import defaultdict
from typing import Dict, List, Set, Tuple

from ..config import settings
from ..domain import Candidate
from ..models.interaction import PURCHASE
from ..stores.base import InteractionStore
from .fallback import FallbackChain, FallbackStep, ScoringStrategy, rank
from .mock_data import mock_collaborative


def jaccard(a: Set[str], b: Set[str]) -> float:
    """|a ∩ b| / |a ∪ b|, 0 for two empty sets"""

    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


class CollaborativeFilteringService(ScoringStrategy):
    """
    User-based collaborative filtering over purchase history

    Neighbours are the users who bought at least one of the target user's
    products, weighted by Jaccard similarity of the two purchase sets. A
    candidate's score is the summed similarity of the neighbours who
    bought it; `relative_score` rescales that sum so the closest neighbour
    alone contributes 1. Users without usable neighbours get the globally
    most purchased in-stock products instead.
    """

    name = "collab"

    def __init__(self, store: InteractionStore, k_neighbors: int = None):
        self.store = store
        self.k_neighbors = k_neighbors or settings.COLLABORATIVE_K_NEIGHBORS

    def find_neighbors(self, user_id: int, purchased: Set[str]) -> List[Tuple[int, float, Set[str]]]:
        """
        Top-k most similar users

        Args:
            user_id: Target user ID
            purchased: Target user's purchased product ids

        Returns:
            List of (user_id, similarity, purchases), similarity desc then user_id asc
        """

        others = self.store.purchases_by_users_who_bought(purchased, exclude_user_id=user_id)

        neighbors = [
            (other_id, jaccard(purchased, other_purchases), other_purchases)
            for other_id, other_purchases in others.items()
            if purchased & other_purchases
        ]
        neighbors.sort(key=lambda n: (-n[1], n[0]))

        return neighbors[:self.k_neighbors]

    def get_neighborhood_recommendations(self, user_id: int, purchased: Set[str], limit: int) -> List[Candidate]:
        """
        Score products bought by neighbours but not by the user

        Args:
            user_id: Target user ID
            purchased: Target user's purchased product ids
            limit: Number of recommendations to return

        Returns:
            Candidates ordered by weighted score, neighbour purchase count, product id
        """

        if not purchased:
            return []

        neighbors = self.find_neighbors(user_id, purchased)
        if not neighbors:
            return []

        closest = neighbors[0][1]

        weighted_scores: Dict[str, float] = defaultdict(float)
        purchase_counts: Dict[str, int] = defaultdict(int)

        for _, similarity, neighbor_purchases in neighbors:
            for product_id in neighbor_purchases - purchased:
                weighted_scores[product_id] += similarity
                purchase_counts[product_id] += 1

        if not weighted_scores:
            return []

        top = sorted(
            weighted_scores,
            key=lambda pid: (-weighted_scores[pid], -purchase_counts[pid], pid),
        )[:limit]
        products = self.store.get_products(top)

        candidates = []
        for product_id in top:
            score = weighted_scores[product_id]
            extra = {
                "purchase_count": purchase_counts[product_id],
                "relative_score": round(score / closest, 4),
            }
            product = products.get(product_id)
            if product is not None:
                candidate = Candidate.from_product(product, score, **extra)
            else:
                candidate = Candidate(product_id=product_id, score=score, extra=extra)
            candidates.append(candidate)

        return rank(
            candidates,
            limit,
            exclude=purchased,
            key=lambda c: (-c.score, -c.extra["purchase_count"], c.product_id),
        )

    def get_popular_recommendations(self, purchased: Set[str], limit: int) -> List[Candidate]:
        """
        Cold-start fallback: in-stock products ranked by global purchase count

        Args:
            purchased: Product ids to exclude
            limit: Number of recommendations to return

        Returns:
            Candidates scored by purchase count
        """

        candidates = [
            Candidate.from_product(product, float(product.purchase_count), purchase_count=product.purchase_count)
            for product in self.store.list_products(in_stock_only=True)
        ]
        return rank(candidates, limit, exclude=purchased)

    def build_chain(self, user_id: int, limit: int) -> FallbackChain:
        purchased = self.store.products_for_user(user_id, [PURCHASE])

        return FallbackChain(
            [
                FallbackStep("neighborhood", lambda: self.get_neighborhood_recommendations(user_id, purchased, limit)),
                FallbackStep("popular", lambda: self.get_popular_recommendations(purchased, limit)),
            ],
            strategy=self.name,
        )

    def mock(self, user_id: int, limit: int) -> List[Candidate]:
        return mock_collaborative(user_id, limit)
