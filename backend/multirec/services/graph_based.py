"""Graph-Based Recommendation Algorithm"""

from collections import Counter, defaultdict
from typing import Dict, List, Set

from ..domain import Candidate
from ..models.interaction import CART_ADD, PURCHASE, VIEW
from ..stores.base import InteractionStore
from .fallback import FallbackChain, FallbackStep, ScoringStrategy, rank
from .mock_data import mock_graph


class GraphBasedService(ScoringStrategy):
    """
    Relationship traversal over the user -> product interaction graph

    Tiers, each tried only when the previous one found nothing:

    - co_purchase: what other buyers of the user's products also bought,
      scored by the number of distinct such buyers
    - co_view: the same two-hop walk starting from products the user
      viewed or put in the cart
    - global_popular: most purchased products overall
    - any_in_stock: any in-stock product with score 1
    """

    name = "graph"

    def __init__(self, store: InteractionStore):
        self.store = store

    def _two_hop(self, user_id: int, start: Set[str], exclude: Set[str], limit: int) -> List[Candidate]:
        """Products bought by users who bought anything in `start`, scored by distinct buyer count"""

        if not start:
            return []

        others = self.store.purchases_by_users_who_bought(start, exclude_user_id=user_id)

        buyers: Dict[str, Set[int]] = defaultdict(set)
        for other_id, purchases in others.items():
            if not purchases & start:
                continue
            for product_id in purchases - exclude:
                buyers[product_id].add(other_id)

        return self._with_products(
            rank(
                [Candidate(product_id=pid, score=float(len(users))) for pid, users in buyers.items()],
                limit,
                exclude=exclude,
            )
        )

    def get_co_purchase_recommendations(self, user_id: int, purchased: Set[str], limit: int) -> List[Candidate]:
        return self._two_hop(user_id, purchased, purchased, limit)

    def get_co_view_recommendations(self, user_id: int, purchased: Set[str], viewed: Set[str], limit: int) -> List[Candidate]:
        return self._two_hop(user_id, viewed, purchased | viewed, limit)

    def get_global_popular_recommendations(self, purchased: Set[str], limit: int) -> List[Candidate]:
        counts = self.store.purchase_counts()
        return self._with_products(
            rank(
                [Candidate(product_id=pid, score=float(count)) for pid, count in counts.items() if count > 0],
                limit,
                exclude=purchased,
            )
        )

    def get_any_in_stock_recommendations(self, purchased: Set[str], limit: int) -> List[Candidate]:
        return rank(
            [Candidate.from_product(product, 1.0) for product in self.store.list_products(in_stock_only=True)],
            limit,
            exclude=purchased,
        )

    def get_category_affinity_recommendations(self, purchased: Set[str], limit: int) -> List[Candidate]:
        """
        Products from the categories the user buys most

        Args:
            purchased: User's purchased product ids
            limit: Number of recommendations to return

        Returns:
            Candidates scored by how many of the user's purchases share their category
        """

        if not purchased:
            return []

        category_counts = Counter(
            product.category
            for product in self.store.get_products(purchased).values()
            if product.category
        )
        if not category_counts:
            return []

        candidates = [
            Candidate.from_product(product, float(category_counts[product.category]))
            for product in self.store.list_products()
            if product.category in category_counts
        ]
        return rank(candidates, limit, exclude=purchased)

    def _with_products(self, candidates: List[Candidate]) -> List[Candidate]:
        """Attach display fields to bare (product_id, score) candidates"""

        products = self.store.get_products(c.product_id for c in candidates)
        return [
            Candidate.from_product(products[c.product_id], c.score) if c.product_id in products else c
            for c in candidates
        ]

    def build_chain(self, user_id: int, limit: int) -> FallbackChain:
        purchased = self.store.products_for_user(user_id, [PURCHASE])
        viewed = self.store.products_for_user(user_id, [VIEW, CART_ADD])

        return FallbackChain(
            [
                FallbackStep("co_purchase", lambda: self.get_co_purchase_recommendations(user_id, purchased, limit)),
                FallbackStep("co_view", lambda: self.get_co_view_recommendations(user_id, purchased, viewed, limit)),
                FallbackStep("global_popular", lambda: self.get_global_popular_recommendations(purchased, limit)),
                FallbackStep("any_in_stock", lambda: self.get_any_in_stock_recommendations(purchased, limit)),
            ],
            strategy=self.name,
        )

    def build_category_chain(self, user_id: int, limit: int) -> FallbackChain:
        purchased = self.store.products_for_user(user_id, [PURCHASE])

        return FallbackChain(
            [
                FallbackStep("category_affinity", lambda: self.get_category_affinity_recommendations(purchased, limit)),
                FallbackStep("global_popular", lambda: self.get_global_popular_recommendations(purchased, limit)),
                FallbackStep("any_in_stock", lambda: self.get_any_in_stock_recommendations(purchased, limit)),
            ],
            strategy="graph_category",
        )

    def score_category_affinity(self, user_id: int, limit: int):
        """Secondary graph variant: category-affinity ranking with the global tiers behind it"""

        return self._run(lambda: self.build_category_chain(user_id, limit), user_id)

    def build_popular_chain(self, user_id: int, limit: int) -> FallbackChain:
        purchased = self.store.products_for_user(user_id, [PURCHASE])

        return FallbackChain(
            [
                FallbackStep("global_popular", lambda: self.get_global_popular_recommendations(purchased, limit)),
                FallbackStep("any_in_stock", lambda: self.get_any_in_stock_recommendations(purchased, limit)),
            ],
            strategy="graph_popular",
        )

    def score_popular(self, user_id: int, limit: int):
        """Global tiers only, for users no model can be assigned to"""

        return self._run(lambda: self.build_popular_chain(user_id, limit), user_id)

    def mock(self, user_id: int, limit: int) -> List[Candidate]:
        return mock_graph(user_id, limit)
