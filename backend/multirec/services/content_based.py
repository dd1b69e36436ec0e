"""Content-Based Recommendation Algorithm"""

from dataclasses import dataclass, field
from typing import List, Set

from ..config import settings
from ..domain import Candidate, ProductRecord
from ..models.interaction import CART_ADD, PURCHASE, VIEW
from ..stores.base import InteractionStore
from .fallback import FallbackChain, FallbackStep, ScoringStrategy, rank
from .mock_data import mock_content


@dataclass
class ContentProfile:
    """What a user's history says they like"""

    purchased: Set[str] = field(default_factory=set)
    interacted: Set[str] = field(default_factory=set)
    categories: Set[str] = field(default_factory=set)
    authors: Set[str] = field(default_factory=set)
    tags: Set[str] = field(default_factory=set)

    @property
    def has_history(self) -> bool:
        return bool(self.interacted)


class ContentBasedService(ScoringStrategy):
    """
    Content-Based Filtering using product attributes

    Builds a preference profile (categories, authors, keyword tags) from the
    products a user purchased or viewed and scores every other in-stock
    product by attribute overlap plus its precomputed popularity.
    """

    name = "content"

    def __init__(
        self,
        store: InteractionStore,
        category_weight: float = None,
        author_weight: float = None,
    ):
        self.store = store
        self.category_weight = category_weight if category_weight is not None else settings.CONTENT_CATEGORY_WEIGHT
        self.author_weight = author_weight if author_weight is not None else settings.CONTENT_AUTHOR_WEIGHT

    def build_profile(self, user_id: int) -> ContentProfile:
        """
        Derive preference sets from the user's purchases and views

        Args:
            user_id: Target user ID

        Returns:
            ContentProfile (empty for users without history)
        """

        purchased = self.store.products_for_user(user_id, [PURCHASE])
        viewed = self.store.products_for_user(user_id, [VIEW, CART_ADD])
        profile = ContentProfile(purchased=purchased, interacted=purchased | viewed)

        for product in self.store.get_products(profile.interacted).values():
            if product.category:
                profile.categories.add(product.category)
            if product.author:
                profile.authors.add(product.author)
            profile.tags.update(product.tags)

        return profile

    def score_product(self, product: ProductRecord, profile: ContentProfile) -> float:
        """Attribute overlap with the profile plus global popularity"""

        score = product.popularity_score
        if product.category in profile.categories:
            score += self.category_weight
        if product.author in profile.authors:
            score += self.author_weight
        score += len(profile.tags.intersection(product.tags))
        return score

    def get_similar_content_recommendations(self, profile: ContentProfile, limit: int) -> List[Candidate]:
        """
        Score in-stock products the user has not interacted with

        Args:
            profile: User's preference profile
            limit: Number of recommendations to return

        Returns:
            Candidates with score > 0, highest first
        """

        if not profile.has_history:
            return []

        candidates = []
        for product in self.store.list_products(in_stock_only=True):
            if product.product_id in profile.interacted:
                continue
            score = self.score_product(product, profile)
            if score > 0:
                candidates.append(Candidate.from_product(product, score))

        return rank(candidates, limit, exclude=profile.interacted)

    def get_popular_recommendations(self, exclude: Set[str], limit: int) -> List[Candidate]:
        """
        Fallback: in-stock products by popularity alone

        Args:
            exclude: Product ids never to return (the user's purchases)
            limit: Number of recommendations to return

        Returns:
            Candidates scored by popularity_score, rating breaking ties
        """

        products = [
            product for product in self.store.list_products(in_stock_only=True)
            if product.product_id not in exclude
        ]
        products.sort(key=lambda p: (-p.popularity_score, -p.avg_rating, p.product_id))

        return [Candidate.from_product(product, product.popularity_score) for product in products[:limit]]

    def build_chain(self, user_id: int, limit: int) -> FallbackChain:
        profile = self.build_profile(user_id)

        return FallbackChain(
            [
                FallbackStep("content_match", lambda: self.get_similar_content_recommendations(profile, limit)),
                FallbackStep("popular", lambda: self.get_popular_recommendations(profile.purchased, limit)),
            ],
            strategy=self.name,
        )

    def mock(self, user_id: int, limit: int) -> List[Candidate]:
        return mock_content(user_id, limit)
