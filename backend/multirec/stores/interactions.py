"""SQL adapter for interaction history and product attributes"""

from collections import defaultdict
from typing import Dict, Iterable, List, Set

from sqlalchemy import select, func

from ..config import settings
from ..domain import ProductRecord
from ..models import Interaction, Product
from ..models.interaction import PURCHASE
from ..utils.keywords import extract_keywords
from .base import InteractionStore, SqlStore


class SqlInteractionStore(SqlStore, InteractionStore):
    """Interaction Store backed by the storefront's relational database"""

    store_name = "interaction"

    def products_for_user(self, user_id: int, interaction_types: Iterable[str]) -> Set[str]:
        with self._session() as db:
            rows = db.execute(
                select(Interaction.product_id)
                .where(
                    Interaction.user_id == user_id,
                    Interaction.interaction_type.in_(list(interaction_types)),
                )
                .distinct()
            ).scalars()
            return set(rows)

    def purchases_by_users_who_bought(self, product_ids: Iterable[str], exclude_user_id: int) -> Dict[int, Set[str]]:
        product_ids = list(product_ids)
        if not product_ids:
            return {}

        with self._session() as db:
            co_buyers = (
                select(Interaction.user_id)
                .where(
                    Interaction.interaction_type == PURCHASE,
                    Interaction.product_id.in_(product_ids),
                    Interaction.user_id != exclude_user_id,
                )
                .distinct()
            )
            rows = db.execute(
                select(Interaction.user_id, Interaction.product_id)
                .where(
                    Interaction.interaction_type == PURCHASE,
                    Interaction.user_id.in_(co_buyers),
                )
                .distinct()
            ).all()

        purchases: Dict[int, Set[str]] = defaultdict(set)
        for user_id, product_id in rows:
            purchases[user_id].add(product_id)
        return dict(purchases)

    def purchase_counts(self) -> Dict[str, int]:
        with self._session() as db:
            rows = db.execute(
                select(Interaction.product_id, func.count(Interaction.id))
                .where(Interaction.interaction_type == PURCHASE)
                .group_by(Interaction.product_id)
            ).all()
        return {product_id: count for product_id, count in rows}

    def get_products(self, product_ids: Iterable[str]) -> Dict[str, ProductRecord]:
        product_ids = list(product_ids)
        if not product_ids:
            return {}
        records = self._query_products(Product.id.in_(product_ids))
        return {record.product_id: record for record in records}

    def list_products(self, in_stock_only: bool = False) -> List[ProductRecord]:
        condition = Product.stock > 0 if in_stock_only else None
        return self._query_products(condition)

    def _query_products(self, condition) -> List[ProductRecord]:
        purchases = (
            select(Interaction.product_id, func.count(Interaction.id).label("purchase_count"))
            .where(Interaction.interaction_type == PURCHASE)
            .group_by(Interaction.product_id)
            .subquery()
        )
        query = (
            select(Product, purchases.c.purchase_count)
            .outerjoin(purchases, purchases.c.product_id == Product.id)
            .order_by(Product.id)
        )
        if condition is not None:
            query = query.where(condition)

        with self._session() as db:
            rows = db.execute(query).all()
            return [to_product_record(product, purchase_count or 0) for product, purchase_count in rows]


def to_product_record(product: Product, purchase_count: int = 0) -> ProductRecord:
    """Convert an ORM row to the canonical record"""

    tags = product.tags or extract_keywords(
        product.name, product.description, max_keywords=settings.CONTENT_MAX_KEYWORDS
    )
    return ProductRecord(
        product_id=str(product.id),
        name=product.name,
        category=product.category,
        price=float(product.price or 0),
        author=product.author,
        publisher=product.publisher,
        image=product.image_url,
        tags=tuple(tag.lower() for tag in tags),
        stock=product.stock or 0,
        purchase_count=int(purchase_count),
        avg_rating=float(product.avg_rating or 0.0),
        review_count=product.review_count or 0,
        popularity_score=float(product.popularity_score or 0.0),
    )
