"""Precomputed product popularity used by the content strategy"""

from sqlalchemy import select, func
from sqlalchemy.engine import Engine

from ..models import Interaction, Product
from ..models.interaction import PURCHASE
from ..utils.database import create_session_factory
from ..utils.logging import get_logger

logger = get_logger(__name__)

PURCHASE_WEIGHT = 2
RATING_WEIGHT = 10


def compute_popularity_score(purchase_count: int, avg_rating: float, review_count: int) -> float:
    """purchases x 2 + average rating x 10 + number of reviews"""

    return float(
        (purchase_count or 0) * PURCHASE_WEIGHT
        + (avg_rating or 0.0) * RATING_WEIGHT
        + (review_count or 0)
    )


def refresh_popularity_scores(engine: Engine) -> int:
    """
    Recompute popularity_score for every product

    Args:
        engine: Engine of the interaction store

    Returns:
        Number of products updated
    """

    SessionLocal = create_session_factory(engine)
    db = SessionLocal()

    try:
        purchases = dict(
            db.execute(
                select(Interaction.product_id, func.count(Interaction.id))
                .where(Interaction.interaction_type == PURCHASE)
                .group_by(Interaction.product_id)
            ).all()
        )

        products = db.execute(select(Product)).scalars().all()
        for product in products:
            product.popularity_score = compute_popularity_score(
                purchases.get(product.id, 0),
                product.avg_rating,
                product.review_count,
            )

        db.commit()
        logger.info("Popularity scores refreshed", products=len(products))
        return len(products)

    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
