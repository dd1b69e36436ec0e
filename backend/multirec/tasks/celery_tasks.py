"""Background task definitions"""

from datetime import datetime
from typing import List, Optional

from .celery_config import celery_app
from ..config import settings
from ..services.assignment import AssignmentService
from ..services.popularity import refresh_popularity_scores as refresh_scores
from ..stores import SqlAssignmentStore
from ..utils.database import create_store_engine
from ..utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="multirec.tasks.celery_tasks.refresh_popularity_scores")
def refresh_popularity_scores():
    """
    Recompute the precomputed popularity term of every product

    Runs daily so the content strategy's popularity ranking follows new
    purchases and reviews.
    """
    logger.info("Starting popularity refresh")
    engine = create_store_engine(settings.INTERACTION_DATABASE_URL)

    try:
        updated = refresh_scores(engine)

        return {
            "status": "success",
            "timestamp": datetime.utcnow().isoformat(),
            "products_updated": updated,
            "message": "Popularity scores refreshed"
        }

    except Exception:
        logger.error("Error refreshing popularity scores", exc_info=True)
        raise
    finally:
        engine.dispose()


@celery_app.task(name="multirec.tasks.celery_tasks.assign_all_users_even")
def assign_all_users_even(model_ids: Optional[List[int]] = None):
    """
    Round-robin backfill of model assignments for every known user

    Args:
        model_ids: Models to cycle through (default: DEFAULT_MODEL_IDS)
    """
    model_ids = model_ids or list(settings.DEFAULT_MODEL_IDS)
    logger.info("Starting bulk model assignment", models=model_ids)

    store = SqlAssignmentStore(create_store_engine(settings.ASSIGNMENT_DATABASE_URL))

    try:
        result = AssignmentService(store).assign_all_even(model_ids)

        return {
            "status": "success",
            "timestamp": datetime.utcnow().isoformat(),
            **result.to_dict(),
            "message": "Users assigned"
        }

    except Exception:
        logger.error("Error assigning users", exc_info=True)
        raise
    finally:
        store.close()
