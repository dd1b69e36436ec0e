"""Recommendation API endpoints"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from ..config import settings
from ..schemas.recommendation import RecommendationResponse
from ..services import EventLog, RecommendationOrchestrator
from ..utils.dependencies import get_event_log, get_orchestrator

router = APIRouter()


@router.get("/{user_id}", response_model=RecommendationResponse)
def get_recommendations(
    user_id: int,
    model: Optional[str] = Query(None, description="collab, content or graph; overrides the user's assignment"),
    limit: int = Query(settings.DEFAULT_RECOMMENDATION_LIMIT, ge=1, le=settings.MAX_RECOMMENDATION_LIMIT),
    track: bool = Query(False, description="Log an impression event per returned product"),
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
    event_log: EventLog = Depends(get_event_log),
):
    """
    Get recommendations for a user

    Without `model` the user's sticky A/B assignment decides which
    strategy runs (a first request assigns one). With `model` the
    strategy is chosen explicitly, for comparing models side by side.
    """

    outcome = orchestrator.get_recommendations(user_id, limit, explicit_model=model)

    if track and outcome.recommendations:
        event_log.log_impressions(user_id, outcome.model_id, outcome.recommendations, tier=outcome.tier)

    return outcome.to_dict()


@router.get("/{user_id}/category-affinity", response_model=RecommendationResponse)
def get_category_affinity(
    user_id: int,
    limit: int = Query(settings.DEFAULT_RECOMMENDATION_LIMIT, ge=1, le=settings.MAX_RECOMMENDATION_LIMIT),
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
):
    """Products from the categories the user buys most (graph variant)"""

    return orchestrator.category_affinity(user_id, limit).to_dict()
