"""Recommendation orchestrator: picks the model for a user and runs it"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config import settings
from ..domain import Assignment, Candidate
from ..errors import InvalidArgument, NoActiveModels, UnsupportedModel
from ..utils.logging import get_logger
from ..utils.metrics import record_degraded, record_recommendations, track_recommendation_time
from .assignment import AssignmentService, validate_user_id
from .fallback import MOCK_TIER, ScoringResult, ScoringStrategy
from .graph_based import GraphBasedService

logger = get_logger(__name__)

# Alternative spellings accepted for an explicit model override
MODEL_ALIASES = {
    "collaborative": "collab",
    "collaborative_filtering": "collab",
    "content_based": "content",
    "graph_based": "graph",
}


def normalize_model_name(name: str) -> str:
    key = name.strip().lower().replace("-", "_")
    return MODEL_ALIASES.get(key, key)


@dataclass
class RecommendationOutcome:
    """What the orchestrator answered and how it got there"""

    model_name: str
    model_id: Optional[int]
    recommendations: List[Candidate] = field(default_factory=list)
    tier: Optional[str] = None
    degraded: bool = False
    assignment: Optional[Assignment] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "model": self.model_name,
            "model_id": self.model_id,
            "tier": self.tier,
            "degraded": self.degraded,
            "recommendations": [
                dict(candidate.to_dict(), rank=position)
                for position, candidate in enumerate(self.recommendations, start=1)
            ],
        }


class RecommendationOrchestrator:
    """
    Resolves a user's model (sticky assignment or explicit override),
    dispatches to the matching scoring strategy and substitutes the
    strategy's mock list when its store is unreachable
    """

    def __init__(self, strategies: List[ScoringStrategy], assignment_service: AssignmentService):
        self.strategies: Dict[str, ScoringStrategy] = {strategy.name: strategy for strategy in strategies}
        self.assignment_service = assignment_service

    @property
    def supported_models(self) -> List[str]:
        return sorted(self.strategies)

    def get_strategy(self, model_name: str) -> ScoringStrategy:
        strategy = self.strategies.get(normalize_model_name(model_name))
        if strategy is None:
            raise UnsupportedModel(model_name, self.supported_models)
        return strategy

    @staticmethod
    def _validate(user_id: int, limit: int) -> int:
        validate_user_id(user_id)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidArgument("limit must be a positive integer", details={"limit": limit})
        return min(limit, settings.MAX_RECOMMENDATION_LIMIT)

    @track_recommendation_time
    def get_recommendations(
        self,
        user_id: int,
        limit: int = None,
        explicit_model: Optional[str] = None,
    ) -> RecommendationOutcome:
        """
        Get recommendations for a user

        Args:
            user_id: Target user ID
            limit: Maximum number of recommendations (default from settings)
            explicit_model: Model name overriding the user's assignment

        Returns:
            RecommendationOutcome; an empty list is a valid answer
        """

        limit = self._validate(user_id, limit if limit is not None else settings.DEFAULT_RECOMMENDATION_LIMIT)

        assignment = None
        if explicit_model:
            strategy = self.get_strategy(explicit_model)
            model = self.assignment_service.resolve_model(strategy.name)
            model_id = model.model_id if model else None
        else:
            try:
                assignment = self.assignment_service.get_or_assign_model(user_id)
            except NoActiveModels:
                return self._unassigned(user_id, limit)
            strategy = self.get_strategy(assignment.model_name)
            model_id = assignment.model_id

        outcome = self._outcome(strategy, user_id, limit, strategy.score(user_id, limit), model_id)
        outcome.assignment = assignment
        if assignment is not None and assignment.degraded:
            outcome.degraded = True

        logger.info(
            "Generated recommendations",
            user_id=user_id,
            model=outcome.model_name,
            tier=outcome.tier,
            count=len(outcome.recommendations),
            degraded=outcome.degraded,
        )
        return outcome

    @track_recommendation_time
    def category_affinity(self, user_id: int, limit: int = None) -> RecommendationOutcome:
        """Graph category-affinity variant, independent of the user's assignment"""

        limit = self._validate(user_id, limit if limit is not None else settings.DEFAULT_RECOMMENDATION_LIMIT)

        strategy = self.strategies.get(GraphBasedService.name)
        if not isinstance(strategy, GraphBasedService):
            raise UnsupportedModel(GraphBasedService.name, self.supported_models)

        model = self.assignment_service.resolve_model(strategy.name)
        result = strategy.score_category_affinity(user_id, limit)
        return self._outcome(strategy, user_id, limit, result, model.model_id if model else None)

    def _unassigned(self, user_id: int, limit: int) -> RecommendationOutcome:
        """Popularity ranking, flagged degraded, while no model is active"""

        strategy = self.strategies.get(GraphBasedService.name)
        if not isinstance(strategy, GraphBasedService):
            raise NoActiveModels()

        logger.warning("No active model to assign, serving popular products", user_id=user_id)
        record_degraded("assignment")

        outcome = self._outcome(strategy, user_id, limit, strategy.score_popular(user_id, limit), None)
        outcome.degraded = True
        return outcome

    def _outcome(
        self,
        strategy: ScoringStrategy,
        user_id: int,
        limit: int,
        result: ScoringResult,
        model_id: Optional[int],
    ) -> RecommendationOutcome:
        if result.ok:
            outcome = RecommendationOutcome(
                model_name=strategy.name,
                model_id=model_id,
                recommendations=result.candidates,
                tier=result.tier,
            )
        else:
            logger.warning(
                "Strategy store unavailable, serving mock recommendations",
                user_id=user_id,
                model=strategy.name,
                error=str(result.error),
            )
            record_degraded("strategy")
            outcome = RecommendationOutcome(
                model_name=strategy.name,
                model_id=model_id,
                recommendations=strategy.mock(user_id, limit),
                tier=MOCK_TIER,
                degraded=True,
            )

        record_recommendations(outcome.model_name, outcome.tier or "none", len(outcome.recommendations))
        return outcome
