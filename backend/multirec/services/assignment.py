"""Sticky per-user model assignment (A/B split across strategies)"""

import random
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from ..domain import Assignment, ModelInfo
from ..errors import BackingStoreUnavailable, InvalidArgument, NoActiveModels
from ..stores.assignments import InMemoryAssignmentStore
from ..stores.base import AssignmentStore
from ..utils.logging import get_logger
from ..utils.metrics import record_assignment, record_degraded

logger = get_logger(__name__)


@dataclass(frozen=True)
class BulkAssignmentResult:
    assigned: int
    total: int
    skipped: int

    def to_dict(self) -> Dict[str, int]:
        return {"assigned": self.assigned, "total": self.total, "skipped": self.skipped}


def validate_user_id(user_id) -> int:
    """Positive int or InvalidArgument (bool is rejected even though it is an int)"""

    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        raise InvalidArgument("user_id must be a positive integer", details={"user_id": user_id})
    return user_id


class AssignmentService:
    """
    Resolves which recommendation model serves each user

    A user is assigned once, uniformly at random among the active models,
    and keeps that model afterwards. When the persistent store is down the
    service keeps answering from a process-local store and flags the
    answer as degraded.
    """

    def __init__(
        self,
        store: AssignmentStore,
        fallback_store: Optional[AssignmentStore] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.fallback_store = fallback_store or InMemoryAssignmentStore()
        self.rng = rng or random.Random()

    def get_or_assign_model(self, user_id: int) -> Assignment:
        """
        Get the user's model, assigning one on first sight

        Args:
            user_id: Positive user ID

        Returns:
            Stored Assignment (degraded=True when served from memory)
        """

        validate_user_id(user_id)

        try:
            return self._get_or_assign(self.store, user_id)
        except BackingStoreUnavailable as e:
            logger.warning("Assignment store unavailable, using in-memory assignments", user_id=user_id, error=str(e))
            record_degraded("assignment")
            assignment = self._get_or_assign(self.fallback_store, user_id)
            return replace(assignment, degraded=True)

    def _get_or_assign(self, store: AssignmentStore, user_id: int) -> Assignment:
        existing = store.get(user_id)
        if existing is not None:
            record_assignment(existing.model_name, "existing")
            return existing

        active = store.list_models(active_only=True)
        if not active:
            raise NoActiveModels()

        choice = self.rng.choice(active)
        assignment = store.insert_if_absent(user_id, choice.model_id)

        if assignment.model_id == choice.model_id:
            logger.info("Assigned model", user_id=user_id, model_id=choice.model_id, model_name=choice.name)
            record_assignment(assignment.model_name, "new")
        else:
            # Lost the race to a concurrent first request
            logger.info("Assignment already stored", user_id=user_id, model_id=assignment.model_id)
            record_assignment(assignment.model_name, "existing")

        return assignment

    def assign_all_even(self, model_ids: Iterable[int]) -> BulkAssignmentResult:
        """
        Round-robin backfill of every known user without an assignment

        Args:
            model_ids: Model ids to cycle through, in order

        Returns:
            BulkAssignmentResult with newly assigned and total user counts
        """

        model_ids = list(model_ids)
        if not model_ids:
            raise InvalidArgument("models must not be empty")
        for model_id in model_ids:
            if isinstance(model_id, bool) or not isinstance(model_id, int) or model_id <= 0:
                raise InvalidArgument("model ids must be positive integers", details={"models": model_ids})

        known = {model.model_id for model in self.store.list_models()}
        unknown = [model_id for model_id in model_ids if model_id not in known]
        if unknown:
            raise InvalidArgument("unknown model ids", details={"models": unknown})

        user_ids = self.store.user_ids()
        pairs = [(user_id, model_ids[i % len(model_ids)]) for i, user_id in enumerate(user_ids)]
        assigned = self.store.insert_many_if_absent(pairs)

        result = BulkAssignmentResult(assigned=assigned, total=len(user_ids), skipped=len(user_ids) - assigned)
        logger.info("Bulk assignment finished", models=model_ids, **result.to_dict())
        return result

    def list_models(self, active_only: bool = False) -> List[ModelInfo]:
        try:
            return self.store.list_models(active_only=active_only)
        except BackingStoreUnavailable as e:
            logger.warning("Assignment store unavailable, listing default models", error=str(e))
            record_degraded("assignment")
            return self.fallback_store.list_models(active_only=active_only)

    def resolve_model(self, name: str) -> Optional[ModelInfo]:
        """Registered model whose name starts with the strategy key ("collab" matches "collaborative")"""

        name = name.lower()
        for model in self.list_models():
            if model.name == name or model.name.startswith(name):
                return model
        return None

    def assignment_counts(self) -> Dict[str, object]:
        """Users per model, from the persistent store or the in-memory one when it is down"""

        try:
            counts = self.store.assignment_counts()
            degraded = False
        except BackingStoreUnavailable as e:
            logger.warning("Assignment store unavailable, counting in-memory assignments", error=str(e))
            record_degraded("assignment")
            counts = self.fallback_store.assignment_counts()
            degraded = True

        names = {model.model_id: model.name for model in self.list_models()}
        return {
            "total_users": sum(counts.values()),
            "models": [
                {"model_id": model_id, "model_name": names.get(model_id, "unknown"), "users": count}
                for model_id, count in sorted(counts.items())
            ],
            "degraded": degraded,
        }
