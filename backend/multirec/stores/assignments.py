"""Assignment stores: persistent (SQL) and process-local (in-memory)"""

import threading
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, func, insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from ..domain import Assignment, DEFAULT_MODELS, ModelInfo
from ..errors import BackingStoreUnavailable
from ..models import ModelAssignment, RecommendationModel, User
from .base import AssignmentStore, SqlStore


class SqlAssignmentStore(SqlStore, AssignmentStore):
    """
    Assignments persisted in the user_model_assignments table

    insert_if_absent relies on the unique user_id key: the insert is
    conflict-ignoring, and the row read back afterwards is whatever won.
    """

    store_name = "assignment"

    def get(self, user_id: int) -> Optional[Assignment]:
        with self._session() as db:
            row = db.execute(
                select(ModelAssignment, RecommendationModel.name)
                .outerjoin(RecommendationModel, RecommendationModel.id == ModelAssignment.model_id)
                .where(ModelAssignment.user_id == user_id)
            ).first()

        if row is None:
            return None

        assignment, model_name = row
        return Assignment(
            user_id=assignment.user_id,
            model_id=assignment.model_id,
            model_name=(model_name or "unknown").lower(),
            assigned_at=assignment.assigned_at,
        )

    def insert_if_absent(self, user_id: int, model_id: int) -> Assignment:
        self._insert_ignoring_conflict(user_id, model_id)

        stored = self.get(user_id)
        if stored is None:
            raise BackingStoreUnavailable(self.store_name)
        return stored

    def _insert_ignoring_conflict(self, user_id: int, model_id: int) -> bool:
        """Returns True when this call wrote the row"""

        values = {"user_id": user_id, "model_id": model_id, "assigned_at": datetime.utcnow()}

        with self._session() as db:
            dialect = db.get_bind().dialect.name
            if dialect in ("postgresql", "sqlite"):
                dialect_insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
                statement = (
                    dialect_insert(ModelAssignment)
                    .values(**values)
                    .on_conflict_do_nothing(index_elements=[ModelAssignment.user_id])
                )
                result = db.execute(statement)
                db.commit()
                return result.rowcount == 1

            try:
                db.execute(insert(ModelAssignment).values(**values))
                db.commit()
                return True
            except IntegrityError:
                db.rollback()
                return False

    def insert_many_if_absent(self, pairs: Iterable[tuple]) -> int:
        """Bulk variant of insert_if_absent; returns how many rows were new"""

        return sum(1 for user_id, model_id in pairs if self._insert_ignoring_conflict(user_id, model_id))

    def list_models(self, active_only: bool = False) -> List[ModelInfo]:
        query = select(RecommendationModel).order_by(RecommendationModel.id)
        if active_only:
            query = query.where(RecommendationModel.is_active.is_(True))

        with self._session() as db:
            models = db.execute(query).scalars().all()
            return [ModelInfo(model.id, model.name.lower(), bool(model.is_active)) for model in models]

    def user_ids(self) -> List[int]:
        with self._session() as db:
            return list(db.execute(select(User.id).order_by(User.id)).scalars())

    def assignment_counts(self) -> Dict[int, int]:
        with self._session() as db:
            rows = db.execute(
                select(ModelAssignment.model_id, func.count(ModelAssignment.user_id))
                .group_by(ModelAssignment.model_id)
            ).all()
        return {model_id: count for model_id, count in rows}


class InMemoryAssignmentStore(AssignmentStore):
    """
    Process-lifetime assignments used while the persistent store is down

    Nothing here survives a restart; every Assignment it returns is
    flagged degraded.
    """

    def __init__(self, models: Iterable[ModelInfo] = DEFAULT_MODELS):
        self._models: Dict[int, ModelInfo] = {model.model_id: model for model in models}
        self._assignments: Dict[int, Assignment] = {}
        self._lock = threading.Lock()

    def get(self, user_id: int) -> Optional[Assignment]:
        return self._assignments.get(user_id)

    def insert_if_absent(self, user_id: int, model_id: int) -> Assignment:
        return self._add(user_id, model_id)[0]

    def _add(self, user_id: int, model_id: int):
        model = self._models.get(model_id)
        model_name = model.name if model else "unknown"

        with self._lock:
            existing = self._assignments.get(user_id)
            if existing is not None:
                return existing, False
            assignment = Assignment(
                user_id=user_id,
                model_id=model_id,
                model_name=model_name,
                assigned_at=datetime.utcnow(),
                degraded=True,
            )
            self._assignments[user_id] = assignment
            return assignment, True

    def list_models(self, active_only: bool = False) -> List[ModelInfo]:
        models = sorted(self._models.values(), key=lambda m: m.model_id)
        if active_only:
            models = [model for model in models if model.is_active]
        return models

    def user_ids(self) -> List[int]:
        return sorted(self._assignments)

    def insert_many_if_absent(self, pairs: Iterable[tuple]) -> int:
        return sum(1 for user_id, model_id in pairs if self._add(user_id, model_id)[1])

    def assignment_counts(self) -> Dict[int, int]:
        counts: Dict[int, int] = {}
        for assignment in list(self._assignments.values()):
            counts[assignment.model_id] = counts.get(assignment.model_id, 0) + 1
        return counts
