"""Store interfaces and the shared SQLAlchemy session handling"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Set

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain import Assignment, EventRecord, ModelInfo, ProductRecord
from ..errors import BackingStoreUnavailable
from ..utils.database import create_session_factory
from ..utils.logging import get_logger

logger = get_logger(__name__)


class SqlStore:
    """
    Base for SQLAlchemy-backed stores

    Every public call runs in its own session. Any SQLAlchemy error is
    rolled back and re-raised as BackingStoreUnavailable so callers never
    see driver exceptions.
    """

    store_name = "sql"

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = create_session_factory(engine)

    def ping(self) -> None:
        """Round-trip to the database; raises BackingStoreUnavailable"""
        with self._session() as db:
            db.execute(text("SELECT 1"))

    def open(self) -> None:
        self.ping()
        logger.info("Store opened", store=self.store_name, url=self.engine.url.render_as_string())

    def close(self) -> None:
        self.engine.dispose()
        logger.info("Store closed", store=self.store_name)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Store call failed", store=self.store_name, error=str(e))
            raise BackingStoreUnavailable(self.store_name, e) from e
        finally:
            db.close()


class InteractionStore(ABC):
    """Read-only view of interaction history and product attributes"""

    def open(self) -> None:
        pass

    def ping(self) -> None:
        pass

    def close(self) -> None:
        pass

    @abstractmethod
    def products_for_user(self, user_id: int, interaction_types: Iterable[str]) -> Set[str]:
        """Distinct product ids the user has interactions of the given types with"""

    @abstractmethod
    def purchases_by_users_who_bought(self, product_ids: Iterable[str], exclude_user_id: int) -> Dict[int, Set[str]]:
        """Full purchase sets of every other user who purchased any of product_ids"""

    @abstractmethod
    def purchase_counts(self) -> Dict[str, int]:
        """Global purchase count per product (products never purchased are absent)"""

    @abstractmethod
    def get_products(self, product_ids: Iterable[str]) -> Dict[str, ProductRecord]:
        """Product records keyed by id; unknown ids are absent"""

    @abstractmethod
    def list_products(self, in_stock_only: bool = False) -> List[ProductRecord]:
        """All products ordered by id"""


class AssignmentStore(ABC):
    """User -> model assignments and the model registry"""

    def open(self) -> None:
        pass

    def ping(self) -> None:
        pass

    def close(self) -> None:
        pass

    @abstractmethod
    def get(self, user_id: int) -> Optional[Assignment]:
        """Current assignment, active model or not"""

    @abstractmethod
    def insert_if_absent(self, user_id: int, model_id: int) -> Assignment:
        """Atomically store an assignment unless one exists; return the stored one"""

    @abstractmethod
    def insert_many_if_absent(self, pairs: Iterable[tuple]) -> int:
        """insert_if_absent for each (user_id, model_id); returns how many were new"""

    @abstractmethod
    def list_models(self, active_only: bool = False) -> List[ModelInfo]:
        """Registered models ordered by id"""

    @abstractmethod
    def user_ids(self) -> List[int]:
        """Every known user id, ascending"""

    @abstractmethod
    def assignment_counts(self) -> Dict[int, int]:
        """Number of assigned users per model id"""


class EventStore(ABC):
    """Append-only recommendation event sink"""

    def open(self) -> None:
        pass

    def ping(self) -> None:
        pass

    def close(self) -> None:
        pass

    @abstractmethod
    def append(self, event: EventRecord) -> EventRecord:
        """Store the event and return it with its id assigned"""

    @abstractmethod
    def counts_by_model(self, model_id: int) -> List[Dict[str, object]]:
        """[{event_type, cnt}] ordered by cnt desc, event_type asc"""

    @abstractmethod
    def user_events(self, user_id: int, limit: int = 50) -> List[EventRecord]:
        """Most recent events of a user, newest first"""

    @abstractmethod
    def overall_stats(self) -> Dict[str, object]:
        """Totals by event type and by model"""
