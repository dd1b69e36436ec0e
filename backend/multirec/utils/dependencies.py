"""Service wiring and FastAPI dependencies"""

from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Depends, Request
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..config import settings
from ..errors import BackingStoreUnavailable
from ..services import (
    AssignmentService,
    CollaborativeFilteringService,
    ContentBasedService,
    EventLog,
    GraphBasedService,
    RecommendationOrchestrator,
)
from ..stores import (
    InteractionStore,
    AssignmentStore,
    EventStore,
    SqlInteractionStore,
    SqlAssignmentStore,
    SqlEventStore,
)
from .database import create_store_engine, init_db
from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Stores and the services built on them, one per application"""

    interaction_store: InteractionStore
    assignment_store: AssignmentStore
    event_store: EventStore
    assignment_service: AssignmentService
    event_log: EventLog
    orchestrator: RecommendationOrchestrator

    @property
    def stores(self) -> Dict[str, object]:
        return {
            "interaction": self.interaction_store,
            "assignment": self.assignment_store,
            "event": self.event_store,
        }

    def open(self) -> None:
        """Open every store; an unreachable one is logged and served degraded"""
        for name, store in self.stores.items():
            try:
                store.open()
            except BackingStoreUnavailable as e:
                logger.warning("Store unavailable at startup", store=name, error=str(e))

    def close(self) -> None:
        for store in self.stores.values():
            store.close()

    def health(self) -> Dict[str, str]:
        """Connectivity per store"""
        status = {}
        for name, store in self.stores.items():
            try:
                store.ping()
                status[name] = "connected"
            except BackingStoreUnavailable:
                status[name] = "disconnected"
        return status


def build_services(
    interaction_store: InteractionStore,
    assignment_store: AssignmentStore,
    event_store: EventStore,
) -> ServiceContainer:
    """Wire the services on top of already constructed stores"""

    assignment_service = AssignmentService(assignment_store)
    orchestrator = RecommendationOrchestrator(
        [
            CollaborativeFilteringService(interaction_store),
            ContentBasedService(interaction_store),
            GraphBasedService(interaction_store),
        ],
        assignment_service,
    )
    return ServiceContainer(
        interaction_store=interaction_store,
        assignment_store=assignment_store,
        event_store=event_store,
        assignment_service=assignment_service,
        event_log=EventLog(event_store),
        orchestrator=orchestrator,
    )


def build_container(
    interaction_engine: Optional[Engine] = None,
    assignment_engine: Optional[Engine] = None,
) -> ServiceContainer:
    """
    Build the SQL-backed container

    Args:
        interaction_engine: Engine for interaction history (default from settings)
        assignment_engine: Engine for assignments and events (default from settings)

    Returns:
        ServiceContainer, not yet opened
    """

    if interaction_engine is None:
        interaction_engine = create_store_engine(settings.INTERACTION_DATABASE_URL)
    if assignment_engine is None:
        if settings.ASSIGNMENT_DATABASE_URL == settings.INTERACTION_DATABASE_URL:
            assignment_engine = interaction_engine
        else:
            assignment_engine = create_store_engine(settings.ASSIGNMENT_DATABASE_URL)

    for engine in {id(interaction_engine): interaction_engine, id(assignment_engine): assignment_engine}.values():
        try:
            init_db(engine)
        except SQLAlchemyError as e:
            logger.warning("Database initialisation failed", url=engine.url.render_as_string(), error=str(e))

    return build_services(
        SqlInteractionStore(interaction_engine),
        SqlAssignmentStore(assignment_engine),
        SqlEventStore(assignment_engine),
    )


def get_container(request: Request) -> ServiceContainer:
    """The application's container (overridden in tests)"""
    return request.app.state.container


def get_orchestrator(container: ServiceContainer = Depends(get_container)) -> RecommendationOrchestrator:
    return container.orchestrator


def get_assignment_service(container: ServiceContainer = Depends(get_container)) -> AssignmentService:
    return container.assignment_service


def get_event_log(container: ServiceContainer = Depends(get_container)) -> EventLog:
    return container.event_log
