"""Database connection and session management"""

from sqlalchemy import create_engine, select, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config import settings
from ..domain import DEFAULT_MODELS
from ..models import Base, RecommendationModel


def create_store_engine(url: str) -> Engine:
    """
    Create an engine for one of the backing stores

    PostgreSQL connections get a connect timeout and a server-side
    statement timeout so a slow store fails fast instead of hanging the
    request; SQLite (tests, local runs) gets a busy timeout instead.
    """

    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(url, connect_args=connect_args)

    timeout_seconds = max(1, settings.DB_STATEMENT_TIMEOUT_MS // 1000)
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        connect_args={
            "connect_timeout": timeout_seconds,
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
        },
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine"""

    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """
    Initialize database tables

    Creates all tables defined in models and seeds the default
    recommendation models when the registry is empty.
    """

    Base.metadata.create_all(bind=engine)

    SessionLocal = create_session_factory(engine)
    db: Session = SessionLocal()
    try:
        if db.execute(select(func.count(RecommendationModel.id))).scalar() == 0:
            db.add_all([
                RecommendationModel(id=model.model_id, name=model.name, is_active=model.is_active)
                for model in DEFAULT_MODELS
            ])
            db.commit()
    finally:
        db.close()
