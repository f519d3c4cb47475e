from datetime import datetime
from typing import Any, Dict

from sqlalchemy import Column, DateTime, create_engine, event
from sqlalchemy.orm import (
    ORMExecuteState,
    Session,
    configure_mappers,
    declarative_base,
    sessionmaker,
    with_loader_criteria,
)
from sqlalchemy.pool import StaticPool

from config import get_settings


def create_db_engine(database_url: str):
    """Create the engine; in-memory SQLite shares one connection across sessions."""
    if database_url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


engine = create_db_engine(get_settings().DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


Base = declarative_base()


class SoftDeleteMixin:
    """Rows are marked deleted instead of removed and hidden from ORM queries."""

    deleted_at = Column(DateTime, nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = datetime.utcnow()


@event.listens_for(Session, "do_orm_execute")
def _filter_soft_deleted(execute_state: ORMExecuteState):
    # Applies to plain selects as well as lazy and eager relationship loads.
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.execution_options.get("include_deleted", False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                SoftDeleteMixin,
                lambda cls: cls.deleted_at.is_(None),
                include_aliases=True,
            )
        )


def init_models():
    """Import all models so they register with the metadata, then configure mappers."""
    import models  # noqa: F401

    configure_mappers()


def create_tables(bind=None):
    init_models()
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
