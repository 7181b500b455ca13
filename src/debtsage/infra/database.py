"""Engine, schema and session factory for the debt source tables."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Tuple

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig
from ..logging_config import get_logger

logger = get_logger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


def create_db_engine(config: BaseConfig) -> Engine:
    """Engine for ``config.DATABASE_URL`` with the config's pool options."""
    return create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())


def init_database(engine: Engine) -> None:
    """Create the account, bill, debt, payment and settings tables if missing."""
    # Models register themselves on SQLModel.metadata when imported
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info(
        "Debt source schema ready",
        extra={"tables": sorted(SQLModel.metadata.tables), "url": str(engine.url)},
    )


def create_session_factory(engine: Engine) -> SessionFactory:
    """Factory of unit-of-work sessions: commit on exit, roll back on error."""

    @contextmanager
    def unit_of_work() -> Iterator[Session]:
        session = Session(engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            logger.debug("Rolled back debt source session", exc_info=True)
            raise
        finally:
            session.close()

    return unit_of_work


def bootstrap_database(config: BaseConfig | None = None) -> Tuple[Engine, SessionFactory]:
    """Build the engine, create the schema and return ``(engine, session_factory)``."""
    engine = create_db_engine(config or BaseConfig())
    init_database(engine)
    return engine, create_session_factory(engine)
