"""Database configuration and session management."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import settings


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Background review tasks touch the database from a different thread.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, future=True, connect_args=connect_args)


def build_session_factory(bind: Engine) -> Callable[[], Session]:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)


engine = build_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = build_session_factory(engine)
Base = declarative_base()


def init_db(bind: Engine | None = None) -> None:
    """Create database tables."""

    from fair_review.app.projects import models as project_models  # noqa: F401  # Ensure models are imported

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def session_scope(factory: Callable[[], Session] = SessionLocal) -> Iterator[Session]:
    """Context manager yielding a transactional SQLAlchemy session."""

    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
