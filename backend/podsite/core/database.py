from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from fastapi import Depends, Request
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Ensure models are imported so SQLModel metadata is populated
from ..models import comment as _comment_models  # noqa: F401
from ..models import episode as _episode_models  # noqa: F401
from ..models import slug as _slug_models  # noqa: F401
from ..models import transcript as _transcript_models  # noqa: F401

log = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url`` with pool settings suited to its dialect."""
    url = make_url(database_url)
    kwargs: Dict[str, Any] = {"future": True}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=5,
            pool_recycle=1800,
            pool_reset_on_return="rollback",
        )
    engine = create_engine(database_url, **kwargs)
    log.info("[db] Engine created for backend=%s", url.get_backend_name())
    return engine


def get_engine(request: Request) -> Engine:
    """The engine ``create_app`` built for this application instance."""
    return request.app.state.engine


def create_db_and_tables(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


def get_session(engine: Engine = Depends(get_engine)) -> Iterator[Session]:
    """Provide a database session for FastAPI dependency injection.

    expire_on_commit=False keeps attributes readable after commit when the
    object is serialized into the response.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Provide a session for work outside FastAPI dependencies (background jobs).

    The caller is responsible for commit(); any exception rolls back.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
    except Exception:
        try:
            session.rollback()
        except Exception as rollback_exc:
            log.warning("[db] Rollback failed in session_scope cleanup: %s", rollback_exc)
        raise
    finally:
        session.close()
