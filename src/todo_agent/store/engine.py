"""Engine and session factory for the to-do database."""

import logging

from sqlalchemy import (
    Engine,
    create_engine,
)
from sqlalchemy.orm import (
    Session,
    sessionmaker,
)

from todo_agent.store.models import Base

logger = logging.getLogger(__name__)


def create_db_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    """Create the SQLAlchemy engine for *url* (``pool_pre_ping`` guards stale connections)."""
    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, echo=echo, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory bound to *engine*."""
    return sessionmaker(engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """
    Create the ``todos`` table if it does not exist yet.
    This is called once at application startup.
    """
    Base.metadata.create_all(engine)
    logger.info("Database schema ready (%s)", engine.url.render_as_string(hide_password=True))
