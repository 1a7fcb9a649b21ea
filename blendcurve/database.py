"""SQLModel engine and sessions for the audited-trade store."""

import logging

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from blendcurve.config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str, **kwargs) -> Engine:
    """Engine for `url`. SQLite connections are shared with FastAPI's worker threads."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args, **kwargs)


engine = build_engine(settings.database_url)


def create_db_and_tables(bind: Engine | None = None):
    """Create the audited_trade table (and its unique key) if missing."""
    import blendcurve.models  # noqa: F401  (registers table metadata)

    bind = bind or engine
    SQLModel.metadata.create_all(bind)
    logger.debug(f"Audit store ready on {bind.url.render_as_string(hide_password=True)}")


def get_session() -> Session:
    with Session(engine) as session:
        yield session
