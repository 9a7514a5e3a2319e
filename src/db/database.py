"""Generate database session, and the repository the service runs on"""

import logging
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings, configure_logging
from src.db.file_repository import FileGameRepository
from src.db.locks import DEFAULT_LOCKS
from src.db.repository import GameRepository
from src.db.schema import Base
from src.db.sql_repository import SQLGameRepository

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Engine:
    connect_args = {}
    if settings.database_url.startswith("sqlite"):
        # sessions are handed out per request, possibly on different threads
        connect_args["check_same_thread"] = False
    engine = create_engine(
        settings.database_url, echo=settings.sql_echo, connect_args=connect_args
    )
    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return engine


_session_factory: Optional[sessionmaker[Session]] = None


def session_factory(settings: Optional[Settings] = None) -> sessionmaker[Session]:
    global _session_factory
    if _session_factory is None:
        engine = build_engine(settings or Settings.from_env())
        _session_factory = sessionmaker(bind=engine)
    return _session_factory


def get_db() -> Generator[Session, None, None]:
    db = session_factory()()
    try:
        yield db
    finally:
        db.close()


def build_repository(
    settings: Optional[Settings] = None, db_session: Optional[Session] = None
) -> GameRepository:
    """
    The configured storage backend, sharing the process-wide lock registry.
    ----
    Also applies the logging and lock timeout settings, so this is the one call needed at startup (and per request for SQL sessions).
    NOTE for "sql" the caller owns db_session (see get_db); without one a new session is opened.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    DEFAULT_LOCKS.timeout = settings.lock_timeout

    if settings.storage == "file":
        logger.debug("Using file storage in %s", settings.data_dir)
        return FileGameRepository(settings.data_dir, DEFAULT_LOCKS)

    logger.debug("Using SQL storage at %s", settings.database_url)
    return SQLGameRepository(db_session or session_factory(settings)(), DEFAULT_LOCKS)
