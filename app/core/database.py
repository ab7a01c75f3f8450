from typing import Callable, Optional
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

SessionFactory = Callable[[], Session]

_session_factory: Optional[sessionmaker] = None

def create_session_factory(database_url: Optional[str] = None) -> sessionmaker:
    url = database_url or settings.DATABASE_URL
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, echo=settings.DATABASE_ECHO, pool_pre_ping=True, connect_args=connect_args)
    logger.info(f"Created database engine for {engine.url.render_as_string(hide_password=True)}")
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_session_factory() -> sessionmaker:
    """Process-wide session factory, built on first use and never disposed."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory()
    return _session_factory

def set_session_factory(factory: Optional[sessionmaker]) -> None:
    global _session_factory
    _session_factory = factory
