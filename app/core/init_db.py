import logging

from app.core.config import settings
from app.core.database import Base, get_session_factory

# Registers every table on Base.metadata
from app.models import dashboard, reference, resource, subject  # noqa: F401

logger = logging.getLogger(__name__)

def init_db() -> None:
    """Create missing tables. Production schemas are managed by the alembic migrations."""
    if not settings.AUTO_CREATE_TABLES:
        return
    engine = get_session_factory().kw["bind"]
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")
