from typing import Any, Callable, Optional

from starlette.concurrency import run_in_threadpool

from app.core.cache import CacheManager, cache as default_cache
from app.core.database import SessionFactory

class SessionScopedService:
    """Base for services that read through the cache into blocking queries.

    Each query runs in the threadpool on a session of its own, so
    concurrent sections never share a connection.
    """

    def __init__(self, session_factory: SessionFactory, cache: Optional[CacheManager] = None):
        self.session_factory = session_factory
        self.cache = cache or default_cache

    async def _run(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        def work():
            db = self.session_factory()
            try:
                return fn(db, *args, **kwargs)
            finally:
                db.close()
        return await run_in_threadpool(work)
