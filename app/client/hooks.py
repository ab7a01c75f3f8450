import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional
import logging

from cachetools import TTLCache

from app.client.api import ApiClient, ApiError
from app.core.cache_config import CACHE_TTL
from app.schemas.context import canonical_key

logger = logging.getLogger(__name__)

# -- Cache Stores --------------------------------------
HOOK_TTLS = {
    "subjects": CACHE_TTL["client_subjects"],    # 1 hour
    "resources": CACHE_TTL["client_resources"],  # 5 min
    "dynamic": CACHE_TTL["client_dynamic"],      # 5 min
    "static": CACHE_TTL["client_static"],        # 24 hours
}

_MISSING = object()

class QueryStatus(str, Enum):
    IDLE = "idle"
    SUCCESS = "success"
    ERROR = "error"

@dataclass
class QueryResult:
    data: Any = None
    error: Optional[str] = None
    status: QueryStatus = QueryStatus.IDLE

    @property
    def is_success(self) -> bool:
        return self.status == QueryStatus.SUCCESS

def _section(payload: Any, name: str) -> Any:
    if isinstance(payload, dict):
        return payload.get(name)
    return None

class QueryHooks:
    """Request-level cache over the portal routes, one TTL cache per hook."""

    def __init__(self, api: Optional[ApiClient] = None, maxsize: int = 256, timer: Callable[[], float] = time.monotonic):
        self.api = api or ApiClient()
        self._caches: Dict[str, TTLCache] = {
            name: TTLCache(maxsize=maxsize, ttl=ttl, timer=timer) for name, ttl in HOOK_TTLS.items()
        }

    async def _query(
        self, hook: str, params: Mapping[str, Any], enabled: bool, fetch: Callable[[], Awaitable[Any]]
    ) -> QueryResult:
        if not enabled:
            return QueryResult()

        key = canonical_key(hook, params)
        cache = self._caches[hook]
        cached = cache.get(key, _MISSING)
        if cached is not _MISSING:
            return QueryResult(data=cached, status=QueryStatus.SUCCESS)

        try:
            data = await fetch()
        except ApiError as e:
            logger.warning(f"{hook} query failed: {e.message}")
            return QueryResult(error=e.message, status=QueryStatus.ERROR)

        cache[key] = data
        return QueryResult(data=data, status=QueryStatus.SUCCESS)

    async def use_subjects(
        self,
        year=None,
        branch: Optional[str] = None,
        semester=None,
        regulation: Optional[str] = None,
        resource_type: Optional[str] = None,
        enabled: bool = True,
    ) -> QueryResult:
        params = {
            "year": year,
            "branch": branch,
            "semester": semester,
            "regulation": regulation,
            "resource_type": resource_type,
        }
        return await self._query(
            "subjects",
            params,
            enabled and bool(year and branch and semester),
            lambda: self.api.get_json("/api/subjects", params),
        )

    async def use_resources(
        self,
        category: Optional[str] = None,
        subject: Optional[str] = None,
        unit=None,
        year=None,
        branch: Optional[str] = None,
        semester=None,
        regulation: Optional[str] = None,
        enabled: bool = True,
    ) -> QueryResult:
        params = {
            "category": category,
            "subject": subject,
            "unit": unit,
            "year": year,
            "branch": branch,
            "semester": semester,
            "regulation": regulation,
        }
        return await self._query(
            "resources",
            params,
            enabled and bool(category and subject),
            lambda: self.api.get_json("/api/resources", params),
        )

    async def use_dynamic_data(self, branch: Optional[str] = None, year=None, enabled: bool = True) -> QueryResult:
        params = {"branch": branch, "year": year}

        async def fetch():
            return _section(await self.api.get_json("/api/fetch-academic-data", params), "dynamic")

        return await self._query("dynamic", params, enabled, fetch)

    async def use_static_data(self, enabled: bool = True) -> QueryResult:
        async def fetch():
            return _section(await self.api.get_json("/api/fetch-academic-data"), "static")

        return await self._query("static", {}, enabled, fetch)

    def invalidate(self, hook: Optional[str] = None) -> None:
        if hook is None:
            for cache in self._caches.values():
                cache.clear()
            return
        self._caches[hook].clear()
