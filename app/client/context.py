import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set
import logging

from app.client.api import ApiClient, ApiError
from app.client.cache import ClientCache
from app.client.profile import (
    LocalProfileStore,
    Profile,
    get_public_profile_from_path,
    get_public_profile_from_query,
)
from app.client.storage import LocalStorage, MemoryStorage
from app.core.constants import ONBOARDING_PATH, PermissionEnum

logger = logging.getLogger(__name__)

BULK_PATH = "/api/bulk-academic-data"

class LoadState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"

def is_static_data(value: Any) -> bool:
    return isinstance(value, dict) and all(isinstance(value.get(k), list) for k in ("branches", "years", "semesters"))

def is_dynamic_data(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get("recentUpdates", []), list) and isinstance(value.get("upcomingExams", []), list)

class ProfileContext:
    """Client-side view of the current student's academic data.

    ``data`` fields and ``error`` are independent: a failed refresh records
    the error and leaves whatever was already loaded in place.
    """

    def __init__(
        self,
        api: Optional[ApiClient] = None,
        storage: Optional[LocalStorage] = None,
        cache: Optional[ClientCache] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        retries: int = 2,
        backoff: float = 0.5,
    ):
        self.api = api or ApiClient()
        self.storage = storage if storage is not None else MemoryStorage()
        self.cache = cache or ClientCache(self.storage, clock)
        self.profiles = LocalProfileStore(self.storage)
        self.sleep = sleep
        self.retries = retries
        self.backoff = backoff

        self.state = LoadState.UNINITIALIZED
        self.profile: Optional[Profile] = None
        self.subjects: List[Dict] = []
        self.static_data: Optional[Dict] = None
        self.dynamic_data: Optional[Dict] = None
        self.resources: Optional[Dict[str, Dict[str, List[Dict]]]] = None
        self.warnings: Optional[List[str]] = None
        self.error: Optional[str] = None
        self.redirect_to: Optional[str] = None

        self.mounted = False
        self._background: Set[asyncio.Task] = set()

    @property
    def loading(self) -> bool:
        return self.state == LoadState.LOADING

    def can(self, permission: PermissionEnum) -> bool:
        return self.profile is not None and permission in self.profile.permissions

    def _has_full_context(self, profile: Optional[Profile] = None) -> bool:
        profile = profile or self.profile
        return bool(profile and profile.branch and profile.year and profile.semester)

    def _resolve_profile(self, path: Optional[str], query: Optional[Mapping[str, str]]) -> Optional[Profile]:
        local = self.profiles.get()
        if local is not None:
            return Profile.from_local(local)
        return get_public_profile_from_path(path) or get_public_profile_from_query(query)

    async def mount(self, path: Optional[str] = None, query: Optional[Mapping[str, str]] = None) -> None:
        self.mounted = True
        self.state = LoadState.LOADING

        profile = self._resolve_profile(path, query)
        if profile is None:
            logger.info("No local profile, redirecting to onboarding")
            self.redirect_to = ONBOARDING_PATH
            self.state = LoadState.READY
            return

        self.profile = profile
        if self._load_from_cache(profile):
            self.state = LoadState.READY
            if self._dynamic_is_stale() or self._subjects_missing():
                self._schedule_background_refresh()
            return

        await self._fetch_bulk(self.retries)
        self.state = LoadState.READY

    def unmount(self) -> None:
        self.mounted = False

    def _load_from_cache(self, profile: Profile) -> bool:
        hit = False

        cached_static = self.cache.static.get(is_static_data)
        if cached_static is not None:
            self.static_data = cached_static
            hit = True

        cached_dynamic = self.cache.dynamic.get(profile.branch, profile.year, validator=is_dynamic_data)
        if cached_dynamic is not None:
            self.dynamic_data = cached_dynamic
            hit = True

        if self._has_full_context(profile):
            cached_subjects = self.cache.subjects.get(profile.branch, profile.year, profile.semester)
            if cached_subjects is not None:
                self.subjects = cached_subjects
                hit = True

        return hit

    def _dynamic_is_stale(self) -> bool:
        if self.profile is None:
            return False
        return self.cache.dynamic.get(self.profile.branch, self.profile.year) is None

    def _subjects_missing(self) -> bool:
        profile = self.profile
        if not self._has_full_context(profile):
            return False
        return self.cache.subjects.get(profile.branch, profile.year, profile.semester) is None

    def _bulk_params(self, profile: Profile) -> Dict[str, Any]:
        return {
            "branch": profile.branch,
            "year": profile.year,
            "semester": profile.semester,
            "branch_id": profile.branch_id,
            "year_id": profile.year_id,
            "semester_id": profile.semester_id,
        }

    async def _get_with_retry(self, params: Dict[str, Any], retries: int) -> Any:
        delay = self.backoff
        attempt = 0
        while True:
            try:
                return await self.api.get_json(BULK_PATH, params)
            except ApiError as e:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.warning(f"Bulk fetch failed ({e.message}), retry {attempt}/{retries} in {delay}s")
                await self.sleep(delay)
                delay *= 2

    async def _fetch_bulk(self, retries: int) -> bool:
        profile = self.profile
        if profile is None:
            return False

        self.error = None
        try:
            data = await self._get_with_retry(self._bulk_params(profile), retries)
            if not isinstance(data, dict):
                raise ApiError("Malformed academic data response")
        except ApiError as e:
            logger.error(f"Bulk fetch error: {e.message}")
            if self.mounted:
                self.error = e.message or "Failed to load data"
            return False

        if not self.mounted:
            logger.debug("Discarding bulk result after unmount")
            return False

        self._apply(profile, data)
        return True

    def _apply(self, profile: Profile, data: Dict[str, Any]) -> None:
        subjects = data.get("subjects") if isinstance(data.get("subjects"), list) else []
        warnings = data.get("contextWarnings")

        self.subjects = subjects
        self.static_data = data.get("static")
        self.dynamic_data = data.get("dynamic")
        self.resources = data.get("resources") or None
        self.warnings = warnings if isinstance(warnings, list) else None

        if self.static_data is not None:
            self.cache.static.set(self.static_data)
        if self.dynamic_data is not None:
            self.cache.dynamic.set(self.dynamic_data, profile.branch, profile.year)
        if self._has_full_context(profile):
            self.cache.subjects.set(profile.branch, profile.year, profile.semester, subjects)
        for subject, by_category in (self.resources or {}).items():
            for category, rows in (by_category or {}).items():
                self.cache.resources.set(
                    category, subject, rows, year=profile.year, semester=profile.semester, branch=profile.branch
                )

    async def _foreground_fetch(self) -> None:
        self.state = LoadState.LOADING
        try:
            await self._fetch_bulk(self.retries)
        finally:
            self.state = LoadState.READY

    async def _background_refresh(self) -> None:
        try:
            await self._fetch_bulk(0)
        except Exception as e:
            logger.error(f"Background refresh failed: {e}", exc_info=True)
            if self.mounted:
                self.error = str(e) or "Failed to load data"

    def _schedule_background_refresh(self) -> None:
        task = asyncio.create_task(self._background_refresh())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def wait_for_background(self) -> None:
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def force_refresh(self) -> None:
        logger.debug("Force refresh triggered")
        profile = self.profile
        self.cache.static.clear()
        self.cache.dynamic.clear(profile.branch if profile else None, profile.year if profile else None)
        self.cache.resources.clear_all()
        if self._has_full_context(profile):
            self.cache.subjects.clear_for_context(profile.branch, profile.year, profile.semester)
        await self._foreground_fetch()

    async def refresh_subjects(self) -> None:
        profile = self.profile
        if not self._has_full_context(profile):
            return
        self.cache.subjects.clear_for_context(profile.branch, profile.year, profile.semester)
        await self._foreground_fetch()

    async def refresh_profile(self) -> None:
        local = self.profiles.get()
        if local is None:
            return
        self.profile = Profile.from_local(local)
        await self._foreground_fetch()

    def on_visibility_change(self, visible: bool) -> None:
        if not visible or not self.mounted or self.profile is None:
            return
        if self._dynamic_is_stale():
            self._schedule_background_refresh()
