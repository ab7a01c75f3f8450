import asyncio

import pytest

from app.client.api import ApiError
from app.client.cache import ClientCache
from app.client.context import BULK_PATH, LoadState, ProfileContext
from app.client.profile import LocalProfile, LocalProfileStore
from app.client.storage import MemoryStorage
from app.core.constants import PermissionEnum

BULK_BODY = {
    "profile": None,
    "subjects": [{"id": "s2", "code": "DBMS", "name": "Dbms", "resource_type": "resources"}],
    "static": {"branches": [{"code": "CSE"}], "years": [], "semesters": []},
    "dynamic": {"recentUpdates": [], "upcomingExams": [], "upcomingReminders": [], "usersCount": 7},
    "resources": {"dbms": {"notes": [{"id": "r1"}]}},
    "contextWarnings": [],
    "timestamp": 1,
    "meta": {},
}

class FakeApi:
    """Replays queued outcomes; an exception instance is raised, anything else returned."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def get_json(self, path, params=None):
        self.calls.append((path, params))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)

def _storage_with_profile() -> MemoryStorage:
    storage = MemoryStorage()
    LocalProfileStore(storage).save(
        LocalProfile(name="Asha", roll_number="23A91A0501", branch="CSE", year=3, semester=1)
    )
    return storage

def _context(api, storage=None, clock=None, sleep=None) -> ProfileContext:
    storage = storage if storage is not None else _storage_with_profile()
    clock = clock or FakeClock()
    return ProfileContext(
        api=api,
        storage=storage,
        cache=ClientCache(storage, clock),
        clock=clock,
        sleep=sleep or SleepRecorder(),
    )

@pytest.mark.asyncio
async def test_no_profile_redirects_to_onboarding():
    api = FakeApi(BULK_BODY)
    context = _context(api, storage=MemoryStorage())

    await context.mount(path="/dashboard")
    assert context.redirect_to == "/onboarding"
    assert context.state == LoadState.READY
    assert context.profile is None
    assert api.calls == []

@pytest.mark.asyncio
async def test_cold_mount_fetches_and_fills_caches():
    api = FakeApi(BULK_BODY)
    context = _context(api)

    await context.mount()
    assert context.state == LoadState.READY
    assert not context.loading
    assert context.error is None
    assert [s["code"] for s in context.subjects] == ["DBMS"]
    assert context.dynamic_data["usersCount"] == 7
    assert context.warnings == []

    path, params = api.calls[0]
    assert path == BULK_PATH
    assert params["branch"] == "CSE" and params["year"] == 3 and params["semester"] == 1

    assert context.cache.static.get() == BULK_BODY["static"]
    assert context.cache.subjects.get("CSE", 3, 1) == BULK_BODY["subjects"]
    assert context.cache.dynamic.get("CSE", 3) == BULK_BODY["dynamic"]
    assert context.cache.resources.get("notes", "dbms", year=3, semester=1, branch="CSE") == [{"id": "r1"}]

@pytest.mark.asyncio
async def test_guest_profile_from_route():
    api = FakeApi(BULK_BODY)
    context = _context(api, storage=MemoryStorage())

    await context.mount(path="/r23/ece/2-1")
    assert context.profile.is_guest
    assert context.redirect_to is None
    assert api.calls[0][1]["branch"] == "ECE"
    assert context.can(PermissionEnum.RESOURCES_READ)
    assert not context.can(PermissionEnum.PROFILE_EDIT)

@pytest.mark.asyncio
async def test_retries_with_doubling_backoff_then_records_error():
    sleep = SleepRecorder()
    api = FakeApi(ApiError("Service unavailable", status=503))
    context = _context(api, sleep=sleep)

    await context.mount()
    assert len(api.calls) == 3
    assert sleep.delays == [0.5, 1.0]
    assert context.error == "Service unavailable"
    assert context.state == LoadState.READY

@pytest.mark.asyncio
async def test_retry_recovers():
    sleep = SleepRecorder()
    api = FakeApi(ApiError("flaky"), BULK_BODY)
    context = _context(api, sleep=sleep)

    await context.mount()
    assert sleep.delays == [0.5]
    assert context.error is None
    assert context.subjects

@pytest.mark.asyncio
async def test_failed_refresh_keeps_loaded_data():
    api = FakeApi(BULK_BODY, ApiError("down"))
    context = _context(api)

    await context.mount()
    await context.force_refresh()
    assert context.error == "down"
    assert [s["code"] for s in context.subjects] == ["DBMS"]
    assert context.dynamic_data["usersCount"] == 7

@pytest.mark.asyncio
async def test_warm_mount_uses_cache_and_refreshes_stale_dynamic_in_background():
    clock = FakeClock()
    storage = _storage_with_profile()
    cache = ClientCache(storage, clock)
    cache.static.set(BULK_BODY["static"])
    cache.subjects.set("CSE", 3, 1, [{"code": "CACHED"}])

    refreshed = dict(BULK_BODY, subjects=[{"code": "FRESH"}])
    api = FakeApi(refreshed)
    context = ProfileContext(api=api, storage=storage, cache=cache, clock=clock, sleep=SleepRecorder())

    await context.mount()
    assert context.state == LoadState.READY
    assert [s["code"] for s in context.subjects] == ["CACHED"]

    await context.wait_for_background()
    assert len(api.calls) == 1
    assert [s["code"] for s in context.subjects] == ["FRESH"]
    assert cache.dynamic.get("CSE", 3) == BULK_BODY["dynamic"]

@pytest.mark.asyncio
async def test_fresh_cache_needs_no_request():
    clock = FakeClock()
    storage = _storage_with_profile()
    cache = ClientCache(storage, clock)
    cache.static.set(BULK_BODY["static"])
    cache.dynamic.set(BULK_BODY["dynamic"], "CSE", 3)
    cache.subjects.set("CSE", 3, 1, BULK_BODY["subjects"])
    api = FakeApi(BULK_BODY)
    context = ProfileContext(api=api, storage=storage, cache=cache, clock=clock)

    await context.mount()
    await context.wait_for_background()
    assert api.calls == []
    assert context.dynamic_data["usersCount"] == 7
    assert [s["code"] for s in context.subjects] == ["DBMS"]

@pytest.mark.asyncio
async def test_new_semester_with_fresh_dynamic_fetches_its_subjects():
    clock = FakeClock()
    storage = MemoryStorage()
    cache = ClientCache(storage, clock)
    cache.static.set(BULK_BODY["static"])
    cache.dynamic.set(BULK_BODY["dynamic"], "CSE", 3)
    cache.subjects.set("CSE", 3, 1, [{"code": "SEM1"}])

    api = FakeApi(BULK_BODY)
    context = ProfileContext(api=api, storage=storage, cache=cache, clock=clock, sleep=SleepRecorder())

    await context.mount(path="/r23/cse/3-2")
    assert context.state == LoadState.READY
    assert context.subjects == []

    await context.wait_for_background()
    assert len(api.calls) == 1
    assert api.calls[0][1]["semester"] == 2
    assert [s["code"] for s in context.subjects] == ["DBMS"]
    assert cache.subjects.get("CSE", 3, 2) == BULK_BODY["subjects"]
    assert cache.subjects.get("CSE", 3, 1) == [{"code": "SEM1"}]

@pytest.mark.asyncio
async def test_cleared_subjects_entry_is_refetched_in_background():
    clock = FakeClock()
    storage = _storage_with_profile()
    cache = ClientCache(storage, clock)
    cache.static.set(BULK_BODY["static"])
    cache.dynamic.set(BULK_BODY["dynamic"], "CSE", 3)
    api = FakeApi(BULK_BODY)
    context = ProfileContext(api=api, storage=storage, cache=cache, clock=clock, sleep=SleepRecorder())

    await context.mount()
    await context.wait_for_background()
    assert len(api.calls) == 1
    assert cache.subjects.get("CSE", 3, 1) == BULK_BODY["subjects"]

@pytest.mark.asyncio
async def test_visibility_change_refreshes_only_when_stale():
    clock = FakeClock()
    api = FakeApi(BULK_BODY)
    context = _context(api, clock=clock)
    await context.mount()
    assert len(api.calls) == 1

    context.on_visibility_change(True)
    await context.wait_for_background()
    assert len(api.calls) == 1

    clock.now += 301
    context.on_visibility_change(False)
    await context.wait_for_background()
    assert len(api.calls) == 1

    context.on_visibility_change(True)
    await context.wait_for_background()
    assert len(api.calls) == 2

@pytest.mark.asyncio
async def test_results_after_unmount_are_discarded():
    gate = asyncio.Event()

    class SlowApi(FakeApi):
        async def get_json(self, path, params=None):
            await gate.wait()
            return await super().get_json(path, params)

    api = SlowApi(BULK_BODY)
    context = _context(api)

    mounting = asyncio.create_task(context.mount())
    await asyncio.sleep(0)
    context.unmount()
    gate.set()
    await mounting

    assert context.subjects == []
    assert context.static_data is None
    assert context.error is None
    assert context.cache.static.get() is None

@pytest.mark.asyncio
async def test_refresh_profile_picks_up_edited_local_profile():
    storage = _storage_with_profile()
    api = FakeApi(BULK_BODY)
    context = _context(api, storage=storage)
    await context.mount()

    LocalProfileStore(storage).save(
        LocalProfile(name="Asha", roll_number="23A91A0501", branch="ECE", year=3, semester=2)
    )
    await context.refresh_profile()
    assert context.profile.branch == "ECE"
    assert api.calls[-1][1]["semester"] == 2

@pytest.mark.asyncio
async def test_refresh_subjects_clears_only_that_context():
    api = FakeApi(BULK_BODY)
    context = _context(api)
    await context.mount()
    context.cache.subjects.set("ECE", 2, 1, [{"code": "SIG"}])

    await context.refresh_subjects()
    assert len(api.calls) == 2
    assert context.cache.subjects.get("ECE", 2, 1) == [{"code": "SIG"}]
