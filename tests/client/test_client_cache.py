import json

import pytest

from app.client.cache import ClientCache, key_part
from app.client.storage import FileStorage, MemoryStorage

class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def client_cache(clock):
    return ClientCache(MemoryStorage(), clock)

def test_key_part():
    assert key_part(None) == "none"
    assert key_part("") == "none"
    assert key_part(" cse ", upper=True) == "CSE"
    assert key_part(3) == "3"

def test_entries_are_stored_with_timestamp_and_ttl(client_cache, clock):
    client_cache.subjects.set("cse", 3, 1, [{"code": "DBMS"}])
    raw = json.loads(client_cache.storage.get_item("subjects_cache:CSE:3:1"))
    assert raw == {"value": [{"code": "DBMS"}], "stored_at": 1000.0, "ttl": 3600}

def test_static_entry_expires_after_a_day(client_cache, clock):
    client_cache.static.set({"branches": [], "years": [], "semesters": []})
    clock.now += 86400
    assert client_cache.static.get() is not None
    clock.now += 1
    assert client_cache.static.get() is None
    assert client_cache.storage.get_item("static_data_cache") is None

def test_profile_never_expires(client_cache, clock):
    client_cache.profile.set("21A91A0501", {"name": "Asha"})
    clock.now += 10 ** 9
    assert client_cache.profile.get("21A91A0501") == {"name": "Asha"}
    client_cache.profile.clear("21A91A0501")
    assert client_cache.profile.get("21A91A0501") is None

def test_dynamic_keys_by_context(client_cache, clock):
    client_cache.dynamic.set({"recentUpdates": []})
    client_cache.dynamic.set({"recentUpdates": [{"id": "u1"}]}, "cse", 3)

    assert client_cache.storage.get_item("dynamic_data_cache") is not None
    assert client_cache.dynamic.get("CSE", 3) == {"recentUpdates": [{"id": "u1"}]}
    clock.now += 301
    assert client_cache.dynamic.get("CSE", 3) is None

def test_resources_ttl_override_is_capped(client_cache, clock):
    client_cache.resources.set("notes", "dbms", [], year=3, semester=1, branch="cse", ttl=7200)
    raw = json.loads(client_cache.storage.get_item("resources_cache:notes:dbms:3:1:CSE"))
    assert raw["ttl"] == 3600

    client_cache.resources.set("papers", "dbms", [{"id": "p"}])
    assert client_cache.resources.get("papers", "dbms") == [{"id": "p"}]
    clock.now += 301
    assert client_cache.resources.get("papers", "dbms") is None

def test_corrupt_entry_is_dropped(client_cache):
    client_cache.storage.set_item("static_data_cache", "{broken")
    assert client_cache.static.get() is None
    assert "static_data_cache" not in client_cache.storage.keys()

    client_cache.storage.set_item("static_data_cache", json.dumps({"stored_at": 1}))
    assert client_cache.static.get() is None

def test_validator_rejects_without_removing(client_cache):
    client_cache.static.set(["not", "a", "dict"])
    assert client_cache.static.get(lambda value: isinstance(value, dict)) is None
    assert client_cache.static.get() == ["not", "a", "dict"]

def test_clear_all_only_touches_its_region(client_cache):
    client_cache.resources.set("notes", "dbms", [])
    client_cache.resources.set("notes", "os", [])
    client_cache.subjects.set("CSE", 3, 1, [])

    client_cache.resources.clear_all()
    assert client_cache.storage.keys() == ["subjects_cache:CSE:3:1"]

def test_file_storage_persists_between_instances(tmp_path):
    path = tmp_path / "nested" / "storage.json"
    storage = FileStorage(str(path))
    storage.set_item("pecup_local_profile", '{"name": "Asha"}')
    storage.set_item("static_data_cache", "{}")
    storage.remove_item("static_data_cache")

    reopened = FileStorage(str(path))
    assert reopened.keys() == ["pecup_local_profile"]
    assert reopened.get_item("pecup_local_profile") == '{"name": "Asha"}'

def test_file_storage_ignores_unreadable_file(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("not json", encoding="utf-8")
    assert FileStorage(str(path)).keys() == []
