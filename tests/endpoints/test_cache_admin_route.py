import pytest
from fastapi.testclient import TestClient

from app.core.cache import cache

@pytest.fixture
def warm_cache(memory_backend):
    async def fill():
        await cache.set("subjects:CSE:3:1", [{"code": "DBMS"}], ttl=60)
        await cache.set("resources:v3:category=notes&subject=dbms", [], ttl=60)
        await cache.set("static:data", {"branches": []}, ttl=60)
    return fill

@pytest.mark.asyncio
async def test_invalidate_event_drops_matching_keys(client: TestClient, warm_cache):
    await warm_cache()

    response = client.post("/api/cache/invalidate/subjects_update")
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"event": "subjects_update", "deleted": 1}}
    assert await cache.get("subjects:CSE:3:1") is None
    assert await cache.get("static:data") == {"branches": []}

def test_unknown_event_is_not_found(client: TestClient):
    response = client.post("/api/cache/invalidate/everything")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"

@pytest.mark.asyncio
async def test_clear_by_pattern(client: TestClient, warm_cache):
    await warm_cache()

    response = client.post("/api/cache/clear", json=["resources:*", "static:*"])
    assert response.json()["data"] == {"cleared": 2, "patterns": ["resources:*", "static:*"]}
    assert await cache.get("subjects:CSE:3:1") == [{"code": "DBMS"}]

@pytest.mark.asyncio
async def test_clear_everything(client: TestClient, warm_cache):
    await warm_cache()

    response = client.post("/api/cache/clear")
    assert response.json()["data"] == {"cleared": "all"}
    assert await cache.get("subjects:CSE:3:1") is None
