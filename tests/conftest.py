import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Console-only logging and no redis during tests
os.environ.setdefault("LOG_DIR", "")
os.environ.setdefault("CACHE_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient
from app.core.database import Base, create_session_factory, set_session_factory
from app.core.cache import MemoryCacheBackend, set_cache_backend, reset_cache_backend
import app.core.init_db  # noqa: F401  registers the models
import main

@pytest.fixture(scope="function")
def session_factory(tmp_path):
    factory = create_session_factory(f"sqlite:///{tmp_path / 'portal_test.db'}")
    engine = factory.kw["bind"]
    Base.metadata.create_all(bind=engine)
    set_session_factory(factory)
    yield factory
    set_session_factory(None)
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture(scope="function")
def memory_backend():
    backend = MemoryCacheBackend()
    set_cache_backend(backend)
    yield backend
    reset_cache_backend()

@pytest.fixture(scope="function")
def client(session_factory, memory_backend):
    main.app.dependency_overrides.clear()
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()
