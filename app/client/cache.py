"""
Layered client cache kept in local storage.

Every region stores ``{"value", "stored_at", "ttl"}`` records. An entry is
expired once ``now - stored_at > ttl``; expired or unreadable entries are
removed on read and reported as a miss.
"""

import json
import time
from typing import Any, Callable, Optional
import logging

from app.client.storage import LocalStorage, MemoryStorage
from app.core.cache_config import CACHE_TTL, KEY_NONE

logger = logging.getLogger(__name__)

Validator = Callable[[Any], bool]

def key_part(value: Any, upper: bool = False) -> str:
    if value is None or value == "":
        return KEY_NONE
    text = str(value).strip()
    return text.upper() if upper else text

class CacheRegion:
    base_key: str = ""
    ttl: Optional[float] = None

    def __init__(self, storage: LocalStorage, clock: Callable[[], float] = time.time):
        self.storage = storage
        self.clock = clock

    def _key(self, *parts: str) -> str:
        return ":".join([self.base_key, *parts])

    def _read_entry(self, key: str) -> Optional[dict]:
        raw = self.storage.get_item(key)
        if raw is None:
            return None
        try:
            entry = json.loads(raw)
            entry["stored_at"] = float(entry["stored_at"])
            if "value" not in entry:
                raise KeyError("value")
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Dropping corrupt cache entry {key}: {e}")
            self.storage.remove_item(key)
            return None

        ttl = entry.get("ttl")
        if ttl is not None and self.clock() - entry["stored_at"] > ttl:
            self.storage.remove_item(key)
            return None
        return entry

    def _read(self, key: str, validator: Optional[Validator] = None) -> Optional[Any]:
        entry = self._read_entry(key)
        if entry is None:
            return None
        value = entry["value"]
        if validator is not None and not validator(value):
            logger.debug(f"Cached value for {key} failed validation")
            return None
        return value

    def _write(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        record = {"value": value, "stored_at": self.clock(), "ttl": self.ttl if ttl is None else ttl}
        try:
            self.storage.set_item(key, json.dumps(record, default=str))
        except (TypeError, ValueError, OSError) as e:
            logger.error(f"Failed to write cache entry {key}: {e}")

    def clear_all(self) -> None:
        prefix = self.base_key + ":"
        for key in self.storage.keys():
            if key == self.base_key or key.startswith(prefix):
                self.storage.remove_item(key)

class ProfileCache(CacheRegion):
    base_key = "profile_cache"
    ttl = CACHE_TTL["client_profile"]

    def get(self, identity: str, validator: Optional[Validator] = None):
        return self._read(self._key(key_part(identity)), validator)

    def set(self, identity: str, profile: Any) -> None:
        self._write(self._key(key_part(identity)), profile)

    def clear(self, identity: str) -> None:
        self.storage.remove_item(self._key(key_part(identity)))

class StaticCache(CacheRegion):
    base_key = "static_data_cache"
    ttl = CACHE_TTL["client_static"]

    def get(self, validator: Optional[Validator] = None):
        return self._read(self.base_key, validator)

    def set(self, data: Any) -> None:
        self._write(self.base_key, data)

    def clear(self) -> None:
        self.storage.remove_item(self.base_key)

class SubjectsCache(CacheRegion):
    base_key = "subjects_cache"
    ttl = CACHE_TTL["client_subjects"]

    def context_key(self, branch, year, semester) -> str:
        return self._key(key_part(branch, upper=True), key_part(year), key_part(semester))

    def get(self, branch, year, semester, validator: Optional[Validator] = None):
        return self._read(self.context_key(branch, year, semester), validator)

    def set(self, branch, year, semester, subjects: Any) -> None:
        self._write(self.context_key(branch, year, semester), subjects)

    def clear_for_context(self, branch, year, semester) -> None:
        self.storage.remove_item(self.context_key(branch, year, semester))

class DynamicCache(CacheRegion):
    base_key = "dynamic_data_cache"
    ttl = CACHE_TTL["client_dynamic"]

    def context_key(self, branch=None, year=None) -> str:
        if branch is None and year is None:
            return self.base_key
        return self._key(key_part(branch, upper=True), key_part(year))

    def get(self, branch=None, year=None, validator: Optional[Validator] = None):
        return self._read(self.context_key(branch, year), validator)

    def set(self, data: Any, branch=None, year=None) -> None:
        self._write(self.context_key(branch, year), data)

    def clear(self, branch=None, year=None) -> None:
        self.storage.remove_item(self.context_key(branch, year))

class ResourcesCache(CacheRegion):
    base_key = "resources_cache"
    ttl = CACHE_TTL["client_resources"]
    max_ttl = CACHE_TTL["client_resources_max"]

    def entry_key(self, category, subject, year=None, semester=None, branch=None) -> str:
        return self._key(
            key_part(category),
            key_part(subject),
            key_part(year),
            key_part(semester),
            key_part(branch, upper=True),
        )

    def get(self, category, subject, year=None, semester=None, branch=None, validator: Optional[Validator] = None):
        return self._read(self.entry_key(category, subject, year, semester, branch), validator)

    def set(self, category, subject, resources: Any, year=None, semester=None, branch=None, ttl: Optional[float] = None) -> None:
        if ttl is not None:
            ttl = min(ttl, self.max_ttl)
        self._write(self.entry_key(category, subject, year, semester, branch), resources, ttl=ttl)

    def clear(self, category, subject, year=None, semester=None, branch=None) -> None:
        self.storage.remove_item(self.entry_key(category, subject, year, semester, branch))

class ClientCache:
    """All regions over one storage and one clock."""

    def __init__(self, storage: Optional[LocalStorage] = None, clock: Callable[[], float] = time.time):
        self.storage = storage if storage is not None else MemoryStorage()
        self.profile = ProfileCache(self.storage, clock)
        self.static = StaticCache(self.storage, clock)
        self.subjects = SubjectsCache(self.storage, clock)
        self.dynamic = DynamicCache(self.storage, clock)
        self.resources = ResourcesCache(self.storage, clock)
