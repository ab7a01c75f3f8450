from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any, Mapping, Optional

from app.core.cache_config import KEY_DEFAULT

class AcademicContext(BaseModel):
    """The (branch, year, semester, regulation) tuple that scopes cached queries.

    Branch and regulation are upper-cased; blank values become ``None`` so
    that ``"cse"``, ``" CSE "`` and ``"CSE"`` describe the same context.
    """
    model_config = ConfigDict(frozen=True)

    branch: Optional[str] = None
    year: Optional[int] = None
    semester: Optional[int] = None
    regulation: Optional[str] = None

    @field_validator("branch", "regulation", mode="before")
    @classmethod
    def normalize_code(cls, v):
        if v is None:
            return None
        v = str(v).strip().upper()
        return v or None

    @field_validator("year", "semester", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "AcademicContext":
        return cls(**{field: params.get(field) for field in cls.model_fields})

    @property
    def is_complete(self) -> bool:
        return bool(self.branch and self.year and self.semester)

    def key_parts(self, sentinel: str = KEY_DEFAULT):
        values = (self.regulation, self.branch, self.year, self.semester)
        return [sentinel if value is None else str(value) for value in values]

    def cache_key(self, prefix: str, sentinel: str = KEY_DEFAULT) -> str:
        return ":".join([prefix, *self.key_parts(sentinel)])

def canonical_key(name: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Order-insensitive key: parameter names sorted, ``None`` values dropped."""
    parts = [name]
    for key, value in sorted((params or {}).items()):
        if value is None:
            continue
        parts.append(f"{key}={value}")
    return ":".join(parts)
