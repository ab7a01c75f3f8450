import json
import re
from typing import Mapping, Optional
import logging

from pydantic import BaseModel, ValidationError, field_validator

from app.client.storage import LocalStorage
from app.core.constants import LOCAL_PROFILE_KEY, RoleEnum, permissions_for

logger = logging.getLogger(__name__)

class LocalProfile(BaseModel):
    name: str
    roll_number: str
    branch: str
    year: int
    semester: int
    section: Optional[str] = None
    email: Optional[str] = None
    branch_id: Optional[str] = None
    year_id: Optional[str] = None
    semester_id: Optional[str] = None

    @field_validator("branch")
    @classmethod
    def upper_branch(cls, v: str) -> str:
        return v.strip().upper()

class Profile(BaseModel):
    """Profile the data context works with, either local or a read-only guest."""
    id: str
    name: str
    email: str
    roll_number: Optional[str] = None
    branch: Optional[str] = None
    year: Optional[int] = None
    semester: Optional[int] = None
    section: Optional[str] = None
    regulation: Optional[str] = None
    role: RoleEnum = RoleEnum.STUDENT
    branch_id: Optional[str] = None
    year_id: Optional[str] = None
    semester_id: Optional[str] = None

    @property
    def permissions(self) -> frozenset:
        return permissions_for(self.role)

    @property
    def is_guest(self) -> bool:
        return self.role == RoleEnum.GUEST

    @classmethod
    def from_local(cls, local: LocalProfile) -> "Profile":
        return cls(
            id=local.roll_number,
            name=local.name,
            email=local.email or "local-user",
            roll_number=local.roll_number,
            branch=local.branch,
            year=local.year,
            semester=local.semester,
            section=local.section,
            role=RoleEnum.STUDENT,
            branch_id=local.branch_id,
            year_id=local.year_id,
            semester_id=local.semester_id,
        )

def guest_profile(branch: str, year: int, semester: int, regulation: Optional[str] = None) -> Profile:
    return Profile(
        id="guest",
        name="Guest",
        email="guest",
        branch=branch.upper(),
        year=year,
        semester=semester,
        regulation=regulation.upper() if regulation else None,
        role=RoleEnum.GUEST,
    )

class LocalProfileStore:
    def __init__(self, storage: LocalStorage, key: str = LOCAL_PROFILE_KEY):
        self.storage = storage
        self.key = key

    def get(self) -> Optional[LocalProfile]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return None
        try:
            return LocalProfile.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to parse local profile: {e}")
            return None

    def save(self, profile: LocalProfile) -> None:
        self.storage.set_item(self.key, profile.model_dump_json(exclude_none=True))

    def clear(self) -> None:
        self.storage.remove_item(self.key)

    def has_profile(self) -> bool:
        return self.get() is not None

# /{regulation}/{branch}/{yearSem}[/...], yearSem as "31" or "3-1"
_ROUTE = re.compile(r"^/?(r\d+)/([a-z0-9]+)/([1-4])-?([12])(?:/.*)?$", re.IGNORECASE)

def get_public_profile_from_path(path: Optional[str]) -> Optional[Profile]:
    if not path:
        return None
    match = _ROUTE.match(path.split("?", 1)[0].strip())
    if not match:
        return None
    regulation, branch, year, semester = match.groups()
    return guest_profile(branch, int(year), int(semester), regulation)

def get_public_profile_from_query(query: Optional[Mapping[str, str]]) -> Optional[Profile]:
    if not query:
        return None
    branch = (query.get("branch") or "").strip()
    year = (query.get("year") or "").strip()
    semester = (query.get("semester") or "").strip()
    if not (branch and year.isdigit() and semester.isdigit()):
        return None
    if not (1 <= int(year) <= 4 and 1 <= int(semester) <= 2):
        return None
    return guest_profile(branch, int(year), int(semester), query.get("regulation"))
