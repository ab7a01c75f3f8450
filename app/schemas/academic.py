from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional

Row = Dict[str, Any]

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class SubjectSummary(BaseModel):
    code: str
    name: str
    resource_type: Optional[str] = None

class SubjectsResponse(BaseModel):
    subjects: List[SubjectSummary]

class StaticData(BaseModel):
    branches: List[Row] = []
    years: List[Row] = []
    semesters: List[Row] = []

class DynamicSummary(CamelModel):
    recent_updates: List[Row] = []
    upcoming_exams: List[Row] = []
    users_count: int = 0

class DynamicData(DynamicSummary):
    upcoming_reminders: List[Row] = []

class Timings(CamelModel):
    profile_ms: int = 0
    subjects_ms: int = 0
    static_ms: int = 0
    dynamic_ms: int = 0
    resources_ms: int = 0

class ResponseMeta(CamelModel):
    loaded_in_ms: int = 0
    timings: Timings = Field(default_factory=Timings)

class BulkResponse(CamelModel):
    """Snapshot assembled per request from independently cached sections."""
    profile: None = None
    subjects: List[Row] = []
    static: StaticData = Field(default_factory=StaticData)
    dynamic: DynamicData = Field(default_factory=DynamicData)
    resources: Dict[str, Dict[str, List[Row]]] = {}
    context_warnings: List[str] = []
    timestamp: int
    meta: ResponseMeta = Field(default_factory=ResponseMeta)

class AcademicDataResponse(CamelModel):
    profile: None = None
    static: StaticData = Field(default_factory=StaticData)
    dynamic: DynamicSummary = Field(default_factory=DynamicSummary)
    context_warnings: List[str] = []
    timestamp: int
    meta: ResponseMeta = Field(default_factory=ResponseMeta)

class RecentUpdateItem(BaseModel):
    id: str
    title: str
    date: str = ""
    description: Optional[str] = None

class ReminderItem(BaseModel):
    id: str
    title: str
    due_date: str
    description: str = ""
    icon_type: str = ""
    status: str = ""

class UsersCount(CamelModel):
    total_users: int
    last_updated: str

class PrimeResourceItem(CamelModel):
    id: str
    title: str
    url: str = ""
    unit_number: int = 999

class GroupedPrimeResources(BaseModel):
    notes: Dict[str, List[PrimeResourceItem]] = {}
    assignments: Dict[str, List[PrimeResourceItem]] = {}
    papers: Dict[str, List[PrimeResourceItem]] = {}

class PrimeSectionResponse(CamelModel):
    data: Optional[GroupedPrimeResources] = None
    triggering_subjects: List[str] = []
