from typing import Callable

from app.core.cache import cache
from app.core.database import get_session_factory
from app.services.academic_data import AcademicDataService
from app.services.dashboard import DashboardService
from app.services.resources import ResourcesService
from app.services.subjects import SubjectsService

def get_academic_data_service_factory() -> Callable[[], AcademicDataService]:
    """Construction is deferred so the route can report a failing data source itself."""
    return lambda: AcademicDataService(get_session_factory(), cache)

def get_subjects_service() -> SubjectsService:
    return SubjectsService(get_session_factory(), cache)

def get_resources_service() -> ResourcesService:
    return ResourcesService(get_session_factory(), cache)

def get_dashboard_service() -> DashboardService:
    return DashboardService(get_session_factory())
