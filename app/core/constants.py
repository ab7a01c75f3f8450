from enum import Enum


DEFAULT_REGULATION = "R23"
ONBOARDING_PATH = "/onboarding"
LOCAL_PROFILE_KEY = "pecup_local_profile"

# Legacy year numbers (1-4) map to the batch year currently in that year
YEAR_TO_BATCH_MAPPING = {
    1: 2024,
    2: 2024,
    3: 2023,
    4: 2022,
}

UPCOMING_EXAM_WINDOW_DAYS = 5
PRIME_EXAM_WINDOW_DAYS = 4
RECENT_UPDATES_LIMIT = 10
UPCOMING_REMINDERS_LIMIT = 5

class RoleEnum(str, Enum):
    GUEST = "guest"
    STUDENT = "student"
    REPRESENTATIVE = "representative"
    ADMIN = "admin"
    SUPER_ADMIN = "superadmin"

class PermissionEnum(str, Enum):
    RESOURCES_READ = "resources:read"
    RESOURCES_WRITE = "resources:write"
    RESOURCES_DELETE = "resources:delete"
    REMINDERS_READ = "reminders:read"
    REMINDERS_WRITE = "reminders:write"
    UPDATES_READ = "recent_updates:read"
    UPDATES_WRITE = "recent_updates:write"
    EXAMS_READ = "exams:read"
    EXAMS_WRITE = "exams:write"
    PROFILE_EDIT = "profile:edit"
    SEMESTER_PROMOTE = "semester:promote"

_READ_ONLY = frozenset({
    PermissionEnum.RESOURCES_READ,
    PermissionEnum.REMINDERS_READ,
    PermissionEnum.UPDATES_READ,
    PermissionEnum.EXAMS_READ,
})

_MANAGE = _READ_ONLY | {
    PermissionEnum.RESOURCES_WRITE,
    PermissionEnum.REMINDERS_WRITE,
    PermissionEnum.UPDATES_WRITE,
    PermissionEnum.EXAMS_WRITE,
    PermissionEnum.PROFILE_EDIT,
    PermissionEnum.SEMESTER_PROMOTE,
}

ROLE_PERMISSIONS = {
    RoleEnum.GUEST: _READ_ONLY,
    RoleEnum.STUDENT: _READ_ONLY | {PermissionEnum.PROFILE_EDIT},
    RoleEnum.REPRESENTATIVE: _MANAGE,
    RoleEnum.ADMIN: _MANAGE | {PermissionEnum.RESOURCES_DELETE},
    RoleEnum.SUPER_ADMIN: _MANAGE | {PermissionEnum.RESOURCES_DELETE},
}

def permissions_for(role: RoleEnum) -> frozenset:
    return frozenset(ROLE_PERMISSIONS.get(RoleEnum(role), frozenset()))

class ResourceTypeEnum(str, Enum):
    RESOURCES = "resources"
    RECORDS = "records"
