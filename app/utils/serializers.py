from datetime import date, datetime
from typing import Any, Dict, Optional

def _iso(value: Any) -> Optional[str]:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value

def branch_row(branch) -> Dict[str, Any]:
    return {
        "id": branch.id,
        "name": branch.name,
        "code": branch.code,
        "created_at": _iso(branch.created_at)
    }

def year_row(year) -> Dict[str, Any]:
    return {
        "id": year.id,
        "batch_year": year.batch_year,
        "display_name": year.display_name,
        "created_at": _iso(year.created_at)
    }

def semester_row(semester) -> Dict[str, Any]:
    return {
        "id": semester.id,
        "semester_number": semester.semester_number,
        "year_id": semester.year_id,
        "created_at": _iso(semester.created_at)
    }

def subject_row(subject) -> Dict[str, Any]:
    return {
        "id": subject.id,
        "code": subject.code,
        "name": subject.name,
        "resource_type": subject.resource_type
    }

def resource_row(resource) -> Dict[str, Any]:
    """Resource row carrying both the current and the legacy field names."""
    return {
        "id": resource.id,
        "name": resource.name,
        "title": resource.name,
        "description": resource.description or "",
        "drive_link": resource.drive_link,
        "url": resource.url,
        "file_type": resource.type,
        "type": resource.type,
        "branch_id": resource.branch_id,
        "year_id": resource.year_id,
        "semester_id": resource.semester_id,
        "uploader_id": resource.created_by,
        "created_at": _iso(resource.created_at),
        "category": resource.category,
        "subject": resource.subject,
        "unit": resource.unit,
        "date": resource.date or _iso(resource.created_at),
        "is_pdf": resource.is_pdf
    }

def resource_with_relations(resource) -> Dict[str, Any]:
    data = resource_row(resource)
    data["branch"] = {"id": resource.branch.id, "name": resource.branch.name, "code": resource.branch.code} if resource.branch else None
    data["year"] = {"id": resource.year.id, "batch_year": resource.year.batch_year, "display_name": resource.year.display_name} if resource.year else None
    data["semester"] = {"id": resource.semester.id, "semester_number": resource.semester.semester_number} if resource.semester else None
    return data

def recent_update_row(update) -> Dict[str, Any]:
    return {
        "id": update.id,
        "title": update.title,
        "description": update.description,
        "date": update.date,
        "branch": update.branch,
        "year": update.year,
        "created_at": _iso(update.created_at)
    }

def exam_row(exam) -> Dict[str, Any]:
    return {
        "subject": exam.subject,
        "exam_date": _iso(exam.exam_date),
        "year": exam.year,
        "branch": exam.branch
    }

def reminder_row(reminder) -> Dict[str, Any]:
    return {
        "id": reminder.id,
        "title": reminder.title,
        "description": reminder.description,
        "due_date": _iso(reminder.due_date),
        "icon_type": reminder.icon_type,
        "status": reminder.status,
        "branch": reminder.branch,
        "year": reminder.year
    }
