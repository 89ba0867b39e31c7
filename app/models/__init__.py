"""Database models package."""

from app.models.audit import AuditAction, AuditLog
from app.models.faculty import Faculty, FacultyRole
from app.models.mapping import MappingType, StudentFacultyMapping
from app.models.student import AcademicYear, RegisteredStudent, RosterStudent, StudentSource

__all__ = [
    # Student
    "AcademicYear",
    "RegisteredStudent",
    "RosterStudent",
    "StudentSource",
    # Faculty
    "Faculty",
    "FacultyRole",
    # Mapping
    "MappingType",
    "StudentFacultyMapping",
    # Audit
    "AuditLog",
    "AuditAction",
]
