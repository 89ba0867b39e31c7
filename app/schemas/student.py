"""Student schemas."""

from datetime import datetime

from pydantic import Field

from app.models.student import AcademicYear, StudentSource
from app.schemas.common import BaseSchema


class StudentSummary(BaseSchema):
    """Student as seen by the mapping store, normalized across sources."""

    id: str
    name: str
    hall_ticket: str
    year: str
    section: str | None = None
    email: str | None = None
    source: StudentSource


class StudentRegister(BaseSchema):
    """Self-registration request."""

    hall_ticket: str = Field(..., min_length=5, max_length=20)
    name: str = Field(..., min_length=2, max_length=255)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    year: AcademicYear
    section: str | None = Field(None, max_length=10)


class RegisteredStudentResponse(BaseSchema):
    """Registered student response schema."""

    id: str
    hall_ticket: str
    name: str | None
    email: str | None
    phone: str | None
    year: AcademicYear
    section: str | None
    created_at: datetime
    updated_at: datetime


class RosterStudentResponse(BaseSchema):
    """Department roster entry response schema."""

    ht_no: str
    id: str | None
    student_name: str
    year: AcademicYear
    branch: str | None
    section: str | None


class RosterUploadResult(BaseSchema):
    """Result of a roster bulk upload."""

    total_rows: int
    created_rows: int
    updated_rows: int
    failed_rows: int
    errors: list[dict] = []
    message: str
