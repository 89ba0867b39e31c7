"""Student-faculty mapping schemas."""

from datetime import datetime, timezone

from pydantic import Field, field_validator

from app.models.mapping import MappingType
from app.models.student import StudentSource
from app.schemas.common import BaseSchema, TimestampSchema


class MappingRecord(TimestampSchema):
    """A mapping row, shared by the durable store and the local cache."""

    id: str
    student_id: str
    faculty_id: str
    mapping_type: MappingType
    assigned_date: datetime
    is_active: bool

    @field_validator("assigned_date", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive values; everything is stored in UTC
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


class MappingAssign(BaseSchema):
    """Assign request.

    Fields are plain strings; the service validates them so direct callers
    get the same errors as HTTP callers.
    """

    student_id: str = ""
    faculty_id: str = ""
    mapping_type: str = ""


class BulkAssignRequest(BaseSchema):
    """Bulk assign request."""

    assignments: list[MappingAssign] = Field(..., min_length=1)


class BulkAssignResult(BaseSchema):
    """Bulk assign result."""

    count: int
    mappings: list[MappingRecord]


class MappingFilter(BaseSchema):
    """Active mapping filter options."""

    student_id: str | None = None
    faculty_id: str | None = None
    mapping_type: MappingType | None = None


class MappingWithDetails(MappingRecord):
    """Mapping joined with student and faculty display fields."""

    student_name: str
    student_hall_ticket: str = ""
    student_year: str = ""
    student_source: StudentSource = StudentSource.REGISTERED
    faculty_name: str
    faculty_designation: str = ""


class AssignmentStats(BaseSchema):
    """Aggregate assignment counts.

    Unassigned counts may go negative when mappings reference students that
    are no longer listed.
    """

    total_students: int = 0
    assigned_coordinators: int = 0
    assigned_counsellors: int = 0
    unassigned_coordinators: int = 0
    unassigned_counsellors: int = 0
    total_faculty: int = 0
