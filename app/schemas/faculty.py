"""Faculty schemas."""

from app.models.faculty import FacultyRole
from app.schemas.common import BaseSchema


class FacultySummary(BaseSchema):
    """Faculty member as seen by the mapping store."""

    id: str
    name: str
    designation: str
    faculty_identifier: str
    role: FacultyRole
    email: str | None = None
