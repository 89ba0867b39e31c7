"""Faculty-side mapping endpoints."""

from fastapi import APIRouter

from app.core.dependencies import Mappings
from app.models.mapping import MappingType
from app.schemas.mapping import MappingRecord

router = APIRouter()


@router.get("/{faculty_id}/mappings", response_model=list[MappingRecord])
def get_faculty_students(
    faculty_id: str,
    service: Mappings,
    mapping_type: MappingType | None = None,
):
    """Active mappings where this faculty member is coordinator or counsellor."""
    return service.get_faculty_students(faculty_id, mapping_type)
