"""Student-faculty mapping endpoints."""

from fastapi import APIRouter, Query

from app.core.dependencies import Mappings
from app.core.exceptions import NotFoundError
from app.models.mapping import MappingType
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.faculty import FacultySummary
from app.schemas.mapping import (
    AssignmentStats,
    BulkAssignRequest,
    BulkAssignResult,
    MappingAssign,
    MappingFilter,
    MappingRecord,
    MappingWithDetails,
)
from app.schemas.student import StudentSummary

router = APIRouter(
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)


@router.get("/students", response_model=list[StudentSummary])
def list_students(service: Mappings):
    """All students, registered first, roster duplicates removed."""
    return service.list_students()


@router.get("/faculty", response_model=list[FacultySummary])
def list_faculty(service: Mappings):
    """All faculty members."""
    return service.list_faculty()


@router.get("", response_model=list[MappingRecord])
def list_active_mappings(
    service: Mappings,
    student_id: str | None = None,
    faculty_id: str | None = None,
    mapping_type: MappingType | None = None,
):
    """List active mappings, optionally filtered."""
    filters = MappingFilter(
        student_id=student_id,
        faculty_id=faculty_id,
        mapping_type=mapping_type,
    )
    return service.list_active(filters)


@router.get("/details", response_model=list[MappingWithDetails])
def list_mappings_with_details(service: Mappings):
    """Active mappings with student and faculty names."""
    return service.list_with_details()


@router.get("/unassigned", response_model=list[StudentSummary])
def list_unassigned_students(
    service: Mappings,
    mapping_type: MappingType = Query(..., description="coordinator or counsellor"),
):
    """Students without an active mapping of the given type."""
    return service.list_unassigned(mapping_type)


@router.get("/stats", response_model=AssignmentStats)
def get_assignment_stats(service: Mappings):
    """Assignment counts for dashboards."""
    return service.stats()


@router.post("", response_model=MappingRecord)
def assign_student(request: MappingAssign, service: Mappings):
    """Assign a faculty member to a student, replacing any current one of the same type."""
    return service.assign(request.student_id, request.faculty_id, request.mapping_type)


@router.post("/bulk", response_model=BulkAssignResult)
def bulk_assign_students(request: BulkAssignRequest, service: Mappings):
    """
    Assign many students at once.

    All items are validated first; one invalid item rejects the whole batch.
    """
    mappings = service.bulk_assign(request.assignments)
    return BulkAssignResult(count=len(mappings), mappings=mappings)


@router.get("/{mapping_id}", response_model=MappingRecord)
def get_mapping(mapping_id: str, service: Mappings):
    """Get a mapping by ID, including removed ones."""
    mapping = service.get_mapping(mapping_id)
    if not mapping:
        raise NotFoundError("Mapping", mapping_id)
    return mapping


@router.delete("/{mapping_id}", response_model=MessageResponse)
def remove_mapping(mapping_id: str, service: Mappings):
    """Unassign: the mapping is kept but marked inactive."""
    if not service.remove(mapping_id):
        raise NotFoundError("Active mapping", mapping_id)
    return MessageResponse(message="Mapping removed successfully")
