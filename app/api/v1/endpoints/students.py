"""Student registration and roster endpoints."""

from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import Audit, Mappings
from app.core.exceptions import UploadError
from app.models.audit import AuditAction
from app.schemas.mapping import MappingRecord
from app.schemas.student import (
    RegisteredStudentResponse,
    RosterStudentResponse,
    RosterUploadResult,
    StudentRegister,
)
from app.services.roster import RosterService
from app.services.student import StudentService

router = APIRouter()


@router.post("/register", response_model=RegisteredStudentResponse)
def register_student(
    request: StudentRegister,
    db: Annotated[Session, Depends(get_db)],
    audit: Audit,
):
    """Self-register a student."""
    service = StudentService(db)
    student = service.register_student(request)

    audit.log(
        action=AuditAction.STUDENT_REGISTERED,
        resource_type="student",
        resource_id=student.id,
        description=f"Student '{student.hall_ticket}' registered",
    )

    return student


@router.get("/roster/template")
def download_roster_template(
    db: Annotated[Session, Depends(get_db)],
):
    """Download Excel template for roster bulk upload."""
    service = RosterService(db)
    content = service.generate_template()

    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=roster_template.xlsx"},
    )


@router.post("/roster/upload", response_model=RosterUploadResult)
def upload_roster(
    db: Annotated[Session, Depends(get_db)],
    audit: Audit,
    file: UploadFile = File(...),
):
    """
    Bulk import the department roster from an Excel file.

    Download the template first to see the expected format.
    Existing hall tickets are updated; invalid rows are skipped.
    """
    if not file.filename:
        raise UploadError("No file provided")

    if not any(file.filename.endswith(ext) for ext in settings.ALLOWED_EXTENSIONS):
        raise UploadError(f"Only {', '.join(settings.ALLOWED_EXTENSIONS)} files are allowed")

    content = file.file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise UploadError(f"File size exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit")

    service = RosterService(db)
    result = service.bulk_upload(content)

    audit.log(
        action=AuditAction.UPLOAD_COMPLETED,
        resource_type="roster_upload",
        description=f"Roster upload: {result.created_rows + result.updated_rows}/{result.total_rows} rows",
        metadata={
            "file_name": file.filename,
            "created_rows": result.created_rows,
            "updated_rows": result.updated_rows,
            "failed_rows": result.failed_rows,
        },
    )

    return result


@router.get("/roster/{ht_no}", response_model=RosterStudentResponse)
def get_roster_entry(
    ht_no: str,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a department roster entry by hall ticket."""
    return RosterService(db).get_entry(ht_no)


@router.get("/registered/{student_id}", response_model=RegisteredStudentResponse)
def get_registered_student(
    student_id: str,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a registered student by ID."""
    return StudentService(db).get_student(student_id)


@router.get("/{student_id}/mappings", response_model=list[MappingRecord])
def get_student_mappings(student_id: str, service: Mappings):
    """Active coordinator and counsellor mappings of one student."""
    return service.get_student_mappings(student_id)
