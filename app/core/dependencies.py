"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.repositories.mapping import (
    FallbackMappingRepository,
    JsonFileMappingRepository,
    SqlMappingRepository,
)
from app.services.audit import AuditService
from app.services.directory import SqlFacultyDirectory, SqlStudentDirectory
from app.services.mapping import MappingService


def get_audit_service(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    x_actor: str | None = Header(None, description="Name of the person making the change"),
) -> AuditService:
    """Audit service carrying the caller's name and address."""
    return AuditService(
        db,
        actor=x_actor,
        ip_address=request.client.host if request.client else None,
    )


def get_mapping_service(
    db: Annotated[Session, Depends(get_db)],
    audit: Annotated[AuditService, Depends(get_audit_service)],
) -> MappingService:
    """Mapping service over the durable table with the local JSON cache behind it."""
    repository = FallbackMappingRepository(
        cache=JsonFileMappingRepository(settings.MAPPING_CACHE_PATH),
        durable=SqlMappingRepository(db),
    )
    return MappingService(
        mappings=repository,
        students=SqlStudentDirectory(db),
        faculty=SqlFacultyDirectory(db),
        audit=audit,
    )


# Type aliases for dependency injection
Audit = Annotated[AuditService, Depends(get_audit_service)]
Mappings = Annotated[MappingService, Depends(get_mapping_service)]
