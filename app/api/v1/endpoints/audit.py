"""Audit log endpoints."""

from datetime import datetime

from fastapi import APIRouter, Query

from app.core.dependencies import Audit
from app.models.audit import AuditAction
from app.schemas.audit import AuditLogFilter, AuditLogPage

router = APIRouter()


@router.get("", response_model=AuditLogPage)
def list_audit_logs(
    audit: Audit,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    action: AuditAction | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
):
    """List audit logs, newest first. Filter by resource_id for a mapping's history."""
    filters = AuditLogFilter(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        date_from=date_from,
        date_to=date_to,
    )
    items, total = audit.list_logs(filters, page, page_size)
    return AuditLogPage(items=items, total=total, page=page, page_size=page_size)
