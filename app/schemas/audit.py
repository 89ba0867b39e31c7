"""Audit log schemas."""

from datetime import datetime
from typing import Any

from app.models.audit import AuditAction
from app.schemas.common import BaseSchema


class AuditLogResponse(BaseSchema):
    """Audit log response schema."""

    id: int
    actor: str | None
    action: AuditAction
    resource_type: str
    resource_id: str | None
    description: str | None
    extra_data: dict[str, Any] | None = None
    ip_address: str | None
    created_at: datetime


class AuditLogFilter(BaseSchema):
    """Audit log filtering options."""

    action: AuditAction | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


class AuditLogPage(BaseSchema):
    """Paginated audit log list."""

    items: list[AuditLogResponse]
    total: int
    page: int
    page_size: int
