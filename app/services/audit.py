"""Audit logging service."""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.audit import AuditAction, AuditLog
from app.schemas.audit import AuditLogFilter, AuditLogResponse

logger = logging.getLogger(__name__)


class AuditService:
    """Audit logging service - append-only.

    Audit writes never fail the operation being audited; a durable store
    outage is logged and the entry is dropped.
    """

    def __init__(
        self,
        db: Session,
        actor: str | None = None,
        ip_address: str | None = None,
    ):
        self.db = db
        self.actor = actor
        self.ip_address = ip_address

    def log(
        self,
        action: AuditAction,
        resource_type: str,
        resource_id: str | None = None,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog | None:
        """Create an audit log entry."""
        log = AuditLog(
            actor=self.actor,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            description=description,
            extra_data=metadata,
            ip_address=self.ip_address,
        )
        try:
            # Savepoint: a failed entry must not roll back the audited work
            with self.db.begin_nested():
                self.db.add(log)
                self.db.flush()
        except SQLAlchemyError as e:
            logger.warning(f"Audit entry {action.value} for {resource_type} {resource_id} dropped: {e}")
            return None
        return log

    def list_logs(
        self,
        filters: AuditLogFilter | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[AuditLogResponse], int]:
        """List audit logs with filtering, newest first."""
        query = select(AuditLog)

        if filters:
            if filters.action:
                query = query.where(AuditLog.action == filters.action)
            if filters.resource_type:
                query = query.where(AuditLog.resource_type == filters.resource_type)
            if filters.resource_id:
                query = query.where(AuditLog.resource_id == filters.resource_id)
            if filters.date_from:
                query = query.where(AuditLog.created_at >= filters.date_from)
            if filters.date_to:
                query = query.where(AuditLog.created_at <= filters.date_to)

        # Count total
        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar() or 0

        # Apply pagination and ordering
        query = (
            query
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        logs = self.db.execute(query).scalars().all()

        return [AuditLogResponse.model_validate(log) for log in logs], total
