"""Student-faculty mapping model."""

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin, utcnow


class MappingType(str, enum.Enum):
    """Kind of faculty responsibility for a student."""

    COORDINATOR = "coordinator"
    COUNSELLOR = "counsellor"


class StudentFacultyMapping(Base, IDMixin, TimestampMixin):
    """Assignment of a faculty member to a student for one mapping type.

    Rows are never hard-deleted; removal flips is_active.
    """

    __tablename__ = "student_faculty_mappings"

    # Foreign references by identifier only, no cascade
    student_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    faculty_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    mapping_type: Mapped[MappingType] = mapped_column(
        Enum(MappingType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    assigned_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        # At most one active mapping per (student, type)
        Index(
            "uq_active_student_mapping_type",
            "student_id",
            "mapping_type",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<StudentFacultyMapping(id={self.id}, student={self.student_id}, "
            f"faculty={self.faculty_id}, type={self.mapping_type}, active={self.is_active})>"
        )
