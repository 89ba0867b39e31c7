"""Faculty reference model."""

import enum

from sqlalchemy import Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class FacultyRole(str, enum.Enum):
    """Portal role of a faculty member."""

    HOD = "HOD"
    FACULTY = "Faculty"
    ADMIN = "Admin"


class Faculty(Base, IDMixin, TimestampMixin):
    """Faculty member. Read-only from the mapping store's point of view."""

    __tablename__ = "faculty"

    faculty_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    designation: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[FacultyRole] = mapped_column(
        Enum(FacultyRole, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=FacultyRole.FACULTY,
    )
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(255), nullable=True)
    experience: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<Faculty(id={self.id}, faculty_id={self.faculty_id}, name={self.name})>"
