"""Student models for the two student sources."""

import enum

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class AcademicYear(str, enum.Enum):
    """Enumerated academic years."""

    FIRST = "1st Year"
    SECOND = "2nd Year"
    THIRD = "3rd Year"
    FOURTH = "4th Year"

    @classmethod
    def normalize(cls, value: object) -> "AcademicYear | None":
        """Match case and whitespace variants such as ' 4th  year'."""
        if value is None:
            return None
        text = " ".join(str(value).split()).lower()
        for year in cls:
            if year.value.lower() == text:
                return year
        return None


class StudentSource(str, enum.Enum):
    """Where a student record came from."""

    REGISTERED = "registered"
    DEPARTMENT_ROSTER = "department_roster"


class RegisteredStudent(Base, IDMixin, TimestampMixin):
    """Student who self-registered through the portal."""

    __tablename__ = "students"

    hall_ticket: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    year: Mapped[AcademicYear] = mapped_column(
        Enum(AcademicYear, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    section: Mapped[str | None] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        return f"<RegisteredStudent(id={self.id}, hall_ticket={self.hall_ticket})>"


class RosterStudent(Base, TimestampMixin):
    """Department roster entry, bulk-imported from Excel.

    The roster id is optional upstream; consumers fall back to the hall ticket.
    """

    __tablename__ = "student_data"

    ht_no: Mapped[str] = mapped_column(String(20), primary_key=True)
    id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[AcademicYear] = mapped_column(
        Enum(AcademicYear, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    branch: Mapped[str | None] = mapped_column(String(100), nullable=True)
    section: Mapped[str | None] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        return f"<RosterStudent(ht_no={self.ht_no}, name={self.student_name})>"
