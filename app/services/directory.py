"""Student and faculty directory providers.

The mapping service does not own students or faculty. It reads them through
these providers, which hand back raw records with source-specific field
names:

* registered students: ``id, hall_ticket, name, year, section, email``
* roster students: ``id, ht_no, student_name, year, branch, section``
* faculty: ``id, faculty_id, name, designation, role, email``
"""

import logging
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.faculty import Faculty
from app.models.student import RegisteredStudent, RosterStudent

logger = logging.getLogger(__name__)

RawRecord = dict[str, Any]


class StudentDirectory(Protocol):
    def list_registered_students(self) -> list[RawRecord]: ...

    def list_roster_students(self) -> list[RawRecord]: ...


class FacultyDirectory(Protocol):
    def list_faculty(self) -> list[RawRecord]: ...


class SqlStudentDirectory:
    """Student directory backed by the ``students`` and ``student_data`` tables."""

    def __init__(self, db: Session):
        self.db = db

    def list_registered_students(self) -> list[RawRecord]:
        try:
            result = self.db.execute(select(RegisteredStudent).order_by(RegisteredStudent.name))
            students = result.scalars().all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Registered students unavailable: {e}")
            return []

        return [
            {
                "id": s.id,
                "hall_ticket": s.hall_ticket,
                "name": s.name,
                "year": s.year,
                "section": s.section,
                "email": s.email,
            }
            for s in students
        ]

    def list_roster_students(self) -> list[RawRecord]:
        try:
            result = self.db.execute(select(RosterStudent).order_by(RosterStudent.student_name))
            students = result.scalars().all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Department roster unavailable: {e}")
            return []

        return [
            {
                "id": s.id,
                "ht_no": s.ht_no,
                "student_name": s.student_name,
                "year": s.year,
                "branch": s.branch,
                "section": s.section,
            }
            for s in students
        ]


class SqlFacultyDirectory:
    """Faculty directory backed by the ``faculty`` table."""

    def __init__(self, db: Session):
        self.db = db

    def list_faculty(self) -> list[RawRecord]:
        try:
            result = self.db.execute(select(Faculty).order_by(Faculty.name))
            faculty = result.scalars().all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Faculty directory unavailable: {e}")
            return []

        return [
            {
                "id": f.id,
                "faculty_id": f.faculty_id,
                "name": f.name,
                "designation": f.designation,
                "role": f.role,
                "email": f.email,
            }
            for f in faculty
        ]
