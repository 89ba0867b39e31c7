"""Student registration service."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.student import RegisteredStudent
from app.schemas.student import RegisteredStudentResponse, StudentRegister

logger = logging.getLogger(__name__)


class StudentService:
    """Self-registered students (the ``registered`` source)."""

    def __init__(self, db: Session):
        self.db = db

    def register_student(self, request: StudentRegister) -> RegisteredStudentResponse:
        """Register a student. Hall tickets are unique within this source."""
        hall_ticket = request.hall_ticket.upper()
        existing = self.db.execute(
            select(RegisteredStudent.id).where(RegisteredStudent.hall_ticket == hall_ticket)
        ).scalar_one_or_none()
        if existing:
            raise ValidationError(
                "Hall ticket is already registered",
                details={"field": "hall_ticket", "value": hall_ticket},
            )

        student = RegisteredStudent(
            hall_ticket=hall_ticket,
            name=request.name,
            email=request.email,
            phone=request.phone,
            year=request.year,
            section=request.section,
        )
        self.db.add(student)
        self.db.flush()
        self.db.refresh(student)
        logger.info(f"Registered student {hall_ticket}")
        return RegisteredStudentResponse.model_validate(student)

    def get_student(self, student_id: str) -> RegisteredStudent:
        """Get registered student by ID."""
        student = self.db.get(RegisteredStudent, student_id)
        if not student:
            raise NotFoundError("Student", student_id)
        return student
