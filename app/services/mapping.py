"""Student-faculty assignment mapping service.

Owns the relation "which faculty member is the coordinator/counsellor for
which student". At most one active mapping exists per (student, mapping
type); assigning again overwrites it in place and removing is a soft delete.
"""

import logging
import threading
from collections.abc import Iterable
from typing import Any

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models.audit import AuditAction
from app.models.base import new_id, utcnow
from app.models.mapping import MappingType
from app.models.student import AcademicYear, StudentSource
from app.repositories.mapping import MappingRepository
from app.schemas.faculty import FacultySummary
from app.schemas.mapping import (
    AssignmentStats,
    MappingAssign,
    MappingFilter,
    MappingRecord,
    MappingWithDetails,
)
from app.schemas.student import StudentSummary
from app.services.audit import AuditService
from app.services.directory import FacultyDirectory, RawRecord, StudentDirectory

logger = logging.getLogger(__name__)

UNKNOWN_STUDENT = "Unknown Student"
UNKNOWN_FACULTY = "Unknown Faculty"

# Serializes check-then-write in assign/remove within one process
_mutation_lock = threading.Lock()


def _year_text(value: Any) -> str:
    if isinstance(value, AcademicYear):
        return value.value
    return str(value) if value else ""


def normalize_registered_student(raw: RawRecord) -> StudentSummary:
    """Registered-source record to the store's Student shape."""
    return StudentSummary(
        id=str(raw["id"]),
        name=raw.get("name") or "Unknown",
        hall_ticket=str(raw.get("hall_ticket") or ""),
        year=_year_text(raw.get("year")),
        section=raw.get("section") or settings.DEFAULT_SECTION,
        email=raw.get("email"),
        source=StudentSource.REGISTERED,
    )


def normalize_roster_student(raw: RawRecord) -> StudentSummary:
    """Roster-source record to the store's Student shape.

    Roster ids are optional upstream, the hall ticket stands in for them.
    """
    ht_no = str(raw.get("ht_no") or "").strip()
    return StudentSummary(
        id=str(raw.get("id") or ht_no),
        name=raw.get("student_name") or "Unknown",
        hall_ticket=ht_no,
        year=_year_text(raw.get("year")),
        section=raw.get("section") or settings.DEFAULT_SECTION,
        email=f"{ht_no}@{settings.ROSTER_EMAIL_DOMAIN}",
        source=StudentSource.DEPARTMENT_ROSTER,
    )


def normalize_faculty(raw: RawRecord) -> FacultySummary:
    return FacultySummary(
        id=str(raw["id"]),
        name=raw["name"],
        designation=raw.get("designation") or "",
        faculty_identifier=raw["faculty_id"],
        role=raw["role"],
        email=raw.get("email"),
    )


def coerce_mapping_type(value: Any) -> MappingType:
    """Accept a MappingType or its string value, else raise ValidationError."""
    if isinstance(value, MappingType):
        return value
    try:
        return MappingType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid mapping type: {value!r}",
            details={
                "field": "mapping_type",
                "allowed": [t.value for t in MappingType],
            },
        )


class MappingService:
    """Assignment mapping store.

    Reads join the mapping rows against the externally supplied student and
    faculty directories. Mutations go through ``assign`` and ``remove`` only.
    """

    def __init__(
        self,
        mappings: MappingRepository,
        students: StudentDirectory,
        faculty: FacultyDirectory,
        audit: AuditService | None = None,
    ):
        self.mappings = mappings
        self.students = students
        self.faculty = faculty
        self.audit = audit

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    def list_students(self) -> list[StudentSummary]:
        """Registered students first, then roster students whose hall ticket
        is not already registered."""
        registered = [
            normalize_registered_student(raw)
            for raw in self.students.list_registered_students()
        ]
        registered_tickets = {s.hall_ticket for s in registered}

        roster = []
        for raw in self.students.list_roster_students():
            student = normalize_roster_student(raw)
            if not student.hall_ticket:
                logger.debug(f"Skipping roster record without hall ticket: {raw}")
                continue
            if student.hall_ticket in registered_tickets:
                continue
            roster.append(student)

        return registered + roster

    def list_faculty(self) -> list[FacultySummary]:
        return [normalize_faculty(raw) for raw in self.faculty.list_faculty()]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _validate_assignment(
        self,
        student_id: Any,
        faculty_id: Any,
        mapping_type: Any,
    ) -> tuple[str, str, MappingType]:
        student_id = str(student_id or "").strip()
        faculty_id = str(faculty_id or "").strip()
        if not student_id:
            raise ValidationError("Student is required", details={"field": "student_id"})
        if not faculty_id:
            raise ValidationError("Faculty is required", details={"field": "faculty_id"})
        return student_id, faculty_id, coerce_mapping_type(mapping_type)

    def assign(
        self,
        student_id: str,
        faculty_id: str,
        mapping_type: MappingType | str,
    ) -> MappingRecord:
        """Make ``faculty_id`` the active ``mapping_type`` faculty of ``student_id``.

        Overwrites the existing active mapping for (student, type) if there
        is one, otherwise creates it.
        """
        student_id, faculty_id, mapping_type = self._validate_assignment(
            student_id, faculty_id, mapping_type
        )

        with _mutation_lock:
            now = utcnow()
            existing = next(
                (
                    m for m in self.mappings.list()
                    if m.is_active
                    and m.student_id == student_id
                    and m.mapping_type == mapping_type
                ),
                None,
            )

            if existing:
                previous_faculty_id = existing.faculty_id
                record = existing.model_copy(
                    update={
                        "faculty_id": faculty_id,
                        "assigned_date": now,
                        "updated_at": now,
                    }
                )
                self.mappings.put(record)
            else:
                previous_faculty_id = None
                record = MappingRecord(
                    id=new_id(),
                    student_id=student_id,
                    faculty_id=faculty_id,
                    mapping_type=mapping_type,
                    assigned_date=now,
                    is_active=True,
                    created_at=now,
                    updated_at=now,
                )
                self.mappings.put(record)

        if previous_faculty_id is None:
            logger.info(f"Assigned {mapping_type.value} {faculty_id} to student {student_id}")
            self._audit(
                AuditAction.MAPPING_CREATED,
                record,
                f"{mapping_type.value.capitalize()} {faculty_id} assigned to student {student_id}",
            )
        else:
            logger.info(
                f"Reassigned {mapping_type.value} of student {student_id}: "
                f"{previous_faculty_id} -> {faculty_id}"
            )
            self._audit(
                AuditAction.MAPPING_REASSIGNED,
                record,
                f"{mapping_type.value.capitalize()} of student {student_id} changed "
                f"from {previous_faculty_id} to {faculty_id}",
                previous_faculty_id=previous_faculty_id,
            )
        return record

    def bulk_assign(self, assignments: Iterable[MappingAssign]) -> list[MappingRecord]:
        """Assign each item in order. Every item is validated before the first write."""
        validated = [
            self._validate_assignment(a.student_id, a.faculty_id, a.mapping_type)
            for a in assignments
        ]
        return [self.assign(*item) for item in validated]

    def remove(self, mapping_id: str) -> bool:
        """Soft-delete an active mapping. False if missing or already inactive."""
        if not mapping_id:
            return False

        with _mutation_lock:
            record = self.mappings.get(mapping_id)
            if record is None or not record.is_active:
                return False
            record = record.model_copy(update={"is_active": False, "updated_at": utcnow()})
            self.mappings.put(record)

        logger.info(f"Removed {record.mapping_type.value} mapping {mapping_id}")
        self._audit(
            AuditAction.MAPPING_REMOVED,
            record,
            f"{record.mapping_type.value.capitalize()} {record.faculty_id} "
            f"unassigned from student {record.student_id}",
        )
        return True

    def _audit(
        self,
        action: AuditAction,
        record: MappingRecord,
        description: str,
        **extra: Any,
    ) -> None:
        if self.audit is None:
            return
        self.audit.log(
            action=action,
            resource_type="student_faculty_mapping",
            resource_id=record.id,
            description=description,
            metadata={
                "student_id": record.student_id,
                "faculty_id": record.faculty_id,
                "mapping_type": record.mapping_type.value,
                **extra,
            },
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_mapping(self, mapping_id: str) -> MappingRecord | None:
        """Raw row lookup, active or not."""
        return self.mappings.get(mapping_id)

    def list_active(self, filters: MappingFilter | None = None) -> list[MappingRecord]:
        """Active mappings, optionally narrowed by student, faculty and type."""
        active = [m for m in self.mappings.list() if m.is_active]
        if not filters:
            return active

        if filters.student_id:
            active = [m for m in active if m.student_id == filters.student_id]
        if filters.faculty_id:
            active = [m for m in active if m.faculty_id == filters.faculty_id]
        if filters.mapping_type:
            active = [m for m in active if m.mapping_type == filters.mapping_type]
        return active

    def get_student_mappings(self, student_id: str) -> list[MappingRecord]:
        return self.list_active(MappingFilter(student_id=student_id))

    def get_faculty_students(
        self,
        faculty_id: str,
        mapping_type: MappingType | str | None = None,
    ) -> list[MappingRecord]:
        filters = MappingFilter(
            faculty_id=faculty_id,
            mapping_type=coerce_mapping_type(mapping_type) if mapping_type else None,
        )
        return self.list_active(filters)

    def list_with_details(self) -> list[MappingWithDetails]:
        """Active mappings with student and faculty display fields.

        A side that no longer resolves shows the Unknown placeholder; the
        row itself is always kept.
        """
        active = self.list_active()
        students = {s.id: s for s in self.list_students()}
        faculty_list = self.list_faculty()
        faculty_by_id = {f.id: f for f in faculty_list}
        # Older rows may carry the human-readable faculty code instead of the id
        faculty_by_code = {f.faculty_identifier: f for f in faculty_list}

        details = []
        for mapping in active:
            student = students.get(mapping.student_id)
            member = faculty_by_id.get(mapping.faculty_id) or faculty_by_code.get(mapping.faculty_id)
            details.append(
                MappingWithDetails(
                    **mapping.model_dump(),
                    student_name=student.name if student else UNKNOWN_STUDENT,
                    student_hall_ticket=student.hall_ticket if student else "",
                    student_year=student.year if student else "",
                    student_source=student.source if student else StudentSource.REGISTERED,
                    faculty_name=member.name if member else UNKNOWN_FACULTY,
                    faculty_designation=member.designation if member else "",
                )
            )
        return details

    def list_unassigned(self, mapping_type: MappingType | str) -> list[StudentSummary]:
        """Students with no active mapping of ``mapping_type``."""
        mapping_type = coerce_mapping_type(mapping_type)
        assigned = {
            m.student_id
            for m in self.list_active(MappingFilter(mapping_type=mapping_type))
        }
        return [s for s in self.list_students() if s.id not in assigned]

    def stats(self) -> AssignmentStats:
        total_students = len(self.list_students())
        active = self.list_active()
        coordinators = sum(1 for m in active if m.mapping_type == MappingType.COORDINATOR)
        counsellors = sum(1 for m in active if m.mapping_type == MappingType.COUNSELLOR)

        return AssignmentStats(
            total_students=total_students,
            assigned_coordinators=coordinators,
            assigned_counsellors=counsellors,
            unassigned_coordinators=total_students - coordinators,
            unassigned_counsellors=total_students - counsellors,
            total_faculty=len(self.list_faculty()),
        )
