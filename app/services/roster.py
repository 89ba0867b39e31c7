"""Department roster import service."""

import logging
from io import BytesIO

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.student import AcademicYear, RosterStudent
from app.schemas.student import RosterUploadResult

logger = logging.getLogger(__name__)


# Excel template columns for roster upload
ROSTER_TEMPLATE_COLUMNS = [
    ("ht_no", "Hall Ticket No", True),
    ("student_name", "Student Name", True),
    ("year", "Year", True),
    ("branch", "Branch", False),
    ("section", "Section", False),
]


def _cell_text(row: tuple, idx: int) -> str | None:
    if idx >= len(row) or row[idx] is None:
        return None
    text = str(row[idx]).strip()
    return text or None


class RosterService:
    """Bulk import of the department roster from Excel."""

    def __init__(self, db: Session):
        self.db = db

    def generate_template(self) -> bytes:
        """Generate Excel template for roster bulk upload."""
        wb = Workbook()
        ws = wb.active
        ws.title = "Roster"

        headers = [col[1] for col in ROSTER_TEMPLATE_COLUMNS]
        for col_idx, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.font = Font(bold=True)

        sample_data = ["23891A7201", "A. Student", AcademicYear.THIRD.value, "AI & DS", "A"]
        for col_idx, value in enumerate(sample_data, start=1):
            ws.cell(row=2, column=col_idx, value=value)

        column_widths = [18, 30, 12, 15, 10]
        for col_idx, width in enumerate(column_widths, start=1):
            ws.column_dimensions[chr(64 + col_idx)].width = width

        output = BytesIO()
        wb.save(output)
        return output.getvalue()

    def _parse_row(self, row: tuple, row_num: int) -> dict:
        ht_no = _cell_text(row, 0)
        student_name = _cell_text(row, 1)
        raw_year = _cell_text(row, 2)

        if not ht_no:
            raise ValidationError("Hall Ticket No is required", details={"column": "Hall Ticket No", "row": row_num})
        if not student_name:
            raise ValidationError("Student Name is required", details={"column": "Student Name", "row": row_num})
        year = AcademicYear.normalize(raw_year)
        if year is None:
            raise ValidationError(
                f"Unknown year '{raw_year}'",
                details={"column": "Year", "row": row_num, "value": raw_year},
            )

        return {
            "ht_no": ht_no.upper(),
            "student_name": student_name,
            "year": year,
            "branch": _cell_text(row, 3),
            "section": _cell_text(row, 4),
        }

    def bulk_upload(self, file_content: bytes) -> RosterUploadResult:
        """Import roster rows, upserting by hall ticket.

        Partial success is allowed: invalid rows are reported and skipped.
        """
        try:
            wb = load_workbook(BytesIO(file_content), data_only=True)
            ws = wb.active
        except Exception as e:
            raise ValidationError(f"Invalid Excel file: {str(e)}")

        rows = [r for r in ws.iter_rows(min_row=2, values_only=True)]
        if not any(any(r) for r in rows):
            raise ValidationError("No data found in Excel file")

        errors = []
        created = 0
        updated = 0
        seen: dict[str, RosterStudent] = {}

        for row_num, row in enumerate(rows, start=2):
            # Skip empty rows
            if not any(row):
                continue
            try:
                data = self._parse_row(row, row_num)
            except ValidationError as e:
                logger.warning(f"[ROSTER UPLOAD] Row {row_num} FAILED - {e.message}")
                errors.append({
                    "row": row_num,
                    "column": e.details.get("column"),
                    "message": e.message,
                })
                continue

            student = seen.get(data["ht_no"]) or self.db.get(RosterStudent, data["ht_no"])
            if student is None:
                student = RosterStudent(**data)
                self.db.add(student)
                created += 1
            else:
                for field, value in data.items():
                    setattr(student, field, value)
                if data["ht_no"] not in seen:
                    updated += 1
            seen[data["ht_no"]] = student

        self.db.flush()

        total = len([r for r in rows if any(r)])
        message = f"Imported {created + updated} of {total} roster rows."
        if errors:
            message += f" {len(errors)} rows failed."
        logger.info(f"[ROSTER UPLOAD] {message}")

        return RosterUploadResult(
            total_rows=total,
            created_rows=created,
            updated_rows=updated,
            failed_rows=len(errors),
            errors=errors,
            message=message,
        )

    def get_entry(self, ht_no: str) -> RosterStudent:
        """Get roster entry by hall ticket (case-insensitive)."""
        entry = self.db.get(RosterStudent, ht_no.strip().upper())
        if not entry:
            raise NotFoundError("Roster entry", ht_no)
        return entry
