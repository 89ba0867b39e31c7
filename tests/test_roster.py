"""Tests for department roster import."""

from io import BytesIO

import pytest
from openpyxl import Workbook, load_workbook

from app.core.exceptions import ValidationError
from app.models.student import AcademicYear, RosterStudent
from app.services.roster import ROSTER_TEMPLATE_COLUMNS, RosterService


def build_workbook(rows: list[tuple]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append([col[1] for col in ROSTER_TEMPLATE_COLUMNS])
    for row in rows:
        ws.append(list(row))
    output = BytesIO()
    wb.save(output)
    return output.getvalue()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("3rd Year", AcademicYear.THIRD),
        ("4th year", AcademicYear.FOURTH),
        ("  1ST   YEAR ", AcademicYear.FIRST),
        ("5th Year", None),
        (None, None),
    ],
)
def test_academic_year_normalize(raw, expected):
    assert AcademicYear.normalize(raw) is expected


def test_template_has_expected_headers(db_session):
    content = RosterService(db_session).generate_template()

    ws = load_workbook(BytesIO(content)).active
    headers = [cell.value for cell in ws[1]]
    assert headers == [col[1] for col in ROSTER_TEMPLATE_COLUMNS]


def test_bulk_upload_creates_and_reports_errors(db_session):
    content = build_workbook([
        ("23891a7201", "Anil Kumar", "3rd year", "AI & DS", "A"),
        ("23891A7202", "Bhavya Sri", "3rd Year", None, None),
        (None, None, None, None, None),
        ("23891A7203", None, "3rd Year", None, None),
        ("23891A7204", "Charan", "Final Year", None, None),
    ])

    result = RosterService(db_session).bulk_upload(content)

    assert result.total_rows == 4
    assert result.created_rows == 2
    assert result.updated_rows == 0
    assert result.failed_rows == 2
    assert {e["column"] for e in result.errors} == {"Student Name", "Year"}

    stored = db_session.get(RosterStudent, "23891A7201")
    assert stored.student_name == "Anil Kumar"
    assert stored.year == AcademicYear.THIRD


def test_bulk_upload_upserts_by_hall_ticket(db_session):
    db_session.add(RosterStudent(ht_no="23891A7201", student_name="Old Name", year=AcademicYear.SECOND))
    db_session.commit()

    content = build_workbook([
        ("23891A7201", "New Name", "3rd Year", None, "B"),
        ("23891A7209", "Fresh", "1st Year", None, None),
        ("23891A7209", "Fresh Again", "1st Year", None, None),
    ])
    result = RosterService(db_session).bulk_upload(content)

    assert result.created_rows == 1
    assert result.updated_rows == 1
    assert result.failed_rows == 0

    updated = db_session.get(RosterStudent, "23891A7201")
    assert updated.student_name == "New Name"
    assert updated.year == AcademicYear.THIRD
    assert updated.section == "B"
    assert db_session.get(RosterStudent, "23891A7209").student_name == "Fresh Again"


def test_bulk_upload_rejects_non_excel(db_session):
    with pytest.raises(ValidationError):
        RosterService(db_session).bulk_upload(b"not an excel file")


def test_bulk_upload_rejects_empty_sheet(db_session):
    with pytest.raises(ValidationError):
        RosterService(db_session).bulk_upload(build_workbook([]))
