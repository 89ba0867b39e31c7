"""HTTP-level tests for the mapping, student and audit endpoints."""

from io import BytesIO

from openpyxl import Workbook

from app.core.config import settings

API = "/api/v1"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["durable_store"] == "up"
    assert response.json()["mapping_cache"]["writable"] is True
    assert "X-Request-ID" in response.headers


def test_health_reports_unwritable_cache(client, tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where the cache directory should be")
    monkeypatch.setattr(settings, "MAPPING_CACHE_PATH", str(blocker / "mappings.json"))

    body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["mapping_cache"]["writable"] is False


def test_assign_details_stats_and_remove(client, reference_data):
    stats_before = client.get(f"{API}/mappings/stats").json()

    response = client.post(
        f"{API}/mappings",
        json={"student_id": "S1", "faculty_id": "F1", "mapping_type": "coordinator"},
        headers={"X-Actor": "hod"},
    )
    assert response.status_code == 200
    mapping = response.json()
    assert mapping["is_active"] is True

    stats = client.get(f"{API}/mappings/stats").json()
    assert stats["assigned_coordinators"] == stats_before["assigned_coordinators"] + 1
    assert stats["unassigned_coordinators"] == stats_before["unassigned_coordinators"] - 1

    details = client.get(f"{API}/mappings/details").json()
    assert details[0]["student_name"] == "Anil Kumar"
    assert details[0]["faculty_name"] == "Dr. N. Murali Krishna"

    response = client.delete(f"{API}/mappings/{mapping['id']}")
    assert response.status_code == 200

    response = client.delete(f"{API}/mappings/{mapping['id']}")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"

    assert client.get(f"{API}/mappings/stats").json() == stats_before
    assert client.get(f"{API}/mappings/{mapping['id']}").json()["is_active"] is False


def test_assign_invalid_type_is_rejected(client, reference_data):
    response = client.post(
        f"{API}/mappings",
        json={"student_id": "S1", "faculty_id": "F1", "mapping_type": "mentor"},
    )

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert client.get(f"{API}/mappings").json() == []


def test_list_filters_and_unassigned(client, reference_data):
    client.post(f"{API}/mappings/bulk", json={"assignments": [
        {"student_id": "S1", "faculty_id": "F1", "mapping_type": "counsellor"},
        {"student_id": "S2", "faculty_id": "F2", "mapping_type": "counsellor"},
        {"student_id": "S2", "faculty_id": "F1", "mapping_type": "coordinator"},
    ]})

    by_faculty = client.get(f"{API}/mappings", params={"faculty_id": "F1"}).json()
    assert {m["student_id"] for m in by_faculty} == {"S1", "S2"}

    counsellors = client.get(f"{API}/faculty/F1/mappings", params={"mapping_type": "counsellor"}).json()
    assert [m["student_id"] for m in counsellors] == ["S1"]

    student_mappings = client.get(f"{API}/students/S2/mappings").json()
    assert {m["mapping_type"] for m in student_mappings} == {"coordinator", "counsellor"}

    unassigned = client.get(f"{API}/mappings/unassigned", params={"mapping_type": "counsellor"}).json()
    assert {s["id"] for s in unassigned} == {"23891A7205", "R6"}

    assert client.get(f"{API}/mappings/unassigned", params={"mapping_type": "mentor"}).status_code == 422


def test_students_and_faculty_lists(client, reference_data):
    students = client.get(f"{API}/mappings/students").json()
    faculty = client.get(f"{API}/mappings/faculty").json()

    assert [s["hall_ticket"] for s in students].count("23891A7201") == 1
    assert len(students) == 4
    assert {f["faculty_identifier"] for f in faculty} == {"AIDS-ANK1", "AIDS-HVS1"}


def test_register_student_then_appears_in_merged_list(client, db_session):
    payload = {
        "hall_ticket": "23891a7299",
        "name": "New Student",
        "year": "2nd Year",
    }

    response = client.post(f"{API}/students/register", json=payload)
    assert response.status_code == 200
    student = response.json()
    assert student["hall_ticket"] == "23891A7299"

    duplicate = client.post(f"{API}/students/register", json=payload)
    assert duplicate.status_code == 422

    fetched = client.get(f"{API}/students/registered/{student['id']}")
    assert fetched.json()["name"] == "New Student"

    students = client.get(f"{API}/mappings/students").json()
    assert [s["id"] for s in students] == [student["id"]]
    assert students[0]["section"] == "A"


def test_roster_upload_endpoint(client, db_session):
    wb = Workbook()
    ws = wb.active
    ws.append(["Hall Ticket No", "Student Name", "Year", "Branch", "Section"])
    ws.append(["23891A7210", "Roster Only", "4th Year", "AI & DS", "A"])
    output = BytesIO()
    wb.save(output)

    response = client.post(
        f"{API}/students/roster/upload",
        files={"file": ("roster.xlsx", output.getvalue(), "application/octet-stream")},
    )
    assert response.status_code == 200
    assert response.json()["created_rows"] == 1

    students = client.get(f"{API}/mappings/students").json()
    assert students[0]["source"] == "department_roster"
    assert students[0]["email"] == "23891A7210@vignan.ac.in"

    entry = client.get(f"{API}/students/roster/23891a7210").json()
    assert entry["student_name"] == "Roster Only"
    assert client.get(f"{API}/students/roster/NOPE").status_code == 404

    wrong_type = client.post(
        f"{API}/students/roster/upload",
        files={"file": ("roster.csv", b"a,b,c", "text/csv")},
    )
    assert wrong_type.status_code == 400
    assert wrong_type.json()["error"]["code"] == "UPLOAD_FAILED"


def test_roster_template_download(client, db_session):
    response = client.get(f"{API}/students/roster/template")

    assert response.status_code == 200
    assert "roster_template.xlsx" in response.headers["content-disposition"]


def test_audit_log_records_mapping_history(client, reference_data):
    mapping = client.post(
        f"{API}/mappings",
        json={"student_id": "S1", "faculty_id": "F1", "mapping_type": "counsellor"},
        headers={"X-Actor": "admin"},
    ).json()
    client.post(
        f"{API}/mappings",
        json={"student_id": "S1", "faculty_id": "F2", "mapping_type": "counsellor"},
        headers={"X-Actor": "admin"},
    )

    page = client.get(f"{API}/audit-logs", params={"resource_id": mapping["id"]}).json()

    assert page["total"] == 2
    assert [item["action"] for item in page["items"]] == ["MAPPING_REASSIGNED", "MAPPING_CREATED"]
    assert page["items"][0]["actor"] == "admin"
