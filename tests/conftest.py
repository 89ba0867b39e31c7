"""Test configuration and fixtures."""

import os

# Point the app at an in-memory database before anything imports settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAPPING_CACHE_PATH"] = os.path.join("/tmp", "dept-portal-test-cache.json")

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from app import models  # noqa: F401
from app.core.config import settings
from app.core.database import Base, SessionLocal, engine, get_db
from app.main import app
from app.models.faculty import Faculty, FacultyRole
from app.models.student import AcademicYear, RegisteredStudent, RosterStudent
from app.repositories.mapping import (
    FallbackMappingRepository,
    JsonFileMappingRepository,
    SqlMappingRepository,
)
from app.services.audit import AuditService
from app.services.directory import SqlFacultyDirectory, SqlStudentDirectory
from app.services.mapping import MappingService

SHARED_HALL_TICKET = "23891A7201"


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cache_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Local mapping cache inside the test's temp dir."""
    path = tmp_path / "cache" / "mappings.json"
    monkeypatch.setattr(settings, "MAPPING_CACHE_PATH", str(path))
    return path


@pytest.fixture
def unreachable_session(tmp_path: Path) -> Generator[Session, None, None]:
    """Session whose database cannot be opened: every statement fails."""
    bad_engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'nowhere.db'}")
    session = Session(bind=bad_engine)
    try:
        yield session
    finally:
        session.close()
        bad_engine.dispose()


@pytest.fixture
def reference_data(db_session: Session) -> dict:
    """Two registered students, three roster students (one duplicate), two faculty."""
    registered = [
        RegisteredStudent(
            id="S1",
            hall_ticket=SHARED_HALL_TICKET,
            name="Anil Kumar",
            email="anil@example.com",
            year=AcademicYear.THIRD,
            section="B",
        ),
        RegisteredStudent(
            id="S2",
            hall_ticket="23891A7202",
            name="Bhavya Sri",
            year=AcademicYear.THIRD,
        ),
    ]
    roster = [
        RosterStudent(
            ht_no=SHARED_HALL_TICKET,
            id="R1",
            student_name="ANIL KUMAR (roster)",
            year=AcademicYear.THIRD,
        ),
        RosterStudent(
            ht_no="23891A7205",
            student_name="Chaitanya",
            year=AcademicYear.FOURTH,
        ),
        RosterStudent(
            ht_no="23891A7206",
            id="R6",
            student_name="Divya",
            year=AcademicYear.FOURTH,
            section="C",
        ),
    ]
    faculty = [
        Faculty(
            id="F1",
            faculty_id="AIDS-ANK1",
            name="Dr. N. Murali Krishna",
            designation="Associate Prof.",
            role=FacultyRole.FACULTY,
        ),
        Faculty(
            id="F2",
            faculty_id="AIDS-HVS1",
            name="Dr. V. Srinivas",
            designation="HOD",
            role=FacultyRole.HOD,
        ),
    ]
    db_session.add_all(registered + roster + faculty)
    db_session.commit()
    return {"registered": registered, "roster": roster, "faculty": faculty}


@pytest.fixture
def mapping_service(db_session: Session, cache_path: Path, reference_data: dict) -> MappingService:
    """Mapping service wired the way the API wires it."""
    repository = FallbackMappingRepository(
        cache=JsonFileMappingRepository(cache_path),
        durable=SqlMappingRepository(db_session),
    )
    return MappingService(
        mappings=repository,
        students=SqlStudentDirectory(db_session),
        faculty=SqlFacultyDirectory(db_session),
        audit=AuditService(db_session, actor="tester"),
    )


@pytest.fixture
def client(db_session: Session, cache_path: Path) -> Generator[TestClient, None, None]:
    """Test client sharing the test session."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
