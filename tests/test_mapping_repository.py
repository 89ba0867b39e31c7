"""Tests for mapping persistence: durable table, local cache and fallback."""

import logging

import pytest

from app.core.exceptions import BackingStoreUnavailable, ConflictError, InternalError
from app.models.base import new_id, utcnow
from app.models.mapping import MappingType
from app.repositories.mapping import (
    FallbackMappingRepository,
    JsonFileMappingRepository,
    SqlMappingRepository,
)
from app.schemas.mapping import MappingRecord
from app.services.directory import SqlFacultyDirectory, SqlStudentDirectory
from app.services.mapping import MappingService


def make_record(student_id="S1", faculty_id="F1", mapping_type=MappingType.COORDINATOR, **overrides):
    now = utcnow()
    data = {
        "id": new_id(),
        "student_id": student_id,
        "faculty_id": faculty_id,
        "mapping_type": mapping_type,
        "assigned_date": now,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return MappingRecord(**data)


# ==========================================
# Local cache
# ==========================================

def test_cache_put_overwrites_by_id(cache_path):
    cache = JsonFileMappingRepository(cache_path)
    record = make_record()
    cache.put(record)

    cache.put(record.model_copy(update={"faculty_id": "F2"}))

    stored = cache.list()
    assert len(stored) == 1
    assert stored[0].faculty_id == "F2"
    assert cache.get(record.id).faculty_id == "F2"
    assert cache.get("missing") is None


def test_cache_replace_all_swaps_whole_snapshot(cache_path):
    cache = JsonFileMappingRepository(cache_path)
    cache.put(make_record(student_id="stale"))
    fresh = [make_record(student_id="S1"), make_record(student_id="S2")]

    cache.replace_all(fresh)

    assert cache.list() == fresh


def test_cache_leaves_no_temp_files(cache_path):
    cache = JsonFileMappingRepository(cache_path)
    cache.put(make_record())
    cache.put(make_record(student_id="S2"))

    assert [p.name for p in cache_path.parent.iterdir()] == [cache_path.name]


def test_cache_missing_file_reads_empty(tmp_path):
    assert JsonFileMappingRepository(tmp_path / "absent.json").list() == []


def test_cache_corrupt_file_reads_empty(cache_path, caplog):
    cache_path.parent.mkdir(parents=True)
    cache_path.write_text("{not json")

    with caplog.at_level(logging.WARNING):
        assert JsonFileMappingRepository(cache_path).list() == []
    assert "unreadable mapping cache" in caplog.text


# ==========================================
# Durable store
# ==========================================

def test_sql_repository_round_trip(db_session):
    repo = SqlMappingRepository(db_session)
    record = make_record()

    repo.put(record)
    repo.put(record.model_copy(update={"is_active": False}))

    assert repo.get(record.id).is_active is False
    assert len(repo.list()) == 1


def test_sql_repository_rejects_second_active_row(db_session):
    repo = SqlMappingRepository(db_session)
    repo.put(make_record(faculty_id="F1"))

    with pytest.raises(ConflictError):
        repo.put(make_record(faculty_id="F2"))

    # Inactive history rows do not collide
    repo.put(make_record(faculty_id="F3", is_active=False))
    assert len(repo.list()) == 2


def test_sql_repository_unreachable(unreachable_session):
    repo = SqlMappingRepository(unreachable_session)

    with pytest.raises(BackingStoreUnavailable):
        repo.list()
    with pytest.raises(BackingStoreUnavailable):
        repo.put(make_record())


# ==========================================
# Fallback
# ==========================================

def test_fallback_read_refreshes_cache_from_durable(db_session, cache_path):
    durable = SqlMappingRepository(db_session)
    cache = JsonFileMappingRepository(cache_path)
    cache.put(make_record(student_id="stale"))
    fresh = durable.put(make_record(student_id="S1"))

    repo = FallbackMappingRepository(cache=cache, durable=durable)

    assert [r.id for r in repo.list()] == [fresh.id]
    assert [r.id for r in cache.list()] == [fresh.id]


def test_fallback_write_goes_to_both(db_session, cache_path):
    durable = SqlMappingRepository(db_session)
    cache = JsonFileMappingRepository(cache_path)
    repo = FallbackMappingRepository(cache=cache, durable=durable)

    record = repo.put(make_record())

    assert durable.get(record.id) is not None
    assert cache.get(record.id) is not None


def test_fallback_uses_cache_when_durable_down(unreachable_session, cache_path, caplog):
    cache = JsonFileMappingRepository(cache_path)
    repo = FallbackMappingRepository(cache=cache, durable=SqlMappingRepository(unreachable_session))

    with caplog.at_level(logging.WARNING):
        record = repo.put(make_record())
        listed = repo.list()
        fetched = repo.get(record.id)

    assert [r.id for r in listed] == [record.id]
    assert fetched == record
    assert "local cache" in caplog.text


def test_fallback_without_durable_store(cache_path):
    repo = FallbackMappingRepository(cache=JsonFileMappingRepository(cache_path))
    record = repo.put(make_record())

    assert repo.list() == [record]


def test_fallback_raises_when_nothing_can_persist(unreachable_session, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where the cache directory should be")
    repo = FallbackMappingRepository(
        cache=JsonFileMappingRepository(blocker / "mappings.json"),
        durable=SqlMappingRepository(unreachable_session),
    )

    with pytest.raises(InternalError):
        repo.put(make_record())


def test_service_keeps_working_when_durable_down(unreachable_session, cache_path):
    service = MappingService(
        mappings=FallbackMappingRepository(
            cache=JsonFileMappingRepository(cache_path),
            durable=SqlMappingRepository(unreachable_session),
        ),
        students=SqlStudentDirectory(unreachable_session),
        faculty=SqlFacultyDirectory(unreachable_session),
    )

    first = service.assign("S1", "F1", "counsellor")
    second = service.assign("S1", "F2", "counsellor")
    assert second.id == first.id
    assert [m.faculty_id for m in service.list_active()] == ["F2"]

    [row] = service.list_with_details()
    assert row.student_name == "Unknown Student"
    assert row.faculty_name == "Unknown Faculty"

    assert service.list_students() == []
    assert service.stats().assigned_counsellors == 1

    assert service.remove(first.id) is True
    assert service.list_active() == []
