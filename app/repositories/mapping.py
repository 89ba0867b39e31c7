"""Persistence for student-faculty mappings.

Two media sit behind one interface: the relational table (durable,
authoritative when reachable) and a JSON document on local disk (fast local
cache). ``FallbackMappingRepository`` composes them the way the service
expects: durable first, cache when the durable store is down.
"""

import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import BackingStoreUnavailable, ConflictError, InternalError
from app.models.mapping import StudentFacultyMapping
from app.schemas.mapping import MappingRecord

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(list[MappingRecord])

# Guards read-modify-write of cache files within this process
_cache_lock = threading.RLock()


class MappingRepository(ABC):
    """get/put/list over the mapping entity. Rows are never deleted."""

    @abstractmethod
    def list(self) -> list[MappingRecord]:
        """Return every row, active or not, oldest first."""

    @abstractmethod
    def get(self, mapping_id: str) -> MappingRecord | None:
        """Return one row by id."""

    @abstractmethod
    def put(self, record: MappingRecord) -> MappingRecord:
        """Insert or overwrite the row with ``record.id``."""


class SqlMappingRepository(MappingRepository):
    """Durable store backed by the ``student_faculty_mappings`` table.

    Each put commits on its own so readers never observe a half-written row.
    Connectivity failures surface as ``BackingStoreUnavailable``.
    """

    def __init__(self, db: Session):
        self.db = db

    def list(self) -> list[MappingRecord]:
        try:
            result = self.db.execute(
                select(StudentFacultyMapping).order_by(StudentFacultyMapping.created_at)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise BackingStoreUnavailable("list", e) from e
        return [MappingRecord.model_validate(row) for row in rows]

    def get(self, mapping_id: str) -> MappingRecord | None:
        try:
            row = self.db.get(StudentFacultyMapping, mapping_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise BackingStoreUnavailable("get", e) from e
        return MappingRecord.model_validate(row) if row else None

    def put(self, record: MappingRecord) -> MappingRecord:
        try:
            row = self.db.get(StudentFacultyMapping, record.id)
            if row is None:
                row = StudentFacultyMapping(id=record.id)
                self.db.add(row)
            row.student_id = record.student_id
            row.faculty_id = record.faculty_id
            row.mapping_type = record.mapping_type
            row.assigned_date = record.assigned_date
            row.is_active = record.is_active
            row.created_at = record.created_at
            row.updated_at = record.updated_at
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                "Student already has an active mapping of this type",
                details={
                    "student_id": record.student_id,
                    "mapping_type": record.mapping_type.value,
                },
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise BackingStoreUnavailable("put", e) from e
        return record


class JsonFileMappingRepository(MappingRepository):
    """Local cache: the whole mapping set as one JSON document.

    Writes go to a temp file in the same directory and are swapped in with
    ``os.replace``, so a reader sees either the old or the new document.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> list[MappingRecord]:
        if not self.path.exists():
            return []
        try:
            return _records_adapter.validate_json(self.path.read_bytes())
        except (OSError, PydanticValidationError) as e:
            logger.warning(f"Ignoring unreadable mapping cache {self.path}: {e}")
            return []

    def _write(self, records: list[MappingRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(_records_adapter.dump_json(records))
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def is_writable(self) -> bool:
        """True if the cache directory exists or can be created, and accepts writes."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self.path.parent, os.W_OK)

    def replace_all(self, records: list[MappingRecord]) -> None:
        """Overwrite the cache with an authoritative snapshot."""
        with _cache_lock:
            self._write(records)

    def list(self) -> list[MappingRecord]:
        with _cache_lock:
            return self._read()

    def get(self, mapping_id: str) -> MappingRecord | None:
        with _cache_lock:
            return next((r for r in self._read() if r.id == mapping_id), None)

    def put(self, record: MappingRecord) -> MappingRecord:
        with _cache_lock:
            records = self._read()
            for idx, existing in enumerate(records):
                if existing.id == record.id:
                    records[idx] = record
                    break
            else:
                records.append(record)
            self._write(records)
        return record


class FallbackMappingRepository(MappingRepository):
    """Durable store when reachable, local cache otherwise.

    A successful durable read replaces the cache wholesale. Writes go to the
    durable store first and are mirrored to the cache; if the durable store is
    down the cache copy is the only one.
    """

    def __init__(
        self,
        cache: JsonFileMappingRepository,
        durable: MappingRepository | None = None,
    ):
        self.cache = cache
        self.durable = durable

    def _refresh_cache(self, records: list[MappingRecord]) -> None:
        try:
            self.cache.replace_all(records)
        except OSError as e:
            logger.warning(f"Could not refresh mapping cache: {e}")

    def list(self) -> list[MappingRecord]:
        if self.durable is not None:
            try:
                records = self.durable.list()
            except BackingStoreUnavailable as e:
                logger.warning(f"{e}; reading mappings from local cache")
            else:
                self._refresh_cache(records)
                return records
        return self.cache.list()

    def get(self, mapping_id: str) -> MappingRecord | None:
        if self.durable is not None:
            try:
                return self.durable.get(mapping_id)
            except BackingStoreUnavailable as e:
                logger.warning(f"{e}; reading mapping {mapping_id} from local cache")
        return self.cache.get(mapping_id)

    def put(self, record: MappingRecord) -> MappingRecord:
        persisted = False
        if self.durable is not None:
            try:
                self.durable.put(record)
                persisted = True
            except BackingStoreUnavailable as e:
                logger.warning(f"{e}; mapping {record.id} kept in local cache only")

        try:
            self.cache.put(record)
        except OSError as e:
            if not persisted:
                logger.error(f"Mapping {record.id} could not be persisted anywhere: {e}")
                raise InternalError(
                    "Mapping could not be saved",
                    details={"mapping_id": record.id},
                ) from e
            logger.warning(f"Could not mirror mapping {record.id} to local cache: {e}")
        return record
