"""Persistence boundary for student records.

`StudentStore` describes what the service layer needs from storage;
`StudentRepository` implements it on top of a SQLModel `Session`.
Repositories commit their own writes. Any SQLAlchemy failure, or a
driver OverflowError for an out-of-range integer, is rolled back and
re-raised as `StoreError`, so callers only ever see the error types
from `exceptions`.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import defer
from sqlmodel import Session, select

from . import models
from .exceptions import EmptyPayloadError, NotFoundError, StoreError

logger = logging.getLogger("student_records.store")


@dataclass
class BatchRowResult:
    """Outcome of writing a single row during `execute_batch`."""
    index: int
    student_id: Optional[int]
    ok: bool
    error: Optional[str] = None


class StudentStore(Protocol):
    """Operations the service layer relies on."""

    def create(self, student: models.Student) -> int: ...

    def get(self, student_id: int) -> Optional[models.Student]: ...

    def get_by_name(self, name: str) -> Optional[models.Student]: ...

    def update(self, student: models.Student) -> models.Student: ...

    def delete(self, student_id: int) -> None: ...

    def list_all(self) -> List[models.Student]: ...

    def execute_batch(self, students: Sequence[models.Student]) -> List[BatchRowResult]: ...

    def get_image(self, student_id: int) -> Optional[bytes]: ...

    def set_image(self, student_id: int, payload: bytes) -> None: ...


class StudentRepository:
    """CRUD, batch and image operations for `Student` rows."""
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _store_errors(self, action: str):
        try:
            yield
        # the sqlite3 driver raises OverflowError itself for out-of-range integers
        except (SQLAlchemyError, OverflowError) as exc:
            self.session.rollback()
            raise StoreError(f"{action} failed: {exc}") from exc

    def _get_without_image(self, student_id: int) -> Optional[models.Student]:
        stmt = select(models.Student).options(defer(models.Student.image)).where(models.Student.id == student_id)
        return self.session.exec(stmt).first()

    def create(self, student: models.Student) -> int:
        """Persist a new student and return the id assigned by the database."""
        with self._store_errors("create"):
            self.session.add(student)
            self.session.commit()
            self.session.refresh(student)
        return student.id

    def get(self, student_id: int) -> Optional[models.Student]:
        """Get a `Student` by primary key, image included."""
        with self._store_errors("get"):
            return self.session.get(models.Student, student_id)

    def get_by_name(self, name: str) -> Optional[models.Student]:
        """Return the first `Student` (lowest id) with exactly this name."""
        stmt = select(models.Student).where(models.Student.name == name).order_by(models.Student.id)
        with self._store_errors("get_by_name"):
            return self.session.exec(stmt).first()

    def update(self, student: models.Student) -> models.Student:
        """Overwrite name, age and email of an existing row.

        The stored image is not touched; image writes go through
        `set_image`.
        """
        with self._store_errors("update"):
            existing = self._get_without_image(student.id)
            if existing is None:
                raise NotFoundError(student.id)
            existing.name = student.name
            existing.age = student.age
            existing.email = student.email
            self.session.add(existing)
            self.session.commit()
            self.session.refresh(existing)
        return existing

    def delete(self, student_id: int) -> None:
        with self._store_errors("delete"):
            existing = self._get_without_image(student_id)
            if existing is None:
                raise NotFoundError(student_id)
            self.session.delete(existing)
            self.session.commit()

    def list_all(self) -> List[models.Student]:
        """Return every student ordered by id.

        The image column is deferred so listing never pulls binary
        payloads out of the database.
        """
        stmt = select(models.Student).options(defer(models.Student.image)).order_by(models.Student.id)
        with self._store_errors("list_all"):
            return list(self.session.exec(stmt).all())

    def execute_batch(self, students: Sequence[models.Student]) -> List[BatchRowResult]:
        """Create rows without an id and update rows that carry one.

        Each row is committed on its own. A failing row is rolled back
        and reported in the result list; the remaining rows are still
        attempted.
        """
        results = []
        for index, student in enumerate(students):
            try:
                results.append(self._write_batch_row(index, student))
            except StoreError as exc:
                logger.warning("batch row %d failed: %s", index, exc)
                results.append(BatchRowResult(index=index, student_id=student.id, ok=False, error=str(exc)))
        return results

    def _write_batch_row(self, index: int, student: models.Student) -> BatchRowResult:
        if student.id is None:
            new_id = self.create(student)
            return BatchRowResult(index=index, student_id=new_id, ok=True)
        try:
            self.update(student)
        except NotFoundError as exc:
            return BatchRowResult(index=index, student_id=student.id, ok=False, error=str(exc))
        return BatchRowResult(index=index, student_id=student.id, ok=True)

    def get_image(self, student_id: int) -> Optional[bytes]:
        """Fetch only the image column for `student_id`.

        Returns `None` when the student exists but has no image and
        raises `NotFoundError` when the student does not exist.
        """
        stmt = select(models.Student.id, models.Student.image).where(models.Student.id == student_id)
        with self._store_errors("get_image"):
            row = self.session.exec(stmt).first()
        if row is None:
            raise NotFoundError(student_id)
        return row[1]

    def set_image(self, student_id: int, payload: bytes) -> None:
        if not payload:
            raise EmptyPayloadError()
        with self._store_errors("set_image"):
            existing = self._get_without_image(student_id)
            if existing is None:
                raise NotFoundError(student_id)
            existing.image = payload
            self.session.add(existing)
            self.session.commit()
