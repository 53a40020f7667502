"""Business logic for student records.

`StudentService` is the only entry point used by HTTP controllers and
scripts. It validates input, delegates to a `StudentStore` and turns
every domain failure into an `Outcome`, so no validation or store error
escapes to the caller. Store failures are logged and reported; nothing
is retried.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from . import models, validators
from .exceptions import (
    EmptyBatchError,
    EmptyPayloadError,
    NotFoundError,
    StudentRecordsError,
    ValidationError,
)
from .images import LazyImage
from .repositories import BatchRowResult, StudentStore

logger = logging.getLogger("student_records.service")


class OutcomeStatus(str, enum.Enum):
    OK = "ok"
    CREATED = "created"
    NO_CONTENT = "no_content"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    EMPTY_PAYLOAD = "empty_payload"
    EMPTY_BATCH = "empty_batch"
    FAILED = "failed"


_SUCCESS = {OutcomeStatus.OK, OutcomeStatus.CREATED, OutcomeStatus.NO_CONTENT}


@dataclass
class Outcome:
    """Result of a service call; the transport decides status codes."""
    status: OutcomeStatus
    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status in _SUCCESS

    @property
    def message(self) -> str:
        if self.error is None:
            return ""
        return str(self.error) or self.error.__class__.__name__


@dataclass
class BatchReport:
    """Summary of a batch write.

    `validation_errors` holds one `{index, field, error}` dict per
    element that failed validation; `rows` holds the store's per-row
    results, indexed against the original input.
    """
    submitted: int
    validation_errors: List[dict] = field(default_factory=list)
    rows: List[BatchRowResult] = field(default_factory=list)


class StudentService:
    """Validate-then-persist operations for students and their images."""
    def __init__(self, store: StudentStore, submit_invalid_batch_rows: bool = True):
        self.store = store
        self.submit_invalid_batch_rows = submit_invalid_batch_rows

    def _failure(self, action: str, exc: StudentRecordsError) -> Outcome:
        """Log `exc` and convert it to the matching failure outcome."""
        if isinstance(exc, EmptyBatchError):
            logger.warning("%s rejected: %s", action, exc)
            return Outcome(OutcomeStatus.EMPTY_BATCH, error=exc)
        if isinstance(exc, EmptyPayloadError):
            logger.warning("%s rejected: %s", action, exc)
            return Outcome(OutcomeStatus.EMPTY_PAYLOAD, error=exc)
        if isinstance(exc, ValidationError):
            logger.warning("%s rejected: %s", action, exc)
            return Outcome(OutcomeStatus.INVALID, error=exc)
        if isinstance(exc, NotFoundError):
            logger.info("%s: %s", action, exc)
            return Outcome(OutcomeStatus.NOT_FOUND, error=exc)
        logger.error("%s failed: %s", action, exc, exc_info=exc)
        return Outcome(OutcomeStatus.FAILED, error=exc)

    def create(self, name, age, email, image: Optional[bytes] = None) -> Outcome:
        """Validate and persist a new student.

        Non-empty `image` bytes are stored with the record. Invalid input
        leaves the store untouched.
        """
        try:
            validators.validate_student(name, age, email)
            student = models.Student(name=name, age=int(age), email=email, image=image or None)
            self.store.create(student)
        except StudentRecordsError as exc:
            return self._failure("create", exc)
        return Outcome(OutcomeStatus.CREATED, student)

    def get_by_id(self, student_id) -> Outcome:
        try:
            validators.validate_id(student_id)
            student = self.store.get(int(student_id))
        except StudentRecordsError as exc:
            return self._failure("get_by_id", exc)
        if student is None:
            return self._failure("get_by_id", NotFoundError(student_id))
        return Outcome(OutcomeStatus.OK, student)

    def get_by_name(self, name) -> Outcome:
        try:
            validators.validate_name(name)
            student = self.store.get_by_name(name)
        except StudentRecordsError as exc:
            return self._failure("get_by_name", exc)
        if student is None:
            return self._failure("get_by_name", NotFoundError(name))
        return Outcome(OutcomeStatus.OK, student)

    def update(self, student_id, name, age, email, image: Optional[bytes] = None) -> Outcome:
        """Overwrite name, age and email of an existing student.

        When non-empty `image` bytes are supplied they are written through
        the separate image path after the record update succeeds.
        """
        try:
            validators.validate_id(student_id)
            validators.validate_student(name, age, email)
            changes = models.Student(id=int(student_id), name=name, age=int(age), email=email)
            student = self.store.update(changes)
            if image:
                self.store.set_image(int(student_id), image)
        except StudentRecordsError as exc:
            return self._failure("update", exc)
        return Outcome(OutcomeStatus.OK, student)

    def delete(self, student_id) -> Outcome:
        try:
            validators.validate_id(student_id)
            self.store.delete(int(student_id))
        except StudentRecordsError as exc:
            return self._failure("delete", exc)
        return Outcome(OutcomeStatus.OK)

    def image_handle(self, student_id) -> LazyImage:
        """Return an unresolved image handle; no store access happens here."""
        validators.validate_id(student_id)
        return LazyImage(int(student_id), self.store)

    def get_image(self, student_id) -> Outcome:
        """Fetch the image bytes for a student.

        Returns OK with the bytes, NO_CONTENT when the student has no
        image, or a failure outcome when validation or the fetch fails.
        """
        try:
            payload = self.image_handle(student_id).resolve()
        except StudentRecordsError as exc:
            return self._failure("get_image", exc)
        if payload is None:
            return Outcome(OutcomeStatus.NO_CONTENT)
        return Outcome(OutcomeStatus.OK, payload)

    def set_image(self, student_id, payload: Optional[bytes]) -> Outcome:
        try:
            validators.validate_id(student_id)
            if not payload:
                raise EmptyPayloadError("no image found")
            self.store.set_image(int(student_id), payload)
        except StudentRecordsError as exc:
            return self._failure("set_image", exc)
        return Outcome(OutcomeStatus.OK)

    def list_all(self) -> Outcome:
        try:
            students = self.store.list_all()
        except StudentRecordsError as exc:
            return self._failure("list_all", exc)
        return Outcome(OutcomeStatus.OK, students)

    def batch_write(self, students: Optional[Sequence[models.Student]]) -> Outcome:
        """Validate each element, then hand the batch to the store.

        Validation failures are logged and reported per element without
        stopping the batch. By default every element is submitted,
        including the invalid ones; with `submit_invalid_batch_rows`
        disabled only the valid elements reach the store.
        """
        students = list(students or [])
        if not students:
            return self._failure("batch_write", EmptyBatchError())

        validation_errors = []
        positions = []
        for index, student in enumerate(students):
            try:
                validators.validate_student(student.name, student.age, student.email, student_id=student.id)
            except ValidationError as exc:
                logger.warning("batch element %d invalid: %s", index, exc)
                validation_errors.append({'index': index, 'field': exc.field, 'error': exc.reason})
                if not self.submit_invalid_batch_rows:
                    continue
            positions.append(index)

        to_submit = [students[i] for i in positions]
        try:
            rows = self.store.execute_batch(to_submit) if to_submit else []
        except StudentRecordsError as exc:
            return self._failure("batch_write", exc)
        # store results are indexed against the submitted subset
        for row in rows:
            row.index = positions[row.index]
        report = BatchReport(submitted=len(to_submit), validation_errors=validation_errors, rows=rows)
        return Outcome(OutcomeStatus.OK, report)
