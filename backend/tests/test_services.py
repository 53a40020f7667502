from student_records import models
from student_records.exceptions import EmptyPayloadError, NotFoundError, StoreError, ValidationError
from student_records.repositories import BatchRowResult
from student_records.services import OutcomeStatus, StudentService


class FakeStore:
    """In-memory stand-in for `StudentRepository` that records every call."""

    def __init__(self):
        self.rows = {}
        self.next_id = 1
        self.calls = []

    def create(self, student):
        self.calls.append(('create', student))
        student.id = self.next_id
        self.next_id += 1
        self.rows[student.id] = student
        return student.id

    def get(self, student_id):
        self.calls.append(('get', student_id))
        return self.rows.get(student_id)

    def get_by_name(self, name):
        self.calls.append(('get_by_name', name))
        return next((s for s in self.rows.values() if s.name == name), None)

    def update(self, student):
        self.calls.append(('update', student))
        existing = self.rows.get(student.id)
        if existing is None:
            raise NotFoundError(student.id)
        existing.name, existing.age, existing.email = student.name, student.age, student.email
        return existing

    def delete(self, student_id):
        self.calls.append(('delete', student_id))
        if self.rows.pop(student_id, None) is None:
            raise NotFoundError(student_id)

    def list_all(self):
        self.calls.append(('list_all', None))
        return [self.rows[k] for k in sorted(self.rows)]

    def execute_batch(self, students):
        self.calls.append(('execute_batch', list(students)))
        return [BatchRowResult(index=i, student_id=s.id, ok=True) for i, s in enumerate(students)]

    def get_image(self, student_id):
        self.calls.append(('get_image', student_id))
        if student_id not in self.rows:
            raise NotFoundError(student_id)
        return self.rows[student_id].image

    def set_image(self, student_id, payload):
        self.calls.append(('set_image', student_id))
        if not payload:
            raise EmptyPayloadError()
        if student_id not in self.rows:
            raise NotFoundError(student_id)
        self.rows[student_id].image = payload


class BrokenStore(FakeStore):
    def get_image(self, student_id):
        raise StoreError("database is locked")

    def list_all(self):
        raise StoreError("database is locked")

    def create(self, student):
        raise StoreError("UNIQUE constraint failed")


def _names(calls):
    return [c[0] for c in calls]


def test_create_then_get_by_id_round_trips_fields():
    store = FakeStore()
    svc = StudentService(store)
    created = svc.create(name="Ann", age=21, email="a@b.com", image=None)
    assert created.status is OutcomeStatus.CREATED
    assert created.value.id == 1

    found = svc.get_by_id(1)
    assert found.ok
    s = found.value
    assert (s.id, s.name, s.age, s.email, s.image) == (1, "Ann", 21, "a@b.com", None)


def test_create_accepts_form_strings_and_image():
    store = FakeStore()
    svc = StudentService(store)
    outcome = svc.create("Bob", "30", "bob@example.com", b"\xff\xd8\xff")
    assert outcome.ok
    assert store.rows[1].age == 30
    assert store.rows[1].image == b"\xff\xd8\xff"


def test_invalid_create_is_a_no_op():
    store = FakeStore()
    outcome = StudentService(store).create("", 21, "a@b.com")
    assert outcome.status is OutcomeStatus.INVALID
    assert isinstance(outcome.error, ValidationError)
    assert outcome.error.field == "name"
    assert store.calls == []


def test_non_numeric_id_is_rejected_without_store_call():
    store = FakeStore()
    outcome = StudentService(store).get_by_id("abc")
    assert outcome.status is OutcomeStatus.INVALID
    assert isinstance(outcome.error, ValidationError)
    assert store.calls == []


def test_unknown_ids_report_not_found():
    svc = StudentService(FakeStore())
    assert svc.get_by_id(99).status is OutcomeStatus.NOT_FOUND
    assert svc.update(99, "Ann", 21, "a@b.com").status is OutcomeStatus.NOT_FOUND
    assert svc.delete("99").status is OutcomeStatus.NOT_FOUND
    assert svc.get_by_name("Nobody").status is OutcomeStatus.NOT_FOUND


def test_update_and_delete_existing_student():
    store = FakeStore()
    svc = StudentService(store)
    svc.create("Ann", 21, "a@b.com")
    updated = svc.update("1", "Anna", "22", "anna@b.com", b"img")
    assert updated.ok
    assert (updated.value.name, updated.value.age) == ("Anna", 22)
    assert store.rows[1].image == b"img"
    assert _names(store.calls)[-2:] == ['update', 'set_image']

    assert svc.delete(1).status is OutcomeStatus.OK
    assert svc.get_by_id(1).status is OutcomeStatus.NOT_FOUND


def test_update_without_image_skips_image_write():
    store = FakeStore()
    svc = StudentService(store)
    svc.create("Ann", 21, "a@b.com", b"keep")
    assert svc.update(1, "Ann", 21, "a@b.com").ok
    assert 'set_image' not in _names(store.calls)
    assert store.rows[1].image == b"keep"


def test_set_image_rejects_empty_payload():
    store = FakeStore()
    svc = StudentService(store)
    svc.create("Ann", 21, "a@b.com")
    for payload in (b"", None):
        outcome = svc.set_image(1, payload)
        assert outcome.status is OutcomeStatus.EMPTY_PAYLOAD
    assert 'set_image' not in _names(store.calls)


def test_set_image_then_get_image_returns_same_bytes():
    svc = StudentService(FakeStore())
    svc.create("Ann", 21, "a@b.com")
    payload = bytes(range(256))
    assert svc.set_image("1", payload).ok
    outcome = svc.get_image("1")
    assert outcome.status is OutcomeStatus.OK
    assert outcome.value == payload


def test_get_image_without_stored_image_is_no_content():
    svc = StudentService(FakeStore())
    svc.create("Ann", 21, "a@b.com")
    outcome = svc.get_image(1)
    assert outcome.status is OutcomeStatus.NO_CONTENT
    assert outcome.ok
    assert outcome.value is None


def test_get_image_store_failure_is_failed_not_no_content():
    outcome = StudentService(BrokenStore()).get_image(1)
    assert outcome.status is OutcomeStatus.FAILED
    assert "locked" in outcome.message


def test_get_image_uses_a_fresh_handle_per_request():
    store = FakeStore()
    svc = StudentService(store)
    svc.create("Ann", 21, "a@b.com", b"x")
    svc.get_image(1)
    svc.get_image(1)
    assert _names(store.calls).count('get_image') == 2


def test_image_handle_is_lazy():
    store = FakeStore()
    svc = StudentService(store)
    svc.create("Ann", 21, "a@b.com", b"x")
    handle = svc.image_handle("1")
    assert 'get_image' not in _names(store.calls)
    assert handle.resolve() == b"x"


def test_store_failures_become_failed_outcomes():
    svc = StudentService(BrokenStore())
    assert svc.list_all().status is OutcomeStatus.FAILED
    assert svc.create("Ann", 21, "a@b.com").status is OutcomeStatus.FAILED


def test_list_all_may_be_empty():
    outcome = StudentService(FakeStore()).list_all()
    assert outcome.ok
    assert outcome.value == []


def test_empty_batch_is_rejected_without_store_calls():
    store = FakeStore()
    svc = StudentService(store)
    assert svc.batch_write([]).status is OutcomeStatus.EMPTY_BATCH
    assert svc.batch_write(None).status is OutcomeStatus.EMPTY_BATCH
    assert store.calls == []


def test_batch_submits_invalid_rows_but_reports_them():
    store = FakeStore()
    valid = models.Student(name="Ann", age=21, email="a@b.com")
    invalid = models.Student(name="Bob", age=-4, email="bob@b.com")
    outcome = StudentService(store).batch_write([valid, invalid])
    assert outcome.status is OutcomeStatus.OK
    report = outcome.value
    submitted = store.calls[-1]
    assert submitted[0] == 'execute_batch'
    assert submitted[1] == [valid, invalid]
    assert report.submitted == 2
    assert report.validation_errors == [{'index': 1, 'field': 'age', 'error': 'must be a positive integer'}]


def test_batch_can_skip_invalid_rows():
    store = FakeStore()
    rows = [
        models.Student(name="", age=21, email="a@b.com"),
        models.Student(name="Cid", age=40, email="cid@b.com"),
    ]
    outcome = StudentService(store, submit_invalid_batch_rows=False).batch_write(rows)
    report = outcome.value
    assert store.calls[-1][1] == [rows[1]]
    assert report.submitted == 1
    assert [r.index for r in report.rows] == [1]
    assert report.validation_errors[0]['index'] == 0


def test_batch_with_only_invalid_rows_skipped_makes_no_store_call():
    store = FakeStore()
    outcome = StudentService(store, submit_invalid_batch_rows=False).batch_write(
        [models.Student(name="", age=1, email="a@b.com")]
    )
    assert outcome.ok
    assert outcome.value.submitted == 0
    assert store.calls == []
