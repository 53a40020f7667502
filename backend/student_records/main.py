"""FastAPI application entrypoint and HTTP controllers.

Controllers are intentionally thin: they read request data, call
`StudentService` and translate its `Outcome` into an HTTP response.
Ids are taken from the path as raw strings so that the service's
validators decide what a valid id is.

Endpoints implemented:
- POST /students
- GET /students
- PUT /students
- GET /students/name/{name}
- GET /students/{student_id}
- PUT /students/{student_id}
- DELETE /students/{student_id}
- GET /students/{student_id}/image
- PUT /students/{student_id}/image
- GET /health
"""

from dataclasses import asdict
from typing import Optional

from fastapi import FastAPI, Depends, UploadFile, File, HTTPException, Form, Request
from fastapi.responses import Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import services, repositories, models
from .images import decode_image_payload
from .schemas import StudentBatch
from .services import OutcomeStatus
from .utils.media import guess_image_media_type
from .config import settings

app = FastAPI(title="Student Records API")
logger = logging.getLogger("student_records.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Wide-open CORS keeps local HTML testers working without extra config in dev.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()

_STATUS_CODES = {
    OutcomeStatus.INVALID: 400,
    OutcomeStatus.EMPTY_PAYLOAD: 400,
    OutcomeStatus.EMPTY_BATCH: 400,
    OutcomeStatus.NOT_FOUND: 404,
    OutcomeStatus.FAILED: 500,
}


def _log_fields(request: Request, started: float, status_code: Optional[int] = None) -> str:
    fields = {
        "request_id": request.state.request_id,
        "method": request.method,
        "path": request.url.path,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
    }
    if status_code is not None:
        fields["status_code"] = status_code
    return json.dumps(fields, ensure_ascii=True)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request.state.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("request_failed %s", _log_fields(request, started))
        raise
    response.headers["X-Request-ID"] = request.state.request_id
    logger.info("request_done %s", _log_fields(request, started, response.status_code))
    return response


def get_student_service(db: Session = Depends(get_session)) -> services.StudentService:
    """Build a request-scoped service around a repository for `db`."""
    return services.StudentService(
        repositories.StudentRepository(db),
        submit_invalid_batch_rows=settings.BATCH_SUBMIT_INVALID,
    )


def _raise_for_outcome(outcome: services.Outcome) -> None:
    if not outcome.ok:
        raise HTTPException(status_code=_STATUS_CODES[outcome.status], detail=outcome.message)


def _student_payload(student: models.Student) -> dict:
    return {
        'id': student.id,
        'name': student.name,
        'age': student.age,
        'email': student.email,
        'image_url': f'/students/{student.id}/image',
    }


def _read_image(upload: Optional[UploadFile]) -> Optional[bytes]:
    """Read an uploaded image as raw bytes, enforcing the upload size limit."""
    if upload is None:
        return None
    payload = decode_image_payload(upload.file, max_bytes=settings.MAX_UPLOAD_BYTES)
    if payload is not None and len(payload) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail='image too large')
    return payload


@app.post('/students', status_code=201)
def create_student(
    name: str = Form(default=''),
    age: str = Form(default=''),
    email: str = Form(default=''),
    image: Optional[UploadFile] = File(default=None),
    svc: services.StudentService = Depends(get_student_service),
):
    """Create a student from multipart form fields and an optional image."""
    outcome = svc.create(name, age, email, _read_image(image))
    _raise_for_outcome(outcome)
    return _student_payload(outcome.value)


@app.get('/students')
def list_students(svc: services.StudentService = Depends(get_student_service)):
    """List every student ordered by id. Image bytes are never included."""
    outcome = svc.list_all()
    _raise_for_outcome(outcome)
    return [_student_payload(s) for s in outcome.value]


@app.put('/students')
def batch_update(batch: StudentBatch, svc: services.StudentService = Depends(get_student_service)):
    """Create or update many students in one request.

    Rows without an `id` are created, rows with one are updated. The
    response lists per-row validation errors and store results; an empty
    `students` list is rejected with 400.
    """
    students = [models.Student(id=item.id, name=item.name, age=item.age, email=item.email) for item in batch.students]
    outcome = svc.batch_write(students)
    _raise_for_outcome(outcome)
    return asdict(outcome.value)


@app.get('/students/name/{name}')
def get_student_by_name(name: str, svc: services.StudentService = Depends(get_student_service)):
    outcome = svc.get_by_name(name)
    _raise_for_outcome(outcome)
    return _student_payload(outcome.value)


@app.get('/students/{student_id}')
def get_student(student_id: str, svc: services.StudentService = Depends(get_student_service)):
    outcome = svc.get_by_id(student_id)
    _raise_for_outcome(outcome)
    return _student_payload(outcome.value)


@app.put('/students/{student_id}')
def update_student(
    student_id: str,
    name: str = Form(default=''),
    age: str = Form(default=''),
    email: str = Form(default=''),
    image: Optional[UploadFile] = File(default=None),
    svc: services.StudentService = Depends(get_student_service),
):
    """Overwrite a student's fields; a supplied image replaces the stored one."""
    outcome = svc.update(student_id, name, age, email, _read_image(image))
    _raise_for_outcome(outcome)
    return _student_payload(outcome.value)


@app.delete('/students/{student_id}', status_code=204)
def delete_student(student_id: str, svc: services.StudentService = Depends(get_student_service)):
    outcome = svc.delete(student_id)
    _raise_for_outcome(outcome)
    return Response(status_code=204)


@app.get('/students/{student_id}/image')
def get_student_image(student_id: str, svc: services.StudentService = Depends(get_student_service)):
    """Return the stored image bytes, or 204 when the student has none."""
    outcome = svc.get_image(student_id)
    _raise_for_outcome(outcome)
    if outcome.status is OutcomeStatus.NO_CONTENT:
        return Response(status_code=204)
    return Response(content=outcome.value, media_type=guess_image_media_type(outcome.value))


@app.put('/students/{student_id}/image', status_code=204)
def set_student_image(
    student_id: str,
    image: UploadFile = File(...),
    svc: services.StudentService = Depends(get_student_service),
):
    """Replace a student's image. An empty upload is rejected with 400."""
    outcome = svc.set_image(student_id, _read_image(image))
    _raise_for_outcome(outcome)
    return Response(status_code=204)


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
