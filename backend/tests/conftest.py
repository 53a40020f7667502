import os
import tempfile
from pathlib import Path

import pytest

# Point the app at a throwaway SQLite file before any app module is imported.
_TMP_DIR = Path(tempfile.mkdtemp(prefix="student-records-tests-"))
os.environ["ENV"] = "dev"
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"

from sqlmodel import SQLModel, Session  # noqa: E402

from student_records import models  # noqa: E402,F401
from student_records.database import engine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db():
    """Recreate empty tables for every test."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s
