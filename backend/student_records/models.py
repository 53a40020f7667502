"""SQLModel data models.

The backend manages a single table of students. The optional image is
stored in the same row as a binary column.
"""

from typing import Optional
from sqlalchemy import Column, LargeBinary
from sqlmodel import SQLModel, Field


class Student(SQLModel, table=True):
    """A student record.

    Fields:
    - `id`: primary key assigned by the database on insert
    - `name`: display name, used for lookups by name
    - `age`: positive age in years
    - `email`: contact address
    - `image`: optional raw image bytes (never text-decoded)
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False)
    age: int = Field(nullable=False)
    email: str = Field(nullable=False)
    image: Optional[bytes] = Field(default=None, sa_column=Column(LargeBinary, nullable=True))
