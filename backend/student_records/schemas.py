"""Pydantic request schemas used by the API.

Batch items are deliberately loose: every field is optional so that
incomplete rows reach the service, where they are validated and
reported per element instead of rejecting the whole request.
"""

from pydantic import BaseModel
from typing import List, Optional


class StudentBatchItem(BaseModel):
    """A single row of a batch write. Rows with an `id` update, rows without create."""
    id: Optional[int] = None
    name: Optional[str] = None
    age: Optional[int] = None
    email: Optional[str] = None


class StudentBatch(BaseModel):
    """Request body for the batch endpoint."""
    students: List[StudentBatchItem]
