"""Domain error types shared by validators, repositories and services.

Validation errors are raised before any I/O happens; store errors wrap
failures coming out of the persistence layer. The service layer catches
all of them and converts them into `Outcome` values.
"""


class StudentRecordsError(Exception):
    """Base class for every error raised by the student records core."""


class ValidationError(StudentRecordsError):
    """Malformed or missing input detected before touching the store.

    `field` names the offending input and `reason` is a human readable
    explanation suitable for returning to API clients.
    """
    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class EmptyPayloadError(ValidationError):
    """A zero-length image write was attempted."""
    def __init__(self, reason: str = "image payload is empty"):
        super().__init__("image", reason)


class EmptyBatchError(ValidationError):
    """A batch write was submitted with no elements."""
    def __init__(self, reason: str = "batch update can not be empty"):
        super().__init__("batch", reason)


class StoreError(StudentRecordsError):
    """Connectivity or constraint failure reported by the persistence layer."""


class NotFoundError(StoreError):
    """The lookup key has no matching student record."""
    def __init__(self, key):
        super().__init__(f"student not found: {key}")
        self.key = key
