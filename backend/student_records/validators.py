"""Field validation for incoming student data.

Every check returns `True` when the value is acceptable and raises
`ValidationError` otherwise. Values coming from HTTP forms and path
parameters are strings, so numeric fields accept either an `int` or a
string of digits.
"""

import re
from typing import Any, Optional

from .exceptions import ValidationError

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}")
_DIGITS_RE = re.compile(r"[0-9]+")
# largest value a signed 64-bit INTEGER column can hold
MAX_INT = 2 ** 63 - 1


def _positive_int(field: str, value: Any) -> int:
    # bool is an int subclass; True must not pass as 1
    if isinstance(value, bool):
        raise ValidationError(field, "must be a positive integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _DIGITS_RE.fullmatch(value):
        if len(value.lstrip("0")) > len(str(MAX_INT)):
            raise ValidationError(field, "is too large")
        number = int(value)
    else:
        raise ValidationError(field, "must be a positive integer")
    if number <= 0:
        raise ValidationError(field, "must be a positive integer")
    if number > MAX_INT:
        raise ValidationError(field, "is too large")
    return number


def validate_id(value: Any) -> bool:
    """Return True if `value` is (or parses as) a positive integer id."""
    _positive_int("id", value)
    return True


def validate_name(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("name", "must not be empty")
    return True


def validate_age(value: Any) -> bool:
    _positive_int("age", value)
    return True


def validate_email(value: Any) -> bool:
    if not isinstance(value, str) or not EMAIL_RE.fullmatch(value):
        raise ValidationError("email", "must be a valid email address")
    return True


def validate_student(name: Any, age: Any, email: Any, student_id: Optional[Any] = None) -> bool:
    """Validate a full student payload.

    The id comes last, as an optional keyword, rather than first as in
    the `(id, name, age, email)` order of the record itself: it is
    omitted when validating data for a new record and, when given, must
    be a valid id as well. Fields are checked id first, then name, age
    and email; the first failing field raises.
    """
    if student_id is not None:
        validate_id(student_id)
    validate_name(name)
    validate_age(age)
    validate_email(email)
    return True
