"""File parsing utilities that convert student export files into a
normalized row list for batch writes.

Supported input types: JSON and CSV. Parsers return a list of
dictionaries with keys `id`, `name`, `age` and `email`. Values are not
validated here; the service validates each row during the batch write.
"""

import io
import json
import csv
from typing import List, Dict, Optional


def parse_student_rows(file_bytes: bytes, filename: str) -> List[Dict]:
    """Dispatch to the appropriate parser based on file extension."""
    name = filename.lower()
    if name.endswith('.json'):
        return parse_json(file_bytes)
    if name.endswith('.csv'):
        return parse_csv(file_bytes)
    raise ValueError('Unsupported file type')


def parse_json(b: bytes):
    """Parse a JSON array of student objects, or `{"students": [...]}`."""
    data = json.loads(b.decode('utf-8-sig'))
    if isinstance(data, dict):
        data = data.get('students', [])
    if not isinstance(data, list):
        raise ValueError('expected a JSON array of students')
    return [normalize_row(item) for item in data if isinstance(item, dict)]


def parse_csv(b: bytes):
    """Parse a CSV with a header row.

    Expected columns: `name`, `age`, `email` and an optional `id`
    (rows with an id update an existing student).
    """
    sio = io.StringIO(b.decode('utf-8-sig'))
    reader = csv.DictReader(sio)
    return [normalize_row(row) for row in reader]


def normalize_row(item: Dict) -> Dict:
    """Return a row dict with stripped strings and integer-coerced numbers."""
    return {
        'id': _coerce_int(item.get('id')),
        'name': _strip(item.get('name')),
        'age': _coerce_int(item.get('age')),
        'email': _strip(item.get('email')),
    }


def _strip(value) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip()


def _coerce_int(value) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None
