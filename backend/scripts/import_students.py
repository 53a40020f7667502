"""CLI script to bulk import students from a CSV or JSON file.
Usage: python scripts/import_students.py students.csv [--skip-invalid]
"""
import argparse
import pathlib
from sqlmodel import Session
from student_records.config import settings
from student_records.database import engine, create_db_and_tables
from student_records import models, repositories, services
from student_records.utils.parsers import parse_student_rows


def main(path: pathlib.Path, skip_invalid: bool = False) -> int:
    """Parse `path` and submit its rows as one batch write.

    Rows with an `id` update existing students, the rest are created.
    Results are printed to stdout for a quick CLI feedback loop. Returns
    a process exit code.
    """
    if not path.exists():
        print(f'File not found: {path}')
        return 1
    try:
        rows = parse_student_rows(path.read_bytes(), path.name)
    except ValueError as e:
        print(f'Could not parse {path}: {e}')
        return 1
    students = [models.Student(id=r['id'], name=r['name'], age=r['age'], email=r['email']) for r in rows]
    create_db_and_tables()
    with Session(engine) as session:
        svc = services.StudentService(
            repositories.StudentRepository(session),
            submit_invalid_batch_rows=settings.BATCH_SUBMIT_INVALID and not skip_invalid,
        )
        outcome = svc.batch_write(students)
    if not outcome.ok:
        print(f'Import failed: {outcome.message}')
        return 1
    report = outcome.value
    for err in report.validation_errors:
        print(f"Row {err['index']}: invalid {err['field']} ({err['error']})")
    written = sum(1 for r in report.rows if r.ok)
    for r in report.rows:
        if not r.ok:
            print(f'Row {r.index}: not written ({r.error})')
    print(f'Parsed {len(rows)} rows, submitted {report.submitted}, written {written}, invalid {len(report.validation_errors)}')
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('path', type=pathlib.Path, help='CSV or JSON file with name, age, email columns')
    parser.add_argument('--skip-invalid', action='store_true', help='Do not submit rows that fail validation')
    args = parser.parse_args()
    raise SystemExit(main(args.path, skip_invalid=args.skip_invalid))
