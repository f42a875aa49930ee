import logging
import os
import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from schooling.constants import (
    ALLOWED_UPLOAD_CONTENT_TYPES,
    ALLOWED_UPLOAD_EXTENSIONS,
    STUDENT_DATA_DIR,
)
from schooling.exceptions import ImportFileError
from schooling.models import (
    ExtraStatus,
    Gender,
    School,
    SchoolClass,
    Student,
    StudentImportLog,
    StudentType,
)
from schooling.services.normalizers import (
    clean_text,
    normalize_date,
    normalize_gender,
    normalize_phone,
    parse_iso_date,
    phone_digits,
)
from schooling.services.results import RowFailure, partition_results
from schooling.utils.csv_parser import parse_student_csv
from schooling.utils.file_definitions import STUDENT_FIELDS

logger = logging.getLogger(__name__)

# Reported row numbers are 1-based and skip the header line.
HEADER_ROW_OFFSET = 2


# --------------------------------------------------------------------------
# Row records
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class StudentFields:
    """The known columns of an upload row. None means the column was absent."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    parent_name: Optional[str] = None
    parent_contact: Optional[str] = None

    @classmethod
    def from_mapping(cls, record: Dict[str, Any]) -> "StudentFields":
        values = {}
        for name in STUDENT_FIELDS:
            value = record.get(name)
            values[name] = None if value is None else str(value)
        return cls(**values)

    def as_dict(self, *, skip_missing: bool = False) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if skip_missing:
            return {key: value for key, value in data.items() if value is not None}
        return data


@dataclass
class ImportRow:
    row: int
    original: StudentFields
    normalized: StudentFields
    errors: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_payload(self) -> Dict[str, Any]:
        original = self.original.as_dict(skip_missing=True)
        original.update(self.extra)
        return {
            "row": self.row,
            "original": original,
            "normalized": self.normalized.as_dict(),
            "errors": list(self.errors),
            "isValid": self.is_valid,
        }


def normalize_student_fields(raw: StudentFields) -> StudentFields:
    return StudentFields(
        first_name=clean_text(raw.first_name),
        last_name=clean_text(raw.last_name),
        date_of_birth=normalize_date(raw.date_of_birth) or "",
        gender=normalize_gender(raw.gender),
        parent_name=clean_text(raw.parent_name),
        parent_contact=normalize_phone(raw.parent_contact),
    )


def validate_student_fields(raw: StudentFields) -> List[str]:
    """
    Check one row and return every problem found. Never raises; an empty list
    means the row is valid.
    """
    errors: List[str] = []

    if not clean_text(raw.first_name):
        errors.append("First name is required")

    if not clean_text(raw.last_name):
        errors.append("Last name is required")

    normalized_date = normalize_date(raw.date_of_birth)
    if not normalized_date:
        errors.append("Date of birth is required and must be in DD-MM-YYYY or YYYY-MM-DD format")
    elif parse_iso_date(normalized_date) is None:
        errors.append("Invalid date of birth")

    if normalize_gender(raw.gender) not in Gender.values:
        errors.append("Gender must be Male, Female, or Other")

    if not clean_text(raw.parent_name):
        errors.append("Parent name is required")

    if not clean_text(raw.parent_contact):
        errors.append("Parent contact is required")
    else:
        digits = phone_digits(normalize_phone(raw.parent_contact))
        # Bare local number or local number plus a two-digit country code.
        if len(digits) not in (10, 12):
            errors.append("Parent contact must be a valid 10-digit phone number")

    return errors


def build_import_row(index: int, record: Dict[str, Any]) -> ImportRow:
    raw = StudentFields.from_mapping(record)
    extra = {key: value for key, value in record.items() if key not in STUDENT_FIELDS}
    return ImportRow(
        row=index + HEADER_ROW_OFFSET,
        original=raw,
        normalized=normalize_student_fields(raw),
        errors=validate_student_fields(raw),
        extra=extra,
    )


def review_records(records: Iterable[Dict[str, Any]]) -> List[ImportRow]:
    return [build_import_row(index, record) for index, record in enumerate(records)]


# --------------------------------------------------------------------------
# Upload storage
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class StoredUpload:
    path: Path
    file_name: str

    @property
    def relative_path(self) -> str:
        try:
            return self.path.relative_to(Path(settings.MEDIA_ROOT)).as_posix()
        except ValueError:
            return self.path.as_posix()

    def discard(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove uploaded file %s", self.path, exc_info=True)


def is_accepted_upload(upload) -> bool:
    content_type = (getattr(upload, "content_type", "") or "").split(";")[0].strip().lower()
    name = (getattr(upload, "name", "") or "").lower()
    return content_type in ALLOWED_UPLOAD_CONTENT_TYPES or name.endswith(ALLOWED_UPLOAD_EXTENSIONS)


def _safe_name(value: Any) -> str:
    return re.sub(r"[^A-Za-z0-9]", "_", str(value))


def student_upload_dir(school: School) -> Path:
    return Path(settings.MEDIA_ROOT) / STUDENT_DATA_DIR / _safe_name(school.name)


def upload_base_name(school_class: SchoolClass) -> str:
    section = f"_{_safe_name(school_class.section)}" if school_class.section else ""
    return f"Grade_{school_class.grade}{section}_{_safe_name(school_class.name)}"


def next_file_number(directory: Path, base_name: str) -> int:
    pattern = re.compile(rf"^{re.escape(base_name)}_(\d+)_")
    highest = 0
    if directory.is_dir():
        for entry in directory.iterdir():
            match = pattern.match(entry.name)
            if match:
                highest = max(highest, int(match.group(1)))
    return highest + 1


def store_upload(
    upload,
    school: School,
    school_class: SchoolClass,
    *,
    now: Optional[datetime] = None,
) -> StoredUpload:
    """
    Write the upload to ``<MEDIA_ROOT>/school_student_data/<school>/`` as
    ``Grade_<grade>[_<section>]_<class>_<n>_<timestamp><ext>``.
    """
    directory = student_upload_dir(school)
    base_name = upload_base_name(school_class)
    extension = os.path.splitext(getattr(upload, "name", "") or "")[1].lower() or ".csv"
    timestamp = (now or timezone.now()).strftime("%Y-%m-%dT%H-%M-%S")

    try:
        directory.mkdir(parents=True, exist_ok=True)
        file_number = next_file_number(directory, base_name)
        file_name = f"{base_name}_{file_number}_{timestamp}{extension}"
        path = directory / file_name
        with open(path, "wb") as handle:
            for chunk in upload.chunks():
                handle.write(chunk)
    except OSError as exc:
        raise ImportFileError(f"Could not store uploaded file: {exc}") from exc

    return StoredUpload(path=path, file_name=file_name)


def read_stored_upload(stored: StoredUpload) -> List[Dict[str, Any]]:
    result = parse_student_csv(stored.path, file_name=stored.file_name)
    if result.get("status") != "ok":
        raise ImportFileError(result.get("message", "Failed to parse CSV file"))
    return result["rows"]


def build_review_payload(stored: StoredUpload, rows: List[ImportRow]) -> Dict[str, Any]:
    valid_count = sum(1 for row in rows if row.is_valid)
    return {
        "filePath": stored.relative_path,
        "fileName": stored.file_name,
        "students": [row.to_payload() for row in rows],
        "validCount": valid_count,
        "invalidCount": len(rows) - valid_count,
    }


def review_stored_upload(stored: StoredUpload) -> Dict[str, Any]:
    """Parse, normalize and validate a stored upload. Nothing is persisted."""
    rows = review_records(read_stored_upload(stored))
    return build_review_payload(stored, rows)


# --------------------------------------------------------------------------
# Confirm / upsert
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class RowOutcome:
    action: str
    name: str
    student_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.action, "name": self.name}


RowResult = Union[RowOutcome, RowFailure]


def _student_values(student: Dict[str, Any]) -> Dict[str, Any]:
    first_name = clean_text(student.get("first_name"))
    if not first_name:
        raise DjangoValidationError("First name is required")

    raw_date = clean_text(student.get("date_of_birth"))
    date_of_birth = None
    if raw_date:
        date_of_birth = parse_iso_date(normalize_date(raw_date) or "")
        if date_of_birth is None:
            raise DjangoValidationError(f"Invalid date of birth: {raw_date!r}")

    gender = normalize_gender(student.get("gender"))
    if gender and gender not in Gender.values:
        raise DjangoValidationError("Gender must be Male, Female, or Other")

    return {
        "first_name": first_name,
        "last_name": clean_text(student.get("last_name")),
        "date_of_birth": date_of_birth,
        "gender": gender,
        "parent_name": clean_text(student.get("parent_name")),
        "parent_contact": normalize_phone(student.get("parent_contact")),
    }


def _upsert_student(
    school: School,
    school_class: SchoolClass,
    student: Dict[str, Any],
    added_by=None,
) -> RowOutcome:
    values = _student_values(student)
    name = f"{values['first_name']} {values['last_name']}".strip()

    existing = (
        Student.objects.filter(
            school=school,
            first_name=values["first_name"],
            last_name=values["last_name"],
            date_of_birth=values["date_of_birth"],
        )
        .order_by("id")
        .first()
    )
    if existing:
        existing.school_class = school_class
        existing.parent_name = values["parent_name"]
        existing.parent_contact = values["parent_contact"]
        existing.gender = values["gender"]
        existing.save(update_fields=["school_class", "parent_name", "parent_contact", "gender", "updated_at"])
        return RowOutcome(action="updated", name=name, student_id=existing.pk)

    created = Student.objects.create(
        school=school,
        school_class=school_class,
        student_type=StudentType.SCHOOL,
        is_active=True,
        extra_status=ExtraStatus.APPROVED,
        enrollment_date=timezone.localdate(),
        added_by=added_by,
        **values,
    )
    return RowOutcome(action="created", name=name, student_id=created.pk)


def import_student_row(
    school: School,
    school_class: SchoolClass,
    student: Any,
    added_by=None,
) -> RowResult:
    """Persist one row inside its own savepoint; failures are returned, not raised."""
    if not isinstance(student, dict):
        return RowFailure(message="Invalid student data", student=student)

    try:
        with transaction.atomic():
            return _upsert_student(school, school_class, student, added_by)
    except DjangoValidationError as exc:
        logger.warning("Rejected student row for school_id=%s: %s", school.pk, exc)
        return RowFailure(message=f"Invalid student data: {'; '.join(exc.messages)}", student=student)
    except DatabaseError as exc:
        logger.warning("Database error importing student for school_id=%s: %s", school.pk, exc)
        return RowFailure(message=f"Database error: {exc}", student=student)


def confirm_import(
    *,
    school: School,
    school_class: SchoolClass,
    students: Iterable[Any],
    uploaded_by=None,
    file_name: str = "",
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Upsert every reviewed row independently and record the batch in
    ``StudentImportLog``. A failing row never rolls back the others.
    """
    user = uploaded_by if getattr(uploaded_by, "is_authenticated", False) else None
    results = [import_student_row(school, school_class, student, user) for student in students]
    summary = partition_results(results)

    created = sum(1 for r in results if isinstance(r, RowOutcome) and r.action == "created")
    updated = sum(1 for r in results if isinstance(r, RowOutcome) and r.action == "updated")
    StudentImportLog.objects.create(
        school=school,
        school_class=school_class,
        file_name=file_name[:255],
        uploaded_by=user,
        records_created=created,
        records_updated=updated,
        records_failed=len(summary["errors"]),
    )
    logger.info(
        "Student import for school_id=%s class_id=%s: %s created, %s updated, %s failed",
        school.pk,
        school_class.pk,
        created,
        updated,
        len(summary["errors"]),
    )
    return summary
