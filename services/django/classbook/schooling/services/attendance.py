import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from schooling.models import (
    Attendance,
    AttendanceStatus,
    DayOfWeek,
    ExtraStatus,
    School,
    SchoolClass,
    Student,
    StudentType,
    TimetableEntry,
)
from schooling.services.results import RowFailure, partition_results

logger = logging.getLogger(__name__)


def weekday_for(on_date: date) -> str:
    return DayOfWeek.values[on_date.weekday()]


def _format_time(value):
    return value.strftime("%H:%M:%S") if value else None


def attendance_roster(
    school: School,
    on_date: date,
    school_class: Optional[SchoolClass] = None,
) -> List[Dict[str, Any]]:
    """
    One row per (student, timetable entry) scheduled for the weekday of
    ``on_date``, with the status already recorded for that date or None.
    """
    entries = TimetableEntry.objects.filter(
        is_active=True,
        day_of_week=weekday_for(on_date),
        timetable__is_active=True,
        timetable__school=school,
    ).select_related("timetable__school_class")
    if school_class is not None:
        entries = entries.filter(timetable__school_class=school_class)

    entries_by_class: Dict[int, List[TimetableEntry]] = {}
    for entry in entries.order_by("period_number", "id"):
        entries_by_class.setdefault(entry.timetable.school_class_id, []).append(entry)
    if not entries_by_class:
        return []

    students = (
        Student.objects.filter(
            school=school,
            student_type=StudentType.SCHOOL,
            is_active=True,
            school_class_id__in=list(entries_by_class),
        )
        .exclude(extra_status=ExtraStatus.DISAPPROVED)
        .order_by("first_name", "last_name", "id")
    )

    existing = {
        (student_id, entry_id): status
        for student_id, entry_id, status in Attendance.objects.filter(
            school=school, attendance_date=on_date
        ).values_list("student_id", "timetable_entry_id", "status")
    }

    rows = []
    for student in students:
        for entry in entries_by_class[student.school_class_id]:
            school_class_obj = entry.timetable.school_class
            rows.append(
                {
                    "id": student.id,
                    "first_name": student.first_name,
                    "last_name": student.last_name,
                    "class_id": school_class_obj.id,
                    "class_name": school_class_obj.name,
                    "grade": school_class_obj.grade,
                    "section": school_class_obj.section,
                    "timetable_entry_id": entry.id,
                    "period_number": entry.period_number,
                    "subject": entry.subject,
                    "start_time": _format_time(entry.start_time),
                    "end_time": _format_time(entry.end_time),
                    "existing_status": existing.get((student.id, entry.id)),
                }
            )

    rows.sort(key=lambda row: (row["class_name"], row["period_number"]))
    return rows


@dataclass(frozen=True)
class MarkedRecord:
    attendance_id: int
    student_id: int
    created: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.attendance_id,
            "student_id": self.student_id,
            "action": "created" if self.created else "updated",
        }


def _mark_one(
    school: School,
    attendance_date: date,
    record: Dict[str, Any],
    marked_by,
    school_class: Optional[SchoolClass],
) -> MarkedRecord:
    status = record.get("status")
    if status not in AttendanceStatus.values:
        raise DjangoValidationError(f"Invalid attendance status: {status!r}")

    try:
        student = Student.objects.get(pk=record.get("student_id"), school=school)
    except (Student.DoesNotExist, ValueError, TypeError):
        raise DjangoValidationError("Student not found in this school")

    entry = None
    entry_id = record.get("timetable_entry_id")
    if entry_id:
        try:
            entry = TimetableEntry.objects.get(pk=entry_id, timetable__school=school)
        except (TimetableEntry.DoesNotExist, ValueError, TypeError):
            raise DjangoValidationError("Timetable entry not found in this school")

    remarks = record.get("remarks") or ""
    attendance = Attendance.objects.filter(
        student=student,
        attendance_date=attendance_date,
        timetable_entry=entry,
    ).first()
    if attendance:
        attendance.status = status
        attendance.remarks = remarks
        attendance.marked_by = marked_by
        attendance.marked_at = timezone.now()
        attendance.save(update_fields=["status", "remarks", "marked_by", "marked_at"])
        return MarkedRecord(attendance.pk, student.pk, created=False)

    period_number = record.get("period_number")
    if period_number in (None, "") and entry is not None:
        period_number = entry.period_number
    attendance = Attendance.objects.create(
        student=student,
        school=school,
        school_class=school_class or student.school_class,
        timetable_entry=entry,
        period_number=period_number or None,
        attendance_date=attendance_date,
        status=status,
        remarks=remarks,
        marked_by=marked_by,
    )
    return MarkedRecord(attendance.pk, student.pk, created=True)


def mark_attendance(
    *,
    school: School,
    attendance_date: date,
    records: Iterable[Dict[str, Any]],
    marked_by=None,
    school_class: Optional[SchoolClass] = None,
) -> Dict[str, Any]:
    """
    Upsert one attendance record per (student, date, timetable entry).
    Each record is written in its own savepoint and reported independently.
    """
    user = marked_by if getattr(marked_by, "is_authenticated", False) else None
    results = []
    for record in records:
        if not isinstance(record, dict):
            results.append(RowFailure(message="Invalid attendance record", student=record))
            continue
        try:
            with transaction.atomic():
                results.append(_mark_one(school, attendance_date, record, user, school_class))
        except DjangoValidationError as exc:
            results.append(RowFailure(message="; ".join(exc.messages), student=record))
        except DatabaseError as exc:
            logger.warning("Database error marking attendance for school_id=%s: %s", school.pk, exc)
            results.append(RowFailure(message=f"Database error: {exc}", student=record))

    summary = partition_results(results)
    logger.info(
        "Marked attendance for school_id=%s on %s: %s saved, %s failed",
        school.pk,
        attendance_date,
        len(summary["success"]),
        len(summary["errors"]),
    )
    return {
        "message": "Attendance marked successfully",
        "count": len(summary["success"]),
        "records": summary["success"],
        "errors": summary["errors"],
    }
